"""
Flask JSON API over the tournament progression engine.

The app holds no state: every request carries the pairs, groups and matches
it needs, and every response returns freshly computed results.
"""
from flask import Flask, abort, jsonify, request
from werkzeug.exceptions import BadRequest

from progression.config import load_settings
from progression.elimination import (
    advance_winner,
    build_bracket,
    build_manual_bracket,
    get_champion,
    get_unused_pairs,
    manual_bracket_structure,
)
from progression.errors import TournamentError
from progression.formats import ELIMINATION_FORMATS, get_format, get_recommended_format
from progression.groups import calculate_group_stats, generate_groups, validate_group_configuration
from progression.models import Group, Match, Pair
from progression.qualification import resolve_qualifiers, suggest_bracket_size
from progression.round_robin import (
    calculate_total_matches,
    generate_all_group_matches,
    generate_round_robin_matches,
    verify_group_completeness,
)
from progression.standings import (
    calculate_elimination_standings,
    calculate_group_standings,
    calculate_standings,
)

app = Flask(__name__)

SETTINGS = load_settings()


@app.errorhandler(TournamentError)
def handle_tournament_error(e):
    app.logger.warning(f'{e.code}: {e.message}')
    return jsonify({'success': False, 'error': e.message, 'code': e.code}), 400


@app.errorhandler(BadRequest)
def handle_bad_request(e):
    return jsonify({'success': False, 'error': e.description, 'code': 'BadRequest'}), 400


def _payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description='Request body must be a JSON object')
    return data


def _parse(model, items, field):
    """Build model objects from a list of dicts, rejecting malformed entries with 400."""
    if not isinstance(items, list):
        abort(400, description=f"'{field}' must be a list")
    try:
        return [model.from_dict(item) for item in items]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        abort(400, description=f"Malformed entry in '{field}': {e}")


def _setting(data, key):
    return data.get(key, SETTINGS[key])


def _group_standings(data):
    pairs = _parse(Pair, data.get('pairs', []), 'pairs')
    groups = _parse(Group, data.get('groups', []), 'groups')
    matches = _parse(Match, data.get('matches', []), 'matches')
    standings = calculate_group_standings(
        groups, matches, pairs,
        points_per_win=_setting(data, 'group_points_per_win'),
        points_per_loss=_setting(data, 'group_points_per_loss'),
    )
    return groups, standings


def _bracket_response(bracket):
    return {
        'success': True,
        'bracket_size': bracket['bracket_size'],
        'format': bracket['format'].to_dict(),
        'total_rounds': bracket['total_rounds'],
        'seeded_pairs': [{'pair_id': pair_id, 'seed': seed} for pair_id, seed in bracket['seeded_pairs']],
        'rounds': {stage: [m.to_dict() for m in matches] for stage, matches in bracket['rounds'].items()},
    }


@app.route('/api/groups/validate', methods=['POST'])
def api_validate_groups():
    """Check whether a number of pairs can be split into groups within the size bounds."""
    data = _payload()
    if 'total_pairs' in data:
        total_pairs = data['total_pairs']
    else:
        total_pairs = len(data.get('pairs', []))
    if not isinstance(total_pairs, int):
        abort(400, description="'total_pairs' must be an integer")

    result = validate_group_configuration(
        total_pairs,
        _setting(data, 'min_group_size'),
        _setting(data, 'max_group_size'),
    )
    return jsonify(result)


@app.route('/api/groups/generate', methods=['POST'])
def api_generate_groups():
    """Distribute pairs into groups and generate each group's round-robin matches."""
    data = _payload()
    pairs = _parse(Pair, data.get('pairs', []), 'pairs')

    groups = generate_groups(
        pairs,
        _setting(data, 'min_group_size'),
        _setting(data, 'max_group_size'),
        category_id=data.get('category_id'),
        balance_by_seeds=_setting(data, 'balance_by_seeds'),
    )
    matches = generate_all_group_matches(groups, pairs)
    app.logger.info(f'Generated {len(groups)} groups and {len(matches)} matches for {len(pairs)} pairs')

    return jsonify({
        'success': True,
        'groups': [g.to_dict() for g in groups],
        'matches': [m.to_dict() for m in matches],
        'stats': calculate_group_stats(groups),
    })


@app.route('/api/matches/round-robin', methods=['POST'])
def api_round_robin():
    """Matches for a single group; with 'matches' supplied, checks them for completeness instead."""
    data = _payload()
    if not isinstance(data.get('group'), dict):
        abort(400, description="'group' must be an object")
    group = _parse(Group, [data['group']], 'group')[0]

    if 'matches' in data:
        matches = _parse(Match, data['matches'], 'matches')
        result = verify_group_completeness(group, matches)
        return jsonify({
            'success': True,
            'is_complete': result['is_complete'],
            'missing_matches': [list(pair_ids) for pair_ids in result['missing_matches']],
            'duplicates': [[first.id, second.id] for first, second in result['duplicates']],
        })

    pairs = _parse(Pair, data.get('pairs', []), 'pairs')
    matches = generate_round_robin_matches(group, pairs)
    return jsonify({
        'success': True,
        'matches': [m.to_dict() for m in matches],
        'total_matches': calculate_total_matches(group.size),
    })


@app.route('/api/standings', methods=['POST'])
def api_standings():
    """Group standings, either for one roster or per group when 'groups' is given."""
    data = _payload()
    if 'groups' in data:
        _, standings = _group_standings(data)
        return jsonify({
            'success': True,
            'standings': {name: [s.to_dict() for s in rows] for name, rows in standings.items()},
        })

    pairs = _parse(Pair, data.get('pairs', []), 'pairs')
    matches = _parse(Match, data.get('matches', []), 'matches')
    standings = calculate_standings(
        matches, pairs,
        points_per_win=_setting(data, 'group_points_per_win'),
        points_per_loss=_setting(data, 'group_points_per_loss'),
    )
    return jsonify({'success': True, 'standings': [s.to_dict() for s in standings]})


@app.route('/api/standings/elimination', methods=['POST'])
def api_elimination_standings():
    data = _payload()
    pairs = _parse(Pair, data.get('pairs', []), 'pairs')
    matches = _parse(Match, data.get('matches', []), 'matches')

    # Seed order defaults to roster order
    pairs_by_id = {pair.id: pair for pair in pairs}
    seeded_ids = data.get('seeded_pair_ids') or [pair.id for pair in pairs]
    missing = [pid for pid in seeded_ids if pid not in pairs_by_id]
    if missing:
        abort(400, description=f"Unknown pair ids in 'seeded_pair_ids': {missing}")

    standings = calculate_elimination_standings(
        matches, [pairs_by_id[pid] for pid in seeded_ids],
        points_per_win=_setting(data, 'elimination_points_per_win'),
        points_per_loss=_setting(data, 'elimination_points_per_loss'),
    )
    return jsonify({
        'success': True,
        'standings': [s.to_dict() for s in standings],
        'champion': get_champion(matches),
    })


@app.route('/api/qualifiers', methods=['POST'])
def api_qualifiers():
    """Select and seed the pairs that advance from the group stage."""
    data = _payload()
    groups, standings = _group_standings(data)
    bracket_size = data.get('bracket_size') or SETTINGS['bracket_size'] or suggest_bracket_size(len(groups))

    qualifiers = resolve_qualifiers(standings, bracket_size)
    return jsonify({
        'success': True,
        'bracket_size': bracket_size,
        'qualifiers': [q.to_dict() for q in qualifiers],
    })


@app.route('/api/bracket', methods=['POST'])
def api_bracket():
    """
    Build a seeded bracket.

    Either pass 'seeded_pair_ids' (seed 1 first), or the group stage
    ('pairs', 'groups', 'matches') to resolve qualifiers first.
    """
    data = _payload()
    third_place = _setting(data, 'third_place')
    fmt = None
    if data.get('format'):
        fmt = get_format(data['format'])
        if fmt is None:
            abort(400, description=f"Unknown format: {data['format']}")

    if data.get('seeded_pair_ids'):
        bracket = build_bracket(data['seeded_pair_ids'], fmt=fmt, third_place=third_place,
                                category_id=data.get('category_id'))
        return jsonify(_bracket_response(bracket))

    groups, standings = _group_standings(data)
    if fmt is not None:
        bracket_size = fmt.bracket_size
    else:
        bracket_size = data.get('bracket_size') or SETTINGS['bracket_size'] or suggest_bracket_size(len(groups))
    qualifiers = resolve_qualifiers(standings, bracket_size)
    bracket = build_bracket(qualifiers, fmt=fmt, third_place=third_place,
                            category_id=data.get('category_id'))

    response = _bracket_response(bracket)
    response['qualifiers'] = [q.to_dict() for q in qualifiers]
    return jsonify(response)


@app.route('/api/bracket/manual', methods=['POST'])
def api_manual_bracket():
    """Build a bracket from hand-picked first-round matchups."""
    data = _payload()
    matchups = data.get('matchups')
    if not isinstance(matchups, list) or not all(
            isinstance(m, (list, tuple)) and len(m) == 2 for m in matchups):
        abort(400, description="'matchups' must be a list of [pair_a_id, pair_b_id]")

    fmt = None
    if data.get('format'):
        fmt = get_format(data['format'])
        if fmt is None:
            abort(400, description=f"Unknown format: {data['format']}")

    qualified = data.get('qualified_pair_ids')
    bracket = build_manual_bracket(
        [tuple(m) for m in matchups], qualified_pair_ids=qualified, fmt=fmt,
        third_place=_setting(data, 'third_place'), category_id=data.get('category_id'),
    )

    response = _bracket_response(bracket)
    response['unused_pairs'] = get_unused_pairs(matchups, qualified or [])
    return jsonify(response)


@app.route('/api/bracket/advance', methods=['POST'])
def api_advance():
    """Record a bracket result (when 'score' is given) and move the winner on."""
    data = _payload()
    matches = _parse(Match, data.get('matches', []), 'matches')
    match = next((m for m in matches if m.id == data.get('match_id')), None)
    if match is None:
        abort(400, description=f"No match with id {data.get('match_id')!r}")

    if data.get('score') is not None:
        match.record_score(data['score'])

    updated = advance_winner(matches, match)
    return jsonify({
        'success': True,
        'matches': [m.to_dict() for m in updated],
        'champion': get_champion(updated),
    })


@app.route('/api/formats', methods=['GET'])
def api_formats():
    """Registered elimination formats; ?teams=N adds a recommendation."""
    response = {'formats': [f.to_dict() for f in ELIMINATION_FORMATS]}

    teams = request.args.get('teams', type=int)
    if teams is not None:
        recommended = get_recommended_format(teams)
        response['recommended'] = recommended.to_dict() if recommended else None

    format_id = request.args.get('format')
    if format_id:
        fmt = get_format(format_id)
        if fmt is None:
            abort(400, description=f"Unknown format: {format_id}")
        response['structure'] = manual_bracket_structure(fmt)
    return jsonify(response)


if __name__ == '__main__':
    app.run(debug=True, port=5000)
