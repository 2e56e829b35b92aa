# Command line entry point for running a category's draw from YAML files

import argparse
import logging
import sys

import yaml
from filelock import FileLock, Timeout

from progression.config import configure_logging, load_settings
from progression.elimination import build_bracket
from progression.errors import TournamentError
from progression.formats import get_stage_name
from progression.groups import generate_groups, validate_group_configuration
from progression.models import Group, Match, Pair
from progression.qualification import resolve_qualifiers, suggest_bracket_size
from progression.round_robin import generate_all_group_matches
from progression.standings import calculate_group_standings

logger = logging.getLogger('progression.cli')


def load_roster(file_path):
    """Read a roster file. Returns (category, [Pair])."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or {}
    category = data.get('category')
    pairs = [Pair.from_dict(dict(entry, category_id=category)) for entry in data.get('pairs', [])]
    return category, pairs


def load_draw(file_path):
    """Read a draw file written by the groups command. Returns (groups, matches)."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or {}
    groups = [Group.from_dict(g) for g in data.get('groups', [])]
    matches = [Match.from_dict(m) for m in data.get('matches', [])]
    return groups, matches


def write_yaml(file_path, data, timeout):
    """Write a YAML file while holding its lock, so one regeneration runs at a time."""
    lock = FileLock(f"{file_path}.lock", timeout=timeout)
    with lock:
        with open(file_path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def group_standings(groups, matches, pairs, settings):
    return calculate_group_standings(
        groups, matches, pairs,
        points_per_win=settings['group_points_per_win'],
        points_per_loss=settings['group_points_per_loss'],
    )


def cmd_check(args, settings):
    _, pairs = load_roster(args.roster)
    result = validate_group_configuration(len(pairs), settings['min_group_size'], settings['max_group_size'])
    if not result['is_valid']:
        print(f"Invalid configuration: {result['message']}", file=sys.stderr)
        return 1
    print(f"{len(pairs)} pairs, groups of {settings['min_group_size']}-{settings['max_group_size']}")
    print(f"Possible group counts: {result['min_groups']}-{result['max_groups']}")
    print(f"Most balanced: {result['suggested_groups']} groups")
    return 0


def cmd_groups(args, settings):
    category, pairs = load_roster(args.roster)
    groups = generate_groups(
        pairs, settings['min_group_size'], settings['max_group_size'],
        category_id=category, balance_by_seeds=settings['balance_by_seeds'],
    )
    matches = generate_all_group_matches(groups, pairs)

    # Groups and their fixtures are replaced together
    write_yaml(args.output, {
        'category': category,
        'groups': [g.to_dict() for g in groups],
        'matches': [m.to_dict() for m in matches],
    }, settings['lock_timeout_seconds'])
    logger.info("Regenerated draw for %s: %d groups, %d matches", category, len(groups), len(matches))

    names = {pair.id: pair.display_name for pair in pairs}
    first_group = True
    for group in groups:
        if not first_group:
            print()
        print(f"# {group.name}")
        for pair_id in group.pair_ids:
            print(names.get(pair_id, pair_id))
        first_group = False
    print(f"\n{len(matches)} group matches written to {args.output}")
    return 0


def cmd_standings(args, settings):
    _, pairs = load_roster(args.roster)
    groups, matches = load_draw(args.draw)
    standings = group_standings(groups, matches, pairs, settings)

    first_group = True
    for name, rows in standings.items():
        if not first_group:
            print()
        print(f"# {name}")
        print(f"{'#':>2}  {'Pair':<30} {'P':>2} {'W':>2} {'L':>2} {'Sets':>5} {'Games':>6} {'Pts':>4}")
        for position, row in enumerate(rows, start=1):
            pair_name = row.pair.display_name if row.pair else row.pair_id
            print(f"{position:>2}  {pair_name:<30} {row.matches_played:>2} {row.wins:>2} {row.losses:>2} "
                  f"{row.sets_diff:>+5} {row.games_diff:>+6} {row.points:>4}")
        first_group = False
    return 0


def cmd_bracket(args, settings):
    category, pairs = load_roster(args.roster)
    groups, matches = load_draw(args.draw)
    standings = group_standings(groups, matches, pairs, settings)

    bracket_size = args.size or settings['bracket_size'] or suggest_bracket_size(len(groups))
    third_place = settings['third_place'] and not args.no_third_place

    qualifiers = resolve_qualifiers(standings, bracket_size)
    bracket = build_bracket(qualifiers, third_place=third_place, category_id=category)

    write_yaml(args.output, {
        'category': category,
        'bracket_size': bracket['bracket_size'],
        'format': bracket['format'].id,
        'qualifiers': [q.to_dict() for q in qualifiers],
        'matches': [m.to_dict() for m in bracket['matches']],
    }, settings['lock_timeout_seconds'])

    names = {pair.id: pair.display_name for pair in pairs}
    sources = {q.pair_id: q.source for q in qualifiers}
    first_stage = next(iter(bracket['rounds']))
    print(f"# {get_stage_name(first_stage)}")
    for match in bracket['rounds'][first_stage]:
        seed_a, seed_b = match.seeds
        print(f"({seed_a}) {names.get(match.pair_a_id)} [{sources[match.pair_a_id]}] vs "
              f"({seed_b}) {names.get(match.pair_b_id)} [{sources[match.pair_b_id]}]")
    print(f"\nBracket written to {args.output}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        description='Generate groups, standings and elimination brackets for a category'
    )
    parser.add_argument('--config', help='Settings YAML file (default: $PROGRESSION_CONFIG)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    check = subparsers.add_parser('check', help='Check whether the roster can be split into groups')
    check.add_argument('roster', help='Roster YAML file')
    check.set_defaults(handler=cmd_check)

    groups = subparsers.add_parser('groups', help='Generate groups and their round-robin matches')
    groups.add_argument('roster', help='Roster YAML file')
    groups.add_argument('-o', '--output', required=True, help='Draw YAML file to write')
    groups.set_defaults(handler=cmd_groups)

    standings = subparsers.add_parser('standings', help='Print group standings')
    standings.add_argument('roster', help='Roster YAML file')
    standings.add_argument('draw', help='Draw YAML file with recorded scores')
    standings.set_defaults(handler=cmd_standings)

    bracket = subparsers.add_parser('bracket', help='Seed qualifiers into an elimination bracket')
    bracket.add_argument('roster', help='Roster YAML file')
    bracket.add_argument('draw', help='Draw YAML file with recorded scores')
    bracket.add_argument('-o', '--output', required=True, help='Bracket YAML file to write')
    bracket.add_argument('--size', type=int, help='Bracket size (default: from settings or group count)')
    bracket.add_argument('--no-third-place', action='store_true', help='Skip the third-place match')
    bracket.set_defaults(handler=cmd_bracket)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
    except TournamentError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    configure_logging(settings['log_level'])

    try:
        return args.handler(args, settings)
    except TournamentError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Timeout as e:
        print(f"Error: another regeneration is in progress ({e.lock_file})", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
