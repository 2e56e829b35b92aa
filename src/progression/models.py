"""
Data models shared by the progression engine.

Pairs and groups are plain records. Matches carry the only mutable state in
the system (status and score); standings are derived views and are never
stored as a source of truth.
"""
import math
import uuid
from typing import Dict, List, Optional, Tuple

from .errors import InvalidMatch, InvalidScore

STAGE_GROUP = 'group'
STAGE_ROUND_OF_64 = 'round_of_64'
STAGE_ROUND_OF_32 = 'round_of_32'
STAGE_ROUND_OF_16 = 'round_of_16'
STAGE_QUARTERFINAL = 'quarterfinal'
STAGE_SEMIFINAL = 'semifinal'
STAGE_FINAL = 'final'
STAGE_THIRD_PLACE = 'third_place'

ELIMINATION_STAGES = (
    STAGE_ROUND_OF_64,
    STAGE_ROUND_OF_32,
    STAGE_ROUND_OF_16,
    STAGE_QUARTERFINAL,
    STAGE_SEMIFINAL,
    STAGE_FINAL,
    STAGE_THIRD_PLACE,
)
MATCH_STAGES = (STAGE_GROUP,) + ELIMINATION_STAGES

STATUS_PENDING = 'pending'
STATUS_SCHEDULED = 'scheduled'
STATUS_COMPLETED = 'completed'

# Statuses only ever move forward through this tuple
MATCH_STATUSES = (STATUS_PENDING, STATUS_SCHEDULED, STATUS_COMPLETED)


def new_id() -> str:
    """Placeholder identifier; the persistence layer may remap it."""
    return str(uuid.uuid4())


class Pair:
    def __init__(self, id, player1, player2, seed=None, category_id=None):
        self.id = id
        self.player1 = player1
        self.player2 = player2
        self.seed = seed
        self.category_id = category_id

    @property
    def display_name(self) -> str:
        return f"{self.player1} / {self.player2}"

    def to_dict(self) -> Dict:
        data = {'id': self.id, 'player1': self.player1, 'player2': self.player2}
        if self.seed is not None:
            data['seed'] = self.seed
        if self.category_id is not None:
            data['category_id'] = self.category_id
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'Pair':
        seed = data.get('seed')
        return cls(
            id=str(data['id']),
            player1=data.get('player1', ''),
            player2=data.get('player2', ''),
            seed=int(seed) if seed is not None else None,
            category_id=data.get('category_id'),
        )

    def __repr__(self):
        return f"Pair(id={self.id}, players={self.display_name}, seed={self.seed})"


class Group:
    def __init__(self, name, pair_ids=None, id=None, category_id=None):
        self.id = id or new_id()
        self.name = name
        self.pair_ids = list(pair_ids) if pair_ids else []
        self.category_id = category_id

    @property
    def size(self) -> int:
        return len(self.pair_ids)

    def to_dict(self) -> Dict:
        data = {'id': self.id, 'name': self.name, 'pair_ids': list(self.pair_ids)}
        if self.category_id is not None:
            data['category_id'] = self.category_id
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'Group':
        return cls(
            name=data['name'],
            pair_ids=[str(p) for p in data.get('pair_ids', [])],
            id=data.get('id'),
            category_id=data.get('category_id'),
        )

    def __repr__(self):
        return f"Group(name={self.name}, pair_ids={self.pair_ids})"


def _coerce_set(set_score) -> Tuple[int, int]:
    if isinstance(set_score, dict):
        if 'a' not in set_score or 'b' not in set_score:
            raise InvalidScore(f"Set result must have 'a' and 'b': {set_score!r}")
        a, b = set_score['a'], set_score['b']
    else:
        try:
            a, b = set_score
        except (TypeError, ValueError):
            raise InvalidScore(f"Set result must be a pair of game counts: {set_score!r}")
    try:
        return int(a), int(b)
    except (TypeError, ValueError):
        raise InvalidScore(f"Game counts must be integers: {set_score!r}")


class Score:
    """Ordered set results, each as (side A games, side B games)."""

    def __init__(self, sets=None):
        self.sets = [_coerce_set(s) for s in (sets or [])]

    def sets_won(self) -> Tuple[int, int]:
        a_sets = sum(1 for a, b in self.sets if a > b)
        b_sets = sum(1 for a, b in self.sets if b > a)
        return a_sets, b_sets

    def games(self) -> Tuple[int, int]:
        return sum(a for a, _ in self.sets), sum(b for _, b in self.sets)

    def winner_side(self) -> Optional[str]:
        """Return 'a' or 'b' for the side that took a majority of sets."""
        if not self.sets:
            return None
        needed = math.ceil(len(self.sets) / 2)
        a_sets, b_sets = self.sets_won()
        if a_sets >= needed and a_sets > b_sets:
            return 'a'
        if b_sets >= needed and b_sets > a_sets:
            return 'b'
        return None

    def validate(self):
        if not self.sets:
            raise InvalidScore("A score needs at least one set")
        for number, (a, b) in enumerate(self.sets, start=1):
            if a < 0 or b < 0:
                raise InvalidScore(f"Set {number} has a negative game count ({a}-{b})")
            if a == b:
                raise InvalidScore(f"Set {number} is tied ({a}-{b})")
        if self.winner_side() is None:
            raise InvalidScore(f"Score {self} does not produce a winner")

    def to_dict(self) -> List[Dict]:
        return [{'a': a, 'b': b} for a, b in self.sets]

    @classmethod
    def from_dict(cls, data) -> 'Score':
        if isinstance(data, dict):
            data = data.get('sets', [])
        return cls(data)

    def __eq__(self, other):
        return isinstance(other, Score) and self.sets == other.sets

    def __str__(self):
        return ', '.join(f"{a}-{b}" for a, b in self.sets)

    def __repr__(self):
        return f"Score(sets={self.sets})"


class Match:
    def __init__(self, stage, pair_a_id=None, pair_b_id=None, group_id=None,
                 status=STATUS_PENDING, score=None, id=None, category_id=None,
                 round_number=None, match_number=None, seeds=None):
        if stage not in MATCH_STAGES:
            raise InvalidMatch(f"Unknown stage: {stage}")
        if status not in MATCH_STATUSES:
            raise InvalidMatch(f"Unknown status: {status}")
        if pair_a_id is not None and pair_a_id == pair_b_id:
            raise InvalidMatch(f"Pair {pair_a_id} cannot play itself")
        self.id = id or new_id()
        self.stage = stage
        self.group_id = group_id
        self.pair_a_id = pair_a_id
        self.pair_b_id = pair_b_id
        self.status = status
        self.score = score
        self.category_id = category_id
        self.round_number = round_number
        self.match_number = match_number
        self.seeds = tuple(seeds) if seeds else None

    @property
    def is_placeholder(self) -> bool:
        return self.pair_a_id is None or self.pair_b_id is None

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @property
    def winner_id(self):
        if not self.is_completed or self.score is None or self.is_placeholder:
            return None
        side = self.score.winner_side()
        if side == 'a':
            return self.pair_a_id
        if side == 'b':
            return self.pair_b_id
        return None

    @property
    def loser_id(self):
        winner = self.winner_id
        if winner is None:
            return None
        return self.pair_b_id if winner == self.pair_a_id else self.pair_a_id

    def involves(self, pair_id) -> bool:
        return pair_id is not None and pair_id in (self.pair_a_id, self.pair_b_id)

    def same_matchup(self, other: 'Match') -> bool:
        """True when both matches oppose the same two pairs in the same group."""
        return (
            self.group_id == other.group_id
            and {self.pair_a_id, self.pair_b_id} == {other.pair_a_id, other.pair_b_id}
        )

    def _advance_status(self, status):
        current = MATCH_STATUSES.index(self.status)
        target = MATCH_STATUSES.index(status)
        if self.status == STATUS_COMPLETED:
            raise InvalidMatch(f"Match {self.id} is already completed")
        if target <= current:
            raise InvalidMatch(f"Match {self.id} cannot move from {self.status} back to {status}")
        self.status = status

    def schedule(self):
        self._advance_status(STATUS_SCHEDULED)

    def record_score(self, score):
        if not isinstance(score, Score):
            score = Score.from_dict(score)
        if self.is_placeholder:
            raise InvalidMatch(f"Match {self.id} has no opponents yet")
        score.validate()
        self._advance_status(STATUS_COMPLETED)
        self.score = score

    def to_dict(self) -> Dict:
        data = {
            'id': self.id,
            'stage': self.stage,
            'pair_a_id': self.pair_a_id,
            'pair_b_id': self.pair_b_id,
            'status': self.status,
        }
        if self.group_id is not None:
            data['group_id'] = self.group_id
        if self.category_id is not None:
            data['category_id'] = self.category_id
        if self.score is not None:
            data['score'] = self.score.to_dict()
        if self.round_number is not None:
            data['round_number'] = self.round_number
            data['match_number'] = self.match_number
        if self.seeds:
            data['seeds'] = list(self.seeds)
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        score = data.get('score')
        pair_a_id = data.get('pair_a_id')
        pair_b_id = data.get('pair_b_id')
        return cls(
            stage=data.get('stage', STAGE_GROUP),
            pair_a_id=str(pair_a_id) if pair_a_id is not None else None,
            pair_b_id=str(pair_b_id) if pair_b_id is not None else None,
            group_id=data.get('group_id'),
            status=data.get('status', STATUS_PENDING),
            score=Score.from_dict(score) if score else None,
            id=data.get('id'),
            category_id=data.get('category_id'),
            round_number=data.get('round_number'),
            match_number=data.get('match_number'),
            seeds=data.get('seeds'),
        )

    def __repr__(self):
        return (f"Match(stage={self.stage}, pair_a={self.pair_a_id}, pair_b={self.pair_b_id}, "
                f"status={self.status}, score={self.score})")


class Standing:
    """Per-pair statistics derived from completed matches."""

    def __init__(self, pair_id, pair=None):
        self.pair_id = pair_id
        self.pair = pair
        self.wins = 0
        self.losses = 0
        self.points = 0
        self.sets_for = 0
        self.sets_against = 0
        self.games_for = 0
        self.games_against = 0
        # Elimination stage only
        self.elimination_status = None
        self.current_stage = None
        self.source = None

    @property
    def matches_played(self) -> int:
        return self.wins + self.losses

    @property
    def sets_diff(self) -> int:
        return self.sets_for - self.sets_against

    @property
    def games_diff(self) -> int:
        return self.games_for - self.games_against

    def to_dict(self) -> Dict:
        data = {
            'pair_id': self.pair_id,
            'pair': self.pair.display_name if self.pair else None,
            'matches_played': self.matches_played,
            'wins': self.wins,
            'losses': self.losses,
            'points': self.points,
            'sets_for': self.sets_for,
            'sets_against': self.sets_against,
            'sets_diff': self.sets_diff,
            'games_for': self.games_for,
            'games_against': self.games_against,
            'games_diff': self.games_diff,
        }
        if self.elimination_status is not None:
            data['elimination_status'] = self.elimination_status
            data['current_stage'] = self.current_stage
            data['source'] = self.source
        return data

    def __repr__(self):
        return (f"Standing(pair_id={self.pair_id}, points={self.points}, "
                f"wins={self.wins}, losses={self.losses}, sets_diff={self.sets_diff}, "
                f"games_diff={self.games_diff})")
