from dataclasses import dataclass, field
from typing import Dict, List, Optional

TARGET_RATIO = 0.8
# Duplicate values can't win once this many players (or fewer) are alive
DUPLICATE_RULE_MAX_ALIVE = 4
SUDDEN_DEATH_VALUES = [0, 100]


@dataclass
class RoundOutcome:
    numbers: Dict[str, float]
    average: Optional[float] = None
    target: Optional[float] = None
    winner_id: Optional[str] = None
    duplicates: List[float] = field(default_factory=list)
    penalties: Dict[str, int] = field(default_factory=dict)
    eliminated_ids: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    game_over: bool = False
    special_rule: bool = False
    forced: bool = False

    def to_dict(self, players) -> dict:
        """Serialize for the ``roundResults`` event, resolving ids via ``players``."""
        winner = players.get(self.winner_id) if self.winner_id is not None else None
        payload = {
            'numbers': dict(self.numbers),
            'average': self.average,
            'target': self.target,
            'winner': winner.to_dict() if winner else None,
            'duplicates': list(self.duplicates),
            'eliminations': [players[pid].to_dict() for pid in self.eliminated_ids],
            'penalties': dict(self.penalties),
            'missing': list(self.missing),
            'gameOver': self.game_over,
            'forced': self.forced,
        }
        if self.special_rule:
            payload['specialRule'] = True
        return payload


def find_duplicates(values) -> List[float]:
    """Values submitted more than once, each reported once in first-seen order."""
    seen = set()
    duplicates = []
    for value in values:
        if value in seen and value not in duplicates:
            duplicates.append(value)
        seen.add(value)
    return duplicates


def _sudden_death_winner(submissions, alive_count):
    if alive_count != 2 or len(submissions) != 2:
        return None
    if sorted(submissions.values()) != SUDDEN_DEATH_VALUES:
        return None
    return next(pid for pid, value in submissions.items() if value == 100)


def resolve_round(submissions, alive_points, elimination_threshold=-10, forced=False) -> RoundOutcome:
    """Resolve one round.

    ``submissions`` maps player id to number in arrival order and
    ``alive_points`` maps every alive player id to its current points. Alive
    players missing from ``submissions`` (only possible on a forced
    resolution) can't win and lose a point like any other loser.

    Nothing passed in is mutated; the caller applies ``penalties`` and
    ``eliminated_ids``.
    """
    alive_count = len(alive_points)
    numbers = dict(submissions)
    outcome = RoundOutcome(
        numbers=numbers,
        missing=[pid for pid in alive_points if pid not in numbers],
        forced=forced,
    )
    if numbers:
        outcome.average = sum(numbers.values()) / len(numbers)
        outcome.target = outcome.average * TARGET_RATIO

    sudden_winner = _sudden_death_winner(numbers, alive_count)
    if sudden_winner is not None:
        outcome.winner_id = sudden_winner
        outcome.special_rule = True
        outcome.game_over = True
        outcome.eliminated_ids = [pid for pid in alive_points if pid != sudden_winner]
        return outcome

    outcome.duplicates = find_duplicates(numbers.values())
    exclude_duplicates = alive_count <= DUPLICATE_RULE_MAX_ALIVE

    closest_distance = None
    for pid, value in numbers.items():
        if exclude_duplicates and value in outcome.duplicates:
            continue
        distance = abs(value - outcome.target)
        # Strict comparison: the earliest submission keeps a tie
        if closest_distance is None or distance < closest_distance:
            closest_distance = distance
            outcome.winner_id = pid

    for pid in alive_points:
        if pid == outcome.winner_id:
            continue
        penalty = -1
        if alive_count == 3 and pid in numbers and numbers[pid] == outcome.target:
            penalty *= 2
        outcome.penalties[pid] = penalty

    for pid, points in alive_points.items():
        if points + outcome.penalties.get(pid, 0) <= elimination_threshold:
            outcome.eliminated_ids.append(pid)

    outcome.game_over = alive_count - len(outcome.eliminated_ids) <= 1
    return outcome
