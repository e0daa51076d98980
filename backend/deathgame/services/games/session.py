import logging
import math
import time
from typing import List, Optional

from deathgame.errors import InvalidSubmission
from deathgame.models import FINISHED, PLAYING, ROUND_END, WAITING, Player
from .scoring import RoundOutcome, resolve_round

logger = logging.getLogger(__name__)


class GameSession:
    """State machine for one room's game.

    waiting -> playing -> round_end -> playing (next round) | finished

    The player set is fixed at creation; afterwards only ``points`` and
    ``is_alive`` of those players change.
    """

    def __init__(
        self,
        room_code,
        players,
        long_round_sec=300,
        short_round_sec=60,
        elimination_threshold=-10,
        min_number=0,
        max_number=100,
    ):
        self.room_code = room_code
        self.players = dict(players)
        self.round = 1
        self.eliminated_count = 0
        self.phase = WAITING
        self.round_submissions = {}
        self.round_started_at = None
        self.time_limit = None
        self.last_outcome: Optional[RoundOutcome] = None
        self.long_round_sec = long_round_sec
        self.short_round_sec = short_round_sec
        self.elimination_threshold = elimination_threshold
        self.min_number = min_number
        self.max_number = max_number

    @classmethod
    def from_config(cls, room_code, players, config):
        return cls(
            room_code,
            players,
            long_round_sec=int(config.get('LONG_ROUND_SEC', 300)),
            short_round_sec=int(config.get('SHORT_ROUND_SEC', 60)),
            elimination_threshold=int(config.get('ELIMINATION_THRESHOLD', -10)),
            min_number=config.get('MIN_NUMBER', 0),
            max_number=config.get('MAX_NUMBER', 100),
        )

    def get_alive_players(self) -> List[Player]:
        return [p for p in self.players.values() if p.is_alive]

    def is_long_round(self) -> bool:
        """Round 1 and the rounds right after the field thins out get the long allowance."""
        n = len(self.players)
        return self.round == 1 or self.eliminated_count in (n - 4, n - 3, n - 2)

    def round_info(self) -> dict:
        return {
            'round': self.round,
            'timeLimit': self.time_limit,
            'playersRemaining': len(self.get_alive_players()),
        }

    def start_round(self) -> dict:
        self.phase = PLAYING
        self.round_started_at = time.time()
        self.round_submissions.clear()
        self.time_limit = self.long_round_sec if self.is_long_round() else self.short_round_sec
        logger.info(
            f"[round-start] room={self.room_code} round={self.round} "
            f"time_limit={self.time_limit}s alive={len(self.get_alive_players())}"
        )
        return self.round_info()

    def advance_round(self) -> dict:
        self.round += 1
        return self.start_round()

    def validate_number(self, value):
        # bool is an int subclass but never a valid guess
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidSubmission('Number must be numeric')
        if not math.isfinite(value):
            raise InvalidSubmission('Number must be finite')
        if not self.min_number <= value <= self.max_number:
            raise InvalidSubmission(f'Number must be between {self.min_number} and {self.max_number}')
        return value

    def submit_number(self, player_id, value) -> bool:
        """Record a submission; True once every alive player has submitted.

        Returns False without recording when the round isn't collecting or the
        player isn't alive. A second submission in the same round replaces the
        first.
        """
        if self.phase != PLAYING:
            return False
        player = self.players.get(player_id)
        if player is None or not player.is_alive:
            return False
        self.round_submissions[player_id] = self.validate_number(value)
        player.number = value
        return self.all_submitted()

    def all_submitted(self) -> bool:
        return len(self.round_submissions) == len(self.get_alive_players())

    def calculate_round_results(self, force=False) -> RoundOutcome:
        alive_points = {p.id: p.points for p in self.get_alive_players()}
        outcome = resolve_round(
            self.round_submissions,
            alive_points,
            elimination_threshold=self.elimination_threshold,
            forced=force and not self.all_submitted(),
        )
        for pid, delta in outcome.penalties.items():
            self.players[pid].points += delta
        for pid in outcome.eliminated_ids:
            self.players[pid].eliminate()
            self.round_submissions.pop(pid, None)
        self.eliminated_count += len(outcome.eliminated_ids)
        self.phase = FINISHED if outcome.game_over else ROUND_END
        self.last_outcome = outcome
        logger.info(
            f"[resolve] room={self.room_code} round={self.round} target={outcome.target} "
            f"winner={outcome.winner_id} eliminated={outcome.eliminated_ids} "
            f"forced={outcome.forced} game_over={outcome.game_over}"
        )
        return outcome

    def forfeit(self, player_id) -> bool:
        """Eliminate a player who left mid-game. Points are left as they are."""
        player = self.players.get(player_id)
        if player is None or not player.is_alive or self.phase == FINISHED:
            return False
        player.eliminate()
        self.eliminated_count += 1
        self.round_submissions.pop(player_id, None)
        if len(self.get_alive_players()) <= 1:
            self.phase = FINISHED
        logger.info(f"[forfeit] room={self.room_code} round={self.round} player={player_id}")
        return True

    @property
    def is_finished(self) -> bool:
        return self.phase == FINISHED

    def final_scores(self) -> List[dict]:
        return [p.to_dict() for p in self.players.values()]

    def to_dict(self) -> dict:
        return {
            'room_code': self.room_code,
            'status': self.phase,
            'round': self.round,
            'timeLimit': self.time_limit,
            'roundStartedAt': self.round_started_at,
            'eliminatedCount': self.eliminated_count,
            'playersRemaining': len(self.get_alive_players()),
            'submittedCount': len(self.round_submissions),
            'players': self.final_scores(),
        }
