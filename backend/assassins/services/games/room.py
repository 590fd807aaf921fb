import logging
import threading
from typing import Callable, Mapping, Optional

from assassins.models import ACTIONS
from .errors import InvalidAction
from .ledger import ChoiceLedger
from .roster import Roster
from .scheduler import RoundClock, ScheduledTask
from .scoring import resolve_round

# Room states
LOBBY = 'lobby'
ROUND_ACTIVE = 'round_active'
RESOLVING = 'resolving'
INTERMISSION = 'intermission'

NOT_ENOUGH_PLAYERS = 'Not enough players'


class RoomController:
    """Drives one room through lobby -> round -> results -> next round.

    All mutations, whether they come from a socket handler or from a timer
    callback, run under ``self._lock``. Events go out through ``emit(event,
    payload, to=None)``; ``to`` is a player id for private messages and
    ``None`` for a room-wide broadcast.
    """

    def __init__(self, emit: Callable[..., None], scheduler, config: Optional[Mapping] = None,
                 logger: Optional[logging.Logger] = None):
        config = config or {}
        self.emit = emit
        self.scheduler = scheduler
        self.logger = logger or logging.getLogger(__name__)
        self.round_duration = int(config.get('ROUND_DURATION_SEC', 45))
        self.intermission_duration = int(config.get('INTERMISSION_SEC', 5))
        self.win_score = int(config.get('WIN_SCORE', 5))
        self.min_players = int(config.get('MIN_PLAYERS', 2))
        self.heartbeat = int(config.get('TIMER_HEARTBEAT_SEC', 0))

        self.roster = Roster()
        self.ledger = ChoiceLedger()
        self.state = LOBBY
        self.round_number = 0
        # Bumped on every round start, never reset; timer callbacks carry it
        self.generation = 0
        self.clock: Optional[RoundClock] = None
        self._intermission: Optional[ScheduledTask] = None
        self._lock = threading.RLock()

    @property
    def game_in_progress(self) -> bool:
        return self.state != LOBBY

    # ---- Player-driven transitions ----

    def join(self, name: str) -> str:
        with self._lock:
            player_id = self.roster.join(name)
            self.logger.info(f"[join] player={player_id} name={name!r} players={self.roster.count()}")
            self._broadcast_lobby()
            return player_id

    def leave(self, player_id: str) -> None:
        with self._lock:
            player = self.roster.leave(player_id)
            if player is None:
                return
            self.logger.info(f"[leave] player={player_id} players={self.roster.count()} state={self.state}")
            if self.game_in_progress and self.roster.count() < self.min_players:
                self._end_game(NOT_ENOUGH_PLAYERS)
            self._broadcast_lobby()

    def start_game(self) -> None:
        with self._lock:
            if self.game_in_progress:
                raise InvalidAction('Game already in progress')
            if self.roster.count() < self.min_players:
                raise InvalidAction(f'Need at least {self.min_players} players to start the game')
            self.round_number = 0
            self.emit('game_started', self._players_and_scores())
            self._begin_round()

    def submit_choice(self, actor_id: str, target_id: str, action: str) -> bool:
        """Record a choice for the running round.

        Returns False when the choice was ignored: no round accepting
        choices, a player who is not (or no longer) in the room, or a
        player targeting themselves.
        """
        with self._lock:
            if self.state != ROUND_ACTIVE:
                return False
            if action not in ACTIONS:
                raise InvalidAction(f'Unknown action {action!r}')
            if actor_id not in self.roster or target_id not in self.roster:
                return False
            if actor_id == target_id:
                return False
            self.ledger.set_choice(actor_id, target_id, action)
            self.emit('choice_acknowledged', {'target_id': target_id, 'action': action}, to=actor_id)
            return True

    def play_again(self) -> None:
        with self._lock:
            self._cancel_timers()
            self.state = LOBBY
            self.logger.info(f"[play-again] players={self.roster.count()}")
            self._broadcast_lobby()

    # ---- Timer-driven transitions ----

    def _begin_round(self) -> None:
        self._cancel_timers()
        self.ledger.clear()
        self.round_number += 1
        self.generation += 1
        self.state = ROUND_ACTIVE
        round_number = self.round_number
        generation = self.generation
        self.clock = RoundClock(
            self.scheduler,
            self.round_duration,
            on_tick=lambda seconds_left: self._on_tick(generation, seconds_left),
            on_expire=lambda: self._on_clock_expired(generation),
            logger=self.logger,
            heartbeat=self.heartbeat,
        ).start()
        self.logger.info(
            f"[round-start] round={round_number} players={self.roster.count()} duration={self.round_duration}s"
        )

    def _is_current(self, generation: int, state: str) -> bool:
        return self.state == state and self.generation == generation

    def _on_tick(self, generation: int, seconds_left: int) -> None:
        with self._lock:
            if not self._is_current(generation, ROUND_ACTIVE):
                return
            self.emit('tick', {'seconds_left': seconds_left})

    def _on_clock_expired(self, generation: int) -> None:
        with self._lock:
            if not self._is_current(generation, ROUND_ACTIVE):
                self.logger.info(f"[timer-abort] generation={generation} state={self.state} current={self.generation}")
                return
            self._resolve()

    def _resolve(self) -> None:
        self.state = RESOLVING
        outcome = resolve_round(self.roster, self.ledger, win_score=self.win_score)
        for player_id, delta in outcome.deltas.items():
            if delta:
                self.roster.apply_delta(player_id, delta)
        winner = outcome.winner
        self.emit('round_results', {
            'results': outcome.results_to_dict(),
            'scores': self.roster.scores(),
            'winner': winner.to_dict() if winner else None,
        })
        self.logger.info(
            f"[results] round={self.round_number} deltas={outcome.deltas} winner={winner.id if winner else None}"
        )

        if winner:
            self.roster.reset_scores()
            self.state = LOBBY
            self.clock = None
            return

        self.state = INTERMISSION
        generation = self.generation
        self._intermission = self.scheduler.call_later(
            self.intermission_duration,
            lambda: self._on_intermission_over(generation),
            name='intermission',
        )

    def _on_intermission_over(self, generation: int) -> None:
        with self._lock:
            if not self._is_current(generation, INTERMISSION):
                self.logger.info(f"[timer-abort] intermission generation={generation} state={self.state}")
                return
            self._intermission = None
            if self.roster.count() < self.min_players:
                self._end_game(NOT_ENOUGH_PLAYERS)
                self._broadcast_lobby()
                return
            self._begin_round()
            self.emit('new_round', self._players_and_scores())

    # ---- Helpers ----

    def _end_game(self, reason: str) -> None:
        self._cancel_timers()
        self.state = LOBBY
        self.logger.info(f"[game-ended] round={self.round_number} reason={reason!r}")
        self.emit('game_ended', {'reason': reason})

    def _cancel_timers(self) -> None:
        if self.clock is not None:
            self.clock.cancel()
            self.clock = None
        if self._intermission is not None:
            self._intermission.cancel()
            self._intermission = None

    def _players_and_scores(self) -> dict:
        return {
            'players': self.roster.to_dict(),
            'scores': self.roster.scores(),
        }

    def _broadcast_lobby(self) -> None:
        self.emit('lobby_updated', {
            'players': self.roster.to_dict(),
            'game_in_progress': self.game_in_progress,
        })

    def snapshot(self) -> dict:
        with self._lock:
            return {
                'state': self.state,
                'game_in_progress': self.game_in_progress,
                'round': self.round_number,
                'seconds_left': self.clock.seconds_left if self.clock is not None else None,
                'players': self.roster.to_dict(),
                'scores': self.roster.scores(),
            }
