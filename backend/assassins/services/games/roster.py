from typing import Dict, List, Optional

from assassins.models import Player
from .errors import InvalidAction, NotFound


class Roster:
    """Connected players and their cumulative scores, in join order.

    ``_players`` and ``_scores`` always share the same key set; both are
    updated together in ``join`` and ``leave``.
    """

    def __init__(self):
        self._players: Dict[str, Player] = {}
        self._scores: Dict[str, int] = {}

    def join(self, name: str) -> str:
        if not name or not name.strip():
            raise InvalidAction('Player name is required')
        player = Player(name=name)
        self._players[player.id] = player
        self._scores[player.id] = 0
        return player.id

    def leave(self, player_id: str) -> Optional[Player]:
        player = self._players.pop(player_id, None)
        self._scores.pop(player_id, None)
        return player

    def get(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def require(self, player_id: str) -> Player:
        player = self._players.get(player_id)
        if player is None:
            raise NotFound(f'Unknown player {player_id}')
        return player

    def __contains__(self, player_id) -> bool:
        return player_id in self._players

    def __len__(self) -> int:
        return len(self._players)

    def count(self) -> int:
        return len(self._players)

    def all(self) -> List[Player]:
        return list(self._players.values())

    def ids(self) -> List[str]:
        return list(self._players)

    def score_of(self, player_id: str) -> int:
        self.require(player_id)
        return self._scores[player_id]

    def scores(self) -> Dict[str, int]:
        return dict(self._scores)

    def apply_delta(self, player_id: str, delta: int) -> int:
        self.require(player_id)
        self._scores[player_id] += delta
        return self._scores[player_id]

    def reset_scores(self) -> None:
        for player_id in self._scores:
            self._scores[player_id] = 0

    def to_dict(self) -> List[dict]:
        return [p.to_dict() for p in self._players.values()]
