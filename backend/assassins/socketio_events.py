import threading
from typing import Dict, Iterable, Optional, Tuple

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from assassins import socketio
from assassins.services.games.errors import GameError

NAMESPACE = '/ws'
# Mirrored only when TESTING
TEST_NAMESPACE = '/'
ROOM_NAME = 'room:main'


class ConnectionRegistry:
    """Maps Socket.IO session ids to the player each one joined as, and
    players back to the (sid, namespace) they joined from."""

    def __init__(self):
        self._sid_to_player: Dict[str, str] = {}
        self._player_to_sid: Dict[str, Tuple[str, str]] = {}
        self._lock = threading.Lock()

    def bind(self, sid: str, player_id: str, namespace: str = NAMESPACE) -> None:
        with self._lock:
            self._sid_to_player[sid] = player_id
            self._player_to_sid[player_id] = (sid, namespace)

    def unbind(self, sid: str) -> Optional[str]:
        with self._lock:
            player_id = self._sid_to_player.pop(sid, None)
            if player_id is not None:
                self._player_to_sid.pop(player_id, None)
            return player_id

    def player_for(self, sid: str) -> Optional[str]:
        return self._sid_to_player.get(sid)

    def sid_for(self, player_id: str) -> Optional[Tuple[str, str]]:
        return self._player_to_sid.get(player_id)


def make_emitter(connections: ConnectionRegistry, namespaces: Iterable[str] = (NAMESPACE,)):
    """Adapt room events to Socket.IO: broadcast to the room on every
    served namespace, or send privately to the connection a player joined from."""
    namespaces = tuple(namespaces)

    def _emit(event: str, payload: dict, to: Optional[str] = None) -> None:
        # Use socketio.emit since this may be called from a background task
        if to is None:
            for namespace in namespaces:
                socketio.emit(event, payload, to=ROOM_NAME, namespace=namespace)
            return
        target = connections.sid_for(to)
        if target is None:
            return
        sid, namespace = target
        socketio.emit(event, payload, to=sid, namespace=namespace)

    return _emit


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _room():
    return current_app.extensions['room']


def _connections() -> ConnectionRegistry:
    return current_app.extensions['connections']


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(*args):
    player_id = _connections().unbind(_get_sid())
    current_app.logger.info(f"[disconnect] sid={_get_sid()} player={player_id}")
    if player_id is not None:
        _room().leave(player_id)


def handle_join_lobby(data):
    # Accept either {'name': ...} or a bare name string
    name = data.get('name') if isinstance(data, dict) else data
    if not isinstance(name, str) or not name.strip():
        emit('error', {'message': 'name is required'})
        return
    sid = _get_sid()
    connections = _connections()
    if connections.player_for(sid) is not None:
        # Already joined from this connection
        return
    name = name.strip()[:int(current_app.config.get('MAX_NAME_LENGTH', 24))]
    join_room(ROOM_NAME)
    try:
        player_id = _room().join(name)
    except GameError as exc:
        leave_room(ROOM_NAME)
        emit('error', {'message': exc.message})
        return
    connections.bind(sid, player_id, request.namespace)
    emit('joined', {'player_id': player_id, 'name': name})


def handle_start_game(data=None):
    try:
        _room().start_game()
    except GameError as exc:
        emit('error', {'message': exc.message})


def handle_make_choice(data):
    player_id = _connections().player_for(_get_sid())
    if player_id is None or not isinstance(data, dict):
        return
    try:
        _room().submit_choice(player_id, data.get('target_id'), data.get('action'))
    except GameError as exc:
        emit('error', {'message': exc.message})


def handle_play_again(data=None):
    _room().play_again()


def handle_ping(data=None):
    emit('pong', data or {})


def served_namespaces(testing: bool = False) -> Tuple[str, ...]:
    return (NAMESPACE, TEST_NAMESPACE) if testing else (NAMESPACE,)


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for namespace in served_namespaces(testing):
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_lobby', handle_join_lobby, namespace=namespace)
        socketio.on_event('start_game', handle_start_game, namespace=namespace)
        socketio.on_event('make_choice', handle_make_choice, namespace=namespace)
        socketio.on_event('play_again', handle_play_again, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
