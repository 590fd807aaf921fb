import os
import sys
import pytest

# Ensure the backend root (containing the `assassins` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from assassins import create_app, socketio
from assassins.services.games.room import RoomController
from assassins.services.games.scheduler import ScheduledTask


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    ROUND_DURATION_SEC = 45
    INTERMISSION_SEC = 5
    WIN_SCORE = 5
    MIN_PLAYERS = 2
    MAX_NAME_LENGTH = 24
    TIMER_HEARTBEAT_SEC = 0


class ManualScheduler:
    """Deterministic stand-in for SocketIOScheduler: time only moves on advance()."""

    def __init__(self):
        self.now = 0
        self._seq = 0
        self._entries = []

    def call_later(self, delay, callback, name='task'):
        task = ScheduledTask(name)
        self._push(self.now + delay, None, callback, task)
        return task

    def call_every(self, interval, callback, name='task'):
        task = ScheduledTask(name)
        self._push(self.now + interval, interval, callback, task)
        return task

    def _push(self, due, interval, callback, task):
        self._seq += 1
        self._entries.append((due, self._seq, interval, callback, task))

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [e for e in self._entries if not e[4].cancelled and e[0] <= target]
            if not due:
                break
            entry = min(due, key=lambda e: (e[0], e[1]))
            self._entries.remove(entry)
            due_at, _, interval, callback, task = entry
            self.now = due_at
            result = callback()
            if interval is not None and result is not False and not task.cancelled:
                self._push(due_at + interval, interval, callback, task)
        self.now = target
        self._entries = [e for e in self._entries if not e[4].cancelled]

    def pending(self):
        return [e[4] for e in self._entries if not e[4].cancelled]


class EventRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, event, payload, to=None):
        self.events.append((event, payload, to))

    def named(self, event):
        return [payload for name, payload, _ in self.events if name == event]

    def last(self, event):
        found = self.named(event)
        return found[-1] if found else None

    def clear(self):
        self.events.clear()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def recorder():
    return EventRecorder()


@pytest.fixture()
def room(recorder, scheduler):
    config = {k: getattr(TestConfig, k) for k in dir(TestConfig) if k.isupper()}
    return RoomController(emit=recorder, scheduler=scheduler, config=config)


@pytest.fixture()
def flask_app(scheduler):
    application = create_app(TestConfig, scheduler=scheduler)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def _socket_client(flask_app):
    return socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )


@pytest.fixture()
def sio_client(flask_app):
    test_client = _socket_client(flask_app)
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def make_sio_client(flask_app):
    created = []

    def _make():
        test_client = _socket_client(flask_app)
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        try:
            test_client.disconnect(namespace='/ws')
        except Exception:
            pass
