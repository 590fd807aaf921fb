import logging
import threading
from typing import Callable, Optional


class ScheduledTask:
    """Handle for a pending timer callback. Cancelling is idempotent."""

    def __init__(self, name: str):
        self.name = name
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def __repr__(self):
        state = 'cancelled' if self.cancelled else 'pending'
        return f"<ScheduledTask {self.name} {state}>"


class SocketIOScheduler:
    """Runs timer callbacks as Socket.IO background tasks.

    Works with whichever async mode the server picked (threading, eventlet,
    gevent) since sleeping goes through ``socketio.sleep``.
    """

    def __init__(self, socketio, logger: Optional[logging.Logger] = None):
        self.socketio = socketio
        self.logger = logger or logging.getLogger(__name__)

    def call_later(self, delay: float, callback: Callable[[], object], name: str = 'task') -> ScheduledTask:
        task = ScheduledTask(name)

        def _worker():
            self.socketio.sleep(delay)
            if task.cancelled:
                return
            self._run(task, callback)

        self.socketio.start_background_task(_worker)
        return task

    def call_every(self, interval: float, callback: Callable[[], object], name: str = 'task') -> ScheduledTask:
        """Call ``callback`` every ``interval`` seconds until it returns False
        or the task is cancelled. The first call happens after one interval."""
        task = ScheduledTask(name)

        def _worker():
            while True:
                self.socketio.sleep(interval)
                if task.cancelled:
                    return
                if self._run(task, callback) is False:
                    return

        self.socketio.start_background_task(_worker)
        return task

    def _run(self, task: ScheduledTask, callback):
        try:
            return callback()
        except Exception:
            self.logger.exception(f"[timer-error] task={task.name}")
            return False


class RoundClock:
    """Countdown that reports every second and expires once after reporting 0.

    With a duration of 45 the reports are 45, 44, ..., 0, the first one a
    second after ``start``.
    """

    def __init__(self, scheduler, duration: int, on_tick: Callable[[int], None],
                 on_expire: Callable[[], None], logger: Optional[logging.Logger] = None,
                 heartbeat: int = 0):
        self.scheduler = scheduler
        self.duration = duration
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.logger = logger or logging.getLogger(__name__)
        self.heartbeat = heartbeat
        self.seconds_left = duration
        self._next = duration
        self.expired = False
        self._task: Optional[ScheduledTask] = None

    def start(self) -> 'RoundClock':
        self.seconds_left = self.duration
        self._next = self.duration
        self.expired = False
        self._task = self.scheduler.call_every(1, self._tick, name='round-clock')
        return self

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.cancelled and not self.expired

    def _tick(self) -> bool:
        if self.expired or self._task is None or self._task.cancelled:
            return False
        value = self._next
        self.seconds_left = value
        self.on_tick(value)
        if self._task.cancelled:
            return False
        if self.heartbeat and value and (self.duration - value) % self.heartbeat == 0:
            self.logger.info(f"[timer-heartbeat] remaining={value}s")
        if value <= 0:
            self.expired = True
            self._task.cancel()
            self.on_expire()
            return False
        self._next = value - 1
        return True
