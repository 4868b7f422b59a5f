import asyncio
from collections.abc import Callable

from src.config import GameConfig
from src.shared.telemetry import Telemetry

TickCallback = Callable[[int], None]
ExpireCallback = Callable[[], None]


class SessionClock:
    """
    Cancellable countdown driven by the running asyncio loop.

    Every period `on_tick(remaining)` fires, including the period that
    reaches zero; then `on_expire()` fires exactly once and nothing more.
    `stop()` is idempotent and silences any callback still pending.
    """

    def __init__(self, period: float = GameConfig.TIME_UNIT_SECONDS) -> None:
        self.period = period
        self.telemetry = Telemetry("SessionClock")
        self._remaining = 0
        self._running = False
        self._on_tick: TickCallback | None = None
        self._on_expire: ExpireCallback | None = None
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def remaining(self) -> int:
        return self._remaining

    def start(
        self, initial_seconds: int, on_tick: TickCallback, on_expire: ExpireCallback
    ) -> None:
        if initial_seconds <= 0:
            raise ValueError("A countdown needs at least one time unit")

        # Re-arming replaces any countdown in flight
        self.stop()

        self._remaining = initial_seconds
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._running = True
        self._schedule()

    def stop(self) -> None:
        self._running = False
        task, self._task = self._task, None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    def _schedule(self) -> None:
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while self._running:
            await asyncio.sleep(self.period)
            try:
                self._step()
            except Exception as e:
                self.telemetry.log_error("Countdown callback failed, clock stopped", e)
                self._running = False
                self._task = None
                return

    def _step(self) -> None:
        """One elapsed period."""
        if not self._running:
            return

        self._remaining -= 1
        if self._on_tick:
            self._on_tick(self._remaining)

        # on_tick may have stopped us
        if not self._running:
            return

        if self._remaining <= 0:
            self._running = False
            self._task = None
            self.telemetry.log_info("⏰ Countdown expired")
            if self._on_expire:
                self._on_expire()


class ManualClock(SessionClock):
    """
    A clock whose periods are pushed by the host instead of the event loop.
    Used by the Streamlit fragment that reruns once per second, and by tests.
    """

    def _schedule(self) -> None:
        self._task = None

    def advance(self, units: int = 1) -> None:
        for _ in range(units):
            if not self._running:
                break
            self._step()
