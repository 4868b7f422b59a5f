import inspect
import logging
import sys
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from functools import wraps
from typing import Any, TypeVar, cast

# --- Prometheus Imports ---
from prometheus_client import REGISTRY, Counter, Histogram

# --- Context for Correlation IDs ---
correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="system")

# --- Prometheus Metric Definitions ---
METRIC_NAME = "heart_method_duration_seconds"
EVENTS_METRIC_NAME = "heart_game_events"

# Explicitly declare the types for module-level usage
METHOD_DURATION: Histogram
GAME_EVENTS: Counter

try:
    METHOD_DURATION = Histogram(
        METRIC_NAME, "Time spent in method", ["component", "method"]
    )
except ValueError:
    # Streamlit reruns re-import modules; reuse the registered collector.
    _collector = REGISTRY._names_to_collectors[METRIC_NAME]
    METHOD_DURATION = cast(Histogram, _collector)

try:
    GAME_EVENTS = Counter(
        EVENTS_METRIC_NAME, "Game session events", ["mode", "event"]
    )
except ValueError:
    _collector = REGISTRY._names_to_collectors[EVENTS_METRIC_NAME]
    GAME_EVENTS = cast(Counter, _collector)

F = TypeVar("F", bound=Callable[..., Any])


def _observe(self_obj: Any, method: str, metric_name: str, start: float,
             error: Exception | None = None) -> None:
    duration = time.perf_counter() - start
    component = self_obj.__class__.__name__ if self_obj else "Unknown"

    # Prometheus
    METHOD_DURATION.labels(component=component, method=method).observe(duration)

    # Console Log
    telemetry = getattr(self_obj, "telemetry", None)
    if not telemetry:
        return
    if error is None:
        telemetry.log_info(f"⏱️ {metric_name}", duration_ms=round(duration * 1000, 2))
    else:
        telemetry.log_error(
            f"💥 Failed: {metric_name}", error, duration_ms=round(duration * 1000, 2)
        )


def measure_time(metric_name: str) -> Callable[[F], F]:
    """
    Decorator for timing methods + logging.
    Works on both plain and `async def` instance methods; for coroutines the
    timing covers the whole await, including suspension.
    """

    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start = time.perf_counter()
                self_obj: Any = args[0] if args else None
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _observe(self_obj, func.__name__, metric_name, start, e)
                    raise e
                _observe(self_obj, func.__name__, metric_name, start)
                return result

            return cast(F, async_wrapper)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()

            # We assume this decorator is used on instance methods where
            # args[0] is 'self'.
            self_obj: Any = args[0] if args else None
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _observe(self_obj, func.__name__, metric_name, start, e)
                raise e
            _observe(self_obj, func.__name__, metric_name, start)
            return result

        return cast(F, wrapper)

    return decorator


def count_event(mode: str, event: str) -> None:
    GAME_EVENTS.labels(mode=mode, event=event).inc()


class Telemetry:
    """
    Facade for Logs, Metrics, and Tracing.
    """

    def __init__(self, component_name: str) -> None:
        self.component = component_name
        self.logger: logging.Logger
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Initializes the logger. Safe to call multiple times."""
        self.logger = logging.getLogger(self.component)

        # Ensure we output to console if not configured
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            formatter = logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def __getstate__(self) -> dict[str, Any]:
        """Pickling: Save everything EXCEPT the logger."""
        state = self.__dict__.copy()
        if "logger" in state:
            del state["logger"]
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        """Unpickling: Restore state and re-create logger."""
        self.__dict__.update(state)
        self._setup_logger()

    @staticmethod
    def start_trace() -> str:
        c_id = str(uuid.uuid4())[:8]
        correlation_id_ctx.set(c_id)
        return c_id

    @staticmethod
    def get_trace_id() -> str:
        return correlation_id_ctx.get()

    def log_info(self, event: str, **kwargs: Any) -> None:
        trace_id = self.get_trace_id()
        msg = f"[{trace_id}] {event} | {kwargs}"
        self.logger.info(msg)

    def log_warning(self, event: str, **kwargs: Any) -> None:
        trace_id = self.get_trace_id()
        msg = f"[{trace_id}] ⚠️ {event} | {kwargs}"
        self.logger.warning(msg)

    def log_error(self, event: str, error: Exception, **kwargs: Any) -> None:
        trace_id = self.get_trace_id()
        msg = f"[{trace_id}] ❌ {event} | Error: {str(error)} | {kwargs}"
        self.logger.error(msg, exc_info=True)
