"""Input Replay Engine

Replays a directory of inputs through a Python target callable under the
line tracer, driving the predicate tracking hooks. This is the smallest
engine that exercises the full tracking lifecycle: it does not mutate or
schedule inputs, it only executes them one at a time in a stable order.
"""

from __future__ import annotations

import importlib
import importlib.util
import signal
import sys
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any

from predicate_coverage.core.exceptions import TargetLoadError
from predicate_coverage.core.guidance import GuidanceHooks
from predicate_coverage.core.instrumentation import LineTracer
from predicate_coverage.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ReplayStats:
    """Statistics for a replay run."""

    start_time: float = field(default_factory=time.time)
    executed: int = 0
    failures: int = 0
    interrupted: bool = False

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time


def _import_module(module_name: str) -> ModuleType:
    if module_name.endswith(".py"):
        path = Path(module_name)
        spec = importlib.util.spec_from_file_location(path.stem, path)
        if spec is None or spec.loader is None or not path.is_file():
            raise ImportError(f"No such file: {module_name}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[spec.name] = module
        spec.loader.exec_module(module)
        return module
    return importlib.import_module(module_name)


def load_target(spec: str) -> Callable[[bytes], Any]:
    """Resolve a ``package.module:function`` or ``path/to/file.py:function`` target.

    Raises:
        TargetLoadError: If the module cannot be imported or the attribute is
            missing or not callable

    """
    module_name, sep, attr = spec.rpartition(":")
    if not sep or not module_name or not attr:
        raise TargetLoadError(
            f"Target must look like 'module:function', got {spec!r}",
            context={"target": spec},
        )

    try:
        module = _import_module(module_name)
    except ImportError as e:
        raise TargetLoadError(
            f"Cannot import target module {module_name!r}: {e}",
            context={"target": spec},
        ) from e

    target = module
    for part in attr.split("."):
        target = getattr(target, part, None)
        if target is None:
            raise TargetLoadError(
                f"Target {attr!r} not found in {module_name!r}",
                context={"target": spec},
            )
    if not callable(target):
        raise TargetLoadError(f"Target {spec!r} is not callable", context={"target": spec})
    return target


def iter_input_files(directory: Path) -> Iterator[bytes]:
    """Yield the contents of every file in ``directory`` in name order."""
    for path in sorted(p for p in directory.iterdir() if p.is_file()):
        yield path.read_bytes()


class ReplayEngine:
    """Executes inputs through a target while reporting trace events."""

    def __init__(
        self,
        target: Callable[[bytes], Any],
        guidance: GuidanceHooks,
        target_modules: list[str] | None = None,
        event_callback: Callable[[Any], None] | None = None,
    ):
        """Initialize the replay engine.

        Args:
            target: Callable executed once per input
            guidance: Hooks notified of input start, trace events and run end
            target_modules: Module prefixes to trace (None = all but this package)
            event_callback: Trace callback registered with the tracer; defaults
                to ``guidance.on_event``

        """
        self.target = target
        self.guidance = guidance
        self.tracer = LineTracer(event_callback or guidance.on_event, target_modules)
        self.stats = ReplayStats()
        self.should_stop = False

    def _signal_handler(self, signum, frame) -> None:
        """Handle interrupt signals gracefully."""
        logger.info("stop_requested", signal=signum)
        self.should_stop = True

    def execute(self, data: bytes) -> bool:
        """Execute one input under the tracer.

        Returns:
            True if the target returned normally

        """
        try:
            with self.tracer.tracing():
                self.target(data)
        except Exception as e:
            logger.debug("target_raised", error=type(e).__name__, detail=str(e))
            return False
        return True

    def run(self, inputs: Iterable[bytes]) -> ReplayStats:
        """Replay ``inputs`` in order, then signal the end of the run.

        SIGINT and SIGTERM stop the loop after the current input; the run-end
        hook is invoked in every case.
        """
        previous: dict[int, Any] = {}
        # Signal handlers can only be installed from the main thread.
        if threading.current_thread() is threading.main_thread():
            previous = {
                sig: signal.signal(sig, self._signal_handler)
                for sig in (signal.SIGINT, signal.SIGTERM)
            }
        logger.info("replay_started")
        try:
            for data in inputs:
                if self.should_stop:
                    self.stats.interrupted = True
                    break
                self.guidance.on_input_start()
                if not self.execute(data):
                    self.stats.failures += 1
                self.stats.executed += 1
                display = getattr(self.guidance, "display_stats", None)
                if display is not None:
                    display()
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
            logger.info(
                "replay_finished",
                executed=self.stats.executed,
                failures=self.stats.failures,
                interrupted=self.stats.interrupted,
                elapsed=round(self.stats.elapsed, 3),
            )
            self.guidance.on_run_end()
        return self.stats
