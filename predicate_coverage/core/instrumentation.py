"""
Line Trace Instrumentation for Predicate Tracking

Produces ``(containing class, line)`` trace events for Python code using
Python's tracing capabilities. Each executed line in a traced module is
reported to a callback, which is normally the trace callback of a
PredicateTrackingGuidance.
"""

import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from types import FrameType
from typing import Any

PACKAGE_NAME = __name__.split(".", 1)[0]


@dataclass(frozen=True, slots=True)
class TraceEvent:
    """A notification that a line executed during the current input."""

    containing_class: str
    line_number: int


def containing_class(frame: FrameType) -> str:
    """Name of the class (or module) that owns the frame's code.

    Methods map to ``module.Class``; module-level functions and module code
    map to ``module``. Closures, lambdas and generator expressions belong to
    the innermost class enclosing them, so ``Holder.check.<locals>.<genexpr>``
    maps to ``module.Holder`` and ``f.<locals>.Local.m`` to ``module.Local``.
    """
    module = frame.f_globals.get("__name__", "<unknown>")
    qualname = getattr(frame.f_code, "co_qualname", frame.f_code.co_name)
    scopes = qualname.split(".")[:-1]
    # Step out of enclosing functions: "<locals>" and the function name
    while scopes and scopes[-1] == "<locals>":
        scopes = scopes[:-2]
    if "<locals>" in scopes:
        scopes = scopes[len(scopes) - scopes[::-1].index("<locals>") :]
    owner = ".".join(scopes)
    return f"{module}.{owner}" if owner else module


class LineTracer:
    """
    Lightweight line tracer using sys.settrace.

    Only frames whose module matches one of the target module prefixes are
    traced; other frames get no local trace function, so their lines cost
    nothing beyond the call event.
    """

    def __init__(
        self,
        callback: Callable[[TraceEvent], None],
        target_modules: list[str] | None = None,
    ):
        """
        Initialize the tracer.

        Args:
            callback: Called once per executed line in a traced module
            target_modules: Module name prefixes to trace (None = everything
                except this package)
        """
        self.callback = callback
        self.target_modules = tuple(target_modules or ())
        self.trace_enabled = False

        # Performance optimization: cache module checks per code object filename
        self._module_cache: dict[tuple[str, str], bool] = {}

    def should_trace_module(self, module: str, filename: str) -> bool:
        """Check if we should trace lines executed in this module."""
        key = (module, filename)
        cached = self._module_cache.get(key)
        if cached is not None:
            return cached

        if self.target_modules:
            result = any(
                module == prefix or module.startswith(prefix + ".")
                for prefix in self.target_modules
            )
        else:
            result = module != PACKAGE_NAME and not module.startswith(
                PACKAGE_NAME + "."
            )
        self._module_cache[key] = result
        return result

    def _trace_function(self, frame: FrameType, event: str, arg: Any) -> Callable | None:
        """
        Trace function for sys.settrace.

        Returns the local tracer for frames in traced modules only.
        """
        if not self.trace_enabled:
            return None

        module = frame.f_globals.get("__name__", "")
        if not self.should_trace_module(module, frame.f_code.co_filename):
            return None

        if event == "line":
            self.callback(TraceEvent(containing_class(frame), frame.f_lineno))

        return self._trace_function

    @contextmanager
    def tracing(self) -> Iterator["LineTracer"]:
        """
        Context manager that traces the enclosed block on the current thread.

        The previously installed trace function is restored on exit.
        """
        old_trace = sys.gettrace()
        self.trace_enabled = True
        sys.settrace(self._trace_function)
        try:
            yield self
        finally:
            sys.settrace(old_trace)
            self.trace_enabled = False
