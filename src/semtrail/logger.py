"""Leveled diagnostics for the version calculation.

The calculation never writes output itself. A Logger is passed explicitly to
every call, so independent calculations (e.g. one per sub-project) can run
side by side with their own verbosity.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.markup import escape


@runtime_checkable
class Logger(Protocol):
    """Sink for diagnostics emitted while calculating a version.

    Callers check is_trace_enabled / is_debug_enabled before building
    expensive messages.
    """

    @property
    def is_trace_enabled(self) -> bool: ...

    @property
    def is_debug_enabled(self) -> bool: ...

    def trace(self, message: str) -> None: ...

    def debug(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warn(self, code: int, message: str) -> None: ...


class Verbosity(IntEnum):
    """How much the console logger writes. Each level includes the ones below."""

    ERROR = 0
    WARN = 1
    INFO = 2
    DEBUG = 3
    TRACE = 4

    @classmethod
    def parse(cls, value: str) -> Verbosity:
        """Parse a verbosity name or alias (q, m, n, d, diag, ...).

        Raises:
            ValueError: If the name isn't recognised.
        """
        key = value.strip().lower()
        if key in _VERBOSITY_ALIASES:
            return _VERBOSITY_ALIASES[key]
        raise ValueError(
            f"Invalid verbosity '{value}'. Valid values are "
            f"{', '.join(sorted(_VERBOSITY_ALIASES))}."
        )


_VERBOSITY_ALIASES: dict[str, Verbosity] = {
    "error": Verbosity.ERROR,
    "e": Verbosity.ERROR,
    "quiet": Verbosity.ERROR,
    "q": Verbosity.ERROR,
    "warn": Verbosity.WARN,
    "warning": Verbosity.WARN,
    "w": Verbosity.WARN,
    "minimal": Verbosity.WARN,
    "m": Verbosity.WARN,
    "info": Verbosity.INFO,
    "i": Verbosity.INFO,
    "normal": Verbosity.INFO,
    "n": Verbosity.INFO,
    "debug": Verbosity.DEBUG,
    "detailed": Verbosity.DEBUG,
    "d": Verbosity.DEBUG,
    "trace": Verbosity.TRACE,
    "t": Verbosity.TRACE,
    "diagnostic": Verbosity.TRACE,
    "diag": Verbosity.TRACE,
}


class NullLogger:
    """Logger that discards everything."""

    @property
    def is_trace_enabled(self) -> bool:
        return False

    @property
    def is_debug_enabled(self) -> bool:
        return False

    def trace(self, message: str) -> None:
        pass

    def debug(self, message: str) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def warn(self, code: int, message: str) -> None:
        pass


class ConsoleLogger:
    """Logger that writes "semtrail: ..." lines to stderr via rich.

    Stdout is left for the calculated version.
    """

    def __init__(
        self,
        verbosity: Verbosity = Verbosity.INFO,
        console: Console | None = None,
        prefix: str = "semtrail",
    ) -> None:
        self.verbosity = verbosity
        self.console = console or Console(stderr=True, highlight=False)
        self.prefix = prefix

    @property
    def is_trace_enabled(self) -> bool:
        return self.verbosity >= Verbosity.TRACE

    @property
    def is_debug_enabled(self) -> bool:
        return self.verbosity >= Verbosity.DEBUG

    @property
    def is_info_enabled(self) -> bool:
        return self.verbosity >= Verbosity.INFO

    @property
    def is_warn_enabled(self) -> bool:
        return self.verbosity >= Verbosity.WARN

    def _write(self, message: str, style: str | None = None) -> None:
        line = f"{self.prefix}: {escape(message)}"
        if style:
            line = f"[{style}]{line}[/{style}]"
        self.console.print(line, soft_wrap=True)

    def trace(self, message: str) -> None:
        if self.is_trace_enabled:
            self._write(f"Trace: {message}", "dim")

    def debug(self, message: str) -> None:
        if self.is_debug_enabled:
            self._write(f"Debug: {message}", "dim")

    def info(self, message: str) -> None:
        if self.is_info_enabled:
            self._write(message)

    def warn(self, code: int, message: str) -> None:
        if self.is_warn_enabled:
            self._write(f"warning SEMTRAIL{code}: {message}", "yellow")
