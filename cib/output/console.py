"""Console output for build progress and per-unit report blocks.

Build code talks to ``ConsoleProtocol`` only. ``RichConsole`` renders to the
terminal (or the CI log); ``MockConsole`` records lines so tests can assert on
what a run would have shown. Apart from styled one-liners the protocol carries
verbatim command output and collapsible groups, written as the
``::group::`` / ``::endgroup::`` markers CI log viewers fold.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "RichConsole",
    "Style",
]

GROUP_START = "::group::"
GROUP_END = "::endgroup::"


class Style(Enum):
    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    HEADER = auto()
    GROUP = auto()

    def __str__(self) -> str:
        return self.name.lower()


# Rich style strings; GROUP markers stay unstyled so log viewers recognise them.
RICH_STYLES: dict[Style, str] = {
    Style.DEFAULT: "",
    Style.SUCCESS: "green",
    Style.ERROR: "red bold",
    Style.WARNING: "yellow",
    Style.INFO: "cyan",
    Style.HEADER: "blue bold",
    Style.GROUP: "",
}


class ConsoleProtocol(Protocol):
    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def output(self, text: str) -> None:
        """Write command output as-is: no markup, no highlighting."""
        ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...

    def group(self, title: str, style: Style = Style.DEFAULT) -> None:
        """Open a collapsible block; ``style`` colors the title only."""
        ...

    def end_group(self) -> None: ...


class RichConsole:
    """Terminal console backed by Rich.

    Args:
        force_terminal: Override Rich's terminal detection (colors in CI logs)
        stderr: Write to stderr instead of stdout
    """

    def __init__(self, *, force_terminal: bool | None = None, stderr: bool = False) -> None:
        from rich.console import Console

        self._console = Console(force_terminal=force_terminal, stderr=stderr)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._console.print(message, style=RICH_STYLES[style] or None, markup=False, highlight=False)

    def output(self, text: str) -> None:
        self._console.out(text.rstrip("\n"), highlight=False)

    def _labelled(self, label: str, style: Style, message: str) -> None:
        from rich.text import Text

        line = Text(label, style=RICH_STYLES[style])
        line.append(f" {message}")
        self._console.print(line)

    def success(self, message: str) -> None:
        self._labelled("OK", Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._labelled("error:", Style.ERROR, message)

    def warning(self, message: str) -> None:
        self._labelled("warning:", Style.WARNING, message)

    def info(self, message: str) -> None:
        self._labelled("info:", Style.INFO, message)

    def header(self, message: str) -> None:
        self._console.print()
        self._console.print(message, style=RICH_STYLES[Style.HEADER], markup=False)

    def group(self, title: str, style: Style = Style.DEFAULT) -> None:
        from rich.text import Text

        line = Text(GROUP_START)
        line.append(title, style=RICH_STYLES[style])
        self._console.print(line, soft_wrap=True, highlight=False)

    def end_group(self) -> None:
        self._console.out(GROUP_END, highlight=False)


@dataclass
class OutputRecord:
    message: str
    style: Style


@dataclass
class MockConsole:
    """Records every line instead of printing it."""

    outputs: list[OutputRecord] = field(default_factory=list)

    def _record(self, message: str, style: Style) -> None:
        self.outputs.append(OutputRecord(message, style))

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._record(message, style)

    def output(self, text: str) -> None:
        self._record(text.rstrip("\n"), Style.DEFAULT)

    def success(self, message: str) -> None:
        self._record(f"OK {message}", Style.SUCCESS)

    def error(self, message: str) -> None:
        self._record(f"error: {message}", Style.ERROR)

    def warning(self, message: str) -> None:
        self._record(f"warning: {message}", Style.WARNING)

    def info(self, message: str) -> None:
        self._record(f"info: {message}", Style.INFO)

    def header(self, message: str) -> None:
        self._record(message, Style.HEADER)

    def group(self, title: str, style: Style = Style.DEFAULT) -> None:
        self._record(f"{GROUP_START}{title}", Style.GROUP)

    def end_group(self) -> None:
        self._record(GROUP_END, Style.GROUP)

    # Assertion helpers

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]
