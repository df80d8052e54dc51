"""Per-unit status blocks.

Every (version, tag, registry) unit ends with one collapsible block: a title
carrying the unit and an OK/FAILED marker, the captured command output, and
on failure the error in red.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cib.output.console import Style

if TYPE_CHECKING:
    from cib.build.errors import StageError
    from cib.output.console import ConsoleProtocol

__all__ = ["ExecutionReport", "print_report", "report_title"]


@dataclass(frozen=True, slots=True)
class ExecutionReport:
    version: str
    registry: str
    tag: str
    output: str
    error: StageError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def report_title(report: ExecutionReport) -> str:
    marker = "OK" if report.ok else "FAILED"
    return f"[{marker}] {report.version} / {report.tag} / {report.registry}"


def print_report(report: ExecutionReport, console: ConsoleProtocol, *, opened: bool = False) -> None:
    """Print the block for ``report``.

    With ``opened`` the group was already started before the unit ran (output
    was streamed into it), so only the status and the closing marker are added.
    """
    if opened:
        console.print(report_title(report), Style.SUCCESS if report.ok else Style.ERROR)
    else:
        console.group(report_title(report), Style.SUCCESS if report.ok else Style.ERROR)
        if report.output:
            console.output(report.output)
    if report.error is not None:
        console.error(str(report.error))
    console.end_group()
