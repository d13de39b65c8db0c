"""
Rich console rendering for live scan results.
"""

from rich.console import Console
from rich.text import Text

from core.models import PortResult, PortStatus

STATUS_STYLES = {
    PortStatus.OPEN: "bright_green",
    PortStatus.CLOSED: "bright_red",
    PortStatus.FILTERED: "yellow",
}

BANNER_PREVIEW = 60


def banner_preview(banner):
    if banner is None:
        return "-"
    if len(banner) > BANNER_PREVIEW:
        return banner[:BANNER_PREVIEW] + "..."
    return banner


def format_result(result: PortResult, verbose: bool) -> Text:
    port = Text(f"{result.port:>5}", style="bright_blue")
    status = Text(result.status.value.lower(), style=STATUS_STYLES[result.status])
    service = Text(result.service or "-", style="bright_cyan")
    if verbose:
        # keep the preview on one line
        preview = banner_preview(result.banner).replace("\r", "").replace("\n", " ")
        return Text.assemble(port, " | ", status, " | Service: ", service, " | Banner: ", preview)
    return Text.assemble(port, " ", status, "   ", service)


def print_result(console: Console, result: PortResult, verbose: bool, quiet: bool = False) -> None:
    """Verbose prints everything; otherwise only open ports are shown."""
    if quiet and result.status is not PortStatus.OPEN:
        return
    if not verbose and result.status is not PortStatus.OPEN:
        return
    console.print(format_result(result, verbose), highlight=False)
