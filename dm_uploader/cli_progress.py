"""Console rendering helpers for the dm-upload CLI."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import ProcessingInfo, UploadPhase, UploadSession

console = Console()

_PHASE_STYLES = {
    UploadPhase.INITIATED: "cyan",
    UploadPhase.APPENDED: "cyan",
    UploadPhase.FINALIZED: "cyan",
    UploadPhase.PROCESSING: "yellow",
    UploadPhase.SUCCEEDED: "green",
    UploadPhase.FAILED: "red",
}


def _human_size(value: int) -> str:
    size = float(max(value, 0))
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def render_configuration_summary(config: Dict[str, Any]) -> None:
    """Render startup configuration summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]dm-upload[/bold green]",
        subtitle="[dim]media upload CLI[/dim]",
        border_style="blue",
    )
    console.print(panel)


class UploadPhaseDisplay:
    """Prints one line per session phase change and processing snapshot."""

    def __init__(self, file_path: Path):
        self.file_path = Path(file_path)
        self._last_phase: Optional[UploadPhase] = None
        self.session: Optional[UploadSession] = None

    def on_phase(self, session: UploadSession) -> None:
        self.session = session
        if session.phase is self._last_phase:
            return
        self._last_phase = session.phase
        style = _PHASE_STYLES.get(session.phase, "white")
        line = f"[{style}]{session.phase.value:>10}[/{style}] {self.file_path.name}"
        if session.phase is UploadPhase.INITIATED:
            line += f" ({_human_size(session.descriptor.byte_size)}, media {session.media_id})"
        elif session.phase is UploadPhase.FAILED and session.failure:
            line += f" - {session.failure}"
        console.print(line)

    def on_processing(self, session: UploadSession, info: ProcessingInfo) -> None:
        percent = info.progress_percent if info.progress_percent is not None else 0
        console.print(
            f"[yellow]{'status':>10}[/yellow] {info.state} {percent}% "
            f"[dim](check {session.status_checks})[/dim]"
        )
