"""Status screen with the two pipeline buttons."""

import logging
from typing import Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..audio.capture import AudioCapture
from ..delivery.mail import InteractiveMailComposer
from ..models.events import PipelineEvent
from ..services.orchestrator import Orchestrator
from ..services.session_state import PipelineState

logger = logging.getLogger(__name__)

STATE_STYLES = {
    PipelineState.IDLE: "bold yellow",
    PipelineState.RECORDING: "bold red",
    PipelineState.STOPPED: "bold yellow",
    PipelineState.TRANSCRIBING: "bold blue",
    PipelineState.DELIVERED: "bold green",
}


class RecorderScreen:
    """Renders session state; redrawn after every pipeline event."""

    def __init__(self,
                 orchestrator: Orchestrator,
                 capture: AudioCapture,
                 composer: InteractiveMailComposer,
                 console: Optional[Console] = None):
        self.orchestrator = orchestrator
        self.capture = capture
        self.composer = composer
        self.console = console or Console()
        self.last_event: Optional[PipelineEvent] = None

    def on_status(self, event: PipelineEvent) -> None:
        self.last_event = event
        self.render()

    def build(self) -> Panel:
        state = self.orchestrator.state
        header = Text.assemble(
            ("🎙️  VoiceDrop", "bold blue"), "  |  ",
            (state.state.value.upper(), STATE_STYLES[state.state]), "  |  ",
            f"Session: {state.session.session_id if state.session else 'None'}",
        )

        table = Table(show_header=False, box=None)
        table.add_column("Key", style="bold cyan")
        table.add_column("Action")
        table.add_row("r", "Stop" if state.is_recording else "Record")
        table.add_row("s", "Send" if state.can_send() else Text("Send (disabled)", style="dim"))
        if self.composer.has_pending:
            table.add_row("m / d / c", "Send mail / Save draft / Cancel draft")
        table.add_row("q", "Quit")

        parts = [header, table]
        if state.is_recording:
            stats = self.capture.get_recording_stats()
            peak_bar = "█" * int(stats.peak_level * 20)
            parts.append(Text(f"{stats.duration_seconds:5.1f}s  [{peak_bar:<20}] {stats.peak_level:.3f}"))
        if state.pending_transcriptions:
            parts.append(Text(f"Transcribing ({len(state.pending_transcriptions)} pending)...", style="blue"))
        parts.append(Panel(state.transcript or "-", title="📝 Last transcript"))
        if self.last_event and self.last_event.error is not None:
            parts.append(Text(f"⚠️  {self.last_event.kind}: {self.last_event.detail}", style="red"))

        return Panel(Group(*parts), style="bright_blue")

    def render(self) -> None:
        self.console.clear()
        self.console.print(self.build())
