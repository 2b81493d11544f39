"""Interactive terminal UI for genius-chat using Rich library."""

import logging
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from models.conversation import ConversationEvent, EventKind, Sender, Turn, VideoStatus
from models.persona import Persona

logger = logging.getLogger(__name__)


class InteractiveUI:
    """Rich-based terminal front end; subscribes to orchestrator events."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def __call__(self, event: ConversationEvent) -> None:
        """Render a conversation event."""
        if event.kind == EventKind.ROUTING_STATUS:
            if event.message:
                self.display_processing_status(event.message)
        elif event.kind == EventKind.CONVERSATION_STARTED and event.conversation:
            persona = event.conversation.persona
            self.console.print(
                Panel(
                    persona.bio or persona.capabilities,
                    title=f"[bold]{persona.name}[/bold]",
                    border_style="blue",
                )
            )
            for turn in event.conversation.turns:
                self.display_turn(turn, persona)
        elif event.kind == EventKind.CONVERSATION_CLOSED:
            self.console.print("[dim]Conversation closed.[/dim]\n")
        elif event.kind == EventKind.TURN_UPDATED and event.turn:
            persona = event.conversation.persona if event.conversation else None
            if event.turn.video_status in (VideoStatus.IDLE, VideoStatus.GENERATING):
                self.display_turn(event.turn, persona)
            else:
                self.display_video_status(event.turn)

    def display_welcome(self) -> None:
        """Display welcome banner."""
        self.console.print(
            Panel(
                "Talk with history's great scientists.\n"
                "Ask a question to find the right genius, or pick one by number.",
                title="[bold]Genius Chat[/bold]",
                style="bold blue",
                border_style="blue",
            )
        )
        self.console.print()

    def display_personas(self, personas: list[Persona]) -> None:
        """Show the persona gallery as a numbered table."""
        table = Table(show_header=True, box=None, padding=(0, 2))
        table.add_column("#", style="cyan", no_wrap=True)
        table.add_column("Name", style="bold white")
        table.add_column("Known for", style="white")

        for index, persona in enumerate(personas, start=1):
            table.add_row(str(index), persona.name, persona.capabilities)

        self.console.print(Panel(table, title="[bold]Residents[/bold]", border_style="green"))
        self.console.print()

    def prompt_home(self) -> str:
        return Prompt.ask("[bold]Pick a number or ask a question[/bold] (/quit to exit)")

    def prompt_message(self, persona: Persona) -> str:
        return Prompt.ask(f"[bold cyan]You → {persona.name}[/bold cyan] (/back, /quit)")

    def display_turn(self, turn: Turn, persona: Optional[Persona] = None) -> None:
        """Show one agent turn; user turns are already on screen."""
        if turn.sender == Sender.USER or turn.pending:
            return
        speaker = persona.name if persona else "Agent"
        self.console.print(f"\n[bold magenta]{speaker}:[/bold magenta] {turn.text}\n")
        if turn.video_status == VideoStatus.GENERATING:
            self.display_processing_status("Generating a video to illustrate this...")

    def display_video_status(self, turn: Turn) -> None:
        """Show the outcome of a turn's video job."""
        if turn.video_status == VideoStatus.DONE and turn.artifact:
            self.display_success(f"Video ready: {turn.artifact.handle}")
        elif turn.video_status == VideoStatus.ERROR:
            self.display_error(f"Video generation failed: {turn.error_message}")

    def display_processing_status(self, message: str, style: str = "yellow") -> None:
        """Show processing status update.

        Args:
            message: Status message to display
            style: Rich style for the message
        """
        self.console.print(f"[{style}]⠿ {message}[/{style}]")

    def display_error(self, message: str) -> None:
        """Display error message.

        Args:
            message: Error message to display
        """
        self.console.print(f"\n[bold red]Error:[/bold red] {message}\n")

    def display_success(self, message: str) -> None:
        """Display success message.

        Args:
            message: Success message to display
        """
        self.console.print(f"\n[bold green]✓[/bold green] {message}\n")
