"""CLI renderer for forksh."""

from prompt_toolkit import PromptSession
from rich.console import Console


class Renderer:
    """Terminal output and line input for the interactive loop."""

    def __init__(self) -> None:
        self.console: Console = Console(highlight=False)
        self._prompt_session: PromptSession[str] | None = None

    def info(self, message: str) -> None:
        """Render an info message."""
        self.console.print(message)

    def error(self, message: str) -> None:
        """Render an error message."""
        self.console.print(f"[bold red]Error:[/bold red] {message}")

    def welcome(self, message: str = "[bold blue]forksh[/bold blue] - type [cyan]help[/cyan] for builtins") -> None:
        """Render welcome message."""
        self.console.print(message)

    def get_user_input(self, prompt: str) -> str:
        """Prompt user for one line."""
        if self._prompt_session is None:
            self._prompt_session = PromptSession()
        return self._prompt_session.prompt(prompt)


def create_cli_renderer() -> Renderer:
    """Create and return a Renderer instance."""
    return Renderer()
