"""Line-oriented request logger for headless runs."""

from datetime import datetime

from rich.console import Console
from rich.markup import escape

from ui.log_utils import write_cli_log


class ConsoleLogger:
    """Print one line per request instead of a live dashboard."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def log_forwarded(
        self,
        method: str,
        path: str,
        status: int,
        *,
        elapsed: float,
    ) -> None:
        self._print(f"[green]{status}[/green] {method} {escape(path)} [dim]{elapsed * 1000:.0f} ms[/dim]")
        write_cli_log("FORWARD", f"{method} {path}", status=status, elapsed=f"{elapsed:.3f}s")

    def log_rejected(
        self,
        method: str,
        path: str,
        status: int,
        reason: str,
        *,
        stage: str,
    ) -> None:
        color = "red" if status >= 500 else "yellow"
        self._print(f"[{color}]{status}[/{color}] {method} {escape(path)} [dim]{stage}: {escape(reason)}[/dim]")
        write_cli_log("REJECT", f"{method} {path}", status=status, stage=stage, reason=reason[:200])

    def log_error(self, route: str, status: int, message: str) -> None:
        self._print(f"[red][ERROR][/red] {escape(route)} {status}: {escape(message)}")
        write_cli_log("ERROR", message[:200], route=route, status=status)

    def _print(self, line: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        self._console.print(f"[dim]{timestamp}[/dim] {line}", highlight=False)
