"""Real-time CLI dashboard for proxy monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log

console = Console()


class RequestInfo:
    """Info about a single request."""

    def __init__(self, method: str, path: str, status: int, detail: str, timestamp: datetime):
        self.method = method
        self.path = path[:60] + "..." if len(path) > 60 else path
        self.status = status
        self.detail = detail
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing forwarded and rejected requests."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._recent: list[RequestInfo] = []
        self._max_recent = 10
        self._request_count = {"forwarded": 0, "rejected": 0, "failed": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_forwarded(
        self,
        method: str,
        path: str,
        status: int,
        *,
        elapsed: float,
    ) -> None:
        """Log a request that passed verification and reached the upstream."""
        with self._lock:
            self._request_count["forwarded"] += 1
            self._remember(RequestInfo(method, path, status, f"{elapsed * 1000:.0f} ms", datetime.now()))
            self._refresh()
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
        """Log a request stopped before or while forwarding."""
        with self._lock:
            bucket = "failed" if status >= 500 else "rejected"
            self._request_count[bucket] += 1
            self._remember(RequestInfo(method, path, status, stage, datetime.now()))
            self._refresh()
            write_cli_log("REJECT", f"{method} {path}", status=status, stage=stage, reason=reason[:200])

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], route=route, status=status)

    def _remember(self, info: RequestInfo) -> None:
        self._recent.insert(0, info)
        self._recent = self._recent[: self._max_recent]

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Signature Gate Proxy", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Forwarded: {self._request_count['forwarded']}", style="green")
        stats.append("  |  ")
        stats.append(f"Rejected: {self._request_count['rejected']}", style="yellow")
        stats.append("  |  ")
        stats.append(f"Failed: {self._request_count['failed']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Path", ratio=3)
            table.add_column("Status", width=6)
            table.add_column("Detail", ratio=1)

            for req in self._recent:
                style = "green" if req.status < 400 else "yellow" if req.status < 500 else "red"
                table.add_row(
                    req.timestamp.strftime("%H:%M:%S"),
                    req.method,
                    Text(req.path),
                    Text(str(req.status), style=style),
                    Text(req.detail),
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent Requests[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Forwarding verified requests to {self.config.upstream.origin}",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
