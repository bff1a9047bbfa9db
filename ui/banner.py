"""Startup banner with version and host information."""

import platform
import socket
import time

import psutil
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log

APP_NAME = "Signature Gate Proxy"
APP_VERSION = "1.1.0"

console = Console()


def collect_host_info() -> dict[str, str]:
    """Collect host details shown in the banner."""
    uptime = int(time.time() - psutil.boot_time())
    return {
        "Hostname": socket.gethostname() or platform.node(),
        "OS": f"{platform.system()} {platform.release()}".strip(),
        "Uptime": f"{uptime} seconds",
        "Machine": platform.machine(),
        "Python": platform.python_version(),
    }


def collect_memory_info() -> dict[str, str]:
    """Collect system memory figures in GB (10^9 bytes)."""
    memory = psutil.virtual_memory()
    return {
        "Total": f"{memory.total / 1e9:.2f} GB",
        "Used": f"{memory.used / 1e9:.2f} GB",
        "Free": f"{memory.free / 1e9:.2f} GB",
    }


def _print_section(title: str, values: dict[str, str]) -> None:
    console.print(f"\n[bold]{title}:[/bold]")
    for label, value in values.items():
        console.print(f"  {label}: {value}", highlight=False)


def show_server_info(config: Config) -> None:
    """Print the startup banner. Purely informational."""
    title = Text(APP_NAME, style="bold bright_cyan")
    title.append(f"  v{APP_VERSION}", style="dim")
    console.print(Panel(title, border_style="bright_cyan", expand=False))

    settings = Table.grid(padding=(0, 2))
    settings.add_column(style="bold")
    settings.add_column()
    settings.add_row("Listen", f"{config.proxy.host}:{config.proxy.port}")
    settings.add_row("Upstream", Text(config.upstream.origin))
    settings.add_row("Public key", Text(str(config.key.public_key_path)))
    console.print(settings)

    try:
        host_info = collect_host_info()
    except (OSError, psutil.Error) as e:
        write_cli_log("WARN", f"Failed to retrieve host information: {e}")
        return
    _print_section("Server Information", host_info)

    try:
        memory_info = collect_memory_info()
    except (OSError, psutil.Error) as e:
        write_cli_log("WARN", f"Failed to retrieve memory information: {e}")
        return
    _print_section("Memory Information", memory_info)

    console.print("\n[bold bright_cyan]Server Status: Started[/bold bright_cyan]")
