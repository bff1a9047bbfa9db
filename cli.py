"""CLI entry point for signature-gate-proxy."""

import sys
from datetime import datetime
from pathlib import Path

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, Config, load_config
from core.exceptions import KeyLoadError
from core.keys import load_public_key
from ui.banner import show_server_info
from ui.console_logger import ConsoleLogger
from ui.dashboard import Dashboard
from ui.log_utils import CLI_LOG_FILE, write_cli_log

console = Console()


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    args = list(sys.argv[1:] if argv is None else argv)

    if "--help" in args or "-h" in args:
        _print_help()
        return

    config_file = CONFIG_FILE
    if "--config-file" in args:
        index = args.index("--config-file")
        if index + 1 >= len(args):
            console.print("[red][ERROR][/red] --config-file needs a path")
            sys.exit(2)
        config_file = Path(args[index + 1])
        del args[index : index + 2]

    config = load_config(config_file)

    if "--config" in args:
        console.print(f"[bold]Config:[/bold] {config_file}")
        console.print(f"[bold]Public key:[/bold] {config.key.public_key_path}")
        console.print(f"[bold]Log:[/bold] {CLI_LOG_FILE}")
        return

    if "--check-key" in args:
        sys.exit(0 if check_key(config) else 1)

    serve(config, headless="--headless" in args)


def check_key(config: Config) -> bool:
    """Validate the configured public key."""
    try:
        key = load_public_key(config.key.public_key_path)
    except KeyLoadError as e:
        console.print(f"[red]Public key error:[/red] {e}")
        return False
    console.print(
        f"[green]Public key OK[/green] ({key.key_size}-bit RSA, {config.key.public_key_path})"
    )
    return True


def serve(config: Config, *, headless: bool = False) -> None:
    """Run the proxy until interrupted; exit non-zero if it cannot serve."""
    import uvicorn

    show_server_info(config)

    if not config.key.public_key_path.exists():
        console.print(
            f"[yellow]Warning:[/yellow] public key {config.key.public_key_path} not found, "
            "requests will fail until it is provisioned"
        )

    dashboard = None if headless else Dashboard(config)
    logger = dashboard or ConsoleLogger(console)
    app = create_app(config, logger)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=int(config.timeouts.idle),
    )
    server = uvicorn.Server(uvicorn_config)

    if dashboard:
        dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", port=config.proxy.port, upstream=config.upstream.origin)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        if dashboard:
            dashboard.stop()

    if not server.started:
        console.print(f"[red][ERROR][/red] Server startup failed on port {config.proxy.port}")
        write_cli_log("FATAL", "Server startup failed", port=config.proxy.port)
        sys.exit(1)


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Signature Gate Proxy[/bold cyan]

Verifies signed JSON requests and forwards them to a single upstream.

[bold]Usage:[/bold]
    signature-gate-proxy                       Start with live dashboard
    signature-gate-proxy --headless            Start with line logging
    signature-gate-proxy --check-key           Validate the configured public key
    signature-gate-proxy --config              Show config locations
    signature-gate-proxy --config-file PATH    Use a specific config file
    signature-gate-proxy --help                Show this help

[bold]Requests:[/bold]
    JSON object bodies must carry "sec" (base64 RSA/SHA-256 signature)
    and "secval" (the signed string). Both are removed before forwarding.
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
