#!/usr/bin/env python3

from __future__ import annotations
import asyncio
import json
import os
from typing import Any, List, Optional

import typer
from rich.console import Console

from rtlink.client import connect, connect_local, decode_api_token
from rtlink.config import load_config
from rtlink.shared.errors import RtlinkError
from rtlink.shared.log import configure_root_logging, get_logger

app = typer.Typer(help="rtlink command-line client")
console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)


def _default_token() -> Optional[str]:
    return os.getenv("RTLINK_API_TOKEN")


def _parse_param(raw: str) -> Any:
    """Params are JSON literals; anything that is not valid JSON is sent as a string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


@app.command()
def call(
    method: str = typer.Argument(..., help="Remote method name, e.g. getMetadata"),
    params: Optional[List[str]] = typer.Argument(None, help="Positional params as JSON literals"),
    token: Optional[str] = typer.Option(_default_token(), "--token", help="API token (or RTLINK_API_TOKEN)"),
    local: bool = typer.Option(False, "--local", help="Use the local API socket instead of a token"),
    socket_path: Optional[str] = typer.Option(None, "--socket", help="Local socket path override"),
    config_file: Optional[str] = typer.Option(None, "--config", help="YAML config file"),
):
    """Call one remote method and print its JSON result."""
    config = load_config(config_file)
    configure_root_logging(config.log_level or "WARNING")
    if not local and not token:
        err_console.print("[red]Either --token (or RTLINK_API_TOKEN) or --local is required[/]")
        raise typer.Exit(code=2)

    args = [_parse_param(p) for p in (params or [])]

    async def main() -> Any:
        if local:
            connection = await connect_local(socket_path, config=config)
        else:
            connection = await connect(token, config=config)
        try:
            return await connection.call(method, *args)
        finally:
            connection.close()
            await connection.wait_closed()

    try:
        result = asyncio.run(main())
    except RtlinkError as e:
        err_console.print(f"[red]{method} failed[/]: {e}")
        raise typer.Exit(code=1)
    console.print_json(json.dumps(result))


@app.command("decode-token")
def decode_token(token: str = typer.Argument(..., help="API token to inspect")):
    """Show which server an API token points at (the secret is not printed)."""
    try:
        url, _ = decode_api_token(token)
    except RtlinkError as e:
        err_console.print(f"[red]Invalid token[/]: {e}")
        raise typer.Exit(code=1)
    console.print(f"[bold]url[/]: {url}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
