"""Typer CLI for navigator access."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

app = typer.Typer(name="navigator", help="Navigator access: Stripe payments to Kinde permissions")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the webhook API server."""
    import uvicorn
    from navigator_access.app import create_app
    from navigator_access.common.config import get_settings
    from navigator_access.common.logging import setup_logging

    setup_logging(get_settings().log_level)
    console.print(f"[bold green]Starting navigator access on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


async def _with_access_service(action):
    from navigator_access.deps import close_clients, get_access_service

    try:
        return await action(get_access_service())
    finally:
        await close_clients()


@app.command()
def grant(
    email: str = typer.Argument(..., help="Customer email to grant access to"),
):
    """Grant the access permission to a customer (manual reconciliation)."""
    from navigator_access.common.exceptions import NavigatorError

    try:
        user_id = asyncio.run(_with_access_service(lambda svc: svc.grant_access(email)))
    except NavigatorError as e:
        console.print(f"[bold red]{e.code}[/bold red] — {e.message}")
        raise typer.Exit(1)
    console.print(f"[bold green]GRANTED[/bold green] — {email} ({user_id})")


@app.command()
def check(
    email: str = typer.Argument(..., help="Customer email to check"),
):
    """Check whether a customer holds the access permission."""
    from navigator_access.common.exceptions import NavigatorError

    try:
        paid = asyncio.run(_with_access_service(lambda svc: svc.has_access(email)))
    except NavigatorError as e:
        console.print(f"[bold red]{e.code}[/bold red] — {e.message}")
        raise typer.Exit(1)

    if paid:
        console.print(f"[bold green]PAID[/bold green] — {email}")
    else:
        console.print(f"[bold yellow]NOT PAID[/bold yellow] — {email}")
        raise typer.Exit(2)


@app.command()
def sign(
    payload_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON event body"),
    secret: Optional[str] = typer.Option(None, help="Webhook secret (defaults to configured secret)"),
):
    """Print a Stripe-Signature header for a local test payload."""
    from navigator_access.common.config import get_settings
    from navigator_access.payments.stripe_webhook import sign_payload

    secret = secret or get_settings().stripe_webhook_secret
    if not secret:
        console.print("[bold red]Error:[/bold red] no webhook secret configured")
        raise typer.Exit(1)
    console.print(sign_payload(payload_file.read_bytes(), secret), soft_wrap=True)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
