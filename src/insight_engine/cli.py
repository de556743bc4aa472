"""Typer CLI for Insight-Engine."""

import typer
from rich.console import Console

app = typer.Typer(name="insight", help="Insight-Engine: chatbot analytics API")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the Insight-Engine API server."""
    import uvicorn
    from insight_engine.app import create_app

    console.print(f"[bold green]Starting Insight-Engine on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def token(
    license_key: str = typer.Argument(..., help="License key the token acts for"),
    domain: str = typer.Option(None, help="Domain recorded in the token"),
    master: bool = typer.Option(False, "--master", help="Mint a master admin token"),
):
    """Mint a dashboard bearer token (offline, no DB lookup)."""
    from insight_engine.auth.tokens import create_access_token
    from insight_engine.tenancy.scope import Principal

    principal = Principal(license_key=license_key, is_master=master, domain=domain)
    console.print(create_access_token(principal), soft_wrap=True)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check Insight-Engine server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    console.print(f"[bold green]{data['status']}[/bold green] v{data['version']}")


if __name__ == "__main__":
    app()
