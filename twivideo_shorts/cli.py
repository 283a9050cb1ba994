"""CLI for running the server and checking on a running instance."""
import asyncio
from typing import List, Optional

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import settings
from .models import ListingItem, SortOrder
from .services.listing_markup import parse_listing_items

app = typer.Typer(help="TWIVIDEO Shorts ranking proxy")
console = Console()


def default_api_url() -> str:
    return f"http://localhost:{settings.port}"


async def get_status(api_url: str) -> Optional[dict]:
    """Get the browser session status from a running server."""
    async with httpx.AsyncClient(timeout=10.0) as client:
        try:
            response = await client.get(f"{api_url}/api/status")
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            console.print(f"[red]Error getting status: {e}[/red]")
            return None


async def get_videos(api_url: str, sort: SortOrder, offset: int, limit: int) -> Optional[str]:
    """Fetch one page of ranking markup from a running server."""
    async with httpx.AsyncClient(timeout=120.0) as client:
        try:
            response = await client.get(
                f"{api_url}/api/videos",
                params={"sort": sort.value, "offset": offset, "limit": limit},
            )
            response.raise_for_status()
            return response.text
        except httpx.HTTPStatusError as e:
            console.print(f"[red]HTTP {e.response.status_code}: {e.response.text}[/red]")
            return None
        except httpx.HTTPError as e:
            console.print(f"[red]Error: {e}[/red]")
            return None


def create_status_table(status: dict) -> Table:
    """Create a rich table displaying the browser session status."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="cyan bold", no_wrap=True)
    table.add_column("Value", style="white")

    readiness = status.get("readiness", "unknown")
    readiness_colors = {
        "not_ready": "red",
        "ready_unconfirmed": "yellow",
        "ready_confirmed": "green",
    }
    color = readiness_colors.get(readiness, "white")

    table.add_row("Readiness", f"[{color}]{readiness.upper()}[/{color}]")
    table.add_row("Browser", "yes" if status.get("hasBrowser") else "no")
    table.add_row("Page", "yes" if status.get("hasPage") else "no")
    if "pageTitle" in status:
        table.add_row("Page Title", status["pageTitle"])
    if "videoCount" in status:
        table.add_row("Videos on Page", str(status["videoCount"]))
    if "error" in status:
        table.add_row("Error", f"[red]{status['error']}[/red]")
    table.add_row("Checked At", status.get("timestamp", ""))

    return table


def create_listing_table(items: List[ListingItem]) -> Table:
    """Create a rich table of parsed ranking entries."""
    table = Table(show_header=True, header_style="cyan bold")
    table.add_column("Rank", no_wrap=True)
    table.add_column("ID", no_wrap=True)
    table.add_column("Video URL", overflow="fold")

    for item in items:
        table.add_row(item.rank, item.id, item.video_url)

    return table


@app.command()
def serve():
    """Run the proxy server (host and port come from the environment)."""
    from .main import run

    run()


@app.command()
def status(
    api_url: str = typer.Option(None, help="API base URL (defaults to localhost on PORT)"),
):
    """Show the browser session status of a running server."""
    data = asyncio.run(get_status(api_url or default_api_url()))
    if data is None:
        raise typer.Exit(1)

    ready = data.get("browserReady", False)
    console.print(Panel(
        create_status_table(data),
        title="[green]Browser Ready" if ready else "[red]Browser Not Ready",
        border_style="green" if ready else "red",
    ))


@app.command()
def fetch(
    sort: SortOrder = typer.Option(SortOrder.DAILY, help="Ranking window: 24, 7 or 30"),
    offset: int = typer.Option(0, min=0, help="Pagination offset"),
    limit: int = typer.Option(30, min=1, help="Page size"),
    api_url: str = typer.Option(None, help="API base URL (defaults to localhost on PORT)"),
):
    """
    Fetch one ranking page from a running server and list its videos.

    Examples:

        python -m twivideo_shorts fetch

        python -m twivideo_shorts fetch --sort 7 --offset 30
    """
    html = asyncio.run(get_videos(api_url or default_api_url(), sort, offset, limit))
    if html is None:
        raise typer.Exit(1)

    items = parse_listing_items(html)
    if not items:
        console.print("[yellow]No videos found in the response[/yellow]")
        raise typer.Exit(1)

    console.print(create_listing_table(items))
    console.print(f"\n[cyan]{len(items)} videos[/cyan] (sort={sort.value} offset={offset})")


if __name__ == "__main__":
    app()
