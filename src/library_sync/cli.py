import asyncio
from typing import Optional

import typer

from library_sync.api.error_handling import LibrarySyncError
from library_sync.config.settings import Settings
from library_sync.core.dependencies import LibrarySyncClient
from library_sync.data.sync_types import replica_display_name, summarize_result

app = typer.Typer(
    name="library-sync",
    help="CLI tool to drive the library synchronization service.",
    add_completion=False,
)

BASE_URL_OPTION = typer.Option(None, "--base-url", "-u", help="Service base URL (defaults to LIBRARY_SYNC_API_URL).")


def _run(coro) -> None:
    try:
        asyncio.run(coro)
    except LibrarySyncError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command()
def status(base_url: Optional[str] = BASE_URL_OPTION):
    """Show the current sync job status."""

    async def _status():
        async with LibrarySyncClient(base_url=base_url) as client:
            response = await client.sync.get_sync_status()
            typer.echo(f"Status: {response.status.value}")
            if response.last_sync:
                typer.echo(f"Last sync: {response.last_sync}")
            if response.result:
                typer.echo(f"Last result: {summarize_result(response.result)}")
            if response.errors:
                typer.secho(f"Errors: {response.errors}", fg=typer.colors.YELLOW)

    _run(_status())


@app.command()
def trigger(
    dry_run: bool = typer.Option(False, "--dry-run", help="Only report differences; change nothing."),
    base_url: Optional[str] = BASE_URL_OPTION,
):
    """Start a sync job."""

    async def _trigger():
        async with LibrarySyncClient(base_url=base_url) as client:
            response = await client.sync.trigger_sync(dry_run=dry_run)
            typer.secho(f"Sync service answered: {response.status.value}", fg=typer.colors.GREEN)

    _run(_trigger())


@app.command()
def books(
    location: str = typer.Option(Settings.DEFAULT_LOCATION_ID, "--location", "-l", help="Library location id."),
    base_url: Optional[str] = BASE_URL_OPTION,
):
    """List books in a library location."""

    async def _books():
        async with LibrarySyncClient(base_url=base_url) as client:
            listing = await client.books.get_books(location)
            for book in listing:
                typer.echo(f"{book.id:>6}  {book.title} - {', '.join(book.authors)}")
            typer.echo(f"{len(listing)} book(s)")

    _run(_books())


@app.command()
def compare(base_url: Optional[str] = BASE_URL_OPTION):
    """Compare the primary library with every replica."""

    async def _compare():
        async with LibrarySyncClient(base_url=base_url) as client:
            result = await client.sync.compare_libraries()
            for replica in result.replicas:
                if replica.status == "error":
                    typer.secho(f"{replica_display_name(replica.path)}: {replica.error}", fg=typer.colors.RED)
                    continue
                typer.echo(
                    f"{replica_display_name(replica.path)}: {replica.unique_to_main_library} only in main, "
                    f"{replica.unique_to_replica} only in replica"
                )
            typer.echo(f"Total differences: {result.total_differences}")

    _run(_compare())


@app.command()
def history(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Number of entries to show."),
    base_url: Optional[str] = BASE_URL_OPTION,
):
    """Show past sync runs."""

    async def _history():
        async with LibrarySyncClient(base_url=base_url) as client:
            entries = await client.sync.get_sync_history(limit=limit)
            for entry in entries:
                typer.echo(" ".join(f"{key}={value}" for key, value in entry.items()))
            typer.echo(f"{len(entries)} entr{'y' if len(entries) == 1 else 'ies'}")

    _run(_history())


@app.command()
def health(base_url: Optional[str] = BASE_URL_OPTION):
    """Check that the service is reachable."""

    async def _health():
        async with LibrarySyncClient(base_url=base_url) as client:
            result = await client.sync.check_health()
            typer.secho(f"Healthy: {result}", fg=typer.colors.GREEN)

    _run(_health())


@app.command()
def watch(
    duration: float = typer.Option(60.0, "--duration", "-d", help="Seconds to keep polling."),
    base_url: Optional[str] = BASE_URL_OPTION,
):
    """Poll the sync status, faster while a job runs."""

    async def _watch():
        async with LibrarySyncClient(base_url=base_url) as client:
            client.sync.subscribe(lambda s: typer.echo(f"[{s.state.value}] {s.raw_status.value}"))
            client.start_status_polling()
            await asyncio.sleep(duration)

    _run(_watch())


if __name__ == "__main__":
    app()
