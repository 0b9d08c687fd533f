import asyncio

import typer
import uvicorn

from backend.app.config import settings

app = typer.Typer(help="Featureboard - vote on what gets built next")


@app.command()
def start(
    host: str = typer.Option(settings.host, help="Interface to bind"),
    port: int = typer.Option(settings.port, help="Port to listen on"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Start the Featureboard server."""
    typer.echo(f"Starting Featureboard on {host}:{port}...")
    uvicorn.run(
        "backend.app.main:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command("init-db")
def init_db_command(
    seed: bool = typer.Option(settings.seed_features, help="Seed the starter feature list"),
) -> None:
    """Create tables (and starter features) without starting the server."""
    from backend.app.db import init_db

    asyncio.run(init_db(seed=seed))
    typer.echo(f"Database ready at {settings.database_url}")


if __name__ == "__main__":
    app()
