"""CLI entrypoint for SongID commands."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

import typer
from dotenv import load_dotenv

from ..config import Config, StoreBackend, load_config
from ..db.store import create_store
from ..errors import SongIDError
from ..identification import identify_and_store
from ..recognition.identifier import Identifier
from ..recognition.providers import build_providers

app = typer.Typer(
    name="songid",
    help="Identify songs from audio clips using external recognition services",
    no_args_is_help=True,
)

VERSION = "0.1.0"


def _load(config_path: str | None) -> Config:
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


@app.callback()
def configure(
    log_level: str = typer.Option(
        os.getenv("LOG_LEVEL", "WARNING"), "--log-level", help="Python logging level"
    ),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("version")
def version() -> None:
    """Print the current version of songid."""
    typer.echo(f"songid version {VERSION}")


@app.command("serve")
def serve(
    config_path: str | None = typer.Option(None, "--config", help="Path to config.yaml"),
    host: str | None = typer.Option(None, help="Bind address"),
    port: int | None = typer.Option(None, help="Bind port"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from ..api.app import create_app

    config = _load(config_path)
    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.server.log_level,
    )


@app.command("identify")
def identify(
    audio_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    save: bool = typer.Option(False, "--save", help="Record the result in the song store"),
    config_path: str | None = typer.Option(None, "--config", help="Path to config.yaml"),
) -> None:
    """Identify a local audio file.

    Args:
        audio_file: Path to the clip to identify
    """
    config = _load(config_path)
    identifier = Identifier(build_providers(config), config.demo_mode)
    audio = audio_file.read_bytes()

    async def _identify() -> None:
        if save:
            store = create_store(config)
            await store.startup()
            try:
                result = await identify_and_store(store, identifier, audio, audio_file.name)
            finally:
                await store.close()
            song = result.song
            confidence = result.identification.confidence
            synthetic = result.identification.synthetic
        else:
            track = await identifier.identify(audio)
            song = track
            confidence = track.score
            synthetic = track.synthetic

        label = " [synthetic]" if synthetic else ""
        typer.echo(f"✓ {song.artist} - {song.title} ({confidence:.0f}%){label}")
        if song.album:
            typer.echo(f"  Album: {song.album}")

    try:
        asyncio.run(_identify())
    except SongIDError as e:
        typer.echo(f"Error: {e.message}: {e.detail}", err=True)
        raise typer.Exit(code=1)


@app.command("history")
def history(
    limit: int = typer.Option(10, min=1, help="Number of identifications to show"),
    config_path: str | None = typer.Option(None, "--config", help="Path to config.yaml"),
) -> None:
    """Show the most recent identifications."""
    config = _load(config_path)
    if config.store != StoreBackend.SQL:
        typer.echo("History is only persistent with the sql store (set store: sql).", err=True)
        raise typer.Exit(code=1)

    async def _history() -> None:
        store = create_store(config)
        await store.startup()
        try:
            results = await store.get_recent_identifications(limit)
        finally:
            await store.close()

        if not results:
            typer.echo("No identifications found.")
            return

        for result in results:
            identification = result.identification
            typer.echo(
                f"{identification.created_at:%Y-%m-%d %H:%M}  "
                + f"{result.song.artist} - {result.song.title}  "
                + f"({identification.confidence:.0f}%, {identification.provider or 'unknown'})  "
                + identification.filename
            )

    try:
        asyncio.run(_history())
    except SongIDError as e:
        typer.echo(f"Error: {e.message}: {e.detail}", err=True)
        raise typer.Exit(code=1)


@app.command("providers")
def providers(
    config_path: str | None = typer.Option(None, "--config", help="Path to config.yaml"),
) -> None:
    """List recognition providers in priority order."""
    config = _load(config_path)
    for i, provider in enumerate(build_providers(config), start=1):
        status = "configured" if provider.is_configured else "missing credentials"
        typer.echo(f"{i}. {provider.name}: {status}")
    typer.echo(f"Demo mode: {config.demo_mode.value}")


@app.command("init-db")
def init_db(
    config_path: str | None = typer.Option(None, "--config", help="Path to config.yaml"),
) -> None:
    """Create the database tables for the sql store."""
    config = _load(config_path)
    if config.store != StoreBackend.SQL:
        typer.echo("Store is 'memory'; nothing to initialize.")
        return

    async def _init() -> None:
        store = create_store(config)
        await store.startup()
        await store.close()

    try:
        asyncio.run(_init())
    except SongIDError as e:
        typer.echo(f"Error: {e.detail}", err=True)
        raise typer.Exit(code=1)
    typer.echo("✓ Database tables created")


def main() -> None:
    """Main CLI entrypoint."""
    # Load .env file if it exists (doesn't override existing env vars)
    _ = load_dotenv()
    app()


if __name__ == "__main__":
    main()
