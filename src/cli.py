"""
Command-line interface for chat-watcher.

Provides commands to serve the HTTP trigger, run a single invocation,
initialize the database, and run diagnostic checks.

Usage:
    chat-watcher serve               # Run the HTTP trigger
    chat-watcher run-once --span 30  # One invocation without HTTP
    chat-watcher init-db             # Initialize database
    chat-watcher add-source VIDEO_ID CHAT_ID --status live
    chat-watcher watermarks          # Show stored watermarks
    chat-watcher health              # Check service health
"""

import asyncio
import json
import sys
from datetime import datetime, timezone

import click

from src.config.settings import get_settings
from src.observability.logging import request_logger, setup_logging
from src.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Chat Watcher - incremental YouTube live chat ingestion."""
    if debug:
        import os
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()

    # Initialize tracing if enabled
    settings = get_settings()
    if settings.tracing_enabled:
        from src.observability.tracing import setup_tracing

        setup_tracing(
            service_name=settings.otel_service_name,
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        )


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics/--no-metrics", default=False, help="Enable metrics server")
def serve(host: str | None, port: int | None, reload: bool, metrics: bool) -> None:
    """Start the chat ingestion HTTP trigger."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.port

    if metrics:
        get_metrics().start_server(port=settings.metrics_port)
        click.echo(f"Metrics available on http://localhost:{settings.metrics_port}/metrics")

    click.echo(f"Starting chat watcher on {host}:{port}")

    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@main.command("run-once")
@click.option("--span", default=None, help="Lookback window in minutes (default 60)")
def run_once(span: str | None) -> None:
    """Run one ingestion invocation and print the summary as JSON."""
    from src.chat.errors import ChatWatcherError
    from src.chat.repository import ChatRepository
    from src.chat.tagger import SentimentTagger
    from src.chat.threshold import parse_span
    from src.config.settings import ensure_configured
    from src.ingestion.youtube_client import YouTubeChatClient
    from src.observability.tracing import force_flush
    from src.sentiment.language_client import LanguageClient
    from src.services.chat_watcher import ChatWatcherService
    from src.storage.database import Database

    settings = get_settings()

    try:
        ensure_configured(settings)
        span_minutes = parse_span(span)
    except ChatWatcherError as e:
        raise click.ClickException(e.message) from e

    async def run():
        db = Database()
        await db.connect()
        try:
            async with YouTubeChatClient(
                api_keys=settings.youtube_api_key or "",
                api_url=settings.youtube_api_url,
                max_retries=settings.http_max_retries,
                timeout=settings.http_timeout_seconds,
            ) as fetcher, LanguageClient(
                api_key=settings.effective_language_api_key or "",
                api_url=settings.language_api_url,
                max_retries=settings.http_max_retries,
                timeout=settings.http_timeout_seconds,
            ) as scorer:
                service = ChatWatcherService(
                    repository=ChatRepository(db),
                    fetcher=fetcher,
                    tagger=SentimentTagger(scorer),
                    allowed_author_ids=settings.target_channel_ids,
                    max_results=settings.chat_max_results,
                )
                log = request_logger(
                    settings.effective_service_name,
                    project_id=settings.google_cloud_project,
                )
                return await service.run(span_minutes, log=log)
        finally:
            await db.close()
            force_flush()

    try:
        result = asyncio.run(run())
    except ChatWatcherError as e:
        stage = getattr(e, "stage", None)
        prefix = f"[{stage}] " if stage else ""
        raise click.ClickException(f"{prefix}{e.message}") from e

    click.echo(json.dumps(result.to_dict(), indent=2))


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from src.chat.repository import ChatRepository
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        repo = ChatRepository(db)
        await repo.create_tables()

        click.echo("Database initialized successfully")

        await db.close()

    asyncio.run(run())


@main.command("add-source")
@click.argument("source_id")
@click.argument("chat_id")
@click.option(
    "--status",
    type=click.Choice(["live", "upcoming", "none"]),
    default="upcoming",
    help="Broadcast status",
)
def add_source(source_id: str, chat_id: str, status: str) -> None:
    """Register or update a broadcast to poll."""
    from src.chat.repository import ChatRepository
    from src.chat.schemas import Source
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()
        try:
            await ChatRepository(db).upsert_source(
                Source(source_id=source_id, chat_id=chat_id, status=status)
            )
        finally:
            await db.close()

        click.echo(f"Source {source_id} saved ({status})")

    asyncio.run(run())


@main.command()
@click.option("--source", "source_ids", multiple=True, help="Limit to these source ids")
def watermarks(source_ids: tuple[str, ...]) -> None:
    """Show the newest stored message time, globally and per source."""
    from src.chat.repository import ChatRepository
    from src.storage.database import Database

    def _fmt(ts: int | None) -> str:
        if ts is None:
            return "never"
        return f"{ts} ({datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()})"

    async def run():
        db = Database()
        await db.connect()
        try:
            repo = ChatRepository(db)
            overall = await repo.get_last_published_at()
            ids = list(source_ids)
            if not ids:
                sources = await repo.get_sources_by_status(["live", "upcoming"])
                ids = [s.source_id for s in sources]
            per_source = await repo.get_last_published_at_by_source(ids)
        finally:
            await db.close()

        click.echo(f"Global watermark: {_fmt(overall)}")
        click.echo("-" * 40)
        for source_id in ids:
            click.echo(f"  {source_id}: {_fmt(per_source.get(source_id))}")

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check configuration and database connectivity."""
    import structlog
    logger = structlog.get_logger()

    async def check():
        results: dict[str, bool] = {}

        settings = get_settings()
        missing = settings.missing_required()
        results["configured"] = not missing

        try:
            from src.storage.database import Database
            db = Database()
            await db.connect()
            results["postgres"] = await db.health_check()
            await db.close()
        except Exception as e:
            results["postgres"] = False
            logger.error("Postgres health check failed", error=str(e))

        click.echo("\nHealth Check Results:")
        click.echo("-" * 40)

        for name, status in results.items():
            icon = "✓" if status else "✗"
            color = "green" if status else "red"
            click.echo(click.style(f"  {icon} {name}: {status}", fg=color))
        for name in missing:
            click.echo(click.style(f"    missing {name}", fg="red"))

        click.echo("-" * 40)

        if all(results.values()):
            click.echo(click.style("All core services healthy!", fg="green"))
            sys.exit(0)
        else:
            click.echo(click.style("Some services unhealthy!", fg="red"))
            sys.exit(1)

    asyncio.run(check())


if __name__ == "__main__":
    main()
