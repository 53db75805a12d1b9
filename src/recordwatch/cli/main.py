"""Main CLI entry point using Click."""

import logging
import signal
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from recordwatch import __version__
from recordwatch.config import Settings, load_settings
from recordwatch.core.exceptions import ConfigurationError, SourceFetchError
from recordwatch.infrastructure.enrichment import MusicBrainzClient
from recordwatch.infrastructure.storage import WatchStorage
from recordwatch.output import DiscordChannelClient, NotificationRouter, build_embed, format_stars
from recordwatch.output.embed import review_body, style_for
from recordwatch.pipeline import (
    PollingOrchestrator,
    PollingService,
    ReleaseYearEnricher,
    ReviewFetcher,
    WatchState,
    load_album_index,
    sync_curated_albums,
)
from recordwatch.sources import RecordClubExtractor, build_curated_sources
from recordwatch.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _get_base_dir() -> Path:
    """Get base directory from current working directory or its parents."""
    cwd = Path.cwd()
    # Check for config/config.yaml to identify project root
    if (cwd / "config" / "config.yaml").exists():
        return cwd
    for parent in cwd.parents:
        if (parent / "config" / "config.yaml").exists():
            return parent
    return cwd


@click.group()
@click.option("--base-dir", type=click.Path(exists=True), default=None, help="Repository base directory")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__, prog_name="recordwatch")
@click.pass_context
def cli(ctx: click.Context, base_dir: Optional[str], verbose: bool) -> None:
    """RecordWatch - relay Record Club reviews into Discord."""
    ctx.ensure_object(dict)

    base = Path(base_dir) if base_dir else _get_base_dir()
    load_dotenv(base / ".env")
    setup_logging(verbose=verbose)

    ctx.obj["base_dir"] = base
    ctx.obj["verbose"] = verbose
    ctx.obj["_settings"] = None
    ctx.obj["_storage"] = None


def _get_settings(ctx: click.Context) -> Settings:
    """Get or load settings."""
    if ctx.obj["_settings"] is None:
        try:
            ctx.obj["_settings"] = load_settings(ctx.obj["base_dir"])
        except ConfigurationError as e:
            raise click.ClickException(str(e)) from e
    return ctx.obj["_settings"]


def _get_storage(ctx: click.Context) -> WatchStorage:
    """Get or open the SQLite store."""
    if ctx.obj["_storage"] is None:
        settings = _get_settings(ctx)
        storage = WatchStorage(settings.storage_path(ctx.obj["base_dir"]))
        storage.initialize()
        ctx.obj["_storage"] = storage
        ctx.call_on_close(storage.close)
    return ctx.obj["_storage"]


def _build_fetcher(settings: Settings):
    """Renderer, extractor and fetcher; the browser is imported only when needed."""
    from recordwatch.infrastructure.rendering import StealthBrowser

    base_url = settings.recordclub.base_url
    renderer = StealthBrowser.from_config(base_url, settings.browser)
    extractor = RecordClubExtractor.from_config(base_url, settings.extract)
    fetcher = ReviewFetcher(
        renderer,
        extractor,
        max_attempts=settings.browser.max_attempts,
        retry_delay=settings.browser.retry_delay_seconds,
    )
    return renderer, extractor, fetcher


def _build_enricher(settings: Settings, renderer, extractor) -> Optional[ReleaseYearEnricher]:
    if not settings.enrichment.enabled:
        return None
    fallback = settings.enrichment.album_page_fallback
    return ReleaseYearEnricher(
        MusicBrainzClient.from_config(settings.enrichment),
        min_interval=settings.enrichment.min_interval_seconds,
        renderer=renderer if fallback else None,
        extractor=extractor if fallback else None,
    )


def _build_orchestrator(ctx: click.Context) -> PollingOrchestrator:
    settings = _get_settings(ctx)
    storage = _get_storage(ctx)

    try:
        client = DiscordChannelClient.from_config(settings.discord)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    state = WatchState()
    size = load_album_index(storage, state.classifier)
    if size == 0:
        click.echo("Curated album index is empty; run 'recordwatch sync' to tag 1001/latam albums.")

    renderer, extractor, fetcher = _build_fetcher(settings)
    return PollingOrchestrator(
        storage,
        fetcher,
        NotificationRouter(client, storage.list_org_configs),
        state=state,
        enricher=_build_enricher(settings, renderer, extractor),
        user_delay=settings.polling.user_delay_seconds,
    )


@cli.command()
@click.option("--interval", type=float, default=None, help="Minutes between cycles (overrides config)")
@click.pass_context
def run(ctx: click.Context, interval: Optional[float]) -> None:
    """Poll continuously. Send SIGUSR1 to trigger a cycle on demand."""
    settings = _get_settings(ctx)
    minutes = interval or settings.polling.interval_minutes
    service = PollingService(_build_orchestrator(ctx), interval_seconds=minutes * 60)

    if hasattr(signal, "SIGUSR1"):
        signal.signal(signal.SIGUSR1, lambda *_: service.trigger_async())

    click.echo(f"Polling every {minutes:g} minutes. Press Ctrl+C to stop.")
    try:
        service.run_forever()
    except KeyboardInterrupt:
        service.stop()
        click.echo("Stopped.")


@cli.command()
@click.pass_context
def poll(ctx: click.Context) -> None:
    """Run a single polling cycle now."""
    stats = _build_orchestrator(ctx).run_cycle()
    if stats is None:
        click.echo("A cycle is already running.")
        return

    for result in stats.results:
        line = f"  {result.username}: {result.outcome.value}"
        if result.new_reviews:
            line += f" ({result.new_reviews} new, {result.messages_sent} sent)"
        if result.error:
            line += f" - {result.error}"
        click.echo(line)
    click.echo(
        f"Polled {stats.users_polled} users: {stats.reviews_dispatched} new reviews, "
        f"{stats.messages_sent} messages sent, {stats.users_failed} failures"
    )


@cli.command()
@click.pass_context
def sync(ctx: click.Context) -> None:
    """Re-import the curated album lists (1001 & Latam)."""
    settings = _get_settings(ctx)
    storage = _get_storage(ctx)
    state = WatchState()

    click.echo("Syncing curated album lists...")
    stats = sync_curated_albums(storage, state.classifier, build_curated_sources(settings.curated))
    for tag, count in stats.imported.items():
        click.echo(f"  {tag}: {count} albums")
    click.echo(f"Index holds {stats.index_size} albums")
    if not stats.ok:
        raise click.ClickException(f"Failed to sync: {', '.join(stats.failed)}")


@cli.command()
@click.argument("username")
@click.option("--user", "user_key", required=True, help="Discord user id to link")
@click.pass_context
def link(ctx: click.Context, username: str, user_key: str) -> None:
    """Track a Record Club USERNAME for a Discord user."""
    user = _get_storage(ctx).link_user(user_key, username)
    click.echo(f"Linked {user.username} to <@{user.user_key}>. Reviews after the next poll will be announced.")


@cli.command()
@click.option("--user", "user_key", required=True, help="Discord user id to unlink")
@click.pass_context
def unlink(ctx: click.Context, user_key: str) -> None:
    """Stop tracking a Discord user's Record Club account."""
    if _get_storage(ctx).unlink_user(user_key):
        click.echo("Unlinked.")
    else:
        click.echo("That user was not linked.")


@cli.command("set-channel")
@click.argument("guild_id")
@click.argument("channel_id")
@click.option(
    "--type",
    "channel_type",
    type=click.Choice(["general", "1001", "latam"]),
    default="general",
    show_default=True,
    help="Which notifications go to this channel",
)
@click.pass_context
def set_channel(ctx: click.Context, guild_id: str, channel_id: str, channel_type: str) -> None:
    """Route notifications for GUILD_ID to CHANNEL_ID."""
    storage = _get_storage(ctx)
    if channel_type == "general":
        storage.set_default_channel(guild_id, channel_id)
    else:
        storage.set_channel_override(guild_id, channel_type, channel_id)
    click.echo(f"Set <#{channel_id}> as the {channel_type} notification channel for {guild_id}.")


@cli.command()
@click.argument("username")
@click.pass_context
def latest(ctx: click.Context, username: str) -> None:
    """Show the latest review for USERNAME without notifying anyone."""
    settings = _get_settings(ctx)
    storage = _get_storage(ctx)
    state = WatchState()
    load_album_index(storage, state.classifier)

    renderer, extractor, fetcher = _build_fetcher(settings)
    try:
        review = fetcher.fetch_latest(username)
    except SourceFetchError as e:
        raise click.ClickException(str(e)) from e
    if review is None:
        click.echo(f"No reviews found for {username}.")
        return

    enricher = _build_enricher(settings, renderer, extractor)
    if enricher is not None:
        enricher.enrich(review)

    source = state.classifier.classify(review.album_title, review.artist_name)
    embed = build_embed(review, source)
    click.echo(embed["title"])
    click.echo(f"  {format_stars(review.rating)}  [{style_for(source).label}]")
    click.echo(f"  {review_body(review)}")
    click.echo(f"  {review.review_url}")


if __name__ == "__main__":
    cli()
