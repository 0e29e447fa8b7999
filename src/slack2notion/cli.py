"""CLI for slack2notion."""

import asyncio
import logging
import sys

import click
from aiohttp import web

from slack2notion import __version__
from slack2notion.config import Settings, get_settings
from slack2notion.exceptions import ConfigurationError
from slack2notion.forms import WIDGETS
from slack2notion.models import PropertyKind
from slack2notion.notion.client import NotionClient
from slack2notion.notion.schema import is_editable, ordered_properties
from slack2notion.slack.app import create_app, create_web_app


def _settings(ctx: click.Context) -> Settings:
    settings: Settings | None = ctx.obj.get("settings")
    if settings is None:
        click.echo(f"Error loading settings: {ctx.obj.get('settings_error')}", err=True)
        ctx.exit(1)
    return settings


@click.group()
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context) -> None:
    """Create and edit Notion pages from Slack modals."""
    ctx.ensure_object(dict)

    # Load settings
    try:
        settings = get_settings()
        ctx.obj["settings"] = settings
    except ConfigurationError as e:
        ctx.obj["settings_error"] = str(e)
        return

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )


@main.command()
@click.option("--port", type=int, default=None, help="Port to listen on (default: PORT or 3000)")
@click.pass_context
def serve(ctx: click.Context, port: int | None) -> None:
    """Run the Slack app.

    Slack events are served at /slack/events; / and /health answer
    health checks.
    """
    settings = _settings(ctx)
    port = port or settings.port

    notion = NotionClient(settings.notion_token, settings.notion_version)
    app = create_app(settings, notion)

    click.echo(f"⚡️ Slack ↔ Notion running on port {port}")
    web.run_app(create_web_app(app, notion), port=port, print=None)


@main.command()
@click.argument("database_id")
@click.pass_context
def schema(ctx: click.Context, database_id: str) -> None:
    """Show how a database's properties appear in the forms."""
    settings = _settings(ctx)

    async def run() -> None:
        client = NotionClient(settings.notion_token, settings.notion_version)
        try:
            props = await client.get_database_properties(database_id)
            click.echo(f"Database has {len(props)} properties:\n")

            for name, prop in ordered_properties(props):
                prop_type = prop.get("type", "unknown")
                if is_editable(prop):
                    widget = WIDGETS[PropertyKind(prop_type)].value
                    required = " (required)" if prop_type == PropertyKind.TITLE.value else ""
                    click.echo(f"  {name}: {prop_type} -> {widget}{required}")
                else:
                    click.echo(f"  {name}: {prop_type} -> not editable")
        finally:
            await client.close()

    try:
        asyncio.run(run())
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@main.command()
@click.argument("query", default="")
@click.pass_context
def databases(ctx: click.Context, query: str) -> None:
    """List databases shared with the Notion integration."""
    settings = _settings(ctx)

    async def run() -> None:
        client = NotionClient(settings.notion_token, settings.notion_version)
        try:
            results = await client.search_databases(query)
            if not results:
                click.echo("No databases found. Share a database with the integration first.")
                return
            for db in results:
                click.echo(f"  {db.id}  {db.title}")
        finally:
            await client.close()

    try:
        asyncio.run(run())
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


if __name__ == "__main__":
    main()
