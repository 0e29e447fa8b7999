"""Slack Bolt app wiring and the HTTP server around it."""

import logging
import re

from aiohttp import web
from slack_bolt.async_app import AsyncApp
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from slack2notion.config import Settings
from slack2notion.exceptions import Slack2NotionError
from slack2notion.models import FIELD_PREFIX, WizardContext, WizardStep
from slack2notion.notion.client import NotionClient
from slack2notion.slack.blocks import DB_ACTION, PAGE_ACTION
from slack2notion.slack.wizard import Wizard

logger = logging.getLogger(__name__)

SLACK_EVENTS_PATH = "/slack/events"

# chat.postEphemeral errors meaning the bot can't post in that channel
UNREACHABLE_CHANNEL_ERRORS = frozenset({"not_in_channel", "channel_not_found", "is_archived"})


async def notify(client: AsyncWebClient, context: WizardContext, user_id: str, text: str) -> None:
    """
    Tell the user how their submission went.

    Posts an ephemeral message in the channel the shortcut was used in when
    known, otherwise (or when the bot can't post there) a direct message.
    """
    if context.channel_id:
        try:
            await client.chat_postEphemeral(channel=context.channel_id, user=user_id, text=text)
            return
        except SlackApiError as e:
            error = e.response.get("error")
            if error not in UNREACHABLE_CHANNEL_ERRORS:
                logger.error(f"Failed to notify {user_id}: {error}")
                return
            logger.info(f"Can't post in {context.channel_id} ({error}), sending a DM instead")

    try:
        await client.chat_postMessage(channel=user_id, text=text)
    except SlackApiError as e:
        logger.error(f"Failed to notify {user_id}: {e.response.get('error')}")


def _metadata(body: dict) -> str | None:
    return (body.get("view") or {}).get("private_metadata")


def register_listeners(app: AsyncApp, wizard: Wizard, shortcut_id: str) -> None:
    """Attach the shortcut, option lookups and wizard view handlers."""

    @app.middleware
    async def log_request(body, next):
        logger.debug(f"Incoming Slack request: {body.get('type')}")
        await next()

    @app.shortcut(shortcut_id)
    async def open_wizard(ack, shortcut, client):
        await ack()
        logger.info(f"Shortcut received: {shortcut.get('callback_id')} ({shortcut.get('type')})")
        try:
            await client.views_open(
                trigger_id=shortcut["trigger_id"],
                view=wizard.start_view_for(shortcut),
            )
        except SlackApiError as e:
            logger.error(f"views.open failed: {e.response.get('error')}")

    @app.options(DB_ACTION)
    async def database_options(ack, options):
        await ack(options=await wizard.database_options(options.get("value") or ""))

    @app.options(PAGE_ACTION)
    async def page_options(ack, body, options):
        query = options.get("value") or ""
        await ack(options=await wizard.page_options(_metadata(body), query))

    @app.options(re.compile(f"^{re.escape(FIELD_PREFIX)}"))
    async def relation_options(ack, body, options):
        query = options.get("value") or ""
        action_id = options.get("action_id", "")
        await ack(options=await wizard.relation_options(action_id, _metadata(body), query))

    @app.view(WizardStep.START.value)
    async def on_start(ack, view):
        await ack(await wizard.submit_start(view))

    @app.view(WizardStep.CREATE_PICK.value)
    async def on_create_pick(ack, view):
        await ack(await wizard.submit_create_pick(view))

    @app.view(WizardStep.EDIT_PICK.value)
    async def on_edit_pick(ack, view):
        await ack(await wizard.submit_edit_pick(view))

    @app.view(WizardStep.CREATE_FORM.value)
    async def on_create_form(ack, body, view, client):
        # Close the modal right away, Notion may take a while
        await ack()
        context = WizardContext.from_metadata(view.get("private_metadata"))
        user_id = body["user"]["id"]
        try:
            page = await wizard.submit_create_form(view)
        except Slack2NotionError as e:
            logger.exception("Creating page failed")
            await notify(client, context, user_id, f"❌ Couldn't create the page: {e}")
            return
        await notify(client, context, user_id, f"✅ Created: {page.get('url') or 'Notion page'}")

    @app.view(WizardStep.EDIT_FORM.value)
    async def on_edit_form(ack, body, view, client):
        await ack()
        context = WizardContext.from_metadata(view.get("private_metadata"))
        user_id = body["user"]["id"]
        try:
            page = await wizard.submit_edit_form(view)
        except Slack2NotionError as e:
            logger.exception("Updating page failed")
            await notify(client, context, user_id, f"❌ Couldn't update the page: {e}")
            return
        await notify(client, context, user_id, f"✏️ Updated: {page.get('url') or 'Notion page'}")


def create_app(settings: Settings, notion: NotionClient) -> AsyncApp:
    """Bolt app with every wizard listener registered."""
    app = AsyncApp(token=settings.slack_bot_token, signing_secret=settings.slack_signing_secret)

    @app.error
    async def handle_error(error):
        logger.error(f"Bolt error: {error}")

    register_listeners(app, Wizard(notion), settings.shortcut_id)
    return app


async def index(request: web.Request) -> web.Response:
    return web.Response(text="OK - Slack ↔ Notion")


async def health(request: web.Request) -> web.Response:
    return web.json_response({"ok": True})


def create_web_app(app: AsyncApp, notion: NotionClient) -> web.Application:
    """aiohttp application serving Slack events plus health checks."""
    web_app = app.web_app(path=SLACK_EVENTS_PATH)
    web_app.router.add_get("/", index)
    web_app.router.add_get("/health", health)

    async def close_notion(_: web.Application) -> None:
        await notion.close()

    web_app.on_cleanup.append(close_notion)
    return web_app
