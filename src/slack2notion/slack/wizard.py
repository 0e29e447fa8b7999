"""The modal wizard: choose mode and database, pick, fill in, submit.

Flows, by the mode chosen in the first step:

- create:  START -> CREATE_PICK (choose properties) -> CREATE_FORM
- edit:    START -> EDIT_PICK (choose page) -> EDIT_FORM
- subtask: START -> EDIT_PICK (choose parent) -> CREATE_FORM

Each ``submit_*`` method takes the submitted view and returns the
``view_submission`` response for it, except the final form steps which
write to Notion and return the resulting page.
"""

import asyncio
import logging

from slack2notion.exceptions import Slack2NotionError, WizardStateError
from slack2notion.forms import parse_submission, render_fields
from slack2notion.models import FIELD_PREFIX, WizardContext, WizardMode, WizardStep
from slack2notion.notion.client import NotionClient
from slack2notion.notion.properties import relation_value, without_title
from slack2notion.notion.schema import collect_relation_targets, find_parent_relation
from slack2notion.slack.blocks import (
    CHOOSE_PROPS_ACTION,
    DB_ACTION,
    MODE_ACTION,
    PAGE_ACTION,
    flatten_state_values,
    form_blocks,
    modal,
    options_for,
    page_select_blocks,
    parent_summary_blocks,
    property_picker_blocks,
    selected_value,
    selected_values,
    start_blocks,
)

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200

DATABASE_LOAD_ERROR = "I couldn't load this database. Check access and try again."
PROPERTIES_LOAD_ERROR = "Couldn't load properties. Try again."
PAGE_LOAD_ERROR = "Couldn't load the page/database. Try again."


def title_from_message(text: str | None) -> str | None:
    """Single-line title from a message's text, cut to Notion-friendly length."""
    title = " ".join((text or "").split())
    return title[:MAX_TITLE_LENGTH] or None


def _errors(**errors: str) -> dict:
    return {"response_action": "errors", "errors": errors}


def _update(view: dict) -> dict:
    return {"response_action": "update", "view": view}


def _has_block(view: dict, block_id: str) -> bool:
    return any(block.get("block_id") == block_id for block in view.get("blocks") or [])


def _notice(text: str) -> list[dict]:
    return [{"type": "section", "text": {"type": "mrkdwn", "text": f":warning: {text}"}}]


class Wizard:
    """Builds and advances the wizard's views against one Notion client."""

    def __init__(self, notion: NotionClient):
        self.notion = notion

    def start_view(self, title: str | None = None, channel_id: str | None = None) -> dict:
        """First modal, opened by the shortcut."""
        context = WizardContext(step=WizardStep.START, title=title, channel_id=channel_id)
        return modal(context, "Push to Notion", "Continue", start_blocks())

    def start_view_for(self, shortcut: dict) -> dict:
        """First modal for a shortcut payload.

        Message shortcuts carry the message over as the page title and keep
        the channel so the result can be posted there.
        """
        if shortcut.get("type") != "message_action":
            return self.start_view()
        return self.start_view(
            title=title_from_message((shortcut.get("message") or {}).get("text")),
            channel_id=(shortcut.get("channel") or {}).get("id"),
        )

    # ---- external_select lookups ----

    async def database_options(self, query: str) -> list[dict]:
        try:
            return options_for(await self.notion.search_databases(query))
        except Slack2NotionError as e:
            logger.error(f"Database search failed: {e}")
            return []

    async def _page_options(self, database_id: str, query: str) -> list[dict]:
        try:
            return options_for(await self.notion.search_pages_in_database(database_id, query))
        except Slack2NotionError as e:
            logger.error(f"Page search in {database_id} failed: {e}")
            return []

    async def page_options(self, metadata: str | None, query: str) -> list[dict]:
        """Pages of the database chosen in the first step."""
        context = WizardContext.from_metadata(metadata)
        if not context.database_id:
            return []
        return await self._page_options(context.database_id, query)

    async def relation_options(self, action_id: str, metadata: str | None, query: str) -> list[dict]:
        """Pages of the database a relation field points at."""
        context = WizardContext.from_metadata(metadata)
        prop_name = action_id.removeprefix(FIELD_PREFIX)
        related_database_id = context.relations.get(prop_name)
        if not related_database_id:
            return []
        return await self._page_options(related_database_id, query)

    # ---- view submissions ----

    async def submit_start(self, view: dict) -> dict:
        """START -> CREATE_PICK or EDIT_PICK."""
        values = view.get("state", {}).get("values", {})
        raw_mode = selected_value(values, MODE_ACTION)
        database_id = selected_value(values, DB_ACTION)
        try:
            mode = WizardMode(raw_mode) if raw_mode else None
        except ValueError:
            mode = None

        if mode is None or not database_id:
            errors = {}
            if mode is None:
                errors[MODE_ACTION] = "Select an action."
            if not database_id:
                errors[DB_ACTION] = "Select a database."
            return _errors(**errors)

        try:
            schema = await self.notion.get_database_properties(database_id)
        except Slack2NotionError:
            logger.exception(f"Loading database {database_id} failed")
            return _errors(**{DB_ACTION: DATABASE_LOAD_ERROR})

        context = WizardContext.from_metadata(view.get("private_metadata")).model_copy(
            update={
                "mode": mode,
                "database_id": database_id,
                "relations": collect_relation_targets(schema),
            }
        )
        logger.info(f"Wizard started: mode={mode.value} database={database_id}")

        if mode is WizardMode.EDIT:
            context = context.advance(WizardStep.EDIT_PICK)
            return _update(modal(context, "Edit page", "Load", page_select_blocks()))

        if mode is WizardMode.SUBTASK:
            context = context.advance(WizardStep.EDIT_PICK)
            return _update(
                modal(context, "Add Subtask", "Continue", page_select_blocks("Parent page"))
            )

        context = context.advance(WizardStep.CREATE_PICK)
        return _update(modal(context, "Send to Notion", "Next", property_picker_blocks(schema)))

    def _pick_error(self, view: dict, context: WizardContext) -> dict:
        if _has_block(view, CHOOSE_PROPS_ACTION):
            return _errors(**{CHOOSE_PROPS_ACTION: PROPERTIES_LOAD_ERROR})
        # Title-only databases have no picker input to attach the error to
        context = context.advance(WizardStep.CREATE_PICK)
        return _update(modal(context, "Send to Notion", "Retry", _notice(PROPERTIES_LOAD_ERROR)))

    async def submit_create_pick(self, view: dict) -> dict:
        """CREATE_PICK -> CREATE_FORM with the title plus the chosen properties."""
        context = WizardContext.from_metadata(view.get("private_metadata"))
        chosen = selected_values(view.get("state", {}).get("values", {}), CHOOSE_PROPS_ACTION)

        if not context.database_id:
            return self._pick_error(view, context)
        try:
            schema = await self.notion.get_database_properties(context.database_id)
        except Slack2NotionError:
            logger.exception(f"Loading database {context.database_id} failed")
            return self._pick_error(view, context)

        fields = render_fields(schema, WizardMode.CREATE, prefill_title=context.title, only=chosen)
        context = context.advance(WizardStep.CREATE_FORM, only_props=chosen)
        return _update(modal(context, "Create page", "Create", form_blocks(fields)))

    async def submit_edit_pick(self, view: dict) -> dict:
        """EDIT_PICK -> EDIT_FORM, or CREATE_FORM for a subtask of the chosen page."""
        context = WizardContext.from_metadata(view.get("private_metadata"))
        page_id = selected_value(view.get("state", {}).get("values", {}), PAGE_ACTION)

        if not page_id:
            return _errors(**{PAGE_ACTION: "Select a page."})
        if not context.database_id or context.mode not in (WizardMode.EDIT, WizardMode.SUBTASK):
            return _errors(**{PAGE_ACTION: PAGE_LOAD_ERROR})

        try:
            schema, page = await asyncio.gather(
                self.notion.get_database_properties(context.database_id),
                self.notion.get_page(page_id),
            )
        except Slack2NotionError:
            logger.exception(f"Loading page {page_id} failed")
            return _errors(**{PAGE_ACTION: PAGE_LOAD_ERROR})

        if context.mode is WizardMode.EDIT:
            fields = render_fields(schema, WizardMode.EDIT, initial_record=page)
            context = context.advance(WizardStep.EDIT_FORM, page_id=page_id)
            return _update(modal(context, "Edit page", "Update", form_blocks(fields)))

        # Subtasks inherit the parent's values but never its title. The title
        # comes from the carried message only.
        fields = render_fields(
            schema,
            WizardMode.SUBTASK,
            initial_record=without_title(page),
            prefill_title=context.title,
        )
        context = context.advance(WizardStep.CREATE_FORM, parent_page_id=page_id)
        blocks = parent_summary_blocks(page, schema) + form_blocks(fields)
        return _update(modal(context, "Add Subtask", "Create", blocks))

    async def submit_create_form(self, view: dict) -> dict:
        """Create the page; a subtask is linked to its parent. Returns the new page."""
        context = WizardContext.from_metadata(view.get("private_metadata"))
        if not context.database_id:
            raise WizardStateError("No database selected")

        schema = await self.notion.get_database_properties(context.database_id)
        submitted = flatten_state_values(view.get("state", {}).get("values"))
        properties = parse_submission(schema, submitted)

        if context.mode is WizardMode.SUBTASK and context.parent_page_id:
            parent_prop = find_parent_relation(schema, context.database_id)
            if parent_prop:
                properties[parent_prop] = relation_value(context.parent_page_id)
            else:
                logger.warning(
                    f"Database {context.database_id} has no relation to itself; "
                    "subtask created without a parent link"
                )

        return await self.notion.create_page(context.database_id, properties)

    async def submit_edit_form(self, view: dict) -> dict:
        """Update the edited page with the submitted properties. Returns the page."""
        context = WizardContext.from_metadata(view.get("private_metadata"))
        if not context.database_id or not context.page_id:
            raise WizardStateError("No page selected")

        schema = await self.notion.get_database_properties(context.database_id)
        submitted = flatten_state_values(view.get("state", {}).get("values"))
        properties = parse_submission(schema, submitted)
        return await self.notion.update_page(context.page_id, properties)
