"""Slack Block Kit rendering for the wizard's modal views."""

import logging
from typing import Iterable

from slack2notion.forms import CHECKED_VALUE
from slack2notion.models import (
    FIELD_PREFIX,
    DatabaseSummary,
    FieldDescriptor,
    PageSummary,
    WidgetType,
    WizardContext,
    WizardMode,
)
from slack2notion.notion.properties import page_title, page_to_initials
from slack2notion.notion.schema import PropertySchema, is_editable, ordered_properties

# Action ids, also used as block ids
MODE_ACTION = "mode_select"
DB_ACTION = "db_select"
PAGE_ACTION = "page_select"
CHOOSE_PROPS_ACTION = "choose_props"

# Slack limits
MAX_OPTIONS = 100
MAX_OPTION_TEXT = 75
MAX_OPTION_VALUE = 150
MAX_MODAL_TITLE = 24
MAX_CONTEXT_ELEMENTS = 10

MODE_LABELS = {
    WizardMode.CREATE: "Create",
    WizardMode.EDIT: "Edit",
    WizardMode.SUBTASK: "Add Subtask",
}

logger = logging.getLogger(__name__)


def plain(text: str) -> dict:
    return {"type": "plain_text", "text": text}


def option(text: str, value: str) -> dict:
    """Select option, truncated to Slack's limits."""
    if len(text) > MAX_OPTION_TEXT:
        text = text[:MAX_OPTION_TEXT - 1] + "…"
    return {"text": plain(text), "value": value[:MAX_OPTION_VALUE]}


def options_for(items: Iterable[DatabaseSummary | PageSummary]) -> list[dict]:
    """Options answering an external_select lookup."""
    return [option(item.title or item.id, item.id) for item in list(items)[:MAX_OPTIONS]]


CHECKED_OPTION = option("Checked", CHECKED_VALUE)


def selectable_names(names: list[str], owner: str) -> list[str]:
    """Names that fit in an option value.

    Longer names would come back from Slack cut short, and Notion would
    then create a new option under the cut name, so they are left out.
    """
    usable = [name for name in names if len(name) <= MAX_OPTION_VALUE]
    if len(usable) < len(names):
        logger.warning(
            f"Skipping {len(names) - len(usable)} option(s) of {owner} "
            f"longer than {MAX_OPTION_VALUE} characters"
        )
    return usable


def _element(field: FieldDescriptor) -> dict:
    element: dict = {"action_id": field.field_id}
    widget = field.widget

    if widget in (WidgetType.TEXT, WidgetType.MULTILINE_TEXT):
        element.update(type="plain_text_input", multiline=widget is WidgetType.MULTILINE_TEXT)
        if field.initial is not None:
            element["initial_value"] = str(field.initial)

    elif widget is WidgetType.SINGLE_SELECT:
        names = selectable_names(field.options, field.property_name)
        element.update(
            type="static_select",
            options=[option(name, name) for name in names[:MAX_OPTIONS]],
        )
        if field.initial is not None and field.initial in names:
            element["initial_option"] = option(field.initial, field.initial)

    elif widget is WidgetType.MULTI_SELECT:
        names = selectable_names(field.options, field.property_name)
        element.update(
            type="multi_static_select",
            options=[option(name, name) for name in names[:MAX_OPTIONS]],
        )
        initial = [name for name in field.initial or [] if name in names]
        if initial:
            element["initial_options"] = [option(name, name) for name in initial]

    elif widget is WidgetType.DATE:
        element["type"] = "datepicker"
        if field.initial:
            element["initial_date"] = field.initial[:10]

    elif widget is WidgetType.CHECKBOX:
        element.update(type="checkboxes", options=[CHECKED_OPTION])
        if field.initial:
            element["initial_options"] = [CHECKED_OPTION]

    elif widget is WidgetType.REMOTE_SELECT:
        element.update(
            type="external_select",
            min_query_length=0,
            placeholder=plain("Search related pages..."),
        )
        if field.initial:
            element["initial_option"] = option(field.initial_label or field.initial, field.initial)

    return element


def field_block(field: FieldDescriptor) -> dict:
    """Input block for a form field, or a section for the notice."""
    if not field.interactive:
        return {"type": "section", "text": {"type": "mrkdwn", "text": f"_{field.label}_"}}
    return {
        "type": "input",
        "block_id": field.field_id,
        "optional": field.optional,
        "label": plain(field.label),
        "element": _element(field),
    }


def form_blocks(fields: list[FieldDescriptor]) -> list[dict]:
    return [field_block(field) for field in fields]


def modal(context: WizardContext, title: str, submit: str, blocks: list[dict]) -> dict:
    """Modal view for a wizard step; the context rides along as metadata."""
    return {
        "type": "modal",
        "callback_id": context.step.value,
        "title": plain(title[:MAX_MODAL_TITLE]),
        "submit": plain(submit),
        "close": plain("Cancel"),
        "private_metadata": context.to_metadata(),
        "blocks": blocks,
    }


def start_blocks() -> list[dict]:
    """Step 1: choose what to do and in which database."""
    return [
        {
            "type": "input",
            "block_id": MODE_ACTION,
            "label": plain("Action"),
            "element": {
                "type": "static_select",
                "action_id": MODE_ACTION,
                "options": [option(label, mode.value) for mode, label in MODE_LABELS.items()],
            },
        },
        {
            "type": "input",
            "block_id": DB_ACTION,
            "label": plain("Database"),
            "element": {
                "type": "external_select",
                "action_id": DB_ACTION,
                "min_query_length": 0,
                "placeholder": plain("Search databases..."),
            },
        },
    ]


def property_picker_blocks(schema: PropertySchema) -> list[dict]:
    """Create flow: choose which properties to fill besides the title."""
    names = selectable_names(
        [
            name
            for name, prop in ordered_properties(schema)
            if is_editable(prop) and prop["type"] != "title"
        ],
        "the property picker",
    )
    if not names:
        return [{
            "type": "section",
            "text": {"type": "mrkdwn", "text": "_This database only has a title to fill in._"},
        }]
    return [{
        "type": "input",
        "block_id": CHOOSE_PROPS_ACTION,
        "optional": True,
        "label": plain("Properties to fill in"),
        "element": {
            "type": "multi_static_select",
            "action_id": CHOOSE_PROPS_ACTION,
            "placeholder": plain("+ Add property"),
            "options": [option(name, name) for name in names[:MAX_OPTIONS]],
        },
    }]


def page_select_blocks(label: str = "Page") -> list[dict]:
    """Pick an existing page of the selected database."""
    return [{
        "type": "input",
        "block_id": PAGE_ACTION,
        "label": plain(label),
        "element": {
            "type": "external_select",
            "action_id": PAGE_ACTION,
            "min_query_length": 0,
            "placeholder": plain("Search..."),
        },
    }]


def _summary_value(initial: dict) -> str | None:
    if "select" in initial or "status" in initial:
        return initial.get("select") or initial.get("status") or None
    if initial.get("multi_select"):
        return ", ".join(initial["multi_select"])
    if initial.get("date"):
        return initial["date"]
    if initial.get("checkbox"):
        return "✓"
    return None


def parent_summary_blocks(parent: dict, schema: PropertySchema) -> list[dict]:
    """Short read-only snapshot of the parent page shown above a subtask form."""
    title = page_title(parent) or parent.get("id", "")
    url = parent.get("url")
    heading = f"*Parent:* <{url}|{title}>" if url else f"*Parent:* {title}"
    blocks: list[dict] = [{"type": "section", "text": {"type": "mrkdwn", "text": heading}}]

    initials = page_to_initials(parent)
    details = []
    for name, prop in ordered_properties(schema):
        if prop.get("type") == "title" or name not in initials:
            continue
        value = _summary_value(initials[name])
        if value:
            details.append({"type": "mrkdwn", "text": f"*{name}:* {value}"})

    if details:
        blocks.append({"type": "context", "elements": details[:MAX_CONTEXT_ELEMENTS]})
    blocks.append({"type": "divider"})
    return blocks


def flatten_state_values(state_values: dict | None) -> dict[str, dict]:
    """Pull the property inputs out of ``view.state.values``.

    Slack nests each element's state under its block id and action id;
    property inputs use ``prop::<name>`` for both.
    """
    flat = {}
    for block_id, actions in (state_values or {}).items():
        if not block_id.startswith(FIELD_PREFIX):
            continue
        slot = (actions or {}).get(block_id)
        if isinstance(slot, dict):
            flat[block_id] = slot
    return flat


def selected_value(state_values: dict | None, action_id: str) -> str | None:
    """Value of a single select in ``view.state.values``."""
    slot = ((state_values or {}).get(action_id) or {}).get(action_id) or {}
    return (slot.get("selected_option") or {}).get("value")


def selected_values(state_values: dict | None, action_id: str) -> list[str]:
    """Values of a multi select in ``view.state.values``."""
    slot = ((state_values or {}).get(action_id) or {}).get(action_id) or {}
    return [o["value"] for o in slot.get("selected_options") or [] if o.get("value")]
