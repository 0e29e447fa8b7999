"""Map a Notion property schema to form fields and submissions back to Notion.

``render_fields`` turns a schema into ``FieldDescriptor`` objects and
``parse_submission`` turns the values entered into those fields into a
partial Notion property update. Both dispatch on ``PropertyKind`` so the two
stay in step: every kind has exactly one widget and one parser.
"""

from typing import Any, Callable, Iterable

from slack2notion.models import (
    FieldDescriptor,
    PropertyKind,
    TEXT_KINDS,
    WidgetType,
    WizardMode,
    field_id,
)
from slack2notion.notion.properties import (
    number_value,
    page_to_initials,
    relation_value,
    rich_text_value,
    title_value,
)
from slack2notion.notion.schema import PropertySchema, is_editable, option_names, ordered_properties

TITLE_HINT = " (max. 200 characters)"
SUBTASK_TITLE_LABEL = "Subtask Title"
NO_FIELDS_ID = "no_fields"
NO_FIELDS_TEXT = "No editable fields found."
CHECKED_VALUE = "true"

WIDGETS: dict[PropertyKind, WidgetType] = {
    PropertyKind.TITLE: WidgetType.TEXT,
    PropertyKind.RICH_TEXT: WidgetType.MULTILINE_TEXT,
    PropertyKind.URL: WidgetType.TEXT,
    PropertyKind.EMAIL: WidgetType.TEXT,
    PropertyKind.PHONE_NUMBER: WidgetType.TEXT,
    PropertyKind.NUMBER: WidgetType.TEXT,
    PropertyKind.SELECT: WidgetType.SINGLE_SELECT,
    PropertyKind.STATUS: WidgetType.SINGLE_SELECT,
    PropertyKind.MULTI_SELECT: WidgetType.MULTI_SELECT,
    PropertyKind.DATE: WidgetType.DATE,
    PropertyKind.CHECKBOX: WidgetType.CHECKBOX,
    PropertyKind.RELATION: WidgetType.REMOTE_SELECT,
}


def _title_label(name: str, mode: WizardMode) -> str:
    label = SUBTASK_TITLE_LABEL if mode is WizardMode.SUBTASK else name
    if mode in (WizardMode.CREATE, WizardMode.SUBTASK):
        label += TITLE_HINT
    return label


def _describe(
    name: str,
    prop: dict,
    mode: WizardMode,
    initial: dict[str, Any],
    prefill_title: str | None,
) -> FieldDescriptor:
    kind = PropertyKind(prop["type"])
    is_title = kind is PropertyKind.TITLE
    field = FieldDescriptor(
        field_id=field_id(name),
        property_name=name,
        kind=kind,
        label=_title_label(name, mode) if is_title else name,
        widget=WIDGETS[kind],
        optional=not is_title,
    )

    if kind in TEXT_KINDS:
        text = initial.get("text") or None
        if is_title and text is None and mode is not WizardMode.EDIT:
            text = prefill_title or None
        field.initial = text

    elif kind in (PropertyKind.SELECT, PropertyKind.STATUS):
        field.options = option_names(prop)
        # A pre-selection must be one of the offered options
        if initial.get(kind.value) in field.options:
            field.initial = initial[kind.value]

    elif kind is PropertyKind.MULTI_SELECT:
        field.options = option_names(prop)
        chosen = [v for v in initial.get("multi_select", []) if v in field.options]
        field.initial = chosen or None

    elif kind is PropertyKind.DATE:
        field.initial = initial.get("date")

    elif kind is PropertyKind.CHECKBOX:
        field.initial = initial.get("checkbox")

    elif kind is PropertyKind.RELATION:
        related = initial.get("relation")
        if related:
            field.initial = related["id"]
            field.initial_label = related.get("title") or related["id"]

    return field


def render_fields(
    schema: PropertySchema,
    mode: WizardMode,
    initial_record: dict | None = None,
    prefill_title: str | None = None,
    only: Iterable[str] | None = None,
) -> list[FieldDescriptor]:
    """
    Build the ordered form fields for a database schema.

    Args:
        schema: Database property schema
        mode: Wizard mode; decides the title label and whether
            ``prefill_title`` applies
        initial_record: Page whose values pre-fill the fields
        prefill_title: Title to use when the record has none
            (create and subtask modes only)
        only: If given, non-title properties outside it are left out

    Returns:
        Title field first, then the other editable properties in schema
        order. A single notice field when nothing is editable.
    """
    initials = page_to_initials(initial_record) if initial_record else {}
    wanted = set(only) if only is not None else None

    fields = []
    for name, prop in ordered_properties(schema):
        if not is_editable(prop):
            continue
        if wanted is not None and prop["type"] != PropertyKind.TITLE.value and name not in wanted:
            continue
        fields.append(_describe(name, prop, mode, initials.get(name, {}), prefill_title))

    if not fields:
        fields.append(
            FieldDescriptor(field_id=NO_FIELDS_ID, label=NO_FIELDS_TEXT, widget=WidgetType.NOTICE)
        )
    return fields


def _text(slot: dict) -> str:
    value = slot.get("value")
    return value if isinstance(value, str) else ""


def _option_value(option) -> str | None:
    """The option's value when it is a well-formed Slack option."""
    if not isinstance(option, dict):
        return None
    value = option.get("value")
    return value if isinstance(value, str) and value else None


def _selected_values(slot: dict) -> list[str]:
    options = slot.get("selected_options")
    if not isinstance(options, list):
        return []
    return [value for value in map(_option_value, options) if value]


def _selected_name(slot: dict) -> dict | None:
    value = _option_value(slot.get("selected_option"))
    return {"name": value} if value else None


def _selected_date(slot: dict) -> dict | None:
    value = slot.get("selected_date")
    return {"start": value} if isinstance(value, str) and value else None


def _relation(slot: dict) -> dict | None:
    # Nothing selected means leave the relation alone
    value = _option_value(slot.get("selected_option"))
    return relation_value(value) if value else None


PARSERS: dict[PropertyKind, Callable[[dict], dict | None]] = {
    PropertyKind.TITLE: lambda slot: title_value(_text(slot)),
    PropertyKind.RICH_TEXT: lambda slot: rich_text_value(_text(slot)),
    PropertyKind.NUMBER: lambda slot: number_value(_text(slot)),
    PropertyKind.URL: lambda slot: {"url": _text(slot) or None},
    PropertyKind.EMAIL: lambda slot: {"email": _text(slot) or None},
    PropertyKind.PHONE_NUMBER: lambda slot: {"phone_number": _text(slot) or None},
    PropertyKind.SELECT: lambda slot: {"select": _selected_name(slot)},
    PropertyKind.STATUS: lambda slot: {"status": _selected_name(slot)},
    PropertyKind.MULTI_SELECT: lambda slot: {
        "multi_select": [{"name": value} for value in _selected_values(slot)]
    },
    PropertyKind.DATE: lambda slot: {"date": _selected_date(slot)},
    PropertyKind.CHECKBOX: lambda slot: {"checkbox": CHECKED_VALUE in _selected_values(slot)},
    PropertyKind.RELATION: _relation,
}


def parse_submission(schema: PropertySchema, submitted: dict[str, dict]) -> dict[str, dict]:
    """
    Convert submitted field values into a Notion property update.

    Only properties with an entry in ``submitted`` appear in the result;
    a missing entry means "unchanged", never "clear". Malformed entries
    degrade to an empty value instead of raising.

    Args:
        schema: Database property schema
        submitted: Raw input element state keyed by ``prop::<name>``

    Returns:
        Properties payload for create_page/update_page
    """
    properties: dict[str, dict] = {}
    for name, prop in schema.items():
        if not is_editable(prop):
            continue
        slot = submitted.get(field_id(name))
        if not isinstance(slot, dict):
            continue
        value = PARSERS[PropertyKind(prop["type"])](slot)
        if value is not None:
            properties[name] = value
    return properties
