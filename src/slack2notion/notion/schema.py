"""Helpers over a Notion database's property schema.

A schema is the raw ``properties`` object of a database, mapping each
property name to a definition such as::

    {
        "Name": {"id": "title", "type": "title", "title": {}},
        "Status": {"type": "status", "status": {"options": [{"name": "Done"}]}},
        "Parent": {"type": "relation", "relation": {"database_id": "..."}},
    }
"""

from slack2notion.models import EDITABLE_KINDS, READ_ONLY_KINDS, PropertyKind

PropertySchema = dict[str, dict]


def is_editable(prop: dict) -> bool:
    """True for property types a form can render and parse.

    Read-only kinds and types added to Notion after this was written are
    both left alone.
    """
    kind = prop.get("type")
    return kind not in READ_ONLY_KINDS and kind in EDITABLE_KINDS


def title_property(schema: PropertySchema) -> str | None:
    """Name of the title property, if the schema has one."""
    for name, prop in schema.items():
        if prop.get("type") == PropertyKind.TITLE.value:
            return name
    return None


def ordered_properties(schema: PropertySchema) -> list[tuple[str, dict]]:
    """Schema entries with the title property first, others in source order."""
    title_key = title_property(schema)
    if title_key is None:
        return list(schema.items())
    rest = [(name, prop) for name, prop in schema.items() if name != title_key]
    return [(title_key, schema[title_key]), *rest]


def option_names(prop: dict) -> list[str]:
    """Option names of a select, multi_select or status property."""
    kind = prop.get("type")
    return [opt["name"] for opt in (prop.get(kind) or {}).get("options", []) if opt.get("name")]


def collect_relation_targets(schema: PropertySchema) -> dict[str, str]:
    """Map each relation property to the database it points at."""
    targets = {}
    for name, prop in schema.items():
        if prop.get("type") != PropertyKind.RELATION.value:
            continue
        database_id = (prop.get("relation") or {}).get("database_id")
        if database_id:
            targets[name] = database_id
    return targets


def _normalize_id(notion_id: str) -> str:
    return notion_id.replace("-", "").lower()


def find_parent_relation(schema: PropertySchema, database_id: str) -> str | None:
    """First relation property pointing back at the same database.

    Used to link a subtask to its parent. Notion returns ids with dashes
    while users and search results may not, so ids compare undashed.
    """
    target = _normalize_id(database_id)
    for name, related_id in collect_relation_targets(schema).items():
        if _normalize_id(related_id) == target:
            return name
    return None
