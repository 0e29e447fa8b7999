"""Conversions between Notion property values and plain Python values."""

from typing import Any

from slack2notion.models import PropertyKind

# Notion rejects text objects longer than this
MAX_TEXT_CONTENT = 2000


def plain_text(fragments: list[dict] | None) -> str:
    """Join the plain_text of a rich text array."""
    return "".join(f.get("plain_text", "") for f in fragments or [])


def page_title(page: dict) -> str:
    """Title of a page, whatever its title property is called."""
    for prop in page.get("properties", {}).values():
        if prop.get("type") == PropertyKind.TITLE.value:
            return plain_text(prop.get("title"))
    return ""


def page_to_initials(page: dict) -> dict[str, dict[str, Any]]:
    """Reduce a page's property values to what a form needs to pre-fill.

    Text-like properties only keep their first fragment. Relations keep the
    first linked page, and its id doubles as its label since the related
    page's title is not fetched here.
    """
    out: dict[str, dict[str, Any]] = {}
    props = page.get("properties", {})

    for name, prop in props.items():
        kind = prop.get("type")

        if kind in ("title", "rich_text"):
            fragments = prop.get(kind) or []
            out[name] = {"text": fragments[0].get("plain_text", "") if fragments else ""}
        elif kind == "number":
            number = prop.get("number")
            out[name] = {"text": "" if number is None else str(number)}
        elif kind in ("url", "email", "phone_number"):
            out[name] = {"text": prop.get(kind) or ""}
        elif kind in ("select", "status"):
            option = prop.get(kind)
            out[name] = {kind: option.get("name", "") if option else ""}
        elif kind == "multi_select":
            out[name] = {"multi_select": [opt.get("name", "") for opt in prop.get("multi_select", [])]}
        elif kind == "date":
            date_obj = prop.get("date")
            out[name] = {"date": date_obj.get("start")} if date_obj else {}
        elif kind == "checkbox":
            out[name] = {"checkbox": bool(prop.get("checkbox"))}
        elif kind == "relation":
            related = prop.get("relation") or []
            if related:
                first_id = related[0]["id"]
                out[name] = {"relation": {"id": first_id, "title": first_id}}

    return out


def without_title(page: dict) -> dict:
    """Copy of a page minus its title, for inheriting the other values."""
    props = page.get("properties", {})
    return {
        **page,
        "properties": {
            name: prop for name, prop in props.items()
            if prop.get("type") != PropertyKind.TITLE.value
        },
    }


def title_value(text: str) -> dict:
    """Format title property."""
    return {"title": [{"text": {"content": text}}]}


def rich_text_value(text: str | None) -> dict:
    """Format rich_text property, split into chunks Notion accepts."""
    if not text:
        return {"rich_text": []}
    chunks = [text[i:i + MAX_TEXT_CONTENT] for i in range(0, len(text), MAX_TEXT_CONTENT)]
    return {"rich_text": [{"text": {"content": chunk}} for chunk in chunks]}


def number_value(text: str | None) -> dict:
    """Format number property. Blank or non-numeric input clears it."""
    if not text or not text.strip():
        return {"number": None}
    try:
        number = float(text.strip().replace(",", ""))
    except ValueError:
        return {"number": None}
    if number != number or number in (float("inf"), float("-inf")):
        return {"number": None}
    return {"number": int(number) if number.is_integer() else number}


def relation_value(page_id: str) -> dict:
    """Format a single-page relation."""
    return {"relation": [{"id": page_id}]}
