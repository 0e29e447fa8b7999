"""Data models for slack2notion."""

import json
import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

FIELD_PREFIX = "prop::"


class PropertyKind(str, Enum):
    """Notion property types the forms know how to render and parse."""

    TITLE = "title"
    RICH_TEXT = "rich_text"
    URL = "url"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    NUMBER = "number"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    DATE = "date"
    CHECKBOX = "checkbox"
    STATUS = "status"
    RELATION = "relation"


# Computed or system-managed, never shown in a form
READ_ONLY_KINDS = frozenset({
    "formula",
    "rollup",
    "created_time",
    "last_edited_time",
    "created_by",
    "last_edited_by",
    "files",
})

EDITABLE_KINDS = frozenset(kind.value for kind in PropertyKind)

TEXT_KINDS = frozenset({
    PropertyKind.TITLE,
    PropertyKind.RICH_TEXT,
    PropertyKind.URL,
    PropertyKind.EMAIL,
    PropertyKind.PHONE_NUMBER,
    PropertyKind.NUMBER,
})


def field_id(property_name: str) -> str:
    """Block and action id used for a property's input."""
    return f"{FIELD_PREFIX}{property_name}"


class WizardMode(str, Enum):
    """What the user chose to do in the first step."""

    CREATE = "create"
    EDIT = "edit"
    SUBTASK = "subtask"


class WizardStep(str, Enum):
    """Modal views of the wizard, used as Slack callback ids."""

    START = "v_step1"
    CREATE_PICK = "v_create_pick"
    CREATE_FORM = "v_create_form"
    EDIT_PICK = "v_edit_pick"
    EDIT_FORM = "v_edit_form"


class WidgetType(str, Enum):
    TEXT = "text"
    MULTILINE_TEXT = "multiline_text"
    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"
    DATE = "date"
    CHECKBOX = "checkbox"
    REMOTE_SELECT = "remote_select"
    NOTICE = "notice"


class FieldDescriptor(BaseModel):
    """One rendered form input, independent of Slack's block format."""

    field_id: str = Field(description="prop::<name>, the join key with submissions")
    property_name: str | None = None
    kind: PropertyKind | None = None
    label: str
    widget: WidgetType
    optional: bool = True
    options: list[str] = Field(default_factory=list, description="Option names for pickers")
    initial: Any = None
    initial_label: str | None = Field(
        default=None, description="Display text for a remote-select pre-selection"
    )

    @property
    def interactive(self) -> bool:
        return self.widget is not WidgetType.NOTICE


class WizardContext(BaseModel):
    """State carried between wizard steps in the modal's private_metadata."""

    step: WizardStep | None = None
    mode: WizardMode | None = None
    database_id: str | None = None
    relations: dict[str, str] = Field(
        default_factory=dict, description="Relation property name -> related database id"
    )
    title: str | None = Field(default=None, description="Title carried over from a message")
    page_id: str | None = None
    parent_page_id: str | None = None
    only_props: list[str] | None = None
    channel_id: str | None = None

    def to_metadata(self) -> str:
        """Serialize for a view's private_metadata."""
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def from_metadata(cls, raw: str | None) -> "WizardContext":
        """Parse private_metadata.

        Anything unparseable yields an empty context instead of failing the
        request; the caller then reports missing selections as usual.
        """
        if not raw:
            return cls()
        try:
            return cls.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring malformed wizard metadata: {e}")
            return cls()

    def advance(self, step: WizardStep, **changes: Any) -> "WizardContext":
        """Copy of this context moved to another step."""
        return self.model_copy(update={"step": step, **changes})


class DatabaseSummary(BaseModel):
    """Database search result."""

    id: str
    title: str


class PageSummary(BaseModel):
    """Page search result."""

    id: str
    title: str
    url: str | None = None
