"""Tests for schema helpers and property conversions."""

from slack2notion.notion.properties import (
    number_value,
    page_title,
    page_to_initials,
    plain_text,
    without_title,
)
from slack2notion.notion.schema import (
    collect_relation_targets,
    find_parent_relation,
    is_editable,
    option_names,
    ordered_properties,
    title_property,
)

from conftest import DATABASE_ID, PROJECTS_DATABASE_ID


class TestSchemaHelpers:
    """Tests for schema inspection."""

    def test_title_property(self, schema):
        assert title_property(schema) == "Name"
        assert title_property({"Notes": {"type": "rich_text"}}) is None

    def test_ordered_properties(self, schema):
        names = [name for name, _ in ordered_properties(schema)]
        assert names[:3] == ["Name", "Status", "Notes"]
        assert len(names) == len(schema)

    def test_is_editable(self, schema):
        assert is_editable(schema["Due"])
        assert not is_editable(schema["Progress"])
        assert not is_editable(schema["Attachments"])
        assert not is_editable({"type": "button"})

    def test_option_names(self, schema):
        assert option_names(schema["Priority"]) == ["High", "Low"]
        assert option_names({"type": "select", "select": {}}) == []

    def test_collect_relation_targets(self, schema):
        assert collect_relation_targets(schema) == {
            "Parent": DATABASE_ID,
            "Project": PROJECTS_DATABASE_ID,
        }

    def test_relation_without_database_is_skipped(self):
        schema = {"Link": {"type": "relation", "relation": {}}}
        assert collect_relation_targets(schema) == {}

    def test_find_parent_relation(self, schema):
        assert find_parent_relation(schema, DATABASE_ID) == "Parent"

    def test_find_parent_relation_ignores_dashes(self, schema):
        assert find_parent_relation(schema, DATABASE_ID.replace("-", "").upper()) == "Parent"

    def test_no_parent_relation(self, schema):
        del schema["Parent"]
        assert find_parent_relation(schema, DATABASE_ID) is None


class TestPageToInitials:
    """Tests for reducing page values to form pre-fills."""

    def test_values(self, page):
        initials = page_to_initials(page)
        assert initials["Name"] == {"text": "Write release notes"}
        assert initials["Notes"] == {"text": "hello"}
        assert initials["Estimate"] == {"text": "3"}
        assert initials["Owner Email"] == {"text": ""}
        assert initials["Status"] == {"status": "In progress"}
        assert initials["Priority"] == {"select": "High"}
        assert initials["Tags"] == {"multi_select": ["Bug", "Retired tag"]}
        assert initials["Due"] == {"date": "2026-11-02"}
        assert initials["Blocked"] == {"checkbox": True}
        assert initials["Project"] == {"relation": {"id": "proj-1", "title": "proj-1"}}

    def test_skips_empty_relations_and_read_only(self, page):
        initials = page_to_initials(page)
        assert "Parent" not in initials
        assert "Progress" not in initials
        assert "Created" not in initials

    def test_empty_values(self):
        page = {
            "properties": {
                "Name": {"type": "title", "title": []},
                "Estimate": {"type": "number", "number": None},
                "Priority": {"type": "select", "select": None},
                "Due": {"type": "date", "date": None},
            }
        }
        assert page_to_initials(page) == {
            "Name": {"text": ""},
            "Estimate": {"text": ""},
            "Priority": {"select": ""},
            "Due": {},
        }

    def test_empty_page(self):
        assert page_to_initials({}) == {}


class TestPropertyValues:
    """Tests for text helpers and value formatting."""

    def test_plain_text(self):
        assert plain_text([{"plain_text": "a"}, {"plain_text": "b"}]) == "ab"
        assert plain_text(None) == ""

    def test_page_title(self, page):
        assert page_title(page) == "Write release notes"
        assert page_title({"properties": {}}) == ""

    def test_without_title(self, page):
        stripped = without_title(page)
        assert "Name" not in stripped["properties"]
        assert "Name" in page["properties"]
        assert stripped["id"] == page["id"]

    def test_number_value_rejects_non_finite(self):
        assert number_value("nan") == {"number": None}
        assert number_value("inf") == {"number": None}
        assert number_value(" 7 ") == {"number": 7}
