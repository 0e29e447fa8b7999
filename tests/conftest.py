"""Shared fixtures: a task database schema, one of its pages, a fake client."""

import copy

import pytest

from slack2notion.exceptions import NotionAPIError
from slack2notion.models import DatabaseSummary, PageSummary

DATABASE_ID = "3f1c2a7e-0000-4000-8000-000000000001"
PROJECTS_DATABASE_ID = "3f1c2a7e-0000-4000-8000-000000000002"
PAGE_ID = "9a8b7c6d-0000-4000-8000-0000000000aa"


def _options(*names: str) -> dict:
    return {"options": [{"id": name.lower(), "name": name, "color": "default"} for name in names]}


TASK_SCHEMA = {
    "Status": {"id": "s", "type": "status", "status": _options("Not started", "In progress", "Done")},
    "Name": {"id": "title", "type": "title", "title": {}},
    "Notes": {"id": "n", "type": "rich_text", "rich_text": {}},
    "Estimate": {"id": "e", "type": "number", "number": {"format": "number"}},
    "Link": {"id": "l", "type": "url", "url": {}},
    "Owner Email": {"id": "o", "type": "email", "email": {}},
    "Phone": {"id": "p", "type": "phone_number", "phone_number": {}},
    "Priority": {"id": "pr", "type": "select", "select": _options("High", "Low")},
    "Tags": {"id": "t", "type": "multi_select", "multi_select": _options("Bug", "Feature", "Ops")},
    "Due": {"id": "d", "type": "date", "date": {}},
    "Blocked": {"id": "b", "type": "checkbox", "checkbox": {}},
    "Parent": {
        "id": "pa",
        "type": "relation",
        "relation": {"database_id": DATABASE_ID, "type": "dual_property"},
    },
    "Project": {
        "id": "pj",
        "type": "relation",
        "relation": {"database_id": PROJECTS_DATABASE_ID, "type": "single_property"},
    },
    "Progress": {"id": "f", "type": "formula", "formula": {"expression": "1"}},
    "Created": {"id": "c", "type": "created_time", "created_time": {}},
    "Attachments": {"id": "a", "type": "files", "files": {}},
}


def _text(content: str) -> list[dict]:
    return [{"type": "text", "text": {"content": content}, "plain_text": content}]


TASK_PAGE = {
    "object": "page",
    "id": PAGE_ID,
    "url": "https://www.notion.so/Write-release-notes-9a8b7c6d",
    "parent": {"type": "database_id", "database_id": DATABASE_ID},
    "properties": {
        "Name": {"id": "title", "type": "title", "title": _text("Write release notes")},
        "Status": {"id": "s", "type": "status", "status": {"name": "In progress"}},
        "Notes": {"id": "n", "type": "rich_text", "rich_text": _text("hello")},
        "Estimate": {"id": "e", "type": "number", "number": 3},
        "Link": {"id": "l", "type": "url", "url": "https://example.com/release"},
        "Owner Email": {"id": "o", "type": "email", "email": None},
        "Phone": {"id": "p", "type": "phone_number", "phone_number": None},
        "Priority": {"id": "pr", "type": "select", "select": {"name": "High"}},
        "Tags": {
            "id": "t",
            "type": "multi_select",
            "multi_select": [{"name": "Bug"}, {"name": "Retired tag"}],
        },
        "Due": {"id": "d", "type": "date", "date": {"start": "2026-11-02", "end": None}},
        "Blocked": {"id": "b", "type": "checkbox", "checkbox": True},
        "Parent": {"id": "pa", "type": "relation", "relation": []},
        "Project": {
            "id": "pj",
            "type": "relation",
            "relation": [{"id": "proj-1"}, {"id": "proj-2"}],
        },
        "Progress": {"id": "f", "type": "formula", "formula": {"type": "number", "number": 1}},
        "Created": {"id": "c", "type": "created_time", "created_time": "2026-10-01T09:00:00.000Z"},
        "Attachments": {"id": "a", "type": "files", "files": []},
    },
}


class FakeNotion:
    """Stands in for NotionClient, recording writes."""

    def __init__(self, schema: dict | None = None, page: dict | None = None):
        self.schema = copy.deepcopy(TASK_SCHEMA if schema is None else schema)
        self.page = copy.deepcopy(TASK_PAGE if page is None else page)
        self.fail = False
        self.created: list[tuple[str, dict]] = []
        self.updated: list[tuple[str, dict]] = []
        self.searched: list[tuple[str, str]] = []

    def _check(self) -> None:
        if self.fail:
            raise NotionAPIError(404, "Could not find database")

    async def search_databases(self, query: str = "") -> list[DatabaseSummary]:
        self._check()
        return [DatabaseSummary(id=DATABASE_ID, title="Tasks")]

    async def get_database_properties(self, database_id: str) -> dict:
        self._check()
        return copy.deepcopy(self.schema)

    async def get_page(self, page_id: str) -> dict:
        self._check()
        return copy.deepcopy(self.page)

    async def search_pages_in_database(self, database_id: str, query: str = "") -> list[PageSummary]:
        self._check()
        self.searched.append((database_id, query))
        return [PageSummary(id=PAGE_ID, title="Write release notes")]

    async def create_page(self, database_id: str, properties: dict) -> dict:
        self._check()
        self.created.append((database_id, properties))
        return {"id": "new-page", "url": "https://www.notion.so/new-page"}

    async def update_page(self, page_id: str, properties: dict) -> dict:
        self._check()
        self.updated.append((page_id, properties))
        return {"id": page_id, "url": TASK_PAGE["url"]}


@pytest.fixture
def schema() -> dict:
    return copy.deepcopy(TASK_SCHEMA)


@pytest.fixture
def page() -> dict:
    return copy.deepcopy(TASK_PAGE)


@pytest.fixture
def notion() -> FakeNotion:
    return FakeNotion()
