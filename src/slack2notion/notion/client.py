"""Async Notion API client."""

import logging

import httpx

from slack2notion.exceptions import NotionAPIError, RateLimitError
from slack2notion.models import DatabaseSummary, PageSummary, PropertyKind
from slack2notion.notion.properties import page_title, plain_text

NOTION_API_BASE = "https://api.notion.com/v1"

logger = logging.getLogger(__name__)


class NotionClient:
    """Async client for the Notion REST API using an integration token."""

    # Largest page Notion returns for search and query
    PAGE_SIZE = 100

    def __init__(
        self,
        token: str,
        notion_version: str = "2022-06-28",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self.notion_version = notion_version
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=NOTION_API_BASE,
                timeout=30.0,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Notion-Version": self.notion_version,
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: dict | None = None,
        page_id: str | None = None,
    ) -> dict:
        """Make authenticated API request."""
        client = await self._get_client()

        try:
            response = await client.request(method, endpoint, json=json)
        except httpx.HTTPError as e:
            raise NotionAPIError(0, f"request failed: {e}", page_id=page_id) from e

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(int(retry_after) if retry_after and retry_after.isdigit() else None)

        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise NotionAPIError(response.status_code, message, page_id=page_id)

        return response.json()

    async def search_databases(self, query: str = "") -> list[DatabaseSummary]:
        """Databases shared with the integration, most recently edited first."""
        data = await self._request(
            "POST",
            "/search",
            json={
                "query": query,
                "filter": {"property": "object", "value": "database"},
                "sort": {"direction": "descending", "timestamp": "last_edited_time"},
                "page_size": self.PAGE_SIZE,
            },
        )
        return [
            DatabaseSummary(id=db["id"], title=plain_text(db.get("title")) or db["id"])
            for db in data.get("results", [])
        ]

    async def get_database(self, database_id: str) -> dict:
        """Fetch a database object, including its property schema."""
        return await self._request("GET", f"/databases/{database_id}")

    async def get_database_properties(self, database_id: str) -> dict[str, dict]:
        """Fetch only the property schema of a database."""
        db = await self.get_database(database_id)
        return db.get("properties", {})

    async def query_database(
        self,
        database_id: str,
        filter: dict | None = None,
        page_size: int = PAGE_SIZE,
    ) -> dict:
        """Run a single database query, most recently edited pages first."""
        body: dict = {
            "page_size": page_size,
            "sorts": [{"timestamp": "last_edited_time", "direction": "descending"}],
        }
        if filter:
            body["filter"] = filter
        return await self._request("POST", f"/databases/{database_id}/query", json=body)

    async def search_pages_in_database(self, database_id: str, query: str = "") -> list[PageSummary]:
        """
        Find pages of a database whose title contains the query.

        An empty query returns the most recently edited pages.
        """
        props = await self.get_database_properties(database_id)
        title_key = next(
            (name for name, prop in props.items() if prop.get("type") == PropertyKind.TITLE.value),
            None,
        )

        filter = None
        if query and title_key:
            filter = {"property": title_key, "title": {"contains": query}}

        data = await self.query_database(database_id, filter=filter)
        return [
            PageSummary(id=page["id"], title=page_title(page) or page["id"], url=page.get("url"))
            for page in data.get("results", [])
        ]

    async def get_page(self, page_id: str) -> dict:
        """Fetch a page with its property values."""
        return await self._request("GET", f"/pages/{page_id}", page_id=page_id)

    async def create_page(self, database_id: str, properties: dict) -> dict:
        """Create a page in a database."""
        page = await self._request(
            "POST",
            "/pages",
            json={"parent": {"database_id": database_id}, "properties": properties},
        )
        logger.info(f"Created page {page.get('id')} in database {database_id}")
        return page

    async def update_page(self, page_id: str, properties: dict) -> dict:
        """Update only the given properties of a page."""
        page = await self._request(
            "PATCH",
            f"/pages/{page_id}",
            json={"properties": properties},
            page_id=page_id,
        )
        logger.info(f"Updated page {page_id}")
        return page
