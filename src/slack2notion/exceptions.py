"""Custom exceptions for slack2notion."""


class Slack2NotionError(Exception):
    """Base exception for all slack2notion errors."""


class ConfigurationError(Slack2NotionError):
    """Configuration or environment variable error."""


class NotionAPIError(Slack2NotionError):
    """Error from Notion API."""

    def __init__(self, status_code: int, message: str, page_id: str | None = None):
        self.status_code = status_code
        self.page_id = page_id
        super().__init__(f"Notion API error ({status_code}): {message}")


class RateLimitError(NotionAPIError):
    """Rate limit exceeded error."""

    def __init__(self, retry_after: int | None = None):
        self.retry_after = retry_after
        message = f"Rate limited (retry after {retry_after}s)" if retry_after else "Rate limited"
        super().__init__(429, message)


class WizardStateError(Slack2NotionError):
    """A wizard step is missing selections made in an earlier step."""
