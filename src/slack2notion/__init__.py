"""Create, edit and extend Notion pages from Slack modals."""

__version__ = "0.1.0"
