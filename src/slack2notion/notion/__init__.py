"""Notion API access and property conversions."""
