"""Slack Block Kit rendering and the modal wizard."""
