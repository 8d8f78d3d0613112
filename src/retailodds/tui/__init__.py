"""Textual TUI dashboard."""
