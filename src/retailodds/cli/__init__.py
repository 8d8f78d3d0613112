"""Typer CLI: markets, stocks, classify, api, tui."""
