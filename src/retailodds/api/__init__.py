"""FastAPI backend for the dashboard."""
