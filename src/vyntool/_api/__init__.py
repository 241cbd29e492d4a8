"""Backend command endpoints."""
