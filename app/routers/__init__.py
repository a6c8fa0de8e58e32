"""Routers package for API endpoints."""

from app.routers import companies

__all__ = ["companies"]
