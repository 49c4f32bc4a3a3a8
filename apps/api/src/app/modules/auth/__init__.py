"""Authentication module - login, organization registration, email codes."""

from app.modules.auth.router import router

__all__ = ["router"]
