"""
Platform settings module - Runtime toggles (registration, maintenance, upload limit).
"""

from .router import router

__all__ = ["router"]
