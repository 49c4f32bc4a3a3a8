"""
Activities module - Append-only audit log and dashboard feed.
"""

from .router import router

__all__ = ["router"]
