"""
Events module - Event creation and student participation.
"""

from .router import router

__all__ = ["router"]
