"""
Students module - Student accounts and their follow / participation lists.
"""

from app.modules.students.models import Student, StudentStatus

__all__ = ["Student", "StudentStatus"]
