"""
Approvals Module

Handles the organization approval workflow:
1. Registration opens a review ticket (pending) next to the pending organization
2. Admins approve (organization becomes active) or reject with feedback
3. Rejected applicants resubmit; the ticket returns to pending
4. Admins suspend organizations and students; suspended organizations
   re-enter the approval queue

API Endpoints (admin_router, mounted at /admin):
- GET /admin/pending-approvals - Queue + stats
- GET /admin/approved-approvals, /admin/rejected-approvals - Decided tickets
- GET /admin/organization-status/{email} - Ticket by applicant email
- POST /admin/approve/{id}, /admin/reject/{id} - Decisions
- PUT /admin/update-pending-file/{id} - Applicant resubmission
- POST /admin/suspend-organization/{id}, /admin/suspend-student/{id}

Registration itself is served by the auth router (POST /auth/register).
"""

from .admin_router import router as admin_router

__all__ = ["admin_router"]
