"""
Organizations module - Profiles, follow relationship, application status.

The router is imported from app.modules.organizations.router directly: it
depends on the approvals package, which in turn loads this package's
models and repository.
"""
