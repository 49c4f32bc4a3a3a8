"""
Application wiring: the whole router tree imports and mounts.
"""

import os
import subprocess
import sys

import pytest
from fastapi.routing import APIRoute


def _route_keys(app) -> set[tuple[str, str]]:
    return {
        (method, route.path)
        for route in app.routes
        if isinstance(route, APIRoute)
        for method in route.methods
    }


class TestAppImport:
    def test_main_imports_with_every_router(self):
        from app.main import app

        routes = _route_keys(app)

        assert ("POST", "/api/v1/admin/approve/{item_id}") in routes
        assert ("POST", "/api/v1/admin/reject/{item_id}") in routes
        assert ("GET", "/api/v1/organizations/my-application/status") in routes
        assert ("POST", "/api/v1/organizations/{organization_id}/follow") in routes
        assert ("POST", "/api/v1/auth/register") in routes
        assert ("POST", "/api/v1/events/{event_id}/join") in routes

    @pytest.mark.parametrize(
        "module",
        [
            "app.main",
            "app.modules.approvals.queue",
            "app.modules.approvals.service",
            "app.modules.organizations.router",
            "app.modules.organizations.models",
        ],
    )
    def test_module_imports_in_fresh_interpreter(self, module):
        """Each entry point loads first in a clean process, whatever it pulls in."""
        env = {**os.environ, "PYTHONPATH": os.pathsep.join(p for p in sys.path if p)}

        result = subprocess.run(
            [sys.executable, "-c", f"import {module}"],
            capture_output=True,
            text=True,
            env=env,
            timeout=60,
        )

        assert result.returncode == 0, result.stderr
