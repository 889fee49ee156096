"""
tests/test_health.py -- Integration tests for GET /api/v1/health and the
shared error envelope.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against the test database
  - No authentication required
  - Unknown hosts rejected by TrustedHostMiddleware
"""

from __future__ import annotations

from conftest import ApiContext


def test_health_returns_200_with_components(api_client: ApiContext) -> None:
    """Health endpoint returns 200 with status, version, and components."""
    resp = api_client.client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == "0.1.0"
    assert data["components"] == {"app": "ok", "database": "ok"}


def test_health_no_auth_required(api_client: ApiContext) -> None:
    """Health endpoint is accessible without any authentication headers."""
    resp = api_client.client.get("/api/v1/health", headers={})
    assert resp.status_code == 200


def test_unknown_route_uses_error_envelope(api_client: ApiContext) -> None:
    resp = api_client.client.get("/api/v1/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"


def test_untrusted_host_rejected(api_client: ApiContext) -> None:
    resp = api_client.client.get("/api/v1/health", headers={"Host": "evil.example.com"})
    assert resp.status_code == 400
