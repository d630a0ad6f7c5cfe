"""Tests for health check endpoints."""

import pytest

from shared.config import get_settings


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_123")
    get_settings.cache_clear()


@pytest.fixture
def unconfigured(monkeypatch):
    for name in ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET"):
        monkeypatch.setenv(name, "")
    get_settings.cache_clear()


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client):
        """Health endpoint should return 200 with status."""
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "0.1.0"}

    def test_readiness_when_configured(self, client, configured):
        response = client.get("/api/ready")
        assert response.status_code == 200
        assert response.json() == {"status": "ready", "database": "configured", "payments": "configured"}

    def test_readiness_when_unconfigured(self, client, unconfigured):
        """Readiness stays 200 but reports the missing pieces."""
        response = client.get("/api/ready")
        assert response.status_code == 200
        assert response.json() == {
            "status": "degraded",
            "database": "not_configured",
            "payments": "not_configured",
        }

    def test_readiness_payments_missing(self, client, configured, monkeypatch):
        monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "")
        get_settings.cache_clear()
        data = client.get("/api/ready").json()
        assert data["status"] == "degraded"
        assert data["database"] == "configured"
        assert data["payments"] == "not_configured"
