"""
Foundation API Backend — CORS / Trusted-Origin Tests
======================================================

What:  Tests for CORS_ORIGIN parsing and the CORS middleware wiring.
How:   Pure function tests plus a small Starlette app behind
       OriginMatchingCORSMiddleware.

What we test:
    ✅ Trusted-origin lists for unset / "true" / "false" / explicit specs
    ✅ Wildcard matching and the no-Origin rule
    ✅ CORS option shapes (regex, bool, list, predicate)
    ✅ Preflight responses for allowed and rejected origins
"""

import re

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.cors import (
    DEFAULT_TRUSTED_ORIGINS,
    OriginMatchingCORSMiddleware,
    get_cors_options,
    get_trusted_origins,
    is_trusted_origin,
    make_origin_predicate,
)


class TestTrustedOrigins:
    def test_unset_spec_uses_localhost_defaults(self):
        assert get_trusted_origins(None) == DEFAULT_TRUSTED_ORIGINS
        assert get_trusted_origins("") == DEFAULT_TRUSTED_ORIGINS

    def test_true_trusts_everything(self):
        assert get_trusted_origins("true") == ["*"]
        assert is_trusted_origin("https://anything.example", "true")

    def test_false_trusts_nothing(self):
        assert get_trusted_origins("false") == []
        assert not is_trusted_origin("http://localhost:3000", "false")

    def test_explicit_list_keeps_defaults_and_trims(self):
        origins = get_trusted_origins(" https://app.example.com , https://*.example.org ")
        assert origins == DEFAULT_TRUSTED_ORIGINS + [
            "https://app.example.com",
            "https://*.example.org",
        ]

    def test_localhost_any_port_is_trusted_by_default(self):
        assert is_trusted_origin("http://localhost:5173")
        assert is_trusted_origin("http://127.0.0.1:8080")
        assert not is_trusted_origin("https://evil.example.com")

    def test_wildcard_subdomain(self):
        spec = "https://*.example.org"
        assert is_trusted_origin("https://admin.example.org", spec)
        assert not is_trusted_origin("https://example.org.evil.com", spec)

    def test_missing_origin_is_allowed(self):
        assert is_trusted_origin(None, "https://app.example.com")
        assert make_origin_predicate([])(None)


class TestCorsOptions:
    def test_unset_is_localhost_regex(self):
        origin = get_cors_options(None).origin
        assert isinstance(origin, re.Pattern)
        assert origin.match("http://localhost:3000")
        assert origin.match("https://127.0.0.1")
        assert not origin.match("http://localhost.evil.com")

    @pytest.mark.parametrize("spec,expected", [("true", True), ("false", False)])
    def test_boolean_specs(self, spec, expected):
        assert get_cors_options(spec).origin is expected

    def test_plain_list_without_wildcards(self):
        options = get_cors_options("https://a.example.com,https://b.example.com")
        assert options.origin == ["https://a.example.com", "https://b.example.com"]
        assert options.credentials is True
        assert options.max_age == 600
        assert "PATCH" in options.methods

    def test_wildcards_become_predicate(self):
        origin = get_cors_options("https://*.example.com").origin
        assert callable(origin)
        assert origin("https://x.example.com")
        assert not origin("https://example.net")


def _cors_app(spec):
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    app.add_middleware(OriginMatchingCORSMiddleware, options=get_cors_options(spec))
    return app


def _preflight_headers(origin):
    return {"Origin": origin, "Access-Control-Request-Method": "GET"}


class TestCorsMiddleware:
    @pytest.mark.asyncio
    async def test_wildcard_origin_is_echoed(self):
        transport = ASGITransport(app=_cors_app("https://*.example.com"))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.options("/ping", headers=_preflight_headers("https://a.example.com"))
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://a.example.com"
        assert response.headers["access-control-allow-credentials"] == "true"

    @pytest.mark.asyncio
    async def test_unlisted_origin_is_rejected(self):
        transport = ASGITransport(app=_cors_app("https://*.example.com"))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.options("/ping", headers=_preflight_headers("https://evil.test"))
        assert response.status_code == 400
        assert "access-control-allow-origin" not in response.headers

    @pytest.mark.asyncio
    async def test_default_allows_localhost(self):
        transport = ASGITransport(app=_cors_app(None))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/ping", headers={"Origin": "http://localhost:3000"})
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
