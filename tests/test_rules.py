"""
Tests for the HTTP Analyzer rule catalog.
"""

import pytest

from httpanalyzer.analysis.engine import TaggingEngine
from httpanalyzer.analysis.models import Exchange, Response, normalize_headers, parse_host
from httpanalyzer.analysis.rules import (
    DEFAULT_RULES,
    BaseRule,
    HeaderCheck,
    PatternRule,
    RuleCatalog,
    build_catalog,
)


def classify(
    url: str = "https://example.com/",
    method: str = "GET",
    headers: list | None = None,
    body=None,
    status: int | None = None,
    response_headers: list | None = None,
    recent429: bool = False,
):
    """Classify a hand-built exchange with the default catalog."""
    response = None
    if status is not None:
        response = Response(status, response_headers=normalize_headers(response_headers))

    exchange = Exchange(
        id="x-1",
        url=url,
        method=method,
        host=parse_host(url),
        request_headers=normalize_headers(headers),
        request_body=body,
        response=response,
        recent429=recent429,
    )
    return TaggingEngine().classify(exchange)


class TestBaseline:
    """A plain GET to the site root carries no signal."""

    def test_root_request_is_untagged(self):
        result = classify()
        assert result.tags == frozenset()
        assert result.score == 0


class TestAuthRules:
    """Authentication path and credential rules."""

    def test_login_path(self):
        result = classify("https://example.com/login")
        assert result.tags == {"AUTH"}
        assert result.score == 30

    def test_login_with_authorization_header(self):
        """Both AUTH rules fire; their weights add up under one label."""
        result = classify(
            "https://example.com/login",
            headers=[("Authorization", "Bearer abc")],
        )
        assert "AUTH" in result.tags
        assert result.score == 30 + 20

    def test_session_cookie(self):
        result = classify(headers=[("Cookie", "theme=dark; session=abc")])
        assert result.tags == {"AUTH"}
        assert result.score == 20

    def test_cookie_not_named_session_is_ignored(self):
        result = classify(headers=[("Cookie", "mysession=abc")])
        assert result.score == 0

    def test_header_lookup_ignores_case(self):
        result = classify(headers=[("authorization", "Basic Zm9vOmJhcg==")])
        assert result.score == 20


class TestFlowRules:
    """OAuth, account, upload, admin, GraphQL and WebSocket rules."""

    def test_oauth_callback_path(self):
        result = classify("https://example.com/callback")
        assert result.tags == {"OAUTH"}
        assert result.score == 25

    def test_oauth_scope_in_query(self):
        result = classify("https://example.com/cb?scope=email")
        assert result.tags == {"OAUTH"}

    def test_account_path(self):
        result = classify("https://example.com/profile")
        assert result.tags == {"ACCOUNT"}
        assert result.score == 15

    def test_upload_path(self):
        result = classify("https://example.com/upload", method="POST")
        assert result.tags == {"UPLOAD"}
        assert result.score == 20

    def test_multipart_upload(self):
        result = classify(
            method="POST",
            headers=[("Content-Type", "multipart/form-data; boundary=xyz")],
        )
        assert result.tags == {"UPLOAD"}

    @pytest.mark.parametrize("path", ["/actuator/env", "/health", "/debug/vars"])
    def test_admin_surface(self, path):
        result = classify(f"https://example.com{path}")
        assert result.tags == {"ADMIN"}
        assert result.score == 25

    def test_graphql_path(self):
        result = classify("https://example.com/graphql", method="POST")
        assert result.tags == {"GRAPHQL"}
        assert result.score == 20

    def test_graphql_content_type(self):
        result = classify(
            "https://example.com/api",
            headers=[("Content-Type", "application/graphql")],
        )
        assert result.tags == {"GRAPHQL"}

    def test_websocket_scheme(self):
        result = classify("wss://example.com/socket")
        assert result.tags == {"WS"}
        assert result.score == 20

    def test_websocket_upgrade_header(self):
        result = classify("https://example.com/chat", headers=[("Upgrade", "websocket")])
        assert result.tags == {"WS"}


class TestResponseRules:
    """CORS, fingerprint and status rules."""

    def test_wide_open_cors(self):
        result = classify(status=200, response_headers=[("Access-Control-Allow-Origin", " * ")])
        assert result.tags == {"CORS"}
        assert result.score == 10

    def test_specific_cors_origin_is_fine(self):
        result = classify(
            status=200,
            response_headers=[("Access-Control-Allow-Origin", "https://app.example.com")],
        )
        assert result.score == 0

    def test_server_header(self):
        result = classify(status=200, response_headers=[("Server", "nginx/1.25")])
        assert result.tags == {"TECH"}

    def test_powered_by_header(self):
        result = classify(status=200, response_headers=[("X-Powered-By", "PHP/8.2")])
        assert result.tags == {"TECH"}
        assert result.score == 10

    def test_aspnet_version_header(self):
        result = classify(status=200, response_headers=[("X-AspNet-Version", "4.0.30319")])
        assert result.tags == {"FRAMEWORK"}

    def test_framework_in_body(self):
        result = classify(method="POST", body="rendered by vue")
        assert result.tags == {"FRAMEWORK"}
        assert result.score == 10

    def test_cdn_host(self):
        result = classify("https://d111.cloudfront.net/app.js")
        assert result.tags == {"CDN"}
        assert result.score == 5

    @pytest.mark.parametrize("status", [400, 404, 429, 500, 503])
    def test_error_status(self, status):
        result = classify(status=status)
        assert result.tags == {"ERROR"}
        assert result.score == 10

    @pytest.mark.parametrize("status", [200, 204, 301, 399])
    def test_non_error_status(self, status):
        assert classify(status=status).score == 0

    def test_rate_limit_flag(self):
        result = classify(recent429=True)
        assert result.tags == {"RATE-LIMIT"}
        assert result.score == 18


class TestContentRules:
    """Sensitive parameters, PII and export rules."""

    def test_sensitive_query_parameter(self):
        result = classify("https://example.com/search?password=hunter2")
        assert result.tags == {"SENSITIVE"}
        assert result.score == 20

    def test_sensitive_body_parameter(self):
        result = classify(method="POST", body={"token": "abc"})
        assert result.tags == {"SENSITIVE"}

    def test_email_in_body(self):
        result = classify(method="POST", body="contact alice@example.org")
        assert result.tags == {"PII"}
        assert result.score == 25

    def test_ssn_like_number_in_body(self):
        result = classify(method="POST", body="id 123-45-6789")
        assert result.tags == {"PII"}

    @pytest.mark.parametrize(
        "path", ["/reports/export", "/download", "/data/report.csv", "/data/Report.XLSX", "/backup.zip"]
    )
    def test_export_download(self, path):
        result = classify(f"https://example.com{path}")
        assert result.tags == {"EXPORT"}
        assert result.score == 10


class TestCatalog:
    """Catalog construction."""

    def test_default_catalog_ids_are_unique(self):
        catalog = build_catalog()
        assert len(catalog) == len(DEFAULT_RULES) == 17
        assert len(set(catalog.ids())) == len(catalog)

    def test_all_weights_positive(self):
        assert all(rule.weight > 0 for rule in build_catalog())

    def test_disabled_rules_are_left_out(self):
        catalog = build_catalog(disabled=["TECH", "CDN"])
        assert catalog.get("TECH") is None
        assert catalog.get("CDN") is None
        assert len(catalog) == 15

    def test_duplicate_ids_rejected(self):
        rule = PatternRule("DUP", "DUP", 1, path="x")
        with pytest.raises(ValueError):
            RuleCatalog([rule, rule])

    def test_pattern_rule_needs_a_check(self):
        with pytest.raises(ValueError):
            PatternRule("EMPTY", "EMPTY", 5)

    def test_weight_must_be_positive(self):
        with pytest.raises(ValueError):
            PatternRule("ZERO", "ZERO", 0, path="x")

    def test_header_check_without_pattern_requires_value(self):
        check = HeaderCheck("Server")
        assert check.test("nginx")
        assert not check.test("")

    def test_labels(self):
        labels = build_catalog().labels()
        assert {"AUTH", "RATE-LIMIT", "EXPORT"} <= labels
        assert all(isinstance(rule, BaseRule) for rule in build_catalog())
