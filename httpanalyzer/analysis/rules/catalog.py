"""
HTTP Analyzer Rule Catalog

Lightweight rules that flag interesting endpoints. Several rules may share
a label; the weights of every matching rule still add up to the score.
"""

from typing import Iterable

from httpanalyzer.analysis.rules.base import (
    BaseRule,
    FlagRule,
    HeaderCheck,
    PatternRule,
    RuleCatalog,
    StatusRule,
)


# Keywords that commonly carry credentials, tokens or flow state
SENSITIVE_PARAM_PATTERN = (
    r"\b(pass(word)?|token|jwt|api_?key|secret|session|csrf|sso|saml|code|state|"
    r"redirect_uri|returnUrl|grant_type|file|upload|private_key|credit_card|ssn)\b"
)

EMAIL_PATTERN = r"\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b"
SSN_PATTERN = r"\b\d{3}-\d{2}-\d{4}\b"


DEFAULT_RULES: list[BaseRule] = [
    PatternRule(
        "AUTH_LOGIN", "AUTH", 30,
        path=r"/(login|signin|auth|oauth|oidc|saml|token|sessions?)",
        description="Login, token or session endpoint",
    ),
    PatternRule(
        "AUTH_TOKEN", "AUTH", 20,
        request_headers=[HeaderCheck("Authorization")],
        cookie=r"(^|;)\s*session",
        description="Request carries credentials",
    ),
    PatternRule(
        "OAUTH", "OAUTH", 25,
        path=r"/(authorize|callback)",
        query=r"openid|scope",
        description="OAuth / OpenID Connect flow",
    ),
    PatternRule(
        "ACCOUNT", "ACCOUNT", 15,
        path=r"/(me|profile|account|settings|user|reset-password)",
        description="Account management endpoint",
    ),
    PatternRule(
        "FILE_UPLOAD", "UPLOAD", 20,
        path=r"/(upload|import)",
        request_headers=[HeaderCheck("Content-Type", r"multipart/form-data")],
        description="File upload",
    ),
    PatternRule(
        "ADMIN_PATH", "ADMIN", 25,
        path=r"/(admin|root|debug|status|metrics|actuator|health|graphiql|playground)",
        description="Admin or debug surface",
    ),
    PatternRule(
        "GRAPHQL", "GRAPHQL", 20,
        path=r"/graphql",
        request_headers=[HeaderCheck("Content-Type", r"graphql")],
        description="GraphQL endpoint",
    ),
    PatternRule(
        "WEBSOCKET", "WS", 20,
        request_headers=[HeaderCheck("Upgrade", r"websocket")],
        url=r"^wss?://",
        description="WebSocket upgrade",
    ),
    PatternRule(
        "CORS_WIDE", "CORS", 10,
        response_headers=[HeaderCheck("Access-Control-Allow-Origin", r"^\s*\*\s*$")],
        description="Any origin may read the response",
    ),
    PatternRule(
        "SENSITIVE_PARAMS", "SENSITIVE", 20,
        query=SENSITIVE_PARAM_PATTERN,
        body=SENSITIVE_PARAM_PATTERN,
        description="Sensitive parameter names in query or body",
    ),
    PatternRule(
        "PII", "PII", 25,
        body=f"{EMAIL_PATTERN}|{SSN_PATTERN}",
        description="Email address or SSN in request body",
    ),
    PatternRule(
        "TECH", "TECH", 10,
        response_headers=[HeaderCheck("Server"), HeaderCheck("X-Powered-By")],
        description="Server technology disclosed",
    ),
    PatternRule(
        "FRAMEWORK", "FRAMEWORK", 10,
        response_headers=[HeaderCheck("X-AspNet-Version"), HeaderCheck("X-AspNetMvc-Version")],
        body=r"react|angular|vue",
        description="Frontend or web framework fingerprint",
    ),
    PatternRule(
        "CDN", "CDN", 5,
        host=r"cloudfront|akamai|fastly",
        description="Served through a known CDN",
    ),
    StatusRule(
        "ERROR_STATUS", "ERROR", 10,
        min_status=400,
        description="Client or server error response",
    ),
    FlagRule(
        "RATE_LIMIT", "RATE-LIMIT", 18,
        flag="recent429",
        description="Endpoint answered 429 recently",
    ),
    PatternRule(
        "EXPORT_DOWNLOAD", "EXPORT", 10,
        path=r"/(export|download)|\.(csv|xlsx?|zip)$",
        description="Bulk export or download",
    ),
]


def build_catalog(disabled: Iterable[str] = ()) -> RuleCatalog:
    """
    Build the default rule catalog.

    Args:
        disabled: Rule ids to leave out.

    Returns:
        RuleCatalog in evaluation order.
    """
    return RuleCatalog(DEFAULT_RULES).without(disabled)
