"""Keyword heuristics over free-text project descriptions.

Plain case-insensitive substring matching. This is a best-effort
classification aid for assessors, not a security boundary: "app" also
matches "approval" and "api" matches "capital".
"""

from __future__ import annotations

from typing import Iterable, Optional

# Indicators that a project is more than static web content.
COMPLEXITY_INDICATORS: tuple[str, ...] = (
    "authentication", "login", "user accounts", "database", "api",
    "integration", "payment", "transaction", "interconnect", "saas",
    "portal", "application", "app", "microservices", "oauth", "sso",
    "ldap", "active directory", "sql", "nosql", "redis", "queue",
    "message broker", "webhook", "rest api", "graphql",
)

# (trigger keywords, context tags added when any trigger matches)
EXTERNAL_TAG_RULE = (("public", "external"), ("public-content", "external", "waf", "ddos", "boundary"))
PII_TAG_RULE = (("pii", "personal information"), ("pii", "privacy", "retention", "handling"))
INTERCONNECTION_TAG_RULE = (("api", "integration", "interconnect"), ("interconnections", "interfaces", "isa"))
MOBILE_TAG_RULE = (("mobile", "byod"), ("device", "byod", "external"))
WIRELESS_TAG_RULE = (("wireless", "wifi", "wi-fi"), ("wireless",))

CONTEXT_TAG_RULES: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    EXTERNAL_TAG_RULE,
    PII_TAG_RULE,
    INTERCONNECTION_TAG_RULE,
    MOBILE_TAG_RULE,
    WIRELESS_TAG_RULE,
)


def contains_any(text: Optional[str], keywords: Iterable[str]) -> bool:
    """True if any keyword occurs in text, ignoring case."""
    if not text:
        return False
    lowered = text.lower()
    return any(kw in lowered for kw in keywords)


def detect_complexity(text: Optional[str]) -> bool:
    """Best-effort guess at whether a description implies a real application."""
    return contains_any(text, COMPLEXITY_INDICATORS)
