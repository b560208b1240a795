"""Pattern-based PII detection and redaction."""

from __future__ import annotations

import re

from guarded_rag.models.domain import PIIDetection

PII_PATTERNS: dict[str, re.Pattern[str]] = {
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b"),
    "phone": re.compile(r"(\+\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b"),
    "ssn": re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),
    "credit_card": re.compile(r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b"),
    "ip_address": re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"),
    "passport": re.compile(r"\b[A-Z]{1,2}\d{6,9}\b"),
    "driver_license": re.compile(r"\b[A-Z]{1,2}\d{5,8}\b"),
    "zip_code": re.compile(r"\b\d{5}(?:-\d{4})?\b"),
    "date_of_birth": re.compile(
        r"\b(?:0?[1-9]|1[0-2])[/-](?:0?[1-9]|[12]\d|3[01])[/-](?:19|20)\d{2}\b"
    ),
    "api_key": re.compile(r"\b(?:api[_-]?key|apikey|access[_-]?token)[:\s=]+[\w-]+", re.I),
    "account_number": re.compile(r"\b(?:account|acct)[#:\s]+\d{6,}\b", re.I),
}


def detect_pii(text: str) -> PIIDetection:
    types: dict[str, list[str]] = {}
    for pii_type, pattern in PII_PATTERNS.items():
        matches = [m.group(0) for m in pattern.finditer(text)]
        if matches:
            types[pii_type] = matches
    return PIIDetection(detected=bool(types), types=types)


def redact_pii(text: str, detection: PIIDetection) -> str:
    """Replace each detected span with ``[<TYPE>_REDACTED]``."""
    redacted = text
    for pii_type, matches in detection.types.items():
        placeholder = f"[{pii_type.upper()}_REDACTED]"
        for match in matches:
            redacted = redacted.replace(match, placeholder, 1)
    return redacted
