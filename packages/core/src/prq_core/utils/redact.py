"""Best-effort secret redaction for text sent to an AI provider.

Patterns are applied in a fixed order; the high-entropy pass runs last so it
only sees what the named patterns left behind.
"""

from __future__ import annotations

import math
import re
from collections import Counter

REDACTED = "[REDACTED_SECRET]"

_ENTROPY_THRESHOLD = 4.0

_PRIVATE_KEY_RE = re.compile(
    r"-----BEGIN (RSA|EC|DSA|OPENSSH) PRIVATE KEY-----[\s\S]+?-----END (RSA|EC|DSA|OPENSSH) PRIVATE KEY-----"
)
_AWS_ACCESS_KEY_RE = re.compile(r"AKIA[0-9A-Z]{16}")
_AWS_SECRET_KEY_RE = re.compile(r"(?i)aws(.{0,20})?(secret|access)[\"'\s:=]+[A-Za-z0-9/+=]{32,}")
_GITHUB_TOKEN_RE = re.compile(r"gh[pousr]_[A-Za-z0-9]{30,}")
_JWT_RE = re.compile(r"eyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+")
_GENERIC_TOKEN_RE = re.compile(r"(?i)(token|secret|api[_-]?key|access[_-]?key)[\"'\s:=]+[A-Za-z0-9/+=]{16,}")
_URL_PARAM_RE = re.compile(r"([?&](token|key|secret|sig|signature|access_token|auth)=)[^&\s]+")
_BASE64_LIKE_RE = re.compile(r"[A-Za-z0-9+/=]{32,}")
_HEX_LIKE_RE = re.compile(r"[A-Fa-f0-9]{32,}")

_PATTERNS = (
    _PRIVATE_KEY_RE,
    _AWS_ACCESS_KEY_RE,
    _AWS_SECRET_KEY_RE,
    _GITHUB_TOKEN_RE,
    _JWT_RE,
    _GENERIC_TOKEN_RE,
)


def entropy(s: str) -> float:
    """Shannon entropy of ``s`` in bits per character."""
    if not s:
        return 0.0
    length = len(s)
    return -sum((n / length) * math.log2(n / length) for n in Counter(s).values())


def _replace_high_entropy(text: str, pattern: re.Pattern) -> str:
    return pattern.sub(lambda m: REDACTED if entropy(m.group(0)) >= _ENTROPY_THRESHOLD else m.group(0), text)


def redact(text: str) -> str:
    if not text:
        return text
    out = text
    for pattern in _PATTERNS:
        out = pattern.sub(REDACTED, out)
    out = _URL_PARAM_RE.sub(lambda m: m.group(1) + REDACTED, out)
    out = _replace_high_entropy(out, _BASE64_LIKE_RE)
    out = _replace_high_entropy(out, _HEX_LIKE_RE)
    return out


def redact_optional(text: str, enabled: bool) -> str:
    return redact(text) if enabled else text


def redact_rules(rules: list[str], enabled: bool) -> list[str]:
    if not enabled:
        return list(rules)
    return [redact(rule) for rule in rules]
