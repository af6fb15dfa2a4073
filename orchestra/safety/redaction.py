"""Pattern-based redaction of sensitive substrings.

Rules run in order over the whole text; each match is replaced by a
``[LABEL REDACTED]`` marker. Multi-line secrets and structured tokens come
first so that broader rules (digits, key=value pairs) do not split them.

Redaction is deterministic, synchronous and has no I/O. It is lexical only:
obfuscated or paraphrased secrets are not caught.
"""

import re
from typing import Callable

Redactor = Callable[[str], str]

REDACTION_RULES: list[tuple[str, re.Pattern]] = [
    (
        "SSH PRIVATE KEY",
        re.compile(
            r"-----BEGIN (?:RSA |DSA |EC |OPENSSH )?PRIVATE KEY-----[\s\S]*?"
            r"-----END (?:RSA |DSA |EC |OPENSSH )?PRIVATE KEY-----"
        ),
    ),
    (
        "SSL CERTIFICATE",
        re.compile(r"-----BEGIN CERTIFICATE-----[\s\S]*?-----END CERTIFICATE-----"),
    ),
    ("URL WITH CREDENTIALS", re.compile(r"https?://[^\s:/@]+:[^\s@]+@\S+", re.I)),
    ("JWT", re.compile(r"\beyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")),
    ("AWS ACCESS KEY", re.compile(r"\bAKIA[0-9A-Z]{16}\b")),
    ("GITHUB TOKEN", re.compile(r"\bgh[pousr]_[A-Za-z0-9_]{36,}\b")),
    ("GITLAB TOKEN", re.compile(r"\bglpat-[A-Za-z0-9_-]{20,}")),
    (
        "AWS SECRET",
        re.compile(r"\baws[_-]?secret[_-]?access[_-]?key\s*[:=]\s*\S+", re.I),
    ),
    ("API KEY", re.compile(r"\b(?:api[_-]?key|apikey)\s*[:=]\s*[A-Za-z0-9_\-]{16,}", re.I)),
    (
        "OAUTH TOKEN",
        re.compile(r"\b(?:oauth[_-]?token|access[_-]?token|refresh[_-]?token)\s*[:=]\s*\S+", re.I),
    ),
    ("TOKEN", re.compile(r"\b(?:token|authorization|bearer)\s*[:=]\s*\S+", re.I)),
    ("PASSWORD", re.compile(r"\b(?:password|passwd|pwd|pass|senha)\s*[:=]\s*\S+", re.I)),
    (
        "SESSION ID",
        re.compile(r"\b(?:session[_-]?id|sessionid|sid)\s*[:=]\s*[A-Za-z0-9_\-]{16,}", re.I),
    ),
    ("COOKIE", re.compile(r"\b(?:set-cookie|cookie)\s*[:=]\s*[^\n;]+", re.I)),
    ("EMAIL", re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")),
    ("CREDIT CARD", re.compile(r"\b(?:\d{4}[ -]?){3}\d{4}\b")),
    ("CVV", re.compile(r"\b(?:cvv|cvc)\s*:?\s*\d{3,4}\b", re.I)),
    ("CNPJ", re.compile(r"\b\d{2}\.?\d{3}\.?\d{3}/?\d{4}-?\d{2}\b")),
    ("CPF", re.compile(r"\b\d{3}\.\d{3}\.\d{3}-\d{2}\b")),
    ("IBAN", re.compile(r"\b[A-Z]{2}\d{2}(?: ?[A-Z0-9]{4}){3,7}(?: ?[A-Z0-9]{1,3})?\b")),
    (
        "IP ADDRESS",
        re.compile(
            r"\b(?:(?:25[0-5]|2[0-4]\d|[01]?\d?\d)\.){3}(?:25[0-5]|2[0-4]\d|[01]?\d?\d)\b"
        ),
    ),
    ("PHONE", re.compile(r"(?<!\w)\+?\(?\d{2,3}\)?[ .-]\d{4,5}[ .-]\d{4}\b")),
]


def redact(text: str) -> str:
    """Return ``text`` with every rule's matches replaced by its marker."""
    if not text:
        return text

    redacted = text
    for label, pattern in REDACTION_RULES:
        redacted = pattern.sub(f"[{label} REDACTED]", redacted)
    return redacted
