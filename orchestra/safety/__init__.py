"""Safety module."""

from .redaction import REDACTION_RULES, Redactor, redact

__all__ = ["REDACTION_RULES", "Redactor", "redact"]
