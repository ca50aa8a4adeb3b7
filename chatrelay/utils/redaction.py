"""Secret redaction for safe logging and error responses.

Provider error bodies and exception text can echo API keys or bearer
tokens. Anything of that kind is scrubbed here before it is logged or
returned to the client.
"""

import re

_REDACTED = "***REDACTED***"

_SENSITIVE_KEYWORDS = (
    r"secret|token|password|api_key|apikey|api-key|authorization|credential"
)
_SENSITIVE_VALUE_PATTERNS = re.compile(
    r"(?i)"
    r"(?:"
    # Authorization: Bearer <token>
    r"Authorization\s*:\s*Bearer\s+\S+"
    r"|"
    # bare Bearer <token>
    r"Bearer\s+[A-Za-z0-9._\-]{8,}"
    r"|"
    # JSON-style "key": "value"
    r'"(?:' + _SENSITIVE_KEYWORDS + r')"\s*:\s*"[^"]*"'
    r"|"
    # key = "quoted value"
    r"(?:" + _SENSITIVE_KEYWORDS + r")\s*[=:]\s*\"[^\"]*\""
    r"|"
    # key=value
    r"(?:" + _SENSITIVE_KEYWORDS + r")\s*[=:]\s*\S+"
    r"|"
    # OpenAI/Anthropic style secret keys
    r"\bsk-[A-Za-z0-9_\-]{4,}"
    r")",
)


def sanitize_error_message(msg: str | None, max_length: int = 2000) -> str | None:
    """Sanitize an error message for logging or echoing to the client.

    Redacts sensitive-looking key=value pairs and key shapes, then
    truncates to max_length.

    Args:
        msg: Error message to sanitize (None passes through).
        max_length: Maximum length of the sanitized message.

    Returns:
        Sanitized and truncated message, or None.
    """
    if msg is None:
        return None
    sanitized = _SENSITIVE_VALUE_PATTERNS.sub(_REDACTED, msg)
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length - 3] + "..."
    return sanitized
