from __future__ import annotations

import re

REDACTED_PATH = "[REDACTED_PATH]"
REDACTED_ENV = "[REDACTED_ENV]"
REDACTED_IP = "[REDACTED_IP]"
REDACTED_EMAIL = "[REDACTED_EMAIL]"

# Order matters: the path rule runs first and can swallow part of what a
# later rule would have matched (e.g. the address in "http://10.0.0.1").
_REDACTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"/[^\s:]+"), REDACTED_PATH),
    (re.compile(r"\b[A-Z_][A-Z0-9_]*=\S*"), REDACTED_ENV),
    (re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"), REDACTED_IP),
    (re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"), REDACTED_EMAIL),
)


def filter_output(text: str) -> str:
    """Redact paths, env assignments, IPv4 addresses and emails from interpreter output.

    Example:
        ```python
        filter_output("error: /home/bob/x.m not found")
        # "error: [REDACTED_PATH] not found"
        ```
    """
    for pattern, marker in _REDACTIONS:
        text = pattern.sub(marker, text)
    return text
