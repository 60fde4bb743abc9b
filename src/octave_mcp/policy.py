from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import ScriptRejectedError

CATEGORY_COMMAND_SUBSTITUTION = "command substitution"
CATEGORY_DANGEROUS_FUNCTION = "dangerous function"
CATEGORY_SHELL_CHAINING = "shell chaining"

DANGEROUS_FUNCTIONS = (
    "system",
    "exec",
    "popen",
    "eval",
    "evalin",
    "urlread",
    "urlwrite",
    "load",
    "save",
    "unix",
    "dos",
    "waitpid",
    "fork",
)
COMMAND_SUBSTITUTIONS = ("$(", "`")
SHELL_CHAINS = ("; rm ", "; del ", "| sh", "| bash", "`", "&&", "||")


@dataclass(frozen=True, slots=True)
class DenyPattern:
    """One known-bad pattern: a category, a human label and the regex that finds it.

    Example:
        ```python
        rule = DenyPattern("shell chaining", "&&", re.compile(re.escape("&&")))
        ```
    """

    category: str
    label: str
    pattern: re.Pattern[str]

    def search(self, script: str) -> str | None:
        """Return the literal matched fragment, or None.

        Example:
            ```python
            DENY_PATTERNS[0].search("x = $(ls)")  # "$("
            ```
        """
        match = self.pattern.search(script)
        return match.group(0) if match else None


def _literal(category: str, text: str) -> DenyPattern:
    """Build a plain substring rule.

    Example:
        ```python
        rule = _literal("shell chaining", "| sh")
        ```
    """
    return DenyPattern(category, text, re.compile(re.escape(text)))


def _function_call(name: str) -> DenyPattern:
    """Build a case-insensitive ``name(`` rule tolerating whitespace before the paren.

    Example:
        ```python
        rule = _function_call("system")
        rule.search("SyStEm\\t('ls')")  # "SyStEm\\t("
        ```
    """
    return DenyPattern(
        CATEGORY_DANGEROUS_FUNCTION,
        f"{name}(",
        re.compile(re.escape(name) + r"\s*\(", re.IGNORECASE),
    )


# Evaluated in order; the first match wins.
DENY_PATTERNS: tuple[DenyPattern, ...] = (
    *(_literal(CATEGORY_COMMAND_SUBSTITUTION, text) for text in COMMAND_SUBSTITUTIONS),
    *(_function_call(name) for name in DANGEROUS_FUNCTIONS),
    *(_literal(CATEGORY_SHELL_CHAINING, text) for text in SHELL_CHAINS),
)


def validate_script(script: str) -> None:
    """Reject scripts containing a known command-injection or dangerous-call pattern.

    This is a pattern filter, not a parser: it catches the listed patterns and
    nothing more.

    Example:
        ```python
        validate_script("x = [1 2; 3 4] * 2")  # passes
        validate_script("system('ls')")        # raises ScriptRejectedError
        ```
    """
    for rule in DENY_PATTERNS:
        fragment = rule.search(script)
        if fragment is not None:
            raise ScriptRejectedError(rule.category, rule.label, fragment)


def sanitize_script(script: str, max_length: int) -> str:
    """Strip null bytes and truncate to ``max_length`` characters.

    Example:
        ```python
        sanitize_script("x = 1\\x00;", 10000)  # "x = 1;"
        ```
    """
    cleaned = script.replace("\x00", "")
    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length]
    return cleaned
