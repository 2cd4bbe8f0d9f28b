from __future__ import annotations
import re


# First word char of the string, any uppercase letter, or the first char of a word.
_WORD_START_RE = re.compile(r"^\w|[A-Z]|\b\w", re.ASCII)
_WHITESPACE_RE = re.compile(r"\s+")


def to_camel_case(label: str) -> str:
    """Turn a human label into a lowerCamelCase identifier.

    "Login Button" -> "loginButton", "XML Parser" -> "xMLParser".
    No acronym handling and no identifier validation: punctuation and
    leading digits are left in place.
    """
    def _case(m: re.Match) -> str:
        ch = m.group(0)
        return ch.lower() if m.start() == 0 else ch.upper()

    return _WHITESPACE_RE.sub("", _WORD_START_RE.sub(_case, label))
