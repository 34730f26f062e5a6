"""Text helpers shared by the retrievers and adapters.

Text handling contract
----------------------
* Queries and chunk text have BOM markers stripped and are NFKC
  normalized at the boundary (query validation, store writes).
* Lexical matching uses ``tokenize`` on both sides so the store and the
  query agree on what a token is.
"""

import re
import unicodedata

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Remove BOM markers, apply NFKC and collapse whitespace.

    Args:
        text: Input text that may contain BOM or irregular whitespace.

    Returns:
        Cleaned single-spaced text, stripped at both ends.
    """
    if not text:
        return ""

    cleaned = text.replace("\ufeff", "").replace("\ufffd", "")
    cleaned = unicodedata.normalize("NFKC", cleaned)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def tokenize(text: str) -> list[str]:
    """Lowercase word tokens, dropping single characters other than digits.

    Args:
        text: Text to tokenize.

    Returns:
        List of tokens in order of appearance.
    """
    if not text:
        return []
    tokens = _TOKEN_RE.findall(text.lower())
    return [t for t in tokens if len(t) > 1 or t.isdigit()]
