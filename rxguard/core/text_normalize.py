"""Text Normalization — byte-stable helpers shared by hashing, caching and quoting.

Invariants:
    - Pure functions: no IO, same input → same output across runs
    - normalize_for_key is the ONLY way a drug query becomes a cache key
    - normalize_for_match is the ONLY comparison form for quote verification
    - chunk_text_around never raises on out-of-range indices (clamped)
"""

import hashlib
import re

_WHITESPACE = re.compile(r"\s+")
_LINE_BREAKS = re.compile(r"[\r\n]+")
_KEY_DISALLOWED = re.compile(r"[^a-z0-9\s\-]")


def sha256_hex(text: str) -> str:
    """SHA-256 of the UTF-8 encoding, hex digest."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def normalize_for_key(s: str) -> str:
    """Cache key form: lower-case, collapsed spaces, only [a-z0-9 -]."""
    s = _WHITESPACE.sub(" ", s.lower().strip())
    s = _KEY_DISALLOWED.sub("", s)
    return _WHITESPACE.sub(" ", s).strip()


def normalize_for_match(s: str) -> str:
    """Comparison form: lower-case, collapsed whitespace, trimmed."""
    return _WHITESPACE.sub(" ", s.lower()).strip()


def safe_one_line(s: str) -> str:
    """Replace CR/LF runs with a single space and trim."""
    return _LINE_BREAKS.sub(" ", s).strip()


def collapse_whitespace(s: str) -> str:
    return _WHITESPACE.sub(" ", s).strip()


def utf8_size(s: str) -> int:
    return len(s.encode("utf-8"))


def clamp(n: int, low: int, high: int) -> int:
    return max(low, min(high, n))


def chunk_text_around(text: str, index: int, radius: int) -> str:
    """Window of ±radius characters around index, trimmed."""
    start = clamp(index - radius, 0, len(text))
    end = clamp(index + radius, 0, len(text))
    return text[start:end].strip()


def find_loose(haystack: str, needle: str) -> int:
    """Index of needle in haystack, case-insensitive, any whitespace run between words.

    Returns -1 when absent or when needle is blank.
    """
    words = normalize_for_match(needle).split(" ")
    if not words or words == [""]:
        return -1
    pattern = r"\s+".join(re.escape(w) for w in words)
    m = re.search(pattern, haystack, re.IGNORECASE)
    return m.start() if m else -1
