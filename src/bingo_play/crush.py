"""Reversible string compaction for JSON text embedded in URLs.

Two passes, both undone by `uncrush`:

1. JSON punctuation that URL-encodes badly is swapped for characters that
   survive `encodeURIComponent` untouched (`"` <-> `'`, `{` <-> `(`, ...).
2. Repeated substrings are replaced by single unused marker characters,
   greedily picking the substring that saves the most URL-encoded bytes.
   Each replaced substring is appended after its marker, so the packed form
   is ``body + DELIMITER + markers`` with the latest marker first.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

from .errors import DecodeError

DELIMITER = "\u0001"
DEFAULT_MAX_SUBSTRING_LENGTH = 50

# encodeURIComponent leaves these alone besides ASCII letters and digits
URL_SAFE_PUNCTUATION = "-_.!~*'()"

SWAP_GROUPS: Tuple[Tuple[str, str], ...] = (
    ('"', "'"),
    ("':", "!"),
    (",'", "~"),
    ("}", ")"),
    ("{", "("),
)

MARKERS: Tuple[str, ...] = tuple(
    ch
    for ch in map(chr, range(1, 127))
    if ch.isascii() and (ch.isalnum() or ch in URL_SAFE_PUNCTUATION)
)


def url_length(text: str) -> int:
    """Length of `text` once percent-encoded like encodeURIComponent."""
    return len(quote(text, safe="!*'()"))


def _swap(text: str, group: Tuple[str, str]) -> str:
    a, b = group
    pattern = re.compile(f"{re.escape(a)}|{re.escape(b)}")
    return pattern.sub(lambda m: b if m.group(0) == a else a, text)


def swap_punctuation(text: str, *, forward: bool = True) -> str:
    groups = SWAP_GROUPS if forward else tuple(reversed(SWAP_GROUPS))
    for group in groups:
        text = _swap(text, group)
    return text


def _repeated_substrings(text: str, max_length: int) -> Dict[str, int]:
    seen: Counter[str] = Counter()
    for length in range(2, max_length):
        for i in range(len(text) - length):
            seen[text[i:i + length]] += 1
    counts: Dict[str, int] = {}
    for sub, overlapping in seen.items():
        if overlapping < 2:
            continue
        n = text.count(sub)
        if n > 1:
            counts[sub] = n
    return counts


def _next_marker(text: str, start: int) -> int:
    pos = start
    while pos < len(MARKERS) and MARKERS[pos] in text:
        pos += 1
    return pos


def _pack(text: str, max_length: int) -> Tuple[str, str]:
    counts = _repeated_substrings(text, max_length)
    used: List[str] = []
    marker_pos = 0
    while True:
        marker_pos = _next_marker(text, marker_pos)
        if marker_pos >= len(MARKERS):
            break
        marker = MARKERS[marker_pos]
        marker_cost = url_length(marker)

        best: Optional[str] = None
        best_delta = 0
        for sub, n in counts.items():
            delta = (n - 1) * url_length(sub) - (n + 1) * marker_cost
            if delta > best_delta:
                best, best_delta = sub, delta
        if best is None:
            break

        text = text.replace(best, marker) + marker + best
        used.insert(0, marker)

        refreshed: Dict[str, int] = {}
        for sub in counts:
            updated = sub.replace(best, marker)
            n = text.count(updated)
            if n > 1:
                refreshed[updated] = n
        counts = refreshed
    return text, "".join(used)


def crush(text: str, *, max_substring_length: int = DEFAULT_MAX_SUBSTRING_LENGTH) -> str:
    if DELIMITER in text:
        raise ValueError("Text to crush must not contain the \\x01 delimiter")
    body, markers = _pack(swap_punctuation(text), max_substring_length)
    if not markers:
        return body
    return body + DELIMITER + markers


def uncrush(text: str) -> str:
    parts = text.split(DELIMITER)
    if len(parts) > 2:
        raise DecodeError("Crushed text contains more than one delimiter")
    body = parts[0]
    if len(parts) == 2:
        for marker in parts[1]:
            pieces = body.split(marker)
            tail = pieces.pop()
            body = tail.join(pieces)
    return swap_punctuation(body, forward=False)
