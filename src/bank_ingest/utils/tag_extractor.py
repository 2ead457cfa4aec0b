"""
Tolerant tag lookup over semi-structured XML text.

These helpers are not a validating parser: bank exports are frequently
malformed relative to their schemas, so every query works on the raw text,
matches tag names case-insensitively, and returns None or an empty list
instead of raising. Semantics shared by all lookups:

- the first non-overlapping match wins,
- a tag name only matches on a name boundary (`<Dt>` never matches `<DtTm>`),
- element content is returned with surrounding whitespace trimmed,
- a self-closing element (`<Amt/>`) has empty content.
"""
import logging
import re
from typing import List, Optional, Tuple

__all__ = [
    'tag_content',
    'all_tag_contents',
    'first_tag_content',
    'attribute',
    'child_elements',
    'has_tag',
]

logger = logging.getLogger(__name__)

# Length-preserving lower-casing; str.lower() may change length for some
# non-ASCII characters, which would break offsets into the original text.
_ASCII_LOWER = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")

_NAME_RE = re.compile(r"[A-Za-z_][\w.\-]*")
_ATTR_NAME_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789_.-:")


def _lower(text: str) -> str:
    return text.translate(_ASCII_LOWER)


def _is_name_boundary(lowered: str, index: int) -> bool:
    """True if the character at `index` ends a tag name."""
    if index >= len(lowered):
        return False
    ch = lowered[index]
    return ch == ">" or ch == "/" or ch.isspace()


def _find_open(lowered: str, tag: str, start: int) -> Optional[Tuple[int, int, bool]]:
    """
    Locate the next opening tag `<tag ...>` at or after `start`.

    Returns (tag_start, content_start, self_closing) or None.
    """
    needle = "<" + tag
    pos = lowered.find(needle, start)
    while pos != -1:
        after = pos + len(needle)
        if _is_name_boundary(lowered, after):
            gt = lowered.find(">", after)
            if gt == -1:
                return None
            return pos, gt + 1, lowered[gt - 1] == "/"
        pos = lowered.find(needle, pos + 1)
    return None


def _find_close(lowered: str, tag: str, start: int) -> Optional[Tuple[int, int]]:
    """Locate the first closing tag `</tag>` at or after `start`; returns (close_start, close_end)."""
    needle = "</" + tag
    pos = lowered.find(needle, start)
    while pos != -1:
        after = pos + len(needle)
        if after < len(lowered) and (lowered[after] == ">" or lowered[after].isspace()):
            gt = lowered.find(">", after)
            if gt == -1:
                return None
            return pos, gt + 1
        pos = lowered.find(needle, pos + 1)
    return None


def _iter_matches(xml: str, tag_name: str, limit: Optional[int] = None) -> List[str]:
    if not xml or not tag_name:
        return []
    lowered = _lower(xml)
    tag = _lower(tag_name)
    results: List[str] = []
    pos = 0
    while limit is None or len(results) < limit:
        opened = _find_open(lowered, tag, pos)
        if opened is None:
            break
        _, content_start, self_closing = opened
        if self_closing:
            results.append("")
            pos = content_start
            continue
        closed = _find_close(lowered, tag, content_start)
        if closed is None:
            # No closing tag anywhere after this point, so no later opening can match either
            break
        close_start, close_end = closed
        results.append(xml[content_start:close_start].strip())
        pos = close_end
    return results


def tag_content(xml: Optional[str], tag_name: str) -> Optional[str]:
    """Trimmed content of the first `<tag_name ...>...</tag_name>` in `xml`, or None."""
    if not xml:
        return None
    matches = _iter_matches(xml, tag_name, limit=1)
    return matches[0] if matches else None


def all_tag_contents(xml: Optional[str], tag_name: str) -> List[str]:
    """Trimmed content of every non-overlapping `tag_name` element, in document order."""
    if not xml:
        return []
    return _iter_matches(xml, tag_name)


def first_tag_content(xml: Optional[str], tag_names: Tuple[str, ...]) -> Optional[str]:
    """
    Try each tag variant in order and return the first non-empty content.

    This is the fallback-table lookup: variant 1, then variant 2, and so on.
    """
    for tag_name in tag_names:
        value = tag_content(xml, tag_name)
        if value:
            return value
    return None


def attribute(xml: Optional[str], attr_name: str) -> Optional[str]:
    """Value of the first `attr_name="value"` occurrence in `xml`, or None."""
    if not xml or not attr_name:
        return None
    lowered = _lower(xml)
    needle = _lower(attr_name)
    pos = lowered.find(needle)
    while pos != -1:
        before_ok = pos == 0 or lowered[pos - 1] not in _ATTR_NAME_CHARS
        cursor = pos + len(needle)
        while cursor < len(lowered) and lowered[cursor] in " \t":
            cursor += 1
        if before_ok and cursor < len(lowered) and lowered[cursor] == "=":
            cursor += 1
            while cursor < len(lowered) and lowered[cursor] in " \t":
                cursor += 1
            if cursor < len(lowered) and lowered[cursor] in "\"'":
                quote = lowered[cursor]
                end = lowered.find(quote, cursor + 1)
                if end != -1:
                    return xml[cursor + 1:end]
        pos = lowered.find(needle, pos + 1)
    return None


def _find_matching_close(lowered: str, tag: str, start: int) -> Optional[Tuple[int, int]]:
    """Like _find_close, but skips nested elements of the same name."""
    depth = 1
    pos = start
    while True:
        opened = _find_open(lowered, tag, pos)
        closed = _find_close(lowered, tag, pos)
        if closed is None:
            return None
        if opened is not None and opened[0] < closed[0]:
            if not opened[2]:
                depth += 1
            pos = opened[1]
            continue
        depth -= 1
        if depth == 0:
            return closed
        pos = closed[1]


def child_elements(xml: Optional[str]) -> List[Tuple[str, str]]:
    """
    Direct child elements of a fragment as (tag_name, trimmed_content) pairs.

    Used when the element name of an item is unknown but its wrapper is known.
    Comments, processing instructions and stray closing tags are skipped.
    """
    if not xml:
        return []
    lowered = _lower(xml)
    children: List[Tuple[str, str]] = []
    pos = 0
    length = len(xml)
    while pos < length:
        start = xml.find("<", pos)
        if start == -1 or start + 1 >= length:
            break
        if xml[start + 1] in "/!?":
            gt = xml.find(">", start)
            if gt == -1:
                break
            pos = gt + 1
            continue
        match = _NAME_RE.match(xml, start + 1)
        if not match:
            pos = start + 1
            continue
        name = match.group(0)
        gt = xml.find(">", match.end())
        if gt == -1:
            break
        if xml[gt - 1] == "/":
            children.append((name, ""))
            pos = gt + 1
            continue
        closed = _find_matching_close(lowered, _lower(name), gt + 1)
        if closed is None:
            logger.debug(f"Unclosed child element <{name}> at offset {start}")
            break
        children.append((name, xml[gt + 1:closed[0]].strip()))
        pos = closed[1]
    return children


def has_tag(xml: Optional[str], tag_name: str) -> bool:
    """True if `xml` contains an opening `tag_name` element (closed or not)."""
    if not xml or not tag_name:
        return False
    return _find_open(_lower(xml), _lower(tag_name), 0) is not None
