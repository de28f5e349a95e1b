"""Length-bounded truncation of Telegram HTML.

Length is counted in visible tokens: a character, or an entire entity
reference such as ``&amp;`` or ``&#8212;``.  Tags never count.  A cut
never lands inside a tag or an entity, and every element left open by
the cut is closed after the ellipsis.
"""

import re
from typing import List

from taskgram.utils.constants import DEFAULT_DESCRIPTION_MAX_LENGTH, ELLIPSIS

TAG_RE = re.compile(r"<[^>]+>")
TAG_NAME_RE = re.compile(r"^</?\s*([a-zA-Z0-9]+)")
SELF_CLOSED_RE = re.compile(r"/>\s*$")
TOKEN_RE = re.compile(r"&[a-zA-Z0-9#]+;|.", re.DOTALL)

VOID_TAGS = frozenset({"br", "hr", "img", "input", "meta", "link", "source"})


def _is_self_closing(tag_name: str, tag: str) -> bool:
    return bool(SELF_CLOSED_RE.search(tag)) or tag_name in VOID_TAGS


def visible_length(html: str) -> int:
    """Count the visible tokens in ``html``."""
    text = TAG_RE.sub("", html)
    return sum(1 for _ in TOKEN_RE.finditer(text))


def truncate_html(html: str, max_length: int = DEFAULT_DESCRIPTION_MAX_LENGTH) -> str:
    """Cut ``html`` to at most ``max_length`` visible tokens.

    Input that already fits is returned unchanged.  Otherwise the kept
    prefix loses its trailing whitespace, gains an ellipsis, and is
    followed by closing tags for every element still open, innermost
    first.
    """
    if not html or max_length <= 0:
        return ""

    if visible_length(html) <= max_length:
        return html

    parts: List[str] = []
    stack: List[str] = []
    length = 0
    last_index = 0
    truncated = False

    def append_text(segment: str) -> bool:
        nonlocal length
        for token in TOKEN_RE.findall(segment):
            if length + 1 > max_length:
                return True
            parts.append(token)
            length += 1
        return False

    for m in TAG_RE.finditer(html):
        truncated = append_text(html[last_index : m.start()])
        if truncated:
            break

        tag = m.group(0)
        parts.append(tag)
        last_index = m.end()

        name_match = TAG_NAME_RE.match(tag)
        if not name_match:
            continue
        tag_name = name_match.group(1).lower()

        if tag.startswith("</"):
            # Mismatched closing tags are kept but leave the stack alone.
            if stack and stack[-1] == tag_name:
                stack.pop()
        elif not _is_self_closing(tag_name, tag):
            stack.append(tag_name)

    if not truncated:
        truncated = append_text(html[last_index:])

    result = "".join(parts)
    if not truncated:
        return result

    result = result.rstrip() + ELLIPSIS
    while stack:
        result += f"</{stack.pop()}>"
    return result
