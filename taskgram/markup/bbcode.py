"""Bitrix BBCode to Telegram HTML conversion.

Telegram's HTML parse mode accepts only <b>, <i>, <u>, <s>, <a>, <code>,
<pre> and <blockquote>.  Bitrix task descriptions and comments use a much
wider BBCode vocabulary, and embed references to disk files and users
that have to be resolved through the Bitrix API.

Order of operations:
1. Protect bracket tags -> placeholders (except USER tags)
2. Resolve [DISK FILE ID=...] references -> links or bracketed errors
3. Resolve [USER=...]...[/USER] mentions -> profile links or labels
4. Escape remaining text (&, <, >), keeping resolved fragments intact
5. Restore the protected bracket tags, escaped like the text around them
6. Convert lists and paragraphs to plain lines
7. Convert inline tags (B, I, U, S, URL, CODE, QUOTE) -> HTML
8. Unwrap unsupported tags (IMG, COLOR, SIZE)
9. Normalize line breaks and trim

Each step is a module-level function so it can be exercised on its own.
"""

import asyncio
import re
from typing import Dict, List, Optional, Set

from .diagnostics import ERROR, WARNING, Diagnostic, DiagnosticsSink, structlog_sink
from .html_format import escape_attribute, escape_html, escape_quotes
from .lookups import (
    FileFound,
    FileLookup,
    FileLookupResult,
    FileNotFound,
    UserLinkFound,
    UserLinkLookup,
    UserLookupResult,
    UserUnknown,
    no_file,
    no_user_link,
    resolve_file,
    resolve_user_link,
)
from .placeholders import PlaceholderMap

BRACKET_TAG_RE = re.compile(r"\[(/?)([A-Z]+)(?:=([^\]]+))?\]", re.IGNORECASE)
DEFERRED_USER_TAG_RE = re.compile(r"^\[/?USER(?:=[^\]]+)?\]$", re.IGNORECASE)

DISK_FILE_RE = re.compile(r"\[DISK FILE ID=([\w-]+)\]", re.IGNORECASE)
DIGITS_RE = re.compile(r"\d+")
USER_MENTION_RE = re.compile(r"\[USER=([^\]]*)\](.*?)\[/USER\]", re.IGNORECASE)
USER_ID_RE = re.compile(r"[+-]?\d+")

_FLAGS = re.IGNORECASE | re.DOTALL

LIST_NUMBERED_RE = re.compile(r"\[LIST=1\](.*?)\[/LIST\]", _FLAGS)
LIST_BULLET_RE = re.compile(r"\[LIST\](.*?)\[/LIST\]", _FLAGS)
LIST_ITEM_RE = re.compile(r"\[\*\]")
PARAGRAPH_RE = re.compile(r"\[P\](.*?)\[/P\]", _FLAGS)

SIMPLE_INLINE_RULES = [
    (re.compile(r"\[B\](.*?)\[/B\]", _FLAGS), r"<b>\1</b>"),
    (re.compile(r"\[I\](.*?)\[/I\]", _FLAGS), r"<i>\1</i>"),
    (re.compile(r"\[U\](.*?)\[/U\]", _FLAGS), r"<u>\1</u>"),
    (re.compile(r"\[S\](.*?)\[/S\]", _FLAGS), r"<s>\1</s>"),
]
URL_WITH_TARGET_RE = re.compile(r"\[URL=([^\]]*)\](.*?)\[/URL\]", _FLAGS)
URL_PLAIN_RE = re.compile(r"\[URL\](.*?)\[/URL\]", _FLAGS)
CODE_RE = re.compile(r"\[CODE\](.*?)\[/CODE\]", _FLAGS)
QUOTE_RE = re.compile(r"\[QUOTE\](.*?)\[/QUOTE\]", _FLAGS)

UNSUPPORTED_RULES = [
    re.compile(r"\[IMG\](.*?)\[/IMG\]", _FLAGS),
    re.compile(r"\[COLOR=[^\]]*\](.*?)\[/COLOR\]", _FLAGS),
    re.compile(r"\[SIZE=[^\]]*\](.*?)\[/SIZE\]", _FLAGS),
]

EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


def _ignore(diagnostic: Diagnostic) -> None:
    pass


# --- 1. Bracket tag protection ---


def _is_deferred_tag(fragment: str) -> bool:
    """USER tags are resolved before escaping.

    DISK FILE tags never match BRACKET_TAG_RE because of the space.
    """
    return bool(DEFERRED_USER_TAG_RE.match(fragment))


def protect_bracket_tags(text: str, tags: PlaceholderMap) -> str:
    """Swap formatting tags for placeholders while lookups rewrite the text."""
    return tags.protect(text, BRACKET_TAG_RE, skip=_is_deferred_tag)


def restore_bracket_tags(text: str, tags: PlaceholderMap) -> str:
    """Put protected tags back, escaping any &, <, > in their values.

    Tags no later rule consumes stay in the output as text.
    """
    return tags.restore(text, escape_html)


# --- 2. Disk files ---


def render_file_result(
    result: FileLookupResult, report: DiagnosticsSink = _ignore
) -> str:
    """Turn a file lookup outcome into an HTML fragment."""
    if isinstance(result, FileFound):
        file = result.file
        return (
            f'<a href="{escape_attribute(file.download_url)}">'
            f"{escape_html(file.name)}</a>"
        )
    if isinstance(result, FileNotFound):
        report(Diagnostic(WARNING, "Disk file not found", {"file_id": result.file_id}))
        return f"[File {result.file_id} not found]"
    report(
        Diagnostic(
            ERROR,
            "Failed to load disk file",
            {"file_id": result.file_id, "error": str(result.error)},
        )
    )
    return f"[Error loading file {result.file_id}]"


async def resolve_file_references(
    text: str,
    lookup: FileLookup,
    fragments: PlaceholderMap,
    report: DiagnosticsSink = _ignore,
) -> str:
    """Replace every [DISK FILE ID=...] tag with its resolved fragment.

    Each distinct tag is looked up once; all lookups run concurrently.
    Tags without a numeric id are left as they are.
    """
    file_ids: Dict[str, int] = {}
    malformed: Set[str] = set()

    for m in DISK_FILE_RE.finditer(text):
        tag = m.group(0)
        if tag in file_ids or tag in malformed:
            continue
        digits = DIGITS_RE.search(m.group(1))
        if not digits:
            report(
                Diagnostic(
                    WARNING,
                    "Disk file tag has no numeric id, leaving it unchanged",
                    {"tag": tag},
                )
            )
            malformed.add(tag)
            continue
        file_ids[tag] = int(digits.group(0))

    if not file_ids:
        return text

    results = await asyncio.gather(
        *(resolve_file(lookup, file_id) for file_id in file_ids.values())
    )

    for tag, result in zip(file_ids, results):
        token = fragments.add(render_file_result(result, report))
        text = text.replace(tag, token)

    return text


# --- 3. User mentions ---


def parse_user_id(raw: str) -> Optional[int]:
    """Parse a mention id, returning None unless it is a positive integer."""
    raw = raw.strip()
    if not USER_ID_RE.fullmatch(raw):
        return None
    user_id = int(raw)
    return user_id if user_id > 0 else None


def render_user_result(
    result: UserLookupResult, label: str, report: DiagnosticsSink = _ignore
) -> str:
    """Turn a user-link lookup outcome into an HTML fragment.

    ``label`` is the raw mention text from the BBCode and is preferred over
    a bare numeric id whenever it is not blank.
    """
    if isinstance(result, UserLinkFound):
        return result.link
    has_label = bool(label.strip())
    if isinstance(result, UserUnknown):
        return escape_html(label) if has_label else str(result.user_id)
    report(
        Diagnostic(
            ERROR,
            "Failed to resolve user mention",
            {"user_id": result.user_id, "error": str(result.error)},
        )
    )
    if has_label:
        return escape_html(label)
    return f"[Error loading user {result.user_id}]"


async def resolve_user_mentions(
    text: str,
    lookup: UserLinkLookup,
    fragments: PlaceholderMap,
    report: DiagnosticsSink = _ignore,
) -> str:
    """Replace every [USER=id]label[/USER] span with a profile link or its label."""
    labels: Dict[str, str] = {}
    replacements: Dict[str, str] = {}
    pending: Dict[str, int] = {}

    for m in USER_MENTION_RE.finditer(text):
        mention = m.group(0)
        if mention in labels:
            continue
        raw_id, label = m.group(1), m.group(2)
        labels[mention] = label

        user_id = parse_user_id(raw_id)
        if user_id is None:
            report(
                Diagnostic(
                    WARNING,
                    "User mention has an invalid id, using its label",
                    {"user_id": raw_id},
                )
            )
            replacements[mention] = escape_html(label)
            continue
        pending[mention] = user_id

    if not labels:
        return text

    results = await asyncio.gather(
        *(resolve_user_link(lookup, user_id) for user_id in pending.values())
    )
    for mention, result in zip(pending, results):
        replacements[mention] = render_user_result(result, labels[mention], report)

    for mention in labels:
        text = text.replace(mention, fragments.add(replacements[mention]))

    return text


# --- 4. Escaping ---


def escape_text(text: str, fragments: PlaceholderMap) -> str:
    """Escape &, <, > everywhere except in the resolved fragments."""
    return fragments.restore(escape_html(text))


# --- 6. Lists and paragraphs ---


def _list_items(content: str) -> List[str]:
    items = [item.strip() for item in LIST_ITEM_RE.split(content) if item.strip()]
    return [PARAGRAPH_RE.sub(r"\1", item) for item in items]


def _numbered_list(m: re.Match) -> str:  # type: ignore[type-arg]
    items = _list_items(m.group(1))
    return "\n".join(f"{index}. {item}" for index, item in enumerate(items, start=1))


def _bulleted_list(m: re.Match) -> str:  # type: ignore[type-arg]
    return "\n".join(f"\u2022 {item}" for item in _list_items(m.group(1)))


def transform_structural_tags(text: str) -> str:
    """Flatten lists and paragraphs into lines; Telegram has no block elements."""
    text = LIST_NUMBERED_RE.sub(_numbered_list, text)
    text = LIST_BULLET_RE.sub(_bulleted_list, text)
    return PARAGRAPH_RE.sub("\\1\n", text)


# --- 7. Inline tags ---


def _link_with_target(m: re.Match) -> str:  # type: ignore[type-arg]
    # The target was escaped in step 5; only quotes are left to handle.
    return f'<a href="{escape_quotes(m.group(1))}">{m.group(2)}</a>'


def _plain_link(m: re.Match) -> str:  # type: ignore[type-arg]
    # The body was escaped in step 4; only quotes are left to handle.
    url = m.group(1)
    return f'<a href="{escape_quotes(url)}">{url}</a>'


def transform_inline_tags(text: str) -> str:
    """Convert the inline tags Telegram supports."""
    for pattern, replacement in SIMPLE_INLINE_RULES:
        text = pattern.sub(replacement, text)
    text = URL_WITH_TARGET_RE.sub(_link_with_target, text)
    text = URL_PLAIN_RE.sub(_plain_link, text)
    text = CODE_RE.sub(r"<code>\1</code>", text)
    return QUOTE_RE.sub(r"<blockquote>\1</blockquote>", text)


# --- 8. Unsupported tags ---


def drop_unsupported_tags(text: str) -> str:
    """Keep only the content of tags Telegram cannot render."""
    for pattern in UNSUPPORTED_RULES:
        text = pattern.sub(r"\1", text)
    return text


# --- 9. Whitespace ---


def normalize_whitespace(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = EXCESS_NEWLINES_RE.sub("\n\n", text)
    return text.strip()


class BBCodeTranspiler:
    """Convert Bitrix BBCode into Telegram-compatible HTML.

    Lookup failures never propagate: they are rendered as bracketed text
    in the output and reported to the diagnostics sink.
    """

    def __init__(
        self,
        file_lookup: FileLookup = no_file,
        user_link_lookup: UserLinkLookup = no_user_link,
        diagnostics: Optional[DiagnosticsSink] = None,
    ) -> None:
        self.file_lookup = file_lookup
        self.user_link_lookup = user_link_lookup
        self.diagnostics = diagnostics or structlog_sink

    async def transpile(self, bbcode: Optional[str]) -> str:
        """Convert ``bbcode`` to HTML. ``None`` and ``""`` give ``""``."""
        if not bbcode:
            return ""

        tags = PlaceholderMap("TAG")
        fragments = PlaceholderMap("HTML")

        text = protect_bracket_tags(bbcode, tags)
        text = await resolve_file_references(
            text, self.file_lookup, fragments, self.diagnostics
        )
        text = await resolve_user_mentions(
            text, self.user_link_lookup, fragments, self.diagnostics
        )
        text = escape_text(text, fragments)
        text = restore_bracket_tags(text, tags)
        text = transform_structural_tags(text)
        text = transform_inline_tags(text)
        text = drop_unsupported_tags(text)
        return normalize_whitespace(text)
