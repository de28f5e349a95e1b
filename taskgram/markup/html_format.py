"""Telegram HTML escaping utilities.

Telegram's HTML parse mode only requires &, <, > to be escaped in text.
Attribute values (link targets) additionally need the double quote
escaped so they cannot close the attribute early.
"""


def escape_html(text: str) -> str:
    """Escape the 3 special characters for Telegram HTML text."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def escape_attribute(value: str) -> str:
    """Escape a raw value for use inside a double-quoted HTML attribute."""
    return escape_html(value).replace('"', "&quot;")


def escape_quotes(value: str) -> str:
    """Escape only double quotes, for values whose &, <, > are already escaped."""
    return value.replace('"', "&quot;")


def link(href: str, text: str) -> str:
    """Build an anchor from a raw URL and raw link text."""
    return f'<a href="{escape_attribute(href)}">{escape_html(text)}</a>'
