"""BBCode conversion and HTML truncation for Telegram messages."""

from .bbcode import BBCodeTranspiler
from .diagnostics import Diagnostic, DiagnosticsSink
from .html_format import escape_attribute, escape_html
from .lookups import FileRecord
from .truncate import truncate_html, visible_length

__all__ = [
    "BBCodeTranspiler",
    "Diagnostic",
    "DiagnosticsSink",
    "FileRecord",
    "escape_attribute",
    "escape_html",
    "truncate_html",
    "visible_length",
]
