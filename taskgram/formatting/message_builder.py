"""Assemble Telegram HTML messages from structured templates."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from ..markup.html_format import escape_html

MetadataValue = Union[str, int, float, bool]


@dataclass
class MessageSection:
    """A titled block of lines inside a message.

    ``lines`` are plain text and get escaped; ``raw`` is HTML and is used
    as-is.
    """

    title: Optional[str] = None
    lines: List[str] = field(default_factory=list)
    raw: Optional[str] = None


@dataclass
class MessageTemplate:
    """Structured description of a notification message."""

    header: Optional[str] = None
    title: Optional[str] = None
    emphasis: Optional[str] = None
    sections: List[MessageSection] = field(default_factory=list)
    metadata: Dict[str, MetadataValue] = field(default_factory=dict)
    footer: Optional[str] = None
    raw: Optional[str] = None


class MessageBuilder:
    """Render a MessageTemplate into a single Telegram HTML string.

    ``header`` and ``title`` are HTML; every other plain-text field is
    escaped.  Non-empty chunks are separated by a blank line.
    """

    def build(self, template: MessageTemplate) -> str:
        if template.raw:
            return template.raw

        chunks: List[str] = []

        if template.header:
            chunks.append(template.header)
        if template.title:
            chunks.append(template.title)
        if template.emphasis:
            chunks.append(self._italic(template.emphasis))

        for section in template.sections:
            section_chunks: List[str] = []
            if section.title:
                section_chunks.append(self._underline(section.title))
            if section.lines:
                section_chunks.append(
                    "\n".join(escape_html(line) for line in section.lines)
                )
            if section.raw:
                section_chunks.append(section.raw)
            if section_chunks:
                chunks.append("\n".join(section_chunks))

        if template.metadata:
            chunks.append(
                "\n".join(
                    f"{self._bold(f'{key}:')} {escape_html(str(value))}"
                    for key, value in template.metadata.items()
                )
            )

        if template.footer:
            chunks.append(self._italic(template.footer))

        return "\n\n".join(chunk for chunk in chunks if chunk)

    @staticmethod
    def _bold(value: str) -> str:
        return f"<b>{escape_html(value)}</b>"

    @staticmethod
    def _italic(value: str) -> str:
        return f"<i>{escape_html(value)}</i>"

    @staticmethod
    def _underline(value: str) -> str:
        return f"<u>{escape_html(value)}</u>"
