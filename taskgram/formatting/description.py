"""Render Bitrix BBCode bodies into bounded Telegram HTML."""

from typing import Optional

from ..bitrix.client import BitrixClient
from ..config.settings import Settings
from ..markup.bbcode import BBCodeTranspiler
from ..markup.diagnostics import DiagnosticsSink
from ..markup.lookups import no_file, no_user_link
from ..markup.truncate import truncate_html
from .task_parts import TaskPartsFormatter

EMPTY_BODY = "—"


class DescriptionRenderer:
    """Transpile a task description or comment and cut it to the budget."""

    def __init__(self, transpiler: BBCodeTranspiler, max_length: int) -> None:
        self.transpiler = transpiler
        self.max_length = max_length

    async def render(self, bbcode: Optional[str]) -> str:
        html = await self.transpiler.transpile(bbcode)
        return truncate_html(html, self.max_length) or EMPTY_BODY


def build_transpiler(
    client: Optional[BitrixClient] = None,
    parts: Optional[TaskPartsFormatter] = None,
    diagnostics: Optional[DiagnosticsSink] = None,
) -> BBCodeTranspiler:
    """Wire the Bitrix client and user formatter into a transpiler.

    Missing collaborators fall back to lookups that resolve nothing.
    """
    return BBCodeTranspiler(
        file_lookup=client.get_file if client else no_file,
        user_link_lookup=parts.format_user if parts else no_user_link,
        diagnostics=diagnostics,
    )


def build_renderer(
    settings: Settings,
    client: Optional[BitrixClient] = None,
    parts: Optional[TaskPartsFormatter] = None,
) -> DescriptionRenderer:
    """Renderer using the configured description budget."""
    return DescriptionRenderer(
        build_transpiler(client, parts), settings.description_max_length
    )
