"""Tests for task notification parts."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from taskgram.config.settings import Settings
from taskgram.formatting.task_parts import (
    NO_DEADLINE,
    NO_EXECUTORS,
    UNPARSEABLE_DEADLINE,
    TaskPartsFormatter,
    TaskRecord,
    UserRecord,
)
from taskgram.markup.bbcode import BBCodeTranspiler

DOMAIN = "https://example.bitrix24.ru"


def _make_settings(**overrides):
    defaults = {"_env_file": None, "bx24_domain": DOMAIN}
    defaults.update(overrides)
    return Settings(**defaults)


USERS = {
    114: UserRecord(bitrix_id=114, name="Artem"),
    7: UserRecord(bitrix_id=7, name="Anna <QA>"),
}


@pytest.fixture
def find_user() -> AsyncMock:
    return AsyncMock(side_effect=lambda user_id: USERS.get(user_id))


@pytest.fixture
def find_task() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
def parts(find_user, find_task) -> TaskPartsFormatter:
    return TaskPartsFormatter(_make_settings(), find_user, find_task)


class TestFormatUser:
    async def test_known_user(self, parts):
        assert await parts.format_user(114) == (
            f'<a href="{DOMAIN}/company/personal/user/114">Artem</a>'
        )

    async def test_name_escaped(self, parts):
        result = await parts.format_user(7)
        assert result.endswith(">Anna &lt;QA&gt;</a>")

    async def test_unknown_user(self, parts):
        assert await parts.format_user(999) == "999"

    async def test_no_domain(self, find_user):
        parts = TaskPartsFormatter(_make_settings(bx24_domain=None), find_user)
        assert await parts.format_user(114) == "114"


class TestFormatTitle:
    async def test_links_to_first_responsible(self, parts, find_task):
        find_task.return_value = TaskRecord(
            bitrix_id=10, title="Fix & ship", created_by=3, responsible_ids=[5, 6]
        )
        assert await parts.format_title(10) == (
            f'<b><a href="{DOMAIN}/company/personal/user/5/tasks/task/view/10">'
            "Fix &amp; ship</a></b>"
        )

    async def test_falls_back_to_creator(self, parts, find_task):
        find_task.return_value = TaskRecord(bitrix_id=10, title="T", created_by=3)
        assert "/user/3/tasks/task/view/10" in await parts.format_title(10)

    async def test_missing_task(self, parts):
        assert await parts.format_title(10) == "10"

    async def test_lookup_error(self, parts, find_task):
        find_task.side_effect = RuntimeError("db down")
        assert await parts.format_title(10) == "10"


class TestFormatExecutors:
    async def test_unique_links(self, parts, find_user):
        result = await parts.format_executors([114, 114, 999])
        assert result == (
            f'<a href="{DOMAIN}/company/personal/user/114">Artem</a>, 999'
        )
        assert find_user.await_count == 2

    async def test_none_assigned(self, parts):
        assert await parts.format_executors([]) == NO_EXECUTORS


class TestFormatDeadline:
    def test_iso_string(self, parts):
        assert parts.format_deadline("2025-03-05T14:30:00+03:00") == (
            "5 March 2025 at 14:30"
        )

    def test_zulu_suffix(self, parts):
        assert parts.format_deadline("2025-01-01T09:05:00Z") == "1 January 2025 at 09:05"

    def test_datetime(self, parts):
        moment = datetime(2024, 12, 31, 23, 59, tzinfo=timezone(timedelta(hours=3)))
        assert parts.format_deadline(moment) == "31 December 2024 at 23:59"

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing(self, parts, value):
        assert parts.format_deadline(value) == NO_DEADLINE

    def test_unparseable(self, parts):
        assert parts.format_deadline("next friday") == UNPARSEABLE_DEADLINE


class TestUserMentionsThroughParts:
    """format_user as the transpiler's user-link lookup."""

    async def test_mentions(self, parts):
        transpiler = BBCodeTranspiler(
            user_link_lookup=parts.format_user, diagnostics=lambda d: None
        )
        result = await transpiler.transpile(
            "Responsible: [USER=114]Artem[/USER], cc [USER=999]Someone[/USER]"
        )
        assert result == (
            f'Responsible: <a href="{DOMAIN}/company/personal/user/114">Artem</a>, '
            "cc Someone"
        )
