"""Tests for lookup result classification and escaping helpers."""

from unittest.mock import AsyncMock

from taskgram.markup.html_format import escape_attribute, escape_html, link
from taskgram.markup.lookups import (
    FileFound,
    FileLookupFailed,
    FileNotFound,
    FileRecord,
    UserLinkFound,
    UserLookupFailed,
    UserUnknown,
    no_file,
    no_user_link,
    resolve_file,
    resolve_user_link,
)


class TestResolveFile:
    async def test_found(self):
        record = FileRecord(1, "a.txt", "https://x.com/1")
        result = await resolve_file(AsyncMock(return_value=record), 1)
        assert result == FileFound(record)

    async def test_not_found(self):
        result = await resolve_file(AsyncMock(return_value=None), 2)
        assert result == FileNotFound(2)

    async def test_failure(self):
        error = ConnectionError("refused")
        result = await resolve_file(AsyncMock(side_effect=error), 3)
        assert isinstance(result, FileLookupFailed)
        assert result.error is error

    async def test_offline_lookup(self):
        assert await resolve_file(no_file, 4) == FileNotFound(4)


class TestResolveUserLink:
    async def test_found(self):
        result = await resolve_user_link(AsyncMock(return_value="<a>x</a>"), 1)
        assert result == UserLinkFound(1, "<a>x</a>")

    async def test_bare_id_means_unknown(self):
        assert await resolve_user_link(no_user_link, 5) == UserUnknown(5)

    async def test_blank_means_unknown(self):
        assert await resolve_user_link(AsyncMock(return_value=""), 6) == UserUnknown(6)

    async def test_failure(self):
        result = await resolve_user_link(AsyncMock(side_effect=KeyError("x")), 7)
        assert isinstance(result, UserLookupFailed)
        assert result.user_id == 7


class TestHtmlFormat:
    def test_escape_html(self):
        assert escape_html('<a & "b">') == '&lt;a &amp; "b"&gt;'

    def test_escape_attribute(self):
        assert escape_attribute('x"<&') == "x&quot;&lt;&amp;"

    def test_link(self):
        assert link("https://x.com/?a=1&b=2", "A & B") == (
            '<a href="https://x.com/?a=1&amp;b=2">A &amp; B</a>'
        )
