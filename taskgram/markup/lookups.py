"""Typed results for the external file and user-link lookups.

The collaborators are plain async callables:

- ``file_lookup(file_id)`` resolves to a :class:`FileRecord`, or ``None``
  when Bitrix has no such file, and raises on transport/service errors.
- ``user_link_lookup(user_id)`` resolves to an HTML link, or to
  ``str(user_id)`` when the user cannot be resolved.

``resolve_file`` and ``resolve_user_link`` wrap those calls so every
outcome, including an exception, becomes one of the result variants
below.  They never raise.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union


@dataclass(frozen=True)
class FileRecord:
    """A Bitrix disk file as needed for linking."""

    file_id: int
    name: str
    download_url: str


@dataclass(frozen=True)
class FileFound:
    file: FileRecord


@dataclass(frozen=True)
class FileNotFound:
    file_id: int


@dataclass(frozen=True)
class FileLookupFailed:
    file_id: int
    error: BaseException


FileLookupResult = Union[FileFound, FileNotFound, FileLookupFailed]


@dataclass(frozen=True)
class UserLinkFound:
    user_id: int
    link: str


@dataclass(frozen=True)
class UserUnknown:
    user_id: int


@dataclass(frozen=True)
class UserLookupFailed:
    user_id: int
    error: BaseException


UserLookupResult = Union[UserLinkFound, UserUnknown, UserLookupFailed]

FileLookup = Callable[[int], Awaitable[Optional[FileRecord]]]
UserLinkLookup = Callable[[int], Awaitable[str]]


async def resolve_file(lookup: FileLookup, file_id: int) -> FileLookupResult:
    """Call the file collaborator and classify the outcome."""
    try:
        record = await lookup(file_id)
    except Exception as e:
        return FileLookupFailed(file_id, e)
    if record is None:
        return FileNotFound(file_id)
    return FileFound(record)


async def resolve_user_link(lookup: UserLinkLookup, user_id: int) -> UserLookupResult:
    """Call the user-link collaborator and classify the outcome.

    A blank result or the bare id means the collaborator could not
    resolve the profile.
    """
    try:
        link = await lookup(user_id)
    except Exception as e:
        return UserLookupFailed(user_id, e)
    if not link or link == str(user_id):
        return UserUnknown(user_id)
    return UserLinkFound(user_id, link)


async def no_file(file_id: int) -> Optional[FileRecord]:
    """File lookup used when Bitrix is not configured."""
    return None


async def no_user_link(user_id: int) -> str:
    """User-link lookup used when no user directory is available."""
    return str(user_id)
