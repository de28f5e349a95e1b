"""Format the individual parts of task notifications.

Users and tasks are looked up through async callables supplied by the
storage layer; this module only turns the records into Telegram HTML.
``format_user`` doubles as the user-link lookup for BBCode mentions: it
returns the bare id when the user cannot be resolved.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Iterable, List, Optional, Union

import structlog

from ..config.settings import Settings
from ..markup.html_format import link

logger = structlog.get_logger()

MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

NO_DEADLINE = "Date not set"
UNPARSEABLE_DEADLINE = "Date not recognized"
NO_EXECUTORS = "Not assigned"


@dataclass
class UserRecord:
    """A Bitrix user as stored locally."""

    bitrix_id: int
    name: str


@dataclass
class TaskRecord:
    """A Bitrix task as stored locally."""

    bitrix_id: int
    title: str
    created_by: int
    responsible_ids: List[int] = field(default_factory=list)


FindUser = Callable[[int], Awaitable[Optional[UserRecord]]]
FindTask = Callable[[int], Awaitable[Optional[TaskRecord]]]


async def _no_task(task_id: int) -> Optional[TaskRecord]:
    return None


class TaskPartsFormatter:
    """Render task titles, user links and deadlines."""

    def __init__(
        self,
        settings: Settings,
        find_user: FindUser,
        find_task: FindTask = _no_task,
    ) -> None:
        self.settings = settings
        self.find_user = find_user
        self.find_task = find_task

    @property
    def domain(self) -> Optional[str]:
        domain = self.settings.bx24_domain
        if not domain:
            logger.warning("BX24_DOMAIN is not configured")
        return domain

    async def format_user(self, user_id: int) -> str:
        """Link to the user's Bitrix profile, or ``str(user_id)`` if unknown."""
        user = await self.find_user(user_id)
        domain = self.domain

        if not user:
            logger.warning("User not found", bitrix_id=user_id)
        if not user or not domain:
            return str(user_id)

        return link(f"{domain}/company/personal/user/{user.bitrix_id}", user.name)

    async def format_title(self, task_id: int) -> str:
        """Bold link to the task, or ``str(task_id)`` if it cannot be built."""
        try:
            task = await self.find_task(task_id)
            domain = self.domain

            if not domain:
                return str(task_id)
            if not task:
                logger.warning("Task not found", bitrix_id=task_id)
                return str(task_id)

            responsible_id = (
                task.responsible_ids[0] if task.responsible_ids else task.created_by
            )
            url = (
                f"{domain}/company/personal/user/{responsible_id}"
                f"/tasks/task/view/{task.bitrix_id}"
            )
            return f"<b>{link(url, task.title)}</b>"
        except Exception:
            logger.exception("Failed to format task title", bitrix_id=task_id)
            return str(task_id)

    async def format_executors(self, user_ids: Iterable[int]) -> str:
        """Comma-separated links to the given users, without duplicates."""
        unique_ids = list(dict.fromkeys(user_ids))
        if not unique_ids:
            logger.warning("Task has no responsible users")
            return NO_EXECUTORS

        labels = await asyncio.gather(
            *(self.format_user(user_id) for user_id in unique_ids)
        )
        return ", ".join(labels)

    def format_deadline(self, deadline: Union[str, datetime, None]) -> str:
        """Human-readable deadline such as ``5 March 2025 at 14:30``."""
        if not deadline:
            logger.warning("Task has no deadline")
            return NO_DEADLINE

        if isinstance(deadline, datetime):
            moment = deadline
        else:
            try:
                moment = datetime.fromisoformat(deadline.strip().replace("Z", "+00:00"))
            except ValueError:
                logger.warning("Could not parse deadline", deadline=deadline)
                return UNPARSEABLE_DEADLINE

        month = MONTH_NAMES[moment.month - 1]
        return f"{moment.day} {month} {moment.year} at {moment:%H:%M}"
