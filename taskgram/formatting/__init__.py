"""Notification message formatting."""

from .description import DescriptionRenderer, build_renderer, build_transpiler
from .message_builder import MessageBuilder, MessageSection, MessageTemplate
from .task_parts import TaskPartsFormatter, TaskRecord, UserRecord

__all__ = [
    "DescriptionRenderer",
    "MessageBuilder",
    "MessageSection",
    "MessageTemplate",
    "TaskPartsFormatter",
    "TaskRecord",
    "UserRecord",
    "build_renderer",
    "build_transpiler",
]
