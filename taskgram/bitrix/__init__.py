"""Bitrix24 REST API access."""

from .client import BitrixClient, BitrixMethod

__all__ = ["BitrixClient", "BitrixMethod"]
