"""Placeholder maps for protecting fragments across rewriting passes.

A pass swaps fragments that a later global transform must not touch
(for example, HTML escaping) for opaque tokens, and swaps them back
afterwards.  Tokens are delimited by NUL characters, which never occur
in BBCode from Bitrix and are left alone by escaping.
"""

import re
from typing import Callable, Dict, Iterator, Optional, Tuple


class PlaceholderMap:
    """Ordered token -> original fragment mapping for a single pass."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self._fragments: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._fragments)

    def __contains__(self, token: object) -> bool:
        return token in self._fragments

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self._fragments.items())

    def add(self, fragment: str) -> str:
        """Record a fragment and return the token that stands in for it."""
        token = f"\x00{self.prefix}{len(self._fragments)}\x00"
        self._fragments[token] = fragment
        return token

    def protect(
        self,
        text: str,
        pattern: "re.Pattern[str]",
        skip: Optional[Callable[[str], bool]] = None,
    ) -> str:
        """Replace every match of ``pattern`` with a token.

        Matches for which ``skip`` returns True are left in place.
        """

        def _replace(m: re.Match) -> str:  # type: ignore[type-arg]
            fragment = m.group(0)
            if skip is not None and skip(fragment):
                return fragment
            return self.add(fragment)

        return pattern.sub(_replace, text)

    def restore(
        self, text: str, transform: Optional[Callable[[str], str]] = None
    ) -> str:
        """Put every recorded fragment back in place of each of its tokens.

        Fragments may contain tokens recorded before them, so the newest
        fragment goes back first.  ``transform``, if given, is applied to
        each fragment on the way back.
        """
        for token, fragment in reversed(list(self._fragments.items())):
            if transform is not None:
                fragment = transform(fragment)
            text = text.replace(token, fragment)
        return text
