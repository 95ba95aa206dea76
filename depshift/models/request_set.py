"""
Request set model for depshift.

The request set maps package names to the version token each should move
to. It only ever grows: stages hand the next stage a new instance built
with :meth:`RequestSet.with_additions`, which never replaces a name that
is already present.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional, Tuple

from depshift.models.version_token import VersionToken


class RequestSet(Mapping[str, VersionToken]):
    """Immutable, insertion-ordered ``name -> VersionToken`` mapping.

    Args:
        entries: Initial entries.
        bulk: True if the entries came from an "update everything" request
            rather than from explicit selectors.
    """

    __slots__ = ("_entries", "bulk")

    def __init__(
        self,
        entries: Optional[Mapping[str, VersionToken]] = None,
        *,
        bulk: bool = False,
    ) -> None:
        self._entries: Mapping[str, VersionToken] = MappingProxyType(dict(entries or {}))
        self.bulk = bulk

    def __getitem__(self, name: str) -> VersionToken:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v}" for k, v in self._entries.items())
        return f"RequestSet({inner}, bulk={self.bulk})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RequestSet):
            return dict(self._entries) == dict(other._entries) and self.bulk == other.bulk
        return super().__eq__(other)

    __hash__ = None  # type: ignore[assignment]

    def with_additions(
        self,
        additions: Iterable[Tuple[str, VersionToken]],
    ) -> "RequestSet":
        """Return a new set with ``additions`` merged in.

        Names already present keep their token; among the additions the
        first occurrence of a name wins.
        """
        merged = dict(self._entries)
        for name, token in additions:
            merged.setdefault(name, token)
        return RequestSet(merged, bulk=self.bulk)
