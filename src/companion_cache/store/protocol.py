"""Entry store protocol definition.

The persistence engine is an external collaborator. Every store adapter
implements this interface so repositories can run against Redis in
production and an in-memory store in tests.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    from companion_cache.schemas.enums import EntityKind


Document = dict[str, Any]
Predicate = Callable[[Document], bool]


@runtime_checkable
class EntryStore(Protocol):
    """Keyed document store with one collection per entity kind.

    Documents are JSON-compatible dicts. Each single-document write is
    atomic; nothing spans more than one document.

    Key methods:
    - get_all/get_by_id/query: reads, returning copies
    - insert_or_replace/append: writes (append assigns an integer id)
    - update/increment: atomic read-modify-write on one document
    - delete_if: atomic check-then-delete on one document
    - delete_by_ids/clear: removal
    """

    async def get_all(self, kind: EntityKind) -> list[Document]:
        """Return every document of ``kind`` in unspecified order."""
        ...

    async def get_by_id(self, kind: EntityKind, key: str) -> Document | None:
        """Return one document, or None when ``key`` is absent."""
        ...

    async def query(self, kind: EntityKind, predicate: Predicate) -> list[Document]:
        """Return the documents of ``kind`` for which ``predicate`` is true."""
        ...

    async def insert_or_replace(
        self, kind: EntityKind, key: str, document: Document
    ) -> None:
        """Store ``document`` under ``key``, replacing any previous one."""
        ...

    async def append(self, kind: EntityKind, document: Document) -> int:
        """Store ``document`` under the next auto-increment id.

        The id is written into the stored document's ``id`` field.

        Returns:
            The assigned id.
        """
        ...

    async def update(self, kind: EntityKind, key: str, fields: Document) -> bool:
        """Merge ``fields`` into an existing document.

        Returns:
            False when ``key`` does not exist (nothing is written).
        """
        ...

    async def increment(
        self,
        kind: EntityKind,
        key: str,
        field: str,
        amount: int = 1,
        set_fields: Document | None = None,
    ) -> bool:
        """Add ``amount`` to a numeric field and merge ``set_fields``, atomically.

        Returns:
            False when ``key`` does not exist.
        """
        ...

    async def delete_if(
        self, kind: EntityKind, key: str, predicate: Predicate
    ) -> bool:
        """Delete one document if it exists and ``predicate`` holds for it.

        The check and the delete are atomic with respect to other writes.

        Returns:
            True when the document was removed.
        """
        ...

    async def delete_by_ids(self, kind: EntityKind, keys: Iterable[str]) -> int:
        """Delete the given keys, ignoring missing ones.

        Returns:
            Number of documents removed.
        """
        ...

    async def clear(self, kind: EntityKind) -> int:
        """Delete every document of ``kind`` and return how many there were."""
        ...
