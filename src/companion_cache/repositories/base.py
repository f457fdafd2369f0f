"""Shared document <-> model conversion for repositories.

Repositories are the store-adapter layer: they own the camelCase document
encoding, enum-to-string conversion and change publication. Services and
policies only ever see pydantic models.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from companion_cache.core.exceptions import StoreError
from companion_cache.observability.logging import get_logger
from companion_cache.schemas.base import ensure_utc


if TYPE_CHECKING:
    from collections.abc import Iterable

    from companion_cache.schemas.enums import EntityKind
    from companion_cache.store.changes import ChangeNotifier
    from companion_cache.store.protocol import Document, EntryStore


logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_ANY_VALUE: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])


def encode_fields(**values: Any) -> Document:
    """Encode a partial update the way full documents are encoded.

    Keys become camelCase, Decimals and datetimes become JSON strings and
    enums become their values. Datetimes are normalised to UTC first.
    """
    values = {
        key: ensure_utc(value) if isinstance(value, datetime) else value
        for key, value in values.items()
    }
    dumped = _ANY_VALUE.dump_python(values, mode="json")
    return {to_camel(key): value for key, value in dumped.items()}


class DocumentRepository(Generic[ModelT]):
    """Base repository for one entity kind.

    Args:
        store: Injected entry store.
        notifier: Optional change channel, told about every write.
    """

    kind: EntityKind
    model: type[ModelT]

    def __init__(
        self,
        store: EntryStore,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier

    @property
    def store(self) -> EntryStore:
        return self._store

    def _encode(self, item: ModelT) -> Document:
        return item.model_dump(mode="json", by_alias=True)

    def _decode(self, document: Document, key: str | None = None) -> ModelT:
        try:
            return self.model.model_validate(document)
        except ValidationError as e:
            raise StoreError(str(self.kind), key or "?", str(e)) from e

    def _decode_all(self, documents: Iterable[Document]) -> list[ModelT]:
        return [self._decode(doc) for doc in documents]

    def _changed(self, *keys: str) -> None:
        if self._notifier is not None:
            self._notifier.publish(self.kind, keys)

    async def _load(self, key: str) -> ModelT | None:
        document = await self._store.get_by_id(self.kind, key)
        if document is None:
            return None
        return self._decode(document, key)

    async def _load_all(self) -> list[ModelT]:
        return self._decode_all(await self._store.get_all(self.kind))

    async def count(self) -> int:
        """Number of stored entities of this kind."""
        return len(await self._store.get_all(self.kind))
