"""Temporal catalog store.

Every catalog entity is kept as a series of immutable rows, each valid over
``[valid_from, valid_to)`` (``valid_to`` None is open). Writers stage changes
in a transaction; commit builds a new row arena and swaps it in with a single
attribute assignment, so readers calling ``as_of`` never see a half-applied
change and never take a lock.

Versions are immutable markers over that history. An order stores the
version id it was priced against and can re-materialise that exact catalog
with ``snapshot_for_version`` regardless of later edits: once a version is
stamped, no transaction may take effect at or before it.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterator, Optional

from menuengine.catalog.enums import CatalogEntityKind
from menuengine.catalog.models import ModifierOption, ModifierType, ProductDefinition
from menuengine.catalog.snapshot import CatalogSnapshot
from menuengine.catalog.validator import ensure_valid
from menuengine.core.errors import CatalogIntegrityError
from menuengine.core.logging import get_logger

if TYPE_CHECKING:
    from menuengine.catalog.schemas import CatalogDocument

logger = get_logger(__name__)


def entity_kind(entity: Any) -> CatalogEntityKind:
    if isinstance(entity, ProductDefinition):
        return CatalogEntityKind.PRODUCT
    if isinstance(entity, ModifierType):
        return CatalogEntityKind.MODIFIER_TYPE
    if isinstance(entity, ModifierOption):
        return CatalogEntityKind.OPTION
    raise TypeError(f"Not a catalog entity: {type(entity).__name__}")


def _integrity_error(message: str, **details: Any) -> CatalogIntegrityError:
    logger.error("catalog_integrity_violation", reason=message, **details)
    return CatalogIntegrityError(message, details)


# ---------------------------------------------------------------------------
# Rows and versions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VersionedRow:
    kind: CatalogEntityKind
    entity_id: str
    valid_from: datetime
    valid_to: Optional[datetime]
    entity: Any

    @property
    def key(self) -> tuple:
        return (self.kind, self.entity_id, self.valid_from)

    @property
    def is_open(self) -> bool:
        return self.valid_to is None

    def contains(self, instant: datetime) -> bool:
        return self.valid_from <= instant and (self.valid_to is None or instant < self.valid_to)


@dataclass(frozen=True)
class CatalogVersion:
    version_id: str
    effective_at: datetime
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "version_id": self.version_id,
            "effective_at": self.effective_at.isoformat(),
            "description": self.description,
        }


@dataclass(frozen=True)
class _StoreState:
    rows: MappingProxyType
    versions: tuple


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

class CatalogTransaction:
    """Changes staged against one effective instant."""

    def __init__(self, effective_at: datetime):
        self.effective_at = effective_at
        self._changes: list[tuple[str, CatalogEntityKind, str, Any]] = []

    def upsert(self, entity: Any) -> None:
        self._changes.append(("upsert", entity_kind(entity), entity.id, entity))

    def retire(self, kind: CatalogEntityKind, entity_id: str) -> None:
        self._changes.append(("retire", CatalogEntityKind(kind), entity_id, None))

    def __len__(self) -> int:
        return len(self._changes)

    @property
    def changes(self) -> tuple:
        return tuple(self._changes)


def _open_rows(rows: dict, kind: CatalogEntityKind, entity_id: str) -> list[VersionedRow]:
    return [r for r in rows.values() if r.kind == kind and r.entity_id == entity_id and r.is_open]


def _apply(rows: dict, transaction: CatalogTransaction) -> None:
    at = transaction.effective_at
    for action, kind, entity_id, entity in transaction.changes:
        open_rows = _open_rows(rows, kind, entity_id)
        if len(open_rows) > 1:
            raise _integrity_error(
                "More than one open row for entity",
                kind=kind.value,
                entity_id=entity_id,
            )
        current = open_rows[0] if open_rows else None
        if current is not None:
            if at < current.valid_from:
                raise _integrity_error(
                    "Change would take effect before the open row begins",
                    kind=kind.value,
                    entity_id=entity_id,
                    effective_at=at.isoformat(),
                )
            if at == current.valid_from:
                del rows[current.key]
            else:
                rows[current.key] = replace(current, valid_to=at)
        elif action == "retire":
            raise _integrity_error("Cannot retire an entity with no open row", kind=kind.value, entity_id=entity_id)
        if action == "upsert":
            row = VersionedRow(kind, entity_id, at, None, entity)
            if row.key in rows:
                raise _integrity_error(
                    "Row already exists for entity at this instant",
                    kind=kind.value,
                    entity_id=entity_id,
                    effective_at=at.isoformat(),
                )
            rows[row.key] = row


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class TemporalCatalogStore:
    """In-memory, copy-on-write catalog history with a single writer."""

    def __init__(self):
        self._state = _StoreState(rows=MappingProxyType({}), versions=())
        self._write_lock = threading.Lock()

    # -- Writes --

    @contextmanager
    def transaction(self, effective_at: datetime) -> Iterator[CatalogTransaction]:
        """Stage upserts and retirements; commit on clean exit.

        Usage::

            with store.transaction(now) as tx:
                tx.upsert(option)
                tx.retire(CatalogEntityKind.PRODUCT, "old-special")
        """
        staged = CatalogTransaction(effective_at)
        yield staged
        self._commit(staged)

    def _commit(self, transaction: CatalogTransaction) -> None:
        with self._write_lock:
            state = self._state
            latest = state.versions[-1] if state.versions else None
            if latest is not None and transaction.effective_at <= latest.effective_at:
                raise _integrity_error(
                    "Change would rewrite history already stamped by a version",
                    effective_at=transaction.effective_at.isoformat(),
                    latest_version=latest.version_id,
                )
            rows = dict(state.rows)
            _apply(rows, transaction)
            self._state = _StoreState(rows=MappingProxyType(rows), versions=state.versions)
        logger.info(
            "catalog_changes_committed",
            effective_at=transaction.effective_at.isoformat(),
            changes=len(transaction),
        )

    def create_version(self, effective_at: datetime, description: str = "") -> str:
        """Stamp an immutable version marker and return its id."""
        with self._write_lock:
            state = self._state
            if state.versions and effective_at < state.versions[-1].effective_at:
                raise _integrity_error(
                    "Versions must be stamped in effective order",
                    effective_at=effective_at.isoformat(),
                    latest_version=state.versions[-1].version_id,
                )
            version = CatalogVersion(
                version_id=f"v{len(state.versions) + 1}",
                effective_at=effective_at,
                description=description,
            )
            self._state = _StoreState(rows=state.rows, versions=state.versions + (version,))
        logger.info("catalog_version_created", **version.to_dict())
        return version.version_id

    # -- Reads --

    @property
    def rows(self) -> tuple:
        return tuple(self._state.rows.values())

    def versions(self) -> tuple:
        return self._state.versions

    def version(self, version_id: str) -> CatalogVersion:
        for version in self._state.versions:
            if version.version_id == version_id:
                return version
        raise _integrity_error("Unknown catalog version", version_id=version_id)

    def history(self, kind: CatalogEntityKind, entity_id: str) -> tuple:
        """All rows for one entity ordered by ``valid_from``."""
        matches = [r for r in self._state.rows.values() if r.kind == kind and r.entity_id == entity_id]
        return tuple(sorted(matches, key=lambda r: r.valid_from))

    def as_of(self, instant: datetime, version_id: Optional[str] = None) -> CatalogSnapshot:
        """The catalog as it stood at ``instant``."""
        state = self._state
        found: dict[tuple, VersionedRow] = {}
        for row in state.rows.values():
            if not row.contains(instant):
                continue
            identity = (row.kind, row.entity_id)
            if identity in found:
                raise _integrity_error(
                    "Overlapping rows for entity",
                    kind=row.kind.value,
                    entity_id=row.entity_id,
                    instant=instant.isoformat(),
                )
            found[identity] = row

        if version_id is None:
            for version in state.versions:
                if version.effective_at <= instant:
                    version_id = version.version_id

        buckets: dict[CatalogEntityKind, dict[str, Any]] = {kind: {} for kind in CatalogEntityKind}
        for (kind, entity_id), row in sorted(found.items(), key=lambda item: (item[0][0].value, item[0][1])):
            buckets[kind][entity_id] = row.entity
        return CatalogSnapshot(
            version_id=version_id,
            as_of=instant,
            products=buckets[CatalogEntityKind.PRODUCT],
            modifier_types=buckets[CatalogEntityKind.MODIFIER_TYPE],
            options=buckets[CatalogEntityKind.OPTION],
        )

    def snapshot_for_version(self, version_id: str) -> CatalogSnapshot:
        """Re-materialise the catalog an order priced against ``version_id`` saw."""
        version = self.version(version_id)
        return self.as_of(version.effective_at, version_id=version.version_id)


# ---------------------------------------------------------------------------
# Module-level entry points
# ---------------------------------------------------------------------------

def as_of(store: TemporalCatalogStore, instant: datetime) -> CatalogSnapshot:
    return store.as_of(instant)


def create_version(store: TemporalCatalogStore, instant: datetime, description: str = "") -> str:
    return store.create_version(instant, description)


def publish_catalog(
    store: TemporalCatalogStore,
    document: "CatalogDocument",
    effective_at: datetime,
    description: str = "",
) -> str:
    """Replace the live catalog with ``document`` and stamp a version.

    The document is converted and validated before anything is staged;
    entities missing from it are retired.
    """
    incoming = document.to_snapshot()
    ensure_valid(incoming)

    current = store.as_of(effective_at)
    with store.transaction(effective_at) as tx:
        for kind, existing, replacement in (
            (CatalogEntityKind.MODIFIER_TYPE, current.modifier_types, incoming.modifier_types),
            (CatalogEntityKind.OPTION, current.options, incoming.options),
            (CatalogEntityKind.PRODUCT, current.products, incoming.products),
        ):
            for entity_id, entity in replacement.items():
                if existing.get(entity_id) != entity:
                    tx.upsert(entity)
            for entity_id in existing:
                if entity_id not in replacement:
                    tx.retire(kind, entity_id)

    version_id = store.create_version(effective_at, description)
    logger.info(
        "catalog_published",
        version_id=version_id,
        products=len(incoming.products),
        modifier_types=len(incoming.modifier_types),
        options=len(incoming.options),
    )
    return version_id
