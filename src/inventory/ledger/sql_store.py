"""SQLAlchemy Core stock store.

Each primitive runs inside ``engine.begin()`` and is expressed as a guarded
``UPDATE`` whose ``rowcount`` tells whether the guard held, e.g.::

    UPDATE inventory_items
       SET available = available - :q, committed = committed + :q
     WHERE variant_id = :v AND location_id = :l AND available >= :q

No path reads a counter and writes back a computed value without a guard.
"""

from datetime import UTC, datetime
from uuid import uuid4

import structlog
from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    case,
    create_engine,
    insert,
    select,
    update,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine

from inventory.ledger.port import (
    AdjustmentRecord,
    AdjustmentRequest,
    ReleaseOutcome,
    StockRecord,
    StockStore,
)

logger = structlog.get_logger(__name__)

metadata = MetaData()

inventory_items = Table(
    "inventory_items",
    metadata,
    Column("variant_id", String(64), primary_key=True),
    Column("location_id", String(64), primary_key=True),
    Column("available", Integer, nullable=False, default=0),
    Column("committed", Integer, nullable=False, default=0),
    Column("incoming", Integer, nullable=False, default=0),
    Column("low_stock_threshold", Integer, nullable=True),
    Column("updated_at", DateTime(timezone=True)),
)

inventory_adjustments = Table(
    "inventory_adjustments",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(64), nullable=False, unique=True),
    Column("variant_id", String(64), nullable=False, index=True),
    Column("location_id", String(64), nullable=False, index=True),
    Column("quantity", Integer, nullable=False),
    Column("reason", String(50), nullable=False),
    Column("notes", Text),
    Column("created_by", String(64)),
    Column("created_at", DateTime(timezone=True)),
)

# Bounded retries for the release/fulfil compare-and-swap on ``committed``
MAX_CAS_ATTEMPTS = 10


class _GuardFailed(Exception):
    """Raised inside a transaction to roll it back when a guard does not hold."""


def setup_stock_db(engine: Engine) -> None:
    """Create ledger tables."""
    metadata.create_all(engine)


def drop_stock_db(engine: Engine) -> None:
    """Drop ledger tables."""
    metadata.drop_all(engine)


def _to_record(row) -> StockRecord:
    return StockRecord(
        variant_id=row.variant_id,
        location_id=row.location_id,
        available=row.available,
        committed=row.committed,
        incoming=row.incoming,
        low_stock_threshold=row.low_stock_threshold,
        updated_at=row.updated_at,
    )


def _to_adjustment(row) -> AdjustmentRecord:
    return AdjustmentRecord(
        id=row.id,
        variant_id=row.variant_id,
        location_id=row.location_id,
        quantity=row.quantity,
        reason=row.reason,
        notes=row.notes,
        created_by=row.created_by,
        created_at=row.created_at,
    )


def _key(variant_id, location_id):
    return (
        inventory_items.c.variant_id == str(variant_id),
        inventory_items.c.location_id == str(location_id),
    )


class SqlStockStore(StockStore):
    def __init__(self, database_uri: str | None = None, engine: Engine | None = None) -> None:
        self.database_uri = database_uri
        self.engine = engine

    def connect(self) -> None:
        if self.engine is None:
            self.engine = create_engine(self.database_uri)
        setup_stock_db(self.engine)
        logger.info("Stock store connected", dialect=self.engine.dialect.name)

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Stock store closed")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def _fetch(self, conn, variant_id, location_id):
        row = conn.execute(select(inventory_items).where(*_key(variant_id, location_id))).first()
        return _to_record(row) if row is not None else None

    def get(self, variant_id, location_id):
        with self.engine.connect() as conn:
            return self._fetch(conn, variant_id, location_id)

    def list_items(self, variant_id=None, location_id=None):
        stmt = select(inventory_items)
        if variant_id is not None:
            stmt = stmt.where(inventory_items.c.variant_id == str(variant_id))
        if location_id is not None:
            stmt = stmt.where(inventory_items.c.location_id == str(location_id))
        stmt = stmt.order_by(inventory_items.c.variant_id, inventory_items.c.location_id)
        with self.engine.connect() as conn:
            return [_to_record(row) for row in conn.execute(stmt)]

    def adjustments(self, variant_id=None, location_id=None):
        stmt = select(inventory_adjustments)
        if variant_id is not None:
            stmt = stmt.where(inventory_adjustments.c.variant_id == str(variant_id))
        if location_id is not None:
            stmt = stmt.where(inventory_adjustments.c.location_id == str(location_id))
        stmt = stmt.order_by(inventory_adjustments.c.seq.desc())
        with self.engine.connect() as conn:
            return [_to_adjustment(row) for row in conn.execute(stmt)]

    # ------------------------------------------------------------------
    # Conditional updates
    # ------------------------------------------------------------------
    def try_reserve(self, variant_id, location_id, quantity):
        stmt = (
            update(inventory_items)
            .where(*_key(variant_id, location_id), inventory_items.c.available >= quantity)
            .values(
                available=inventory_items.c.available - quantity,
                committed=inventory_items.c.committed + quantity,
                updated_at=datetime.now(UTC),
            )
        )
        with self.engine.begin() as conn:
            result = conn.execute(stmt)
            if result.rowcount != 1:
                return None
            return self._fetch(conn, variant_id, location_id)

    def _drain_committed(self, variant_id, location_id, quantity, restore_available):
        for _ in range(MAX_CAS_ATTEMPTS):
            with self.engine.begin() as conn:
                current = self._fetch(conn, variant_id, location_id)
                if current is None:
                    return None
                applied = min(quantity, current.committed)
                values = {
                    "committed": inventory_items.c.committed - applied,
                    "updated_at": datetime.now(UTC),
                }
                if restore_available:
                    values["available"] = inventory_items.c.available + applied
                result = conn.execute(
                    update(inventory_items)
                    .where(
                        *_key(variant_id, location_id),
                        inventory_items.c.committed == current.committed,
                    )
                    .values(**values)
                )
                if result.rowcount == 1:
                    record = self._fetch(conn, variant_id, location_id)
                    return ReleaseOutcome(record=record, requested=quantity, applied=applied)
            logger.debug("Committed changed concurrently, retrying", variant_id=variant_id, location_id=location_id)
        raise RuntimeError(f"Could not update committed stock for variant {variant_id} at {location_id}")

    def release(self, variant_id, location_id, quantity):
        return self._drain_committed(variant_id, location_id, quantity, restore_available=True)

    def fulfill(self, variant_id, location_id, quantity):
        return self._drain_committed(variant_id, location_id, quantity, restore_available=False)

    def _insert_missing(self, conn, variant_id, location_id, now):
        values = {
            "variant_id": str(variant_id),
            "location_id": str(location_id),
            "available": 0,
            "committed": 0,
            "incoming": 0,
            "updated_at": now,
        }
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(inventory_items).values(**values).on_conflict_do_nothing()
        elif dialect == "sqlite":
            stmt = sqlite_insert(inventory_items).values(**values).on_conflict_do_nothing()
        else:
            if self._fetch(conn, variant_id, location_id) is not None:
                return
            stmt = insert(inventory_items).values(**values)
        conn.execute(stmt)

    def apply_adjustments(self, adjustments: list[AdjustmentRequest]):
        now = datetime.now(UTC)
        records = []
        try:
            with self.engine.begin() as conn:
                for adj in adjustments:
                    self._insert_missing(conn, adj.variant_id, adj.location_id, now)
                    values = {"available": inventory_items.c.available + adj.quantity, "updated_at": now}
                    if adj.incoming_delta:
                        new_incoming = inventory_items.c.incoming + adj.incoming_delta
                        values["incoming"] = case((new_incoming < 0, 0), else_=new_incoming)
                    result = conn.execute(
                        update(inventory_items)
                        .where(
                            *_key(adj.variant_id, adj.location_id),
                            inventory_items.c.available + adj.quantity >= 0,
                        )
                        .values(**values)
                    )
                    if result.rowcount != 1:
                        raise _GuardFailed()

                    record = AdjustmentRecord(
                        id=str(uuid4()),
                        variant_id=str(adj.variant_id),
                        location_id=str(adj.location_id),
                        quantity=adj.quantity,
                        reason=adj.reason,
                        notes=adj.notes,
                        created_by=adj.created_by,
                        created_at=now,
                    )
                    conn.execute(
                        insert(inventory_adjustments).values(
                            id=record.id,
                            variant_id=record.variant_id,
                            location_id=record.location_id,
                            quantity=record.quantity,
                            reason=record.reason,
                            notes=record.notes,
                            created_by=record.created_by,
                            created_at=record.created_at,
                        )
                    )
                    records.append(record)
        except _GuardFailed:
            return None
        return records

    def set_threshold(self, variant_id, location_id, threshold):
        with self.engine.begin() as conn:
            result = conn.execute(
                update(inventory_items)
                .where(*_key(variant_id, location_id))
                .values(low_stock_threshold=threshold, updated_at=datetime.now(UTC))
            )
            if result.rowcount != 1:
                return None
            return self._fetch(conn, variant_id, location_id)

    def add_incoming(self, variant_id, location_id, delta):
        now = datetime.now(UTC)
        with self.engine.begin() as conn:
            self._insert_missing(conn, variant_id, location_id, now)
            new_incoming = inventory_items.c.incoming + delta
            conn.execute(
                update(inventory_items)
                .where(*_key(variant_id, location_id))
                .values(
                    incoming=case((new_incoming < 0, 0), else_=new_incoming),
                    updated_at=now,
                )
            )
            return self._fetch(conn, variant_id, location_id)
