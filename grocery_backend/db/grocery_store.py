"""
Persistence operations for the grocery_items table.

Every function receives the database handle explicitly (an Engine for schema
creation, a Session for everything else) and issues a single SQL statement,
committed on its own. There are no multi-statement transactions; seeding is a
count followed by sequential inserts.

SQLAlchemy failures (and values the driver cannot bind) are rolled back,
logged, and re-raised as StorageError.
Absence is never an error: get_by_id returns None, update/delete return the
number of affected rows (0 when the id does not exist).
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import delete as sql_delete
from sqlalchemy import func, insert, select
from sqlalchemy import update as sql_update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import StorageError
from ..core.logger import get_logger
from ..models.schemas import GroceryDraft, GroceryItem, to_epoch_ms
from ..models.sql_models import GroceryItemRow

logger = get_logger(__name__)

_table = GroceryItemRow.__table__


# PUBLIC_INTERFACE
def default_samples() -> List[GroceryDraft]:
    """Sample items for an empty list, stamped with the current time."""
    return [
        GroceryDraft(name="Milk", quantity=1, category="Dairy"),
        GroceryDraft(name="Eggs", quantity=12, category="Protein"),
        GroceryDraft(name="Bread", quantity=1, category="Bakery"),
    ]


@contextmanager
def _statement(db: Optional[Session], operation: str) -> Iterator[None]:
    try:
        yield
    except (SQLAlchemyError, OverflowError) as exc:
        if db is not None:
            db.rollback()
        logger.error("Grocery store operation failed", exc_info=exc, extra={"operation": operation})
        raise StorageError(f"{operation} failed: {exc}") from exc


def _row_values(item: GroceryDraft) -> dict:
    return {
        "name": item.name,
        "quantity": item.quantity,
        "category": item.category,
        "bought": 1 if item.bought else 0,
    }


# PUBLIC_INTERFACE
def init_schema(engine: Engine) -> None:
    """Create the grocery_items table if it does not exist yet."""
    with _statement(None, "init_schema"):
        _table.create(bind=engine, checkfirst=True)


# PUBLIC_INTERFACE
def create(db: Session, item: GroceryDraft) -> int:
    """Insert a row for item and return the store-assigned id.

    Any id carried by item is ignored.
    """
    values = _row_values(item)
    values["created_at"] = to_epoch_ms(item.created_at) if item.created_at is not None else None
    with _statement(db, "create"):
        result = db.execute(insert(_table).values(**values))
        db.commit()
    new_id = result.inserted_primary_key[0]
    logger.debug("Grocery item created", extra={"item_id": new_id})
    return new_id


# PUBLIC_INTERFACE
def get_all(db: Session) -> Sequence[GroceryItemRow]:
    """Return every row in store order."""
    with _statement(db, "get_all"):
        return db.execute(select(GroceryItemRow).execution_options(populate_existing=True)).scalars().all()


# PUBLIC_INTERFACE
def get_by_id(db: Session, item_id: int) -> Optional[GroceryItemRow]:
    """Return the row with item_id, or None when it does not exist."""
    with _statement(db, "get_by_id"):
        stmt = select(GroceryItemRow).where(GroceryItemRow.id == item_id).execution_options(populate_existing=True)
        return db.execute(stmt).scalar_one_or_none()


# PUBLIC_INTERFACE
def update(db: Session, item: GroceryItem) -> int:
    """Overwrite name, quantity, category and bought for item.id.

    created_at is never rewritten. Returns the number of affected rows.
    """
    with _statement(db, "update"):
        result = db.execute(
            sql_update(_table).where(_table.c.id == item.id).values(**_row_values(item))
        )
        db.commit()
    return result.rowcount


# PUBLIC_INTERFACE
def delete(db: Session, item_id: int) -> int:
    """Delete the row with item_id. Returns the number of affected rows."""
    with _statement(db, "delete"):
        result = db.execute(sql_delete(_table).where(_table.c.id == item_id))
        db.commit()
    return result.rowcount


# PUBLIC_INTERFACE
def count(db: Session) -> int:
    """Return the number of stored rows."""
    with _statement(db, "count"):
        return db.execute(select(func.count()).select_from(GroceryItemRow)).scalar_one()


# PUBLIC_INTERFACE
def seed_if_empty(db: Session, samples: Optional[Sequence[GroceryDraft]] = None) -> int:
    """Insert samples (default_samples() when omitted) in order when the table is empty.

    Returns how many were inserted.
    """
    if count(db) != 0:
        return 0
    if samples is None:
        samples = default_samples()
    for sample in samples:
        create(db, sample)
    logger.info("Seeded sample groceries", extra={"count": len(samples)})
    return len(samples)
