"""
Pydantic schemas for grocery items, drafts, user-facing notices and API payloads,
plus the conversions between stored rows (0/1 flags, epoch milliseconds) and
domain values (booleans, aware datetimes).
"""

import math
import re
from datetime import datetime, timezone
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

# SQLite INTEGER is a signed 64-bit value
_MIN_STORED_INT = -(2 ** 63)
_MAX_STORED_INT = 2 ** 63 - 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
def parse_quantity(value: object) -> int:
    """Coerce loose user or remote input to a quantity.

    Strings are read up to the first non-digit ("12 packs" -> 12), floats are
    truncated, and anything unparsable, zero or too large to store becomes 1.
    """
    parsed: Optional[int] = None
    if isinstance(value, bool):
        parsed = None
    elif isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        parsed = int(value) if math.isfinite(value) else None
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match and len(match.group(1).lstrip("+-")) <= 19:
            parsed = int(match.group(1))
    if parsed is None or not _MIN_STORED_INT <= parsed <= _MAX_STORED_INT:
        return 1
    return parsed or 1


# PUBLIC_INTERFACE
def to_epoch_ms(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


# PUBLIC_INTERFACE
def from_epoch_ms(value: Optional[int]) -> Optional[datetime]:
    """Convert stored epoch milliseconds back to an aware UTC datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


# ---------------------------------------------------------------------------
# Common/Utility Schemas
# ---------------------------------------------------------------------------

# PUBLIC_INTERFACE
class HealthResponse(BaseModel):
    """Basic health response schema."""
    status: str = Field(..., description="Health status message, e.g., 'ok'")


# PUBLIC_INTERFACE
class Notice(BaseModel):
    """A user-facing message produced by a coordinator action."""
    level: Literal["info", "success", "warning", "error"] = Field(..., description="Severity of the notice")
    title: str = Field(..., description="Short headline")
    message: str = Field(..., description="Human readable details")
    code: Optional[str] = Field(default=None, description="Error code when the notice reports a failure")
    created_at: datetime = Field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# Grocery Item Schemas
# ---------------------------------------------------------------------------

# PUBLIC_INTERFACE
class GroceryDraft(BaseModel):
    """A candidate item without a store-assigned id."""
    name: str = Field(default="", description="Item name; must be non-empty to be stored")
    quantity: int = Field(default=1, description="How many to buy")
    category: str = Field(default="", description="Free-form category label")
    bought: bool = Field(default=False, description="Whether the item has been bought")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")

    @field_validator("name", "category", mode="before")
    @classmethod
    def _strip_text(cls, value):
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value):
        return parse_quantity(value)

    @field_validator("created_at")
    @classmethod
    def _ensure_aware(cls, value):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# PUBLIC_INTERFACE
class GroceryItem(GroceryDraft):
    """A stored item as held in the in-memory mirror."""
    id: int = Field(..., description="Store-assigned identifier")
    created_at: Optional[datetime] = Field(default=None, description="Creation time")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Milk",
                "quantity": 1,
                "category": "Dairy",
                "bought": False,
                "created_at": "2024-05-01T08:00:00Z",
            }
        },
    )

    @classmethod
    def from_row(cls, row) -> "GroceryItem":
        """Materialize a stored row (0/1 flag, epoch ms) into an item."""
        return cls(
            id=row.id,
            name=row.name,
            quantity=row.quantity,
            category=row.category,
            bought=bool(row.bought),
            created_at=from_epoch_ms(row.created_at),
        )


# PUBLIC_INTERFACE
class GroceryItemIn(BaseModel):
    """Request body for adding or editing an item.

    Quantity accepts loose input such as "3" or "2 bags"; unparsable values become 1.
    """
    name: str = Field(..., description="Item name")
    quantity: Union[int, float, str, None] = Field(default=1, description="Quantity, parsed leniently")
    category: Optional[str] = Field(default=None, description="Category label")
    bought: Optional[bool] = Field(default=None, description="Bought flag; omitted keeps the current value")

    model_config = ConfigDict(
        json_schema_extra={"example": {"name": "Eggs", "quantity": "12", "category": "Protein"}}
    )

    def to_draft(self) -> GroceryDraft:
        return GroceryDraft(
            name=self.name,
            quantity=self.quantity,
            category=self.category,
            bought=bool(self.bought),
        )


# PUBLIC_INTERFACE
class ListSummary(BaseModel):
    """Counts shown above a list view."""
    total: int = Field(..., ge=0, description="Number of items in the view")
    bought: int = Field(..., ge=0, description="Number of bought items in the view")
    remaining: int = Field(..., ge=0, description="Number of items still to buy")


# PUBLIC_INTERFACE
class GroceryListOut(BaseModel):
    """A (possibly filtered) list view."""
    items: List[GroceryItem] = Field(..., description="Items matching the query")
    query: str = Field(default="", description="Search string applied to the view")
    summary: ListSummary = Field(..., description="Counts for the view")


# PUBLIC_INTERFACE
class PendingDeletion(BaseModel):
    """First phase of a delete: a token that must be confirmed."""
    token: str = Field(..., description="Confirmation token")
    item_id: int = Field(..., description="Item the token will delete")
    name: Optional[str] = Field(default=None, description="Item name when it is in the list")
    prompt: str = Field(..., description="Confirmation question to show the user")


# PUBLIC_INTERFACE
class DeletionResult(BaseModel):
    """Outcome of a confirmed delete."""
    item_id: int
    removed: bool = Field(..., description="False when the item no longer existed")


# PUBLIC_INTERFACE
class ImportResult(BaseModel):
    """Outcome of a remote import."""
    inserted: int = Field(..., ge=0, description="Number of rows inserted")
    message: str = Field(..., description="Summary for the user")
