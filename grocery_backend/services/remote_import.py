"""
Remote list client used by the bulk import.

The endpoint is expected to answer an HTTP GET with a JSON array of objects
carrying optional ``name``, ``quantity`` and ``completed`` fields. Anything
else is either mapped with defaults (odd records) or rejected as a
NetworkError (odd payloads).
"""

from datetime import datetime
from typing import Any, List, Optional

import httpx

from ..core.errors import NetworkError
from ..core.logger import get_logger
from ..models.schemas import GroceryDraft, utc_now

logger = get_logger(__name__)

IMPORTED_CATEGORY = "Imported"
UNKNOWN_ITEM_NAME = "Unknown Item"


# PUBLIC_INTERFACE
def map_remote_record(record: Any, now: Optional[datetime] = None) -> GroceryDraft:
    """Map one remote record to a draft.

    Missing or empty names become a placeholder, bad quantities become 1, the
    category is always "Imported" and only ``completed: true`` marks the item bought.
    """
    if not isinstance(record, dict):
        record = {}
    name = record.get("name")
    if not isinstance(name, str):
        name = str(name) if name not in (None, False, 0) else ""
    return GroceryDraft(
        name=name.strip() or UNKNOWN_ITEM_NAME,
        quantity=record.get("quantity"),
        category=IMPORTED_CATEGORY,
        bought=record.get("completed") is True,
        created_at=now or utc_now(),
    )


# PUBLIC_INTERFACE
class RemoteListClient:
    """Fetches the remote grocery list over HTTP with httpx."""

    def __init__(self, url: str, timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    def fetch_records(self) -> List[Any]:
        """GET the endpoint and return the decoded JSON array.

        Raises:
            NetworkError: on transport failure, non-success status, invalid JSON
                or a payload that is not an array.
        """
        timeout = httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0))
        try:
            with httpx.Client(timeout=timeout, transport=self._transport) as client:
                response = client.get(self.url)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise NetworkError(f"HTTP error! status: {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request to remote list failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise NetworkError(f"Remote list returned malformed JSON: {exc}") from exc
        if not isinstance(payload, list):
            raise NetworkError(f"Remote list returned {type(payload).__name__}, expected an array")

        logger.info("Fetched remote list", extra={"url": self.url, "records": len(payload)})
        return payload

    def fetch_drafts(self) -> List[GroceryDraft]:
        """Fetch the remote list and map every record to a draft."""
        now = utc_now()
        return [map_remote_record(record, now) for record in self.fetch_records()]
