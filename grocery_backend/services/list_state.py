"""
List-state coordinator.

GroceryListState keeps every stored item in memory for display and mediates
mutations between user actions and the persistence module:

- the store is the source of truth; the mirror is reloaded after inserts and
  patched in place only after an update or delete has been confirmed by the store
- storage and network failures are logged and posted as a Notice, the mirror
  keeps its previous state, and the typed error is raised to the caller so each
  caller learns the outcome of its own action
- validation failures (empty names) are raised before any store call
- deletes are two-phase: request_delete hands out a token, confirm_delete writes

Notices live in a bounded queue (oldest dropped first). Delete tokens expire
after PENDING_DELETION_TTL seconds and at most MAX_PENDING_DELETIONS are kept.

The coordinator does not lock. The mirror is only ever replaced by assignment,
so overlapping loads resolve as last-completion-wins.
"""

import time
import uuid
from collections import OrderedDict, deque
from typing import Callable, Deque, Iterable, List, Optional, Tuple

from sqlalchemy.orm import sessionmaker

from ..core.errors import ConfirmationError, GroceryError, NetworkError, NotFoundError, StorageError, ValidationError
from ..core.logger import get_logger
from ..db import grocery_store
from ..models.schemas import DeletionResult, GroceryDraft, GroceryItem, ImportResult, ListSummary, Notice, PendingDeletion
from .remote_import import RemoteListClient

logger = get_logger(__name__)

MAX_NOTICES = 100
MAX_PENDING_DELETIONS = 100
PENDING_DELETION_TTL = 300.0


# PUBLIC_INTERFACE
def filter_items(items: Iterable[GroceryItem], query: Optional[str]) -> List[GroceryItem]:
    """Case-insensitive substring match on name; a blank query keeps everything."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(items)
    return [item for item in items if needle in item.name.lower()]


# PUBLIC_INTERFACE
def summarize(items: Iterable[GroceryItem]) -> ListSummary:
    """Count total and bought items of a view."""
    items = list(items)
    bought = sum(1 for item in items if item.bought)
    return ListSummary(total=len(items), bought=bought, remaining=len(items) - bought)


def _name_key(name: str) -> str:
    return name.strip().lower()


def _require_name(name: str) -> None:
    if not (name or "").strip():
        raise ValidationError("Please enter the name of the item to buy.")


# PUBLIC_INTERFACE
class GroceryListState:
    """In-memory mirror of the grocery list plus the actions that change it."""

    def __init__(
        self,
        session_factory: sessionmaker,
        remote_client: RemoteListClient,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session_factory = session_factory
        self._remote_client = remote_client
        self._clock = clock
        self._items: List[GroceryItem] = []
        # token -> (item id, issued at)
        self._pending_deletions: "OrderedDict[str, Tuple[int, float]]" = OrderedDict()
        self._notices: Deque[Notice] = deque(maxlen=MAX_NOTICES)
        self.loading = True
        self.refreshing = False
        self.importing = False

    # -- state ---------------------------------------------------------------

    @property
    def items(self) -> List[GroceryItem]:
        return list(self._items)

    def get(self, item_id: int) -> Optional[GroceryItem]:
        return next((item for item in self._items if item.id == item_id), None)

    def search(self, query: Optional[str]) -> List[GroceryItem]:
        return filter_items(self._items, query)

    def summary(self, items: Optional[Iterable[GroceryItem]] = None) -> ListSummary:
        return summarize(self._items if items is None else items)

    def drain_notices(self) -> List[Notice]:
        """Return and forget every notice posted since the last drain."""
        notices = list(self._notices)
        self._notices.clear()
        return notices

    @property
    def last_notice(self) -> Optional[Notice]:
        return self._notices[-1] if self._notices else None

    def _notify(self, level: str, title: str, message: str, code: Optional[str] = None) -> None:
        self._notices.append(Notice(level=level, title=title, message=message, code=code))

    def _fail(self, title: str, exc: GroceryError, hint: str = "") -> None:
        logger.error(title, extra={"code": exc.code, "error": exc.message})
        self._notify("error", title, f"{exc.message}{hint}", code=exc.code)

    def _not_found(self, message: str) -> NotFoundError:
        self._notify("warning", "Item not found", message, code=NotFoundError.code)
        return NotFoundError(message)

    # -- loading -------------------------------------------------------------

    def _reload(self) -> None:
        try:
            with self._session_factory() as db:
                items = [GroceryItem.from_row(row) for row in grocery_store.get_all(db)]
        except StorageError as exc:
            self._fail("Could not load the list. Please try again.", exc)
            raise
        finally:
            self.loading = False
            self.refreshing = False
        self._items = items
        logger.info("Grocery list loaded", extra={"count": len(items)})

    def load(self) -> bool:
        """Replace the mirror with the current store contents.

        On failure the previous mirror is kept, an error notice is posted and
        False is returned.
        """
        try:
            self._reload()
        except StorageError:
            return False
        return True

    def refresh(self) -> List[GroceryItem]:
        """User-triggered reload.

        Raises:
            StorageError: the store could not be read; the previous mirror is kept.
        """
        self.refreshing = True
        self._reload()
        return self.items

    # -- mutations -----------------------------------------------------------

    def toggle_bought(self, item_id: int, bought: Optional[bool] = None) -> GroceryItem:
        """Flip (or set) the bought flag, patching the mirror only after the store accepts it."""
        current = self.get(item_id)
        if current is None:
            raise self._not_found(f"No item with id {item_id} is in the list.")
        target = (not current.bought) if bought is None else bool(bought)
        updated = current.model_copy(update={"bought": target})
        try:
            with self._session_factory() as db:
                affected = grocery_store.update(db, updated)
        except StorageError as exc:
            self._fail("Could not update the item status!", exc)
            raise
        if affected == 0:
            raise self._not_found(f"Item {item_id} no longer exists in the store.")
        self._replace(updated)
        logger.info("Toggled bought flag", extra={"item_id": item_id, "bought": target})
        return updated

    def add(self, draft: GroceryDraft) -> GroceryItem:
        """Validate, insert and reload; returns the stored item with its new id.

        When the reload fails the new item is appended to the mirror as stored.
        """
        _require_name(draft.name)
        try:
            with self._session_factory() as db:
                new_id = grocery_store.create(db, draft)
        except StorageError as exc:
            self._fail("Could not add the item. Please try again!", exc)
            raise
        created = self.get(new_id) if self.load() else None
        if created is None:
            created = GroceryItem(id=new_id, **draft.model_dump(exclude={"id"}))
            self._items = self._items + [created]
        self._notify("success", "Added", f'"{draft.name}" was added to the list.')
        logger.info("Grocery item added", extra={"item_id": new_id})
        return created

    def edit(self, updated: GroceryItem) -> GroceryItem:
        """Validate and persist a full edit, then replace the mirror entry by id.

        An item that is stored but missing from the mirror is picked up by a reload.
        """
        _require_name(updated.name)
        current = self.get(updated.id)
        if current is not None:
            updated = updated.model_copy(update={"created_at": current.created_at})
        try:
            with self._session_factory() as db:
                affected = grocery_store.update(db, updated)
        except StorageError as exc:
            self._fail("Could not update the item. Please try again!", exc)
            raise
        if affected == 0:
            raise self._not_found(f"Item {updated.id} no longer exists in the store.")
        if current is not None:
            self._replace(updated)
        elif self.load():
            updated = self.get(updated.id) or updated
        else:
            self._items = self._items + [updated]
        self._notify("success", "Updated", f'"{updated.name}" was updated.')
        logger.info("Grocery item edited", extra={"item_id": updated.id})
        return updated

    def _prune_pending(self) -> None:
        cutoff = self._clock() - PENDING_DELETION_TTL
        for token, (_, issued_at) in list(self._pending_deletions.items()):
            if issued_at < cutoff:
                del self._pending_deletions[token]
        while len(self._pending_deletions) > MAX_PENDING_DELETIONS:
            self._pending_deletions.popitem(last=False)

    def request_delete(self, item_id: int) -> PendingDeletion:
        """First phase of a delete: issue a token the user has to confirm.

        Tokens expire after PENDING_DELETION_TTL seconds; past MAX_PENDING_DELETIONS
        the oldest outstanding token is dropped.
        """
        token = uuid.uuid4().hex
        self._pending_deletions[token] = (item_id, self._clock())
        self._prune_pending()
        current = self.get(item_id)
        name = current.name if current is not None else None
        label = f'"{name}"' if name is not None else f"item {item_id}"
        return PendingDeletion(
            token=token,
            item_id=item_id,
            name=name,
            prompt=f"Are you sure you want to delete {label}?",
        )

    def pending_item_id(self, token: str) -> Optional[int]:
        self._prune_pending()
        pending = self._pending_deletions.get(token)
        return pending[0] if pending is not None else None

    def cancel_delete(self, token: str) -> bool:
        self._prune_pending()
        return self._pending_deletions.pop(token, None) is not None

    def confirm_delete(self, token: str) -> DeletionResult:
        """Second phase of a delete.

        ``removed`` is False when the item was already gone (a no-op).

        Raises:
            ConfirmationError: the token is unknown, expired or already used.
            StorageError: the store failed; the token stays valid for a retry.
        """
        self._prune_pending()
        pending = self._pending_deletions.pop(token, None)
        if pending is None:
            raise ConfirmationError("This delete request has expired or was never issued.")
        item_id = pending[0]
        try:
            with self._session_factory() as db:
                affected = grocery_store.delete(db, item_id)
        except StorageError as exc:
            self._pending_deletions[token] = pending
            self._fail("Could not delete the item. Please try again!", exc)
            raise
        self._items = [item for item in self._items if item.id != item_id]
        if affected == 0:
            self._notify("info", "Nothing to delete", f"Item {item_id} was not in the store.")
            return DeletionResult(item_id=item_id, removed=False)
        self._notify("success", "Deleted", "The item was removed from the list!")
        logger.info("Grocery item deleted", extra={"item_id": item_id})
        return DeletionResult(item_id=item_id, removed=True)

    def import_from_remote(self) -> ImportResult:
        """Fetch the remote list and insert every item whose name is new.

        Rows inserted before a failure stay in the store and the mirror is
        reloaded to match.

        Raises:
            NetworkError: the remote list could not be fetched or parsed.
            StorageError: an insert failed.
        """
        self.importing = True
        inserted = 0
        try:
            drafts = self._remote_client.fetch_drafts()
            existing = {_name_key(item.name) for item in self._items}
            new_drafts = [draft for draft in drafts if _name_key(draft.name) not in existing]
            if not new_drafts:
                message = "There are no new items to import. Every item already exists in the list."
                self._notify("info", "Nothing to import", message)
                return ImportResult(inserted=0, message=message)
            with self._session_factory() as db:
                for draft in new_drafts:
                    grocery_store.create(db, draft)
                    inserted += 1
        except (NetworkError, StorageError) as exc:
            self._fail(
                "Could not import from the remote list",
                exc,
                hint=". Please check the network connection and try again.",
            )
            if inserted:
                self.load()
            raise
        finally:
            self.importing = False

        self.load()
        message = f"Imported {inserted} new items from the remote list!"
        self._notify("success", "Imported", message)
        logger.info("Remote import finished", extra={"inserted": inserted, "fetched": len(drafts)})
        return ImportResult(inserted=inserted, message=message)

    def _replace(self, updated: GroceryItem) -> None:
        self._items = [updated if item.id == updated.id else item for item in self._items]
