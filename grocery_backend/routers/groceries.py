from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from ..core.errors import GroceryError
from ..core.logger import get_logger
from ..models.schemas import (
    DeletionResult,
    GroceryItem,
    GroceryItemIn,
    GroceryListOut,
    ImportResult,
    Notice,
    PendingDeletion,
)
from ..services.list_state import GroceryListState

router = APIRouter(prefix="/groceries", tags=["Groceries"])

logger = get_logger(__name__)

# Error codes -> HTTP status for failed actions
_ERROR_STATUS = {
    "validation_error": 422,
    "not_found": 404,
    "confirmation_error": 404,
    "storage_error": 503,
    "network_error": 502,
}


# PUBLIC_INTERFACE
def get_list_state(request: Request) -> GroceryListState:
    """Return the coordinator created by the application startup hook."""
    state = getattr(request.app.state, "list_state", None)
    if state is None:
        raise HTTPException(status_code=503, detail="Grocery list is not initialized.")
    return state


def _http_error(exc: GroceryError) -> HTTPException:
    """Translate an error raised by a coordinator action into an HTTP error."""
    return HTTPException(status_code=_ERROR_STATUS.get(exc.code, 500), detail=exc.message)

def _list_view(state: GroceryListState, q: Optional[str]) -> GroceryListOut:
    items = state.search(q)
    return GroceryListOut(items=items, query=(q or "").strip(), summary=state.summary(items))


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=GroceryListOut,
    summary="List groceries",
    description="Returns the in-memory list, optionally filtered by a case-insensitive name search.",
    responses={200: {"description": "List returned successfully."}},
)
def list_groceries(
    q: Optional[str] = Query(default=None, description="Substring to search for in item names."),
    state: GroceryListState = Depends(get_list_state),
) -> GroceryListOut:
    return _list_view(state, q)


# PUBLIC_INTERFACE
@router.post(
    "/refresh",
    response_model=GroceryListOut,
    summary="Reload groceries",
    description="Reloads the list from the store. On failure the previous list is kept and 503 is returned.",
)
def refresh_groceries(state: GroceryListState = Depends(get_list_state)) -> GroceryListOut:
    try:
        state.refresh()
    except GroceryError as exc:
        raise _http_error(exc) from exc
    return _list_view(state, None)


# PUBLIC_INTERFACE
@router.get(
    "/notices",
    response_model=List[Notice],
    summary="Drain notices",
    description="Returns every user-facing notice posted since the last call and clears them.",
)
def drain_notices(state: GroceryListState = Depends(get_list_state)) -> List[Notice]:
    return state.drain_notices()


# PUBLIC_INTERFACE
@router.get(
    "/{item_id}",
    response_model=GroceryItem,
    summary="Get grocery by id",
    responses={404: {"description": "Item not found."}},
)
def get_grocery(item_id: int, state: GroceryListState = Depends(get_list_state)) -> GroceryItem:
    item = state.get(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found.")
    return item


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=GroceryItem,
    status_code=201,
    summary="Add grocery",
    description="Validates and stores a new item, then reloads the list so the item carries its stored id.",
    responses={422: {"description": "Name is empty."}, 503: {"description": "Store unavailable."}},
)
def add_grocery(payload: GroceryItemIn, state: GroceryListState = Depends(get_list_state)) -> GroceryItem:
    try:
        return state.add(payload.to_draft())
    except GroceryError as exc:
        raise _http_error(exc) from exc


# PUBLIC_INTERFACE
@router.put(
    "/{item_id}",
    response_model=GroceryItem,
    summary="Edit grocery",
    description="Replaces name, quantity, category and (optionally) the bought flag of an item.",
    responses={404: {"description": "Item not found."}, 422: {"description": "Name is empty."}},
)
def edit_grocery(
    item_id: int,
    payload: GroceryItemIn,
    state: GroceryListState = Depends(get_list_state),
) -> GroceryItem:
    current = state.get(item_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Item not found.")
    draft = payload.to_draft()
    updated = GroceryItem(
        id=item_id,
        name=draft.name,
        quantity=draft.quantity,
        category=draft.category,
        bought=current.bought if payload.bought is None else payload.bought,
        created_at=current.created_at,
    )
    try:
        return state.edit(updated)
    except GroceryError as exc:
        raise _http_error(exc) from exc


# PUBLIC_INTERFACE
@router.post(
    "/{item_id}/toggle",
    response_model=GroceryItem,
    summary="Toggle bought",
    description="Flips the bought flag, or sets it when `bought` is given. The list changes only after the store accepts it.",
    responses={404: {"description": "Item not found."}, 503: {"description": "Store unavailable."}},
)
def toggle_grocery(
    item_id: int,
    bought: Optional[bool] = Query(default=None, description="Explicit target value; omitted flips the flag."),
    state: GroceryListState = Depends(get_list_state),
) -> GroceryItem:
    try:
        return state.toggle_bought(item_id, bought)
    except GroceryError as exc:
        raise _http_error(exc) from exc


# PUBLIC_INTERFACE
@router.post(
    "/{item_id}/deletion",
    response_model=PendingDeletion,
    status_code=202,
    summary="Request deletion",
    description="First phase of a delete. Returns a token and a prompt; nothing is deleted until the token is confirmed.",
)
def request_deletion(item_id: int, state: GroceryListState = Depends(get_list_state)) -> PendingDeletion:
    return state.request_delete(item_id)


# PUBLIC_INTERFACE
@router.post(
    "/deletions/{token}/confirm",
    response_model=DeletionResult,
    summary="Confirm deletion",
    description="Second phase of a delete. Deleting an id that no longer exists is a no-op (`removed: false`).",
    responses={404: {"description": "Unknown or used token."}, 503: {"description": "Store unavailable."}},
)
def confirm_deletion(token: str, state: GroceryListState = Depends(get_list_state)) -> DeletionResult:
    try:
        return state.confirm_delete(token)
    except GroceryError as exc:
        raise _http_error(exc) from exc


# PUBLIC_INTERFACE
@router.delete(
    "/deletions/{token}",
    status_code=204,
    summary="Cancel deletion",
    responses={404: {"description": "Unknown or used token."}},
)
def cancel_deletion(token: str, state: GroceryListState = Depends(get_list_state)) -> Response:
    if not state.cancel_delete(token):
        raise HTTPException(status_code=404, detail="Unknown delete request.")
    return Response(status_code=204)


# PUBLIC_INTERFACE
@router.post(
    "/import",
    response_model=ImportResult,
    summary="Import from remote list",
    description=(
        "Fetches the remote list and inserts every item whose name is not already in the list. "
        "Rows inserted before a failure are kept."
    ),
    responses={502: {"description": "Remote list unavailable or malformed."}, 503: {"description": "Store unavailable."}},
)
def import_groceries(state: GroceryListState = Depends(get_list_state)) -> ImportResult:
    try:
        result = state.import_from_remote()
    except GroceryError as exc:
        raise _http_error(exc) from exc
    logger.info("Import requested via API", extra={"inserted": result.inserted})
    return result
