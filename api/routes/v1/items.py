"""
api/routes/v1/items.py -- Item CRUD routes, each behind the authorization gate.

Routes:
  GET    /items          -- list items          (any valid token)
  POST   /items          -- create item         (ITEM_WRITE)
  PUT    /items/{id}     -- rename item         (ITEM_WRITE)
  DELETE /items/{id}     -- delete item         (ITEM_WRITE)

The gate runs before the handler body; handlers read the acting identity
from the injected Claims instead of re-parsing the token.
"""

import logging

from fastapi import APIRouter, Depends, Path, Request, Response

from api.models import ItemResponse, ItemWrite
from auth.dependencies import RequirePermission, require_authenticated
from auth.models import Claims
from core.database import MAX_ID
from core.errors import NotFound
from items.store import Item, ItemStore

logger = logging.getLogger("rolegate.api.items")

ITEM_WRITE = "ITEM_WRITE"

router = APIRouter()
require_item_write = RequirePermission(ITEM_WRITE)


def _to_response(item: Item) -> ItemResponse:
    return ItemResponse(id=item.id, name=item.name, created_at=item.created_at)


@router.get("/items", response_model=list[ItemResponse])
def list_items(request: Request, claims: Claims = Depends(require_authenticated)) -> list[ItemResponse]:
    store: ItemStore = request.app.state.items
    return [_to_response(i) for i in store.list_items()]


@router.post("/items", response_model=ItemResponse, status_code=201)
def create_item(request: Request, body: ItemWrite, claims: Claims = Depends(require_item_write)) -> ItemResponse:
    store: ItemStore = request.app.state.items
    item = store.create_item(body.name)
    logger.info("Item %d created by user %d", item.id, claims.sub)
    return _to_response(item)


@router.put("/items/{item_id}", response_model=ItemResponse)
def update_item(
    request: Request,
    body: ItemWrite,
    item_id: int = Path(gt=0, le=MAX_ID),
    claims: Claims = Depends(require_item_write),
) -> ItemResponse:
    store: ItemStore = request.app.state.items
    item = store.rename_item(item_id, body.name)
    if item is None:
        raise NotFound("item not found")
    return _to_response(item)


@router.delete("/items/{item_id}", status_code=204)
def delete_item(
    request: Request,
    item_id: int = Path(gt=0, le=MAX_ID),
    claims: Claims = Depends(require_item_write),
) -> Response:
    store: ItemStore = request.app.state.items
    if not store.delete_item(item_id):
        raise NotFound("item not found")
    logger.info("Item %d deleted by user %d", item_id, claims.sub)
    return Response(status_code=204)
