"""
items/store.py -- SQLAlchemy Core persistence for the item resource.

Items are the business resource the authorization gate protects. The store
itself knows nothing about tokens or permissions; routes in
api/routes/v1/items.py apply the gate before calling it.

Pattern: Repository + Data Mapper, same as auth/store.py.

Usage:
    store = ItemStore(engine)
    item = store.create_item("widget")
    store.rename_item(item.id, "gadget")
    store.delete_item(item.id)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine

from core.database import connection, transaction

metadata = MetaData()

_items = Table(
    "items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("created_at", String(32), nullable=False),
)


@dataclass
class Item:
    name: str
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ItemStore:
    """Repository for Item entities."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    def list_items(self) -> list[Item]:
        with connection(self.engine) as conn:
            rows = conn.execute(_items.select().order_by(_items.c.id)).fetchall()
        return [_row_to_item(r) for r in rows]

    def create_item(self, name: str) -> Item:
        created_at = _now_iso()
        with transaction(self.engine) as conn:
            result = conn.execute(_items.insert().values(name=name, created_at=created_at))
            item_id = result.inserted_primary_key[0]
        return Item(id=item_id, name=name, created_at=created_at)

    def rename_item(self, item_id: int, name: str) -> Optional[Item]:
        """Rename an item. Returns the updated item, or None if item_id does not exist."""
        with transaction(self.engine) as conn:
            result = conn.execute(_items.update().where(_items.c.id == item_id).values(name=name))
            if result.rowcount == 0:
                return None
            row = conn.execute(_items.select().where(_items.c.id == item_id)).fetchone()
        return _row_to_item(row)

    def delete_item(self, item_id: int) -> bool:
        """Delete an item. Returns True if deleted, False if not found."""
        with transaction(self.engine) as conn:
            result = conn.execute(_items.delete().where(_items.c.id == item_id))
        return result.rowcount > 0


def _row_to_item(row) -> Item:
    return Item(id=row.id, name=row.name, created_at=row.created_at)
