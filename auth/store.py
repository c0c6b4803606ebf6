"""
auth/store.py -- SQLAlchemy Core persistence layer for identities (the credential store).

Pattern: Repository + Data Mapper (same as auth/rbac.py and items/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Only bcrypt hashes are stored; plaintext passwords never reach this module.

The engine is injected (built once by core.database.create_db_engine) so the
credential store and the RBAC repository draw from the same bounded pool.

Layer rule: no imports from api/ or items/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.schema import metadata, users
from core.database import connection, transaction
from core.errors import DuplicateName

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        engine = create_db_engine("sqlite:///rolegate.db")
        store = UserStore(engine)
        user_id = store.create_user(User(username="alice", hashed_password=hash_password("p1")))
        user = store.get_by_username("alice")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises DuplicateName if the username is already taken. A concurrent
        registration of the same name loses at the UNIQUE constraint.
        """
        try:
            with transaction(self.engine) as conn:
                result = conn.execute(
                    users.insert().values(
                        username=user.username,
                        hashed_password=user.hashed_password,
                        created_at=_now_iso(),
                    )
                )
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateName("username already exists") from exc

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with connection(self.engine) as conn:
            row = conn.execute(users.select().where(users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with connection(self.engine) as conn:
            row = conn.execute(users.select().where(users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_last_login(self, user_id: int) -> None:
        """Stamp the current UTC timestamp as last_login after a successful login."""
        with transaction(self.engine) as conn:
            conn.execute(users.update().where(users.c.id == user_id).values(last_login=_now_iso()))


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        last_login=row.last_login,
    )
