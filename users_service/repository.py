"""Typed queries against the users database."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Mapping, Optional

from sqlalchemy import text

from .models import Category, User, UserInterest


class NoRowsError(LookupError):
    """Raised when a query that must return one row returns none."""


_CATEGORY_COLUMNS = "id, category, created_at, updated_at, deleted_at"
_USER_COLUMNS = 'id, name, "profilePic"'

_CREATE_CATEGORY = text(
    'INSERT INTO "Category"("category") VALUES (:category) '
    f"RETURNING {_CATEGORY_COLUMNS}"
)
_LIST_CATEGORIES = text(
    f'SELECT {_CATEGORY_COLUMNS} FROM "Category" '
    'WHERE "deleted_at" IS NULL ORDER BY "category"'
)
_GET_CATEGORY_BY_ID = text(
    f'SELECT {_CATEGORY_COLUMNS} FROM "Category" '
    'WHERE "deleted_at" IS NULL AND "id" = :id'
)
_SOFT_DELETE_CATEGORY = text(
    'UPDATE "Category" SET "deleted_at" = CURRENT_TIMESTAMP '
    f'WHERE "id" = :id RETURNING {_CATEGORY_COLUMNS}'
)

_ADD_USER_INTEREST = text(
    'INSERT INTO "UserInterests"("user_id", "interest_id") '
    "VALUES (:user_id, :interest_id) RETURNING user_id, interest_id"
)
_GET_USER_INTERESTS = text(
    "SELECT c.id, c.category, c.created_at, c.updated_at, c.deleted_at "
    'FROM "UserInterests" AS ui JOIN "Category" AS c ON ui.interest_id = c.id '
    "WHERE ui.user_id = :user_id AND c.deleted_at IS NULL"
)
_REMOVE_USER_INTEREST = text(
    'DELETE FROM "UserInterests" '
    'WHERE "user_id" = :user_id AND "interest_id" = :interest_id'
)

_CHANGE_USER_NAME = text(
    f'UPDATE "User" SET "name" = :name WHERE "id" = :id RETURNING {_USER_COLUMNS}'
)
_CHANGE_USER_PROFILE_PIC = text(
    'UPDATE "User" SET "profilePic" = :profile_pic '
    f'WHERE "id" = :id RETURNING {_USER_COLUMNS}'
)
_CHANGE_USER_PROPERTIES = text(
    'UPDATE "User" SET "name" = :name, "profilePic" = :profile_pic '
    f'WHERE "id" = :id RETURNING {_USER_COLUMNS}'
)
_CREATE_USER = text(
    'INSERT INTO "User" ("id", "name", "profilePic") '
    f"VALUES (:id, :name, :profile_pic) RETURNING {_USER_COLUMNS}"
)
_GET_USER_BY_ID = text(f'SELECT {_USER_COLUMNS} FROM "User" WHERE "id" = :id')


def _to_uuid(value: Any) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _to_bytes(value: Any) -> Optional[bytes]:
    return None if value is None else bytes(value)


def _category(row: Any) -> Category:
    return Category(
        id=_to_uuid(row[0]),
        category=row[1],
        created_at=_to_datetime(row[2]),
        updated_at=_to_datetime(row[3]),
        deleted_at=_to_datetime(row[4]),
    )


def _user(row: Any) -> User:
    return User(id=_to_uuid(row[0]), name=row[1], profile_pic=_to_bytes(row[2]))


class Queries:
    """Runs the service's queries on a SQLAlchemy connection or session."""

    def __init__(self, db: Any) -> None:
        self._db = db

    def with_tx(self, tx: Any) -> "Queries":
        """Return queries bound to the given transaction-scoped connection."""
        return Queries(tx)

    def _one(self, statement: Any, params: Mapping[str, Any]) -> Any:
        row = self._db.execute(statement, dict(params)).first()
        if row is None:
            raise NoRowsError("no rows in result set")
        return row

    def _many(self, statement: Any, params: Mapping[str, Any]) -> list:
        return list(self._db.execute(statement, dict(params)))

    # Categories

    def create_category(self, category: str) -> Category:
        return _category(self._one(_CREATE_CATEGORY, {"category": category}))

    def list_categories(self) -> list[Category]:
        """Return the categories that are not deleted, ordered by name."""
        return [_category(row) for row in self._many(_LIST_CATEGORIES, {})]

    def get_category_by_id(self, category_id: uuid.UUID) -> Category:
        row = self._one(_GET_CATEGORY_BY_ID, {"id": str(category_id)})
        return _category(row)

    def soft_delete_category(self, category_id: uuid.UUID) -> Category:
        row = self._one(_SOFT_DELETE_CATEGORY, {"id": str(category_id)})
        return _category(row)

    # User interests

    def add_user_interest(
        self, user_id: uuid.UUID, interest_id: uuid.UUID
    ) -> UserInterest:
        row = self._one(
            _ADD_USER_INTEREST,
            {"user_id": str(user_id), "interest_id": str(interest_id)},
        )
        return UserInterest(user_id=_to_uuid(row[0]), interest_id=_to_uuid(row[1]))

    def get_user_interests(self, user_id: uuid.UUID) -> list[Category]:
        """Return the non-deleted categories the user is interested in."""
        rows = self._many(_GET_USER_INTERESTS, {"user_id": str(user_id)})
        return [_category(row) for row in rows]

    def remove_user_interest(
        self, user_id: uuid.UUID, interest_id: uuid.UUID
    ) -> None:
        self._db.execute(
            _REMOVE_USER_INTEREST,
            {"user_id": str(user_id), "interest_id": str(interest_id)},
        )

    # Users

    def create_user(
        self, user_id: uuid.UUID, name: str, profile_pic: Optional[bytes]
    ) -> User:
        row = self._one(
            _CREATE_USER,
            {"id": str(user_id), "name": name, "profile_pic": profile_pic},
        )
        return _user(row)

    def get_user_by_id(self, user_id: uuid.UUID) -> User:
        return _user(self._one(_GET_USER_BY_ID, {"id": str(user_id)}))

    def change_user_name(self, user_id: uuid.UUID, name: str) -> User:
        row = self._one(_CHANGE_USER_NAME, {"id": str(user_id), "name": name})
        return _user(row)

    def change_user_profile_pic(
        self, user_id: uuid.UUID, profile_pic: Optional[bytes]
    ) -> User:
        row = self._one(
            _CHANGE_USER_PROFILE_PIC,
            {"id": str(user_id), "profile_pic": profile_pic},
        )
        return _user(row)

    def change_user_properties(
        self, user_id: uuid.UUID, name: str, profile_pic: Optional[bytes]
    ) -> User:
        row = self._one(
            _CHANGE_USER_PROPERTIES,
            {"id": str(user_id), "name": name, "profile_pic": profile_pic},
        )
        return _user(row)