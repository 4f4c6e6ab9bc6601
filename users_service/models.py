"""Records stored by the users service."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Category:
    """A category of interest; ``deleted_at`` is set once it is soft-deleted."""

    id: uuid.UUID
    category: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class User:
    """A user with an optional profile picture stored as raw image bytes."""

    id: uuid.UUID
    name: str
    profile_pic: Optional[bytes] = None


@dataclass(frozen=True)
class UserInterest:
    """A link between a user and a category they are interested in."""

    user_id: uuid.UUID
    interest_id: uuid.UUID