"""MongoDB-backed record stores for users, posts and sessions."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

import auth

DEFAULT_DB_NAME = "blogi"
DEFAULT_SESSION_MAX_AGE = 28800  # 8 hours
POST_FIELDS = ("title", "summary", "body", "image_url")


class RegistrationError(Exception):
    """A user record could not be created."""


class DuplicateUsername(RegistrationError):
    pass


@dataclass(frozen=True)
class User:
    id: str
    username: str
    password_hash: str

    @classmethod
    def from_document(cls, doc: Mapping) -> "User":
        return cls(
            id=str(doc["_id"]),
            username=doc["username"],
            password_hash=doc["password"],
        )


@dataclass(frozen=True)
class Post:
    id: str
    title: str
    summary: str
    body: str
    image_url: str
    created_at: datetime

    @classmethod
    def from_document(cls, doc: Mapping) -> "Post":
        return cls(
            id=str(doc["_id"]),
            title=doc.get("title") or "",
            summary=doc.get("summary") or "",
            body=doc.get("body") or "",
            image_url=doc.get("image_url") or "",
            created_at=_as_utc(doc.get("created_at")),
        )


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # BSON dates are UTC; a naive value comes from a client without tz_aware
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _utcnow() -> datetime:
    # BSON stores milliseconds
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def connect(uri: str) -> Database:
    """Open a client for ``uri`` and return its default database."""
    client = MongoClient(uri, tz_aware=True)
    return client.get_default_database(default=DEFAULT_DB_NAME)


def ensure_indexes(db: Database, session_max_age: int = DEFAULT_SESSION_MAX_AGE) -> None:
    db.users.create_index([("username", ASCENDING)], unique=True)
    db.sessions.create_index(
        [("created_at", ASCENDING)], expireAfterSeconds=session_max_age
    )


def _object_id(value: str) -> Optional[ObjectId]:
    if not value or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


class UserStore:
    def __init__(self, db: Database, rounds: int = 12):
        self.collection = db.users
        self.rounds = rounds

    def register(self, username: str, password: str) -> User:
        """Hash ``password`` and persist a new user.

        Raises DuplicateUsername when the name is taken and RegistrationError
        when it is empty. Storage failures propagate as PyMongoError.
        """
        if not username:
            raise RegistrationError("username is required")
        doc = {
            "username": username,
            "password": auth.hash_password(password, self.rounds),
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as exc:
            raise DuplicateUsername(username) from exc
        doc["_id"] = result.inserted_id
        return User.from_document(doc)

    def find_by_username(self, username: str) -> Optional[User]:
        doc = self.collection.find_one({"username": username})
        return User.from_document(doc) if doc else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid})
        return User.from_document(doc) if doc else None

    def verify_password(self, user: User, password: str) -> bool:
        return auth.verify_password(user.password_hash, password)

    def count(self) -> int:
        return self.collection.count_documents({})


class PostStore:
    def __init__(self, db: Database):
        self.collection = db.posts

    def create(self, fields: Mapping) -> Post:
        doc: Dict = {name: fields.get(name) or "" for name in POST_FIELDS}
        doc["created_at"] = _utcnow()
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return Post.from_document(doc)

    def list_all(self) -> List[Post]:
        cursor = self.collection.find().sort("created_at", DESCENDING)
        return [Post.from_document(doc) for doc in cursor]

    def find_by_id(self, post_id: str) -> Optional[Post]:
        oid = _object_id(post_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid})
        return Post.from_document(doc) if doc else None

    def count(self) -> int:
        return self.collection.count_documents({})


class SessionStore:
    """Server-side session records, keyed by the id kept in the cookie."""

    def __init__(self, db: Database):
        self.collection = db.sessions

    def create(self, user: User) -> str:
        sid = secrets.token_urlsafe(32)
        self.collection.insert_one(
            {
                "_id": sid,
                "user_id": user.id,
                "username": user.username,
                "created_at": _utcnow(),
            }
        )
        return sid

    def find(self, sid: str) -> Optional[Dict]:
        return self.collection.find_one({"_id": sid})

    def delete(self, sid: str) -> None:
        self.collection.delete_one({"_id": sid})

    def count(self) -> int:
        return self.collection.count_documents({})
