from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import MutableMapping, Union

import bcrypt
from flask import g, redirect, url_for

# bcrypt only reads this many bytes of a password
MAX_PASSWORD_BYTES = 72


def _password_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:MAX_PASSWORD_BYTES]


def hash_password(plain: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_password_bytes(plain), salt).decode("ascii")


def verify_password(hash_value: str, plain: str) -> bool:
    if not hash_value or plain is None:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain), hash_value.encode("ascii"))
    except ValueError:
        # malformed hash
        return False


@dataclass(frozen=True)
class Anonymous:
    is_authenticated = False
    user_id = None
    username = None


@dataclass(frozen=True)
class Authenticated:
    user_id: str
    username: str
    is_authenticated = True


Identity = Union[Anonymous, Authenticated]
ANONYMOUS = Anonymous()


def load_identity(session: MutableMapping, sessions, users) -> Identity:
    """Resolve the cookie's session id to a signed-in user.

    The cookie only carries the id; the record itself lives in ``sessions``.
    A missing id, a deleted or expired record, or a user that no longer
    exists are all anonymous.
    """
    sid = session.get("sid")
    if not sid:
        return ANONYMOUS
    record = sessions.find(sid)
    if record is None:
        return ANONYMOUS
    user = users.find_by_id(str(record.get("user_id") or ""))
    if user is None:
        return ANONYMOUS
    return Authenticated(user_id=user.id, username=user.username)


def sign_in(session: MutableMapping, sessions, user) -> None:
    old_sid = session.get("sid")
    if old_sid:
        sessions.delete(old_sid)
    session.clear()
    session["sid"] = sessions.create(user)


def sign_out(session: MutableMapping, sessions) -> None:
    sid = session.get("sid")
    if sid:
        sessions.delete(sid)
    session.clear()


def current_identity() -> Identity:
    return getattr(g, "identity", ANONYMOUS)


def is_authenticated() -> bool:
    return current_identity().is_authenticated


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not is_authenticated():
            return redirect(url_for("blog.login"))
        return view(*args, **kwargs)

    return wrapped
