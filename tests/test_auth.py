import auth
from auth import ANONYMOUS, Authenticated


def test_hash_password_uses_requested_cost():
    hashed = auth.hash_password("secret", rounds=4)
    assert hashed.startswith("$2b$04$")
    assert auth.verify_password(hashed, "secret")
    assert not auth.verify_password(hashed, "Secret")


def test_hash_is_salted():
    assert auth.hash_password("same", rounds=4) != auth.hash_password("same", rounds=4)


def test_verify_password_rejects_garbage_hash():
    assert not auth.verify_password("not-a-bcrypt-hash", "secret")
    assert not auth.verify_password("", "secret")


def test_long_password_round_trip():
    password = "x" * 80
    hashed = auth.hash_password(password, rounds=4)
    assert auth.verify_password(hashed, password)
    assert not auth.verify_password(hashed, "y" * 80)


def test_multibyte_password_past_the_limit():
    password = "ä" * 50  # 100 bytes in UTF-8
    hashed = auth.hash_password(password, rounds=4)
    assert auth.verify_password(hashed, password)


def test_empty_session_is_anonymous(sessions, users):
    assert auth.load_identity({}, sessions, users) is ANONYMOUS
    assert auth.load_identity({"sid": None}, sessions, users) is ANONYMOUS


def test_unknown_session_id_is_anonymous(sessions, users):
    assert auth.load_identity({"sid": "made-up"}, sessions, users) is ANONYMOUS


def test_session_for_missing_user_is_anonymous(sessions, users, db):
    user = users.register("alice", "pw1")
    session = {}
    auth.sign_in(session, sessions, user)
    db.users.delete_many({})
    assert auth.load_identity(session, sessions, users) is ANONYMOUS


def test_sign_in_then_out(sessions, users):
    user = users.register("alice", "pw1")
    session = {"other": 1}
    auth.sign_in(session, sessions, user)
    assert list(session) == ["sid"]
    record = sessions.find(session["sid"])
    assert record["user_id"] == user.id
    assert record["username"] == "alice"

    identity = auth.load_identity(session, sessions, users)
    assert identity == Authenticated(user_id=user.id, username="alice")
    assert identity.is_authenticated

    sid = session["sid"]
    auth.sign_out(session, sessions)
    assert session == {}
    assert sessions.find(sid) is None
    # a copy of the signed-out session resolves to nobody
    assert auth.load_identity({"sid": sid}, sessions, users) is ANONYMOUS


def test_sign_in_replaces_previous_session(sessions, users):
    user = users.register("alice", "pw1")
    session = {}
    auth.sign_in(session, sessions, user)
    first = session["sid"]
    auth.sign_in(session, sessions, user)
    assert session["sid"] != first
    assert sessions.find(first) is None
    assert sessions.count() == 1
