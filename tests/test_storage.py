"""DBStorage credential-store operations."""
import pytest
from sqlalchemy.exc import IntegrityError

from models.db_storage import DBStorage
from models.user import User


def make_user(**overrides):
    data = {
        "username": "ann",
        "email": "a@x.com",
        "full_name": "Ann A",
        "password_hash": "$argon2id$fake",
    }
    data.update(overrides)
    return User(**data)


@pytest.fixture
def user(storage):
    return storage.create(make_user())


def fresh(storage, user_id):
    storage.close()
    return storage.find_by_id(user_id)


def test_create_assigns_id_and_timestamps(storage, user):
    stored = fresh(storage, user.id)
    assert len(stored.id) == 36
    assert stored.created_at is not None
    assert storage.count(User) == 1
    assert storage.count() == 1


def test_unique_username_and_email(storage, user):
    with pytest.raises(IntegrityError):
        storage.create(make_user(email="other@x.com"))
    with pytest.raises(IntegrityError):
        storage.create(make_user(username="bob"))
    assert storage.count(User) == 1


def test_find_by_username_or_email(storage, user):
    assert storage.find_by_username_or_email(username="ANN").id == user.id
    assert storage.find_by_username_or_email(email=" a@x.com ").id == user.id
    assert storage.find_by_username_or_email(username="bob", email="a@x.com").id == user.id
    assert storage.find_by_username_or_email(username="bob") is None
    assert storage.find_by_username_or_email() is None


def test_find_by_id_unknown(storage):
    assert storage.find_by_id("missing") is None
    assert storage.find_by_id(None) is None


def test_username_or_email_taken(storage, user):
    assert storage.username_or_email_taken("ann", "new@x.com")
    assert storage.username_or_email_taken("bob", "a@x.com")
    assert not storage.username_or_email_taken("bob", "b@x.com")
    assert not storage.username_or_email_taken(None, "a@x.com", exclude_id=user.id)


def test_update_refresh_token_overwrites(storage, user):
    assert storage.update_refresh_token(user.id, "t1")
    assert storage.update_refresh_token(user.id, "t2")
    assert fresh(storage, user.id).refresh_token == "t2"
    assert storage.update_refresh_token(user.id, None)
    assert fresh(storage, user.id).refresh_token is None


def test_update_refresh_token_compare_and_swap(storage, user):
    storage.update_refresh_token(user.id, "t1")
    assert not storage.update_refresh_token(user.id, "t2", expected="stale")
    assert fresh(storage, user.id).refresh_token == "t1"
    assert storage.update_refresh_token(user.id, "t2", expected="t1")
    assert fresh(storage, user.id).refresh_token == "t2"
    # second swap from the same starting value loses
    assert not storage.update_refresh_token(user.id, "t3", expected="t1")


def test_update_refresh_token_unknown_user(storage):
    assert not storage.update_refresh_token("missing", "t1")


def test_update_password_hash(storage, user):
    assert storage.update_password_hash(user.id, "$argon2id$new")
    assert fresh(storage, user.id).password_hash == "$argon2id$new"


def test_update_fields(storage, user):
    updated = storage.update_fields(user.id, full_name="Ann B", avatar="/media/avatar/a.png")
    assert updated.full_name == "Ann B"
    assert fresh(storage, user.id).avatar == "/media/avatar/a.png"
    assert storage.update_fields("missing", full_name="x") is None


def test_repr_hides_secrets(storage, user):
    storage.update_refresh_token(user.id, "secret-token")
    text = repr(fresh(storage, user.id))
    assert "secret-token" not in text
    assert "argon2" not in text
    assert "ann" in text


def test_password_is_write_only(user):
    with pytest.raises(AttributeError):
        user.password


def test_separate_in_memory_stores_are_isolated():
    first, second = DBStorage("sqlite://"), DBStorage("sqlite://")
    first.reload()
    second.reload()
    first.create(make_user())
    assert first.count(User) == 1
    assert second.count(User) == 0
    first.drop_all()
    second.drop_all()
