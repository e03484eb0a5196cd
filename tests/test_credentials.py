import pytest

from taskboard import auth
from taskboard.auth import CredentialStore, verify_password
from taskboard.errors import DuplicateEmail, InvalidCredentials, ValidationError
from taskboard.repository import UserRepository


@pytest.fixture()
def store(db) -> CredentialStore:
    return CredentialStore(UserRepository(db), rounds=4)


def test_register_stores_only_a_salted_hash(store: CredentialStore) -> None:
    ann = store.register("Ann", "ann@x.com", "secret1")
    bob = store.register("Bob", "bob@x.com", "secret1")

    assert ann.password_hash != "secret1"
    assert ann.password_hash.startswith("$2")
    # same password, different salt
    assert ann.password_hash != bob.password_hash
    assert verify_password("secret1", ann.password_hash)


def test_register_then_verify(store: CredentialStore) -> None:
    user = store.register("Ann", "ann@x.com", "secret1")
    assert store.verify("ann@x.com", "secret1").id == user.id


def test_email_is_case_insensitive(store: CredentialStore) -> None:
    user = store.register("Ann", "  Ann@X.com ", "secret1")
    assert user.email == "ann@x.com"
    assert store.verify("ANN@x.com", "secret1").id == user.id
    with pytest.raises(DuplicateEmail):
        store.register("Ann again", "ann@x.COM", "other")


def test_register_duplicate_email(store: CredentialStore) -> None:
    store.register("Ann", "ann@x.com", "secret1")
    with pytest.raises(DuplicateEmail):
        store.register("Other Ann", "ann@x.com", "secret2")


@pytest.mark.parametrize(
    "name,email,password",
    [("", "ann@x.com", "secret1"), ("Ann", "", "secret1"), ("Ann", "ann@x.com", ""), (None, None, None)],
)
def test_register_requires_all_fields(store: CredentialStore, name, email, password) -> None:
    with pytest.raises(ValidationError):
        store.register(name, email, password)


def test_unknown_email_and_wrong_password_fail_the_same_way(store: CredentialStore) -> None:
    store.register("Ann", "ann@x.com", "secret1")

    with pytest.raises(InvalidCredentials) as unknown:
        store.verify("nobody@x.com", "secret1")
    with pytest.raises(InvalidCredentials) as wrong:
        store.verify("ann@x.com", "wrong")

    assert unknown.value.message == wrong.value.message
    assert unknown.value.status_code == wrong.value.status_code == 401


def test_verify_requires_fields(store: CredentialStore) -> None:
    with pytest.raises(ValidationError):
        store.verify("ann@x.com", "")


def test_unknown_email_reuses_one_dummy_hash_across_requests(db, monkeypatch) -> None:
    calls = []
    real_hash = auth.hash_password

    def counting_hash(password, rounds):
        calls.append(rounds)
        return real_hash(password, rounds)

    monkeypatch.setattr(auth, "_dummy_hashes", {})
    monkeypatch.setattr(auth, "hash_password", counting_hash)

    # a fresh store per login, the way each request builds one
    for _ in range(3):
        with pytest.raises(InvalidCredentials):
            CredentialStore(UserRepository(db), rounds=4).verify("nobody@x.com", "secret1")

    assert len(calls) <= 1
