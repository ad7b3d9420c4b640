import asyncio

import pytest

from jdoc_api.core.errors import UpstreamUnavailableError
from jdoc_api.services.accounts import AccountRepository
from jdoc_api.services.local_auth import (
    MAX_PASSWORD_BYTES,
    hash_password,
    is_legacy_hash,
    legacy_digest,
    migrate_legacy_password,
    verify_password,
)

from conftest import MAIN, build_seeded_store


@pytest.mark.parametrize("password", ["StrongPassw0rd!", "пароль-врача", "a", " spaced out "])
def test_hash_then_verify(password):
    password_hash = hash_password(password)
    assert password_hash.startswith("$2")
    assert not is_legacy_hash(password_hash)
    assert verify_password(password, password_hash)
    assert not verify_password(password + "x", password_hash)


def test_hash_is_salted():
    assert hash_password("same-password") != hash_password("same-password")


@pytest.mark.parametrize("password", ["legacy-pass", "Ünïcödé", ""])
def test_legacy_digest_is_verified_and_flagged(password):
    digest = legacy_digest(password)
    assert len(digest) == 64
    assert is_legacy_hash(digest)
    assert verify_password(password, digest)
    assert not verify_password(password + "!", digest)


def test_verify_rejects_empty_or_corrupt_hash():
    assert not verify_password("anything", "")
    assert not verify_password("anything", "$2b$04$not-a-real-bcrypt-hash")


def test_hash_rejects_overlong_password():
    with pytest.raises(ValueError):
        hash_password("x" * (MAX_PASSWORD_BYTES + 1))


def test_migrate_legacy_password_rewrites_hash():
    store = build_seeded_store()
    accounts = AccountRepository(store, container_id=MAIN, sheet="Users")

    asyncio.run(migrate_legacy_password(accounts, "legacy.doc", "legacy-pass"))

    account = asyncio.run(accounts.find_by_login("legacy.doc"))
    assert account is not None
    assert not is_legacy_hash(account.password_hash)
    assert verify_password("legacy-pass", account.password_hash)


def test_migrate_legacy_password_swallows_store_failure(caplog):
    class _BrokenStore:
        async def read_rows(self, container_id, sheet):
            raise UpstreamUnavailableError("sheets", "connection reset")

    accounts = AccountRepository(_BrokenStore(), container_id=MAIN, sheet="Users")

    asyncio.run(migrate_legacy_password(accounts, "legacy.doc", "legacy-pass"))

    assert "legacy password migration failed" in caplog.text


def test_migrate_legacy_password_unknown_account_is_logged(caplog):
    accounts = AccountRepository(build_seeded_store(), container_id=MAIN, sheet="Users")

    asyncio.run(migrate_legacy_password(accounts, "nobody", "pw"))

    assert "legacy password migration failed login=nobody" in caplog.text


def test_migrate_legacy_password_swallows_unexpected_error(caplog):
    class _CrashingStore:
        async def read_rows(self, container_id, sheet):
            raise RuntimeError("unexpected")

    accounts = AccountRepository(_CrashingStore(), container_id=MAIN, sheet="Users")

    asyncio.run(migrate_legacy_password(accounts, "legacy.doc", "legacy-pass"))

    assert "legacy password migration crashed login=legacy.doc" in caplog.text
