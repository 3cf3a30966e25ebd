"""Tests for password hashing."""

import asyncio

from focusflow.auth.passwords import hash_password, hash_password_async, verify_password, verify_password_async


def test_hash_and_verify():
    hashed = hash_password("secret123", rounds=4)
    assert hashed != "secret123"
    assert hashed.startswith("$2")
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)


def test_hashes_are_salted():
    assert hash_password("secret123", rounds=4) != hash_password("secret123", rounds=4)


def test_malformed_hash_never_matches():
    assert not verify_password("secret123", "not-a-bcrypt-hash")


def test_async_variants():
    async def run():
        hashed = await hash_password_async("secret123", rounds=4)
        return await verify_password_async("secret123", hashed)

    assert asyncio.run(run())
