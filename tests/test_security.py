"""Password hashing and access tokens."""

from __future__ import annotations

from datetime import timedelta

import pytest

from app.utils import (
    AuthenticationError,
    create_access_token,
    decode_access_token,
    hash_password,
    needs_rehash,
    verify_password,
)


def test_password_round_trip_and_rejection():
    hashed = hash_password("correct-horse")

    assert hashed.startswith("pbkdf2_sha256$")
    assert verify_password("correct-horse", hashed)
    assert not verify_password("wrong-horse", hashed)


@pytest.mark.parametrize("stored", ["", "garbage", "md5$1$abc$def", "pbkdf2_sha256$x$a$b"])
def test_malformed_hashes_never_verify(stored):
    assert not verify_password("anything", stored)


def test_low_iteration_hashes_need_rehash():
    assert needs_rehash(hash_password("pw-12345", iterations=1_000))
    assert not needs_rehash(hash_password("pw-12345"))
    assert needs_rehash("not-a-hash")


def test_token_carries_learner_id():
    token = create_access_token(subject="42")

    payload = decode_access_token(token)

    assert payload.learner_id == 42
    assert payload.iat is not None


def test_expired_token_is_rejected():
    token = create_access_token(subject="42", expires_delta=timedelta(seconds=-5))

    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_non_numeric_subject_is_rejected():
    payload = decode_access_token(create_access_token(subject="admin"))

    with pytest.raises(AuthenticationError):
        payload.learner_id
