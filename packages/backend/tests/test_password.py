"""Password hashing tests."""

import bcrypt

from inkpress.auth.password import DEFAULT_ROUNDS, hash_password, verify_password


def test_hash_then_verify_same_password():
    hashed = hash_password("password1", rounds=4)
    assert hashed != "password1"
    assert verify_password("password1", hashed) is True


def test_verify_different_password_fails():
    hashed = hash_password("password1", rounds=4)
    for other in ("password2", "Password1", "password1 ", ""):
        assert verify_password(other, hashed) is False


def test_hash_is_salted():
    """Same input, different hashes — both still verify."""
    h1 = hash_password("same-password", rounds=4)
    h2 = hash_password("same-password", rounds=4)
    assert h1 != h2
    assert verify_password("same-password", h1)
    assert verify_password("same-password", h2)


def test_default_work_factor_is_ten():
    hashed = hash_password("password1")
    assert DEFAULT_ROUNDS == 10
    assert hashed.startswith("$2b$10$")
    assert bcrypt.checkpw(b"password1", hashed.encode())


def test_malformed_hash_never_matches():
    assert verify_password("password1", "not-a-bcrypt-hash") is False
    assert verify_password("password1", "") is False


def test_long_passwords_are_truncated_consistently():
    long_pw = "x" * 100
    hashed = hash_password(long_pw, rounds=4)
    assert verify_password(long_pw, hashed)
