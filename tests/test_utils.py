from datetime import timedelta

import jwt
import pytest

from crms.core.security import create_access_token, decode_token, hash_password, verify_password
from crms.core.validators import is_strong_password, is_valid_email, is_valid_session, is_valid_time
from crms.models.user import UserRole
from crms.services.auth_service import normalize_role, parse_role


def test_password_hash_and_verify():
    hashed = hash_password("password123")
    assert hashed != "password123"
    assert verify_password("password123", hashed)
    assert not verify_password("password124", hashed)


def test_long_passwords_differ_past_72_bytes():
    base = "x" * 80
    hashed = hash_password(base + "a")
    assert verify_password(base + "a", hashed)
    assert not verify_password(base + "b", hashed)


def test_token_round_trip_keeps_subject_and_claims():
    token = create_access_token(subject=42, data={"role": "teacher"})
    payload = decode_token(token)
    assert payload["sub"] == "42"
    assert payload["role"] == "teacher"


def test_expired_token_is_rejected():
    token = create_access_token(subject=1, expires_delta=timedelta(seconds=-5))
    with pytest.raises(jwt.ExpiredSignatureError):
        decode_token(token)


def test_email_validation():
    assert is_valid_email("someone@example.com")
    assert not is_valid_email("someone@example")
    assert not is_valid_email("")


def test_session_and_time_validation():
    assert is_valid_session("2021-2022")
    assert not is_valid_session("2021/22")
    assert is_valid_time("08:00")
    assert is_valid_time("23:59")
    assert not is_valid_time("24:00")
    assert not is_valid_time("8am")


def test_strong_password_needs_letter_and_digit():
    assert is_strong_password("abc123")
    assert not is_strong_password("abcdef")
    assert not is_strong_password("a1")


def test_role_parsing_is_case_insensitive():
    assert normalize_role(UserRole.teacher) == "teacher"
    assert parse_role(" Department_Admin ") == UserRole.department_admin
    with pytest.raises(ValueError, match="Invalid role"):
        parse_role("janitor")
