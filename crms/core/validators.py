# crms/core/validators.py

import re

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
SESSION_RE = re.compile(r"^\d{4}-\d{4}$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

MIN_PASSWORD_LENGTH = 6


def is_valid_email(email: str) -> bool:
    return bool(email and EMAIL_RE.match(email))


def is_strong_password(password: str) -> bool:
    """At least 6 characters with one letter and one digit."""
    return (
        len(password) >= MIN_PASSWORD_LENGTH
        and re.search(r"[A-Za-z]", password) is not None
        and re.search(r"[0-9]", password) is not None
    )


def is_non_empty(value: str | None) -> bool:
    return value is not None and value.strip() != ""


def is_valid_session(session: str) -> bool:
    """Academic session such as "2021-2022"."""
    return bool(session and SESSION_RE.match(session))


def is_valid_time(value: str) -> bool:
    """24h "HH:MM"."""
    return bool(value and TIME_RE.match(value))
