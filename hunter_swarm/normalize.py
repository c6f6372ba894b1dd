"""String normalisation helpers used for dedup keys and contact cleanup."""

from __future__ import annotations

import re
from urllib.parse import urlparse

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_UNDERSCORES = re.compile(r"_{2,}")
_ARTICLES = re.compile(r"^(?:the|a)_|(?<=_)(?:the|a)_|_(?:the|a)$")
_LEGAL_SUFFIX = re.compile(r"_(?:inc|corp|corporation|ltd|limited|llc|llp|company|co)$")
_EMAIL = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
_VALID_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_name(value: str | None) -> str:
    """Reduce a business name (or any label) to a comparable token string.

    ``"The Maple Group, Inc."`` and ``"maple group"`` both become ``"maple_group"``.
    """

    if not value:
        return ""
    text = value.lower().strip()
    text = _PUNCTUATION.sub("", text)
    text = _WHITESPACE.sub("_", text)
    text = _UNDERSCORES.sub("_", text).strip("_")
    previous = None
    while previous != text:
        previous = text
        text = _ARTICLES.sub("", text)
    text = _LEGAL_SUFFIX.sub("", text)
    return text.strip("_")


def extract_domain(website: str | None) -> str:
    if not website:
        return ""
    text = website.strip()
    if not text:
        return ""
    if not text.lower().startswith(("http://", "https://")):
        text = f"https://{text}"
    try:
        hostname = urlparse(text).hostname or ""
    except ValueError:
        return ""
    hostname = hostname.lower()
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname


def extract_email_domain(email: str | None) -> str:
    if not email or "@" not in email:
        return ""
    return email.rsplit("@", 1)[1].strip().lower()


def normalize_phone(phone: str | None) -> str:
    """Digits only; drop the North American country code from 11-digit numbers."""

    if not phone:
        return ""
    digits = "".join(ch for ch in str(phone) if ch.isdigit())
    if len(digits) == 11 and digits.startswith("1"):
        return digits[1:]
    return digits


def clean_phone(phone: str | None) -> str | None:
    """Canonical display form for collected phone numbers.

    Ten-digit numbers become ``416-555-0100``; anything else keeps only digits,
    ``+`` and ``-``. Returns ``None`` when nothing usable remains.
    """

    if not phone:
        return None
    digits = normalize_phone(phone)
    if len(digits) == 10:
        return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
    cleaned = re.sub(r"[^\d+-]", "", str(phone))
    return cleaned or None


def clean_email(text: str | None) -> str | None:
    """Pull the first address out of free text (``mailto:`` links included)."""

    if not text:
        return None
    match = _EMAIL.search(text)
    return match.group(0).lower() if match else None


def clean_url(url: str | None) -> str | None:
    if not url:
        return None
    text = url.strip()
    if not text:
        return None
    if not text.lower().startswith(("http://", "https://")):
        return f"https://{text}"
    return text


def is_valid_email(email: str | None) -> bool:
    return bool(email) and _VALID_EMAIL.match(email) is not None


def format_phone(phone: str | None) -> str:
    if not phone:
        return ""
    digits = "".join(ch for ch in phone if ch.isdigit())
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return phone


__all__ = [
    "clean_email",
    "clean_phone",
    "clean_url",
    "extract_domain",
    "extract_email_domain",
    "format_phone",
    "is_valid_email",
    "normalize_name",
    "normalize_phone",
]
