"""
Booking reference codes

A reference is what guests type to find their booking, so it avoids
look-alike characters (no 0/O, no 1/I):

    HB 260701 K7QX2M
    │  │      └── 6 random characters from REFERENCE_ALPHABET
    │  └───────── issue date, YYMMDD (UTC)
    └──────────── hotel prefix

Uniqueness is not guaranteed here; the unique index on
``Booking.reference`` is, and the service retries on collision.
"""

from __future__ import annotations

import re
import secrets
from datetime import date

REFERENCE_PREFIX = "HB"
REFERENCE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
REFERENCE_SUFFIX_LENGTH = 6
REFERENCE_LENGTH = len(REFERENCE_PREFIX) + 6 + REFERENCE_SUFFIX_LENGTH

_REFERENCE_RE = re.compile(
    rf"^{REFERENCE_PREFIX}\d{{6}}[{REFERENCE_ALPHABET}]{{{REFERENCE_SUFFIX_LENGTH}}}$"
)


def generate_reference(issued_on: date) -> str:
    suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_SUFFIX_LENGTH))
    return f"{REFERENCE_PREFIX}{issued_on:%y%m%d}{suffix}"


def normalize_reference(value: str) -> str:
    """References are matched case-insensitively and ignore surrounding spaces."""
    return (value or "").strip().upper()


def is_well_formed(value: str) -> bool:
    return bool(_REFERENCE_RE.match(value))
