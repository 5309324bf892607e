# SPDX-License-Identifier: Apache-2.0

"""
Angolan licence plate domain logic.

This module contains pure functions to normalize, mask-format and validate
vehicle registration plates. Two shapes are accepted:

    LD-DD-DD-LL    short form, 8 characters once normalized
    LDA-DD-DD-LL   long form, 9 characters once normalized

Hyphens are presentation only. Stored and compared values are always the
normalized (canonical) form.
"""

import re
from enum import Enum
from typing import Optional, Tuple


SHORT_PREFIX = "LD"
LONG_PREFIX = "LDA"

# Group end offsets into the normalized buffer for each form
SHORT_BOUNDARIES: Tuple[int, ...] = (2, 4, 6, 8)
LONG_BOUNDARIES: Tuple[int, ...] = (3, 5, 7, 9)

_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")
_SHORT_PATTERN = re.compile(r"^LD\d{2}\d{2}[A-Z]{2}$")
_LONG_PATTERN = re.compile(r"^LDA\d{2}\d{2}[A-Z]{2}$")
_PLATE_LIKE = re.compile(r"^LDA?\d")


class PlateKind(str, Enum):
    """Accepted plate shapes."""
    SHORT = "short"
    LONG = "long"


def normalize_plate(value: str) -> str:
    """
    Strip every character that is not an ASCII letter or digit and uppercase the rest.

    Args:
        value: Raw user input

    Returns:
        Normalized plate string (possibly empty)
    """
    if not value:
        return ""
    return _NON_ALPHANUMERIC.sub("", str(value)).upper()


def _group(value: str, boundaries: Tuple[int, ...]) -> str:
    """Join the non-empty groups of value delimited by boundaries with hyphens."""
    groups = []
    start = 0
    for end in boundaries:
        chunk = value[start:end]
        if not chunk:
            break
        groups.append(chunk)
        start = end
    return "-".join(groups)


def _is_complete_short(clean: str) -> bool:
    return len(clean) == 8 and clean.startswith(SHORT_PREFIX) and not clean.startswith(LONG_PREFIX)


def _is_complete_long(clean: str) -> bool:
    return len(clean) == 9 and clean.startswith(LONG_PREFIX)


def format_plate(value: str) -> str:
    """
    Mask raw (possibly partial) input as a hyphenated plate.

    Safe to call on every keystroke: successive prefixes of a plate produce
    masks that only ever grow, with hyphens at the fixed group boundaries.

    Args:
        value: Raw user input

    Returns:
        Uppercase hyphenated plate, e.g. "LD-35-87-IA" or "LDA-35-87-IA"
    """
    clean = normalize_plate(value)

    if clean.startswith(SHORT_PREFIX):
        if _is_complete_short(clean):
            return _group(clean, SHORT_BOUNDARIES)
        elif _is_complete_long(clean):
            return _group(clean, LONG_BOUNDARIES)

    masked = clean
    # "" and "L" are the user still typing the prefix itself
    if (len(clean) <= 8
            and not clean.startswith(SHORT_PREFIX)
            and not SHORT_PREFIX.startswith(clean)):
        masked = SHORT_PREFIX + clean

    if masked.startswith(LONG_PREFIX):
        return _group(masked, LONG_BOUNDARIES)
    return _group(masked, SHORT_BOUNDARIES)


def validate_plate(value: str) -> bool:
    """
    Check whether input is a complete Angolan plate in either accepted shape.

    Invalid input is ordinary data: this never raises, it returns False.

    Args:
        value: Raw or formatted plate

    Returns:
        True if the normalized value matches the short or long form
    """
    clean = normalize_plate(value)

    if _is_complete_short(clean):
        return bool(_SHORT_PATTERN.match(clean))

    if _is_complete_long(clean):
        return bool(_LONG_PATTERN.match(clean))

    return False


def plate_kind(value: str) -> Optional[PlateKind]:
    """
    Classify a plate by shape.

    Args:
        value: Raw or formatted plate

    Returns:
        PlateKind for valid plates, None otherwise
    """
    if not validate_plate(value):
        return None
    return PlateKind.LONG if normalize_plate(value).startswith(LONG_PREFIX) else PlateKind.SHORT


def canonical_plate(value: str) -> str:
    """Return the value stored and compared for a plate (normalized, no hyphens)."""
    return normalize_plate(value)


def looks_like_plate(term: str) -> bool:
    """Check whether a free-text search term should also be matched as a plate."""
    return bool(_PLATE_LIKE.match(normalize_plate(term)))
