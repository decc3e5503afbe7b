"""Candidate-extraction strategies for identity-document text.

Each strategy is a pure function taking normalized OCR text and returning
either an accepted value or ``None``. Strategies for a field are listed in
priority order; the parser stops at the first one that accepts a value.
Every strategy validates before accepting, so an empty field is preferred
over a wrong one.
"""

import re
from collections.abc import Callable, Iterable
from datetime import date

Strategy = Callable[[str], str | None]

_WHITESPACE = re.compile(r"\s+")

# ---------------------------------------------------------------------------
# ID number
# ---------------------------------------------------------------------------

# A grouped run must not start right after "<digit><sep>", otherwise the year
# of "15-03-1992 1234 5678 9012" would be read as the first group.
_ID_GROUPED = re.compile(r"(?<!\d[/.\-])\b(\d{4}[\s\-]?\d{4}[\s\-]?\d{4})\b")
_ID_PLAIN = re.compile(r"\b(\d{12})\b")
_ID_SEPARATORS = re.compile(r"[\s\-]")

# ---------------------------------------------------------------------------
# Date of birth
# ---------------------------------------------------------------------------

_DATE_TOKEN = r"(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{4})"
_DOB_LABEL = re.compile(r"DOB[:\s]*" + _DATE_TOKEN, re.IGNORECASE)
_DATE_OF_BIRTH_LABEL = re.compile(r"Date of Birth[:\s]*" + _DATE_TOKEN, re.IGNORECASE)
_BIRTH_LABEL = re.compile(r"Birth[:\s]*" + _DATE_TOKEN, re.IGNORECASE)
_BARE_DATE = re.compile(r"(?<!\d)" + _DATE_TOKEN + r"(?!\d)")
_DATE_SEPARATORS = re.compile(r"[/\-.]")
_MIN_BIRTH_YEAR = 1900

# ---------------------------------------------------------------------------
# Name
# ---------------------------------------------------------------------------

_NAME_STOP = r"\s+(?:(?:DOB|Date|Birth|Male|Female)\b|\d)"
_NAME_AFTER_LABEL = re.compile(
    r"\bName[:\s]+([A-Z][A-Za-z\s]+?)" + _NAME_STOP, re.IGNORECASE
)
_NAME_AT_START = re.compile(r"^([A-Z][A-Za-z\s]+?)" + _NAME_STOP, re.IGNORECASE)
_NAME_BEFORE_KEYWORD = re.compile(
    r"\b([A-Z][A-Za-z]*(?:\s[A-Z][A-Za-z]*){0,3})\s+"
    r"(?i:Male|Female|DOB|Date|Birth)\b"
)
_NON_NAME_CHARS = re.compile(r"[^A-Za-z\s]")
_NAME_MIN_EXCLUSIVE = 2
_NAME_MAX_EXCLUSIVE = 50

# Document boilerplate that must never be mistaken for a name token.
_BOILERPLATE_WORDS: frozenset[str] = frozenset(
    {
        "DOB",
        "DATE",
        "BIRTH",
        "YEAR",
        "MALE",
        "FEMALE",
        "GENDER",
        "GOVERNMENT",
        "GOVT",
        "INDIA",
        "REPUBLIC",
        "AADHAAR",
        "AADHAR",
        "UIDAI",
        "UNIQUE",
        "IDENTIFICATION",
        "AUTHORITY",
        "CARD",
        "NAME",
        "ADDRESS",
        "ISSUE",
        "ENROLMENT",
        "ENROLLMENT",
        "VID",
        "OF",
    }
)


def normalize_text(raw_text: str) -> str:
    """Collapse every whitespace run (including newlines) to one space and trim."""
    return _WHITESPACE.sub(" ", raw_text or "").strip()


def first_accepted(strategies: Iterable[Strategy], text: str) -> str:
    """Run strategies in order and return the first accepted value.

    Args:
        strategies: Strategies in priority order.
        text: Normalized document text.

    Returns:
        The first non-``None`` value, or an empty string if none accepts.
    """
    for strategy in strategies:
        value = strategy(text)
        if value is not None:
            return value
    return ""


def _format_id_number(candidate: str) -> str | None:
    digits = _ID_SEPARATORS.sub("", candidate)
    if len(digits) != 12 or not digits.isdigit():
        return None
    return f"{digits[:4]}-{digits[4:8]}-{digits[8:]}"


def id_grouped(text: str) -> str | None:
    """Match 12 digits written as three groups of four (space, hyphen or none)."""
    match = _ID_GROUPED.search(text)
    return _format_id_number(match.group(1)) if match else None


def id_plain(text: str) -> str | None:
    """Match a bare run of exactly 12 digits."""
    match = _ID_PLAIN.search(text)
    return _format_id_number(match.group(1)) if match else None


def parse_date(value: str, today: date | None = None) -> str | None:
    """Interpret a three-part numeric date and format it as ``YYYY-MM-DD``.

    When the last part is larger than 31 it is the year and the first two
    parts are day and month, day first. If only the second of those exceeds
    12 the two are swapped, so ``03/15/1992`` reads as 15 March. Otherwise
    the parts are taken as year, month, day.

    Args:
        value: Date string such as ``15/03/1992`` or ``1992.03.15``.
        today: Reference date for the upper year bound. Defaults to today.

    Returns:
        The zero-padded ISO date, or ``None`` if the value has no valid reading.
    """
    today = today or date.today()
    cleaned = re.sub(r"[^\d/\-.]", "", value)
    parts = _DATE_SEPARATORS.split(cleaned)
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        return None

    first, second, third = (int(part) for part in parts)
    if third > 31:
        day, month, year = first, second, third
        if month > 12 and day <= 12:
            day, month = month, day
    else:
        year, month, day = first, second, third

    if not (_MIN_BIRTH_YEAR <= year <= today.year):
        return None
    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None
    try:
        date(year, month, day)
    except ValueError:
        return None
    return f"{year:04d}-{month:02d}-{day:02d}"


def _first_valid_date(pattern: re.Pattern[str], text: str) -> str | None:
    for match in pattern.finditer(text):
        parsed = parse_date(match.group(1))
        if parsed is not None:
            return parsed
    return None


def dob_after_dob_label(text: str) -> str | None:
    """Date following a ``DOB`` label."""
    return _first_valid_date(_DOB_LABEL, text)


def dob_after_date_of_birth_label(text: str) -> str | None:
    """Date following a ``Date of Birth`` label."""
    return _first_valid_date(_DATE_OF_BIRTH_LABEL, text)


def dob_after_birth_label(text: str) -> str | None:
    """Date following a bare ``Birth`` label."""
    return _first_valid_date(_BIRTH_LABEL, text)


def dob_bare_token(text: str) -> str | None:
    """Any unlabelled ``D[D]/M[M]/YYYY`` token with ``/``, ``-`` or ``.``."""
    return _first_valid_date(_BARE_DATE, text)


def _clean_name(candidate: str) -> str | None:
    name = _NON_NAME_CHARS.sub("", candidate).strip()
    if not _NAME_MIN_EXCLUSIVE < len(name) < _NAME_MAX_EXCLUSIVE:
        return None
    # A label such as "DOB" or "Year of" caught ahead of its value.
    if all(word.upper() in _BOILERPLATE_WORDS for word in name.split()):
        return None
    return name


def _name_from_pattern(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    return _clean_name(match.group(1)) if match else None


def name_after_label(text: str) -> str | None:
    """Text after a ``Name`` label up to the next date or gender keyword."""
    return _name_from_pattern(_NAME_AFTER_LABEL, text)


def name_at_start(text: str) -> str | None:
    """Leading text of the document up to the first date or gender keyword."""
    return _name_from_pattern(_NAME_AT_START, text)


def name_before_keyword(text: str) -> str | None:
    """Capitalized word run immediately preceding a gender or date keyword."""
    return _name_from_pattern(_NAME_BEFORE_KEYWORD, text)


def name_from_tokens(text: str) -> str | None:
    """Join the first three alphabetic non-boilerplate tokens.

    Only used as a last resort; requires at least two usable tokens.
    """
    tokens = [
        token
        for token in text.split(" ")
        if len(token) > 2
        and token.isascii()
        and token.isalpha()
        and token.upper() not in _BOILERPLATE_WORDS
    ]
    if len(tokens) < 2:
        return None
    return " ".join(tokens[:3])


ID_NUMBER_STRATEGIES: tuple[Strategy, ...] = (id_grouped, id_plain)

DATE_OF_BIRTH_STRATEGIES: tuple[Strategy, ...] = (
    dob_after_dob_label,
    dob_after_date_of_birth_label,
    dob_after_birth_label,
    dob_bare_token,
)

NAME_STRATEGIES: tuple[Strategy, ...] = (
    name_after_label,
    name_at_start,
    name_before_keyword,
    name_from_tokens,
)
