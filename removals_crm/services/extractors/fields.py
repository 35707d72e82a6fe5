"""Format-independent field extraction helpers.

Every function here takes free text and returns ``None`` (or an empty
value) when nothing usable is found.  None of them raise on absent or
malformed input, so extractors can chain them without guarding.
"""

import re
from datetime import date
from html import unescape
from typing import Iterable, Optional, Pattern, Tuple

# UK postcode: outward code (1-2 letters, digit, optional alnum) + inward code
_POSTCODE_RE = re.compile(r"\b([A-Z]{1,2}[0-9][0-9A-Z]?)\s*([0-9][A-Z]{2})\b", re.I)
_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)*\.[A-Za-z]{2,}")
# UK mobiles / landlines, with or without the +44 prefix
_PHONE_RE = re.compile(
    r"(?<![\d+])(?:(?:\+44\s?|0)(?:7\d{3}|\d{4})\s?\d{3}\s?\d{3}|\d{5}\s?\d{6})(?!\d)"
)
_BEDROOMS_RE = re.compile(r"(\d+)\s*-?\s*(?:bed(?:room)?s?|br)\b", re.I)
_INT_RE = re.compile(r"\d+")
_DIGIT_RE = re.compile(r"\d")
MIN_PHONE_DIGITS = 7

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

# (pattern, group order) tried in sequence; order is day, month, year
_DATE_PATTERNS: Tuple[Tuple[Pattern[str], Tuple[int, int, int]], ...] = (
    # DD/MM/YYYY or DD-MM-YYYY
    (re.compile(r"\b(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})\b"), (1, 2, 3)),
    # YYYY-MM-DD or YYYY/MM/DD
    (re.compile(r"\b(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})\b"), (3, 2, 1)),
    # 5 March 2026, 5th Mar 2026
    (
        re.compile(
            r"\b(\d{1,2})(?:st|nd|rd|th)?\s+"
            r"(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?,?\s+(\d{4})\b",
            re.I,
        ),
        (1, 2, 3),
    ),
)

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b.*?</\1\s*>", re.I | re.S)
_CELL_END_RE = re.compile(r"<\s*/\s*t[dh]\s*>", re.I)
_BLOCK_TAG_RE = re.compile(
    r"<\s*/?\s*(?:br|p|div|tr|li|ul|ol|table|h[1-6])\b[^>]*>", re.I
)
_TAG_RE = re.compile(r"<[^>]+>")
_SPACES_RE = re.compile(r"[ \t\r\f\v\xa0]+")


def extract_postcode(text: Optional[str]) -> Optional[str]:
    """Return the first UK postcode as ``OUTWARD INWARD`` in upper case."""
    if not text:
        return None
    match = _POSTCODE_RE.search(text)
    if not match:
        return None
    return f"{match.group(1).upper()} {match.group(2).upper()}"


def extract_email(text: Optional[str]) -> Optional[str]:
    """Return the first email-shaped token, lower-cased."""
    if not text:
        return None
    match = _EMAIL_RE.search(text)
    return match.group(0).lower() if match else None


def extract_phone(text: Optional[str]) -> Optional[str]:
    """Return the first UK phone number with interior whitespace removed."""
    if not text:
        return None
    match = _PHONE_RE.search(text)
    return re.sub(r"\s", "", match.group(0)) if match else None


def loose_phone(text: Optional[str]) -> Optional[str]:
    """Like :func:`extract_phone`, but keep a labelled value in another format.

    The raw value (whitespace removed) is kept only when it carries at
    least ``MIN_PHONE_DIGITS`` digits; placeholders such as ``N/A`` give
    ``None`` so they never act as a matching key.
    """
    phone = extract_phone(text)
    if phone or not text:
        return phone
    if len(_DIGIT_RE.findall(text)) < MIN_PHONE_DIGITS:
        return None
    return re.sub(r"\s", "", text)


def parse_date(text: Optional[str]) -> Optional[date]:
    """Return the first candidate that is a real calendar date.

    Patterns are tried in order (DD/MM/YYYY, YYYY-MM-DD, "D Month
    YYYY"); a match that is not a valid date (31/02/2026) is ignored and
    the next pattern is tried.
    """
    if not text:
        return None
    for pattern, (day_group, month_group, year_group) in _DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        raw_month = match.group(month_group)
        month = (
            int(raw_month) if raw_month.isdigit() else _MONTHS[raw_month[:3].lower()]
        )
        try:
            return date(
                int(match.group(year_group)), month, int(match.group(day_group))
            )
        except ValueError:
            continue
    return None


def extract_bedrooms(text: Optional[str]) -> Optional[int]:
    """Return the integer preceding ``bed``/``bedroom``/``br``."""
    if not text:
        return None
    match = _BEDROOMS_RE.search(text)
    return int(match.group(1)) if match else None


def parse_int(text: Optional[str]) -> Optional[int]:
    """Return the first run of digits in *text* as an int."""
    if not text:
        return None
    match = _INT_RE.search(text)
    return int(match.group(0)) if match else None


def split_name(full_name: Optional[str]) -> Tuple[str, str]:
    """Split a full name into ``(first, rest)``.

    ``"Jane"`` → ``("Jane", "")``; ``"Mary Ann  Smith"`` →
    ``("Mary", "Ann Smith")``; blank input → ``("", "")``.
    """
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def html_to_text(html: Optional[str]) -> str:
    """Flatten an HTML (or plain) body into ``label: value`` friendly lines.

    Table cells on the same row are joined with a space and block-level
    elements become line breaks, so ``<tr><td>Name:</td><td>Jo</td></tr>``
    reads as ``Name: Jo``.
    """
    if not html:
        return ""
    text = _SCRIPT_STYLE_RE.sub("", html)
    text = _CELL_END_RE.sub(" ", text)
    text = _BLOCK_TAG_RE.sub("\n", text)
    text = unescape(_TAG_RE.sub("", text))
    lines = (_SPACES_RE.sub(" ", line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def labelled(
    label: str, *, require_colon: bool = False, line_start: bool = False
) -> Pattern[str]:
    """Compile a ``<label>: <value>`` pattern capturing the value.

    Loose labels (``from``, ``date``) should pass ``require_colon`` and
    ``line_start`` so they do not match inside ordinary sentences.
    """
    prefix = r"^[ \t]*" if line_start else r"\b"
    separator = r"[ \t]*:[ \t]*" if require_colon else r"[ \t]*:?[ \t]*"
    return re.compile(rf"{prefix}(?:{label}){separator}([^<\n]+)", re.I | re.M)


def first_labelled_value(
    text: Optional[str], patterns: Iterable[Pattern[str]]
) -> Optional[str]:
    """Try *patterns* in order and return the first non-empty capture."""
    if not text:
        return None
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = match.group(1).strip()
            if value:
                return value
    return None


def parse_flag(text: Optional[str]) -> Optional[bool]:
    """Map yes/no/true/false tokens to a bool."""
    if not text:
        return None
    token = text.strip().lower()
    if token in ("yes", "true", "y"):
        return True
    if token in ("no", "false", "n"):
        return False
    return None
