"""ReallyMoving leads.

From: manuallead@reallymoving.com
Subject: "Manual quote - 3 bedroom - 45 miles - John Smith (RM12345)"
Body: plain text, one ``Key: value`` pair per line.

The subject is read first; anything the body also supplies wins.
"""

import re
from typing import Callable, Dict, Optional, Tuple

from removals_crm.schemas.common import LeadSource
from removals_crm.schemas.lead import LeadCandidate
from removals_crm.services.extractors.base import LeadExtractor
from removals_crm.services.extractors.fields import (
    extract_bedrooms,
    extract_email,
    html_to_text,
    loose_phone,
    parse_date,
    parse_int,
    split_name,
)

_SUBJECT_RE = re.compile(
    r"(\d+)\s*bed(?:room)?s?\b.*?(\d+)\s*miles?\b.*?-\s*([^(]+)\(([^)]+)\)", re.I
)
_SUBJECT_NAME_REF_RE = re.compile(r"-\s*([^(\-]+?)\s*\(([^)]+)\)\s*$")

# (field, substrings) checked in order; the first key match wins
_KEY_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("email", ("email", "e-mail")),
    ("phone", ("phone", "mobile", "tel")),
    ("from_address", ("moving from", "from address", "current address")),
    ("to_address", ("moving to", "to address", "new address")),
    ("move_date", ("move date", "moving date", "estimated move")),
    ("bedrooms", ("move size", "property size", "bedrooms")),
    ("distance", ("distance",)),
    ("external_ref", ("reference", "ref no")),
    ("notes", ("special instruction", "notes", "comments")),
    ("name", ("name",)),
)
# Short keys that would be ambiguous as substrings
_EXACT_KEYS: Dict[str, str] = {
    "from": "from_address",
    "to": "to_address",
    "date": "move_date",
    "property": "bedrooms",
    "ref": "external_ref",
}


def _field_for_key(key: str) -> Optional[str]:
    if key in _EXACT_KEYS:
        return _EXACT_KEYS[key]
    for field, needles in _KEY_FIELDS:
        if any(needle in key for needle in needles):
            return field
    return None


class ReallyMovingExtractor(LeadExtractor):
    label = "ReallyMoving"
    source = LeadSource.REALLYMOVING
    sender_domains = ("reallymoving.com",)

    def __init__(self) -> None:
        self._handlers: Dict[str, Callable[[LeadCandidate, str], None]] = {
            "name": self._apply_name,
            "email": self._apply_email,
            "phone": self._apply_phone,
            "from_address": self._set_origin,
            "to_address": self._set_destination,
            "move_date": self._apply_move_date,
            "bedrooms": self._apply_bedrooms,
            "distance": self._apply_distance,
            "external_ref": self._apply_reference,
            "notes": self._apply_notes,
        }

    def _extract(
        self, subject: str, plain_body: str, html_body: Optional[str]
    ) -> LeadCandidate:
        candidate = LeadCandidate()
        self._apply_subject(candidate, subject)

        text = plain_body if plain_body.strip() else html_to_text(html_body)
        for line in text.splitlines():
            key, separator, value = line.partition(":")
            value = value.strip()
            if not separator or not value:
                continue
            field = _field_for_key(key.strip().lower())
            if field is not None:
                self._handlers[field](candidate, value)

        return candidate

    # ------------------------------------------------------------------
    # Subject
    # ------------------------------------------------------------------

    def _apply_subject(self, candidate: LeadCandidate, subject: str) -> None:
        match = _SUBJECT_RE.search(subject)
        if match:
            candidate.bedrooms = int(match.group(1))
            candidate.distance_miles = int(match.group(2))
            self._apply_name(candidate, match.group(3))
            candidate.external_ref = match.group(4).strip()
            return

        # Partial subjects still carry useful pieces
        candidate.bedrooms = extract_bedrooms(subject)
        name_ref = _SUBJECT_NAME_REF_RE.search(subject)
        if name_ref:
            self._apply_name(candidate, name_ref.group(1))
            candidate.external_ref = name_ref.group(2).strip()

    # ------------------------------------------------------------------
    # Body field handlers
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_name(candidate: LeadCandidate, value: str) -> None:
        first_name, last_name = split_name(value)
        if first_name:
            candidate.first_name, candidate.last_name = first_name, last_name

    @staticmethod
    def _apply_email(candidate: LeadCandidate, value: str) -> None:
        candidate.email = extract_email(value) or candidate.email

    @staticmethod
    def _apply_phone(candidate: LeadCandidate, value: str) -> None:
        candidate.phone = loose_phone(value) or candidate.phone

    @staticmethod
    def _apply_move_date(candidate: LeadCandidate, value: str) -> None:
        candidate.move_date = parse_date(value) or candidate.move_date

    @staticmethod
    def _apply_bedrooms(candidate: LeadCandidate, value: str) -> None:
        bedrooms = extract_bedrooms(value)
        if bedrooms is None and value.strip().isdigit():
            bedrooms = int(value.strip())
        if bedrooms is not None:
            candidate.bedrooms = bedrooms

    @staticmethod
    def _apply_distance(candidate: LeadCandidate, value: str) -> None:
        distance = parse_int(value)
        if distance is not None:
            candidate.distance_miles = distance

    @staticmethod
    def _apply_reference(candidate: LeadCandidate, value: str) -> None:
        candidate.external_ref = value

    @staticmethod
    def _apply_notes(candidate: LeadCandidate, value: str) -> None:
        candidate.notes = f"{candidate.notes}\n{value}" if candidate.notes else value
