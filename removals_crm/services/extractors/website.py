"""Quote requests from our own website.

From: office@holdemremovals.co.uk
Subject: "New Instant Quote by John Smith moving from NN1 2AB on 15/02/2026"

Other office mail comes from the same domain, so the subject has to say
"instant quote" as well.
"""

import re
from typing import Optional

from removals_crm.schemas.common import LeadSource
from removals_crm.schemas.lead import LeadCandidate
from removals_crm.services.extractors.base import LeadExtractor
from removals_crm.services.extractors.fields import (
    extract_bedrooms,
    extract_email,
    extract_phone,
    extract_postcode,
    first_labelled_value,
    html_to_text,
    labelled,
    parse_date,
    parse_flag,
    parse_int,
    split_name,
)

_SUBJECT_RE = re.compile(
    r"by\s+(.+?)\s+moving\s+from\s+([A-Z0-9 ]+?)\s+on\s+(.+)$", re.I
)
_SUBJECT_MARKER = "instant quote"

_NAME_LABELS = (
    labelled(r"customer\s*name"),
    labelled(r"name", require_colon=True, line_start=True),
)
_FROM_POSTCODE_LABELS = (
    labelled(r"exit\s*postcode"),
    labelled(r"from\s*postcode"),
)
_TO_POSTCODE_LABELS = (
    labelled(r"destination(?:\s*postcode)?", require_colon=True, line_start=True),
    labelled(r"to\s*postcode"),
)
_FROM_ADDRESS_LABELS = (labelled(r"from", require_colon=True, line_start=True),)
_TO_ADDRESS_LABELS = (labelled(r"to", require_colon=True, line_start=True),)
_BEDROOM_LABELS = (labelled(r"(?:number\s*of\s*)?bedrooms", require_colon=True),)
_NOTES_LABELS = (
    labelled(r"special\s*notes"),
    labelled(r"notes", require_colon=True, line_start=True),
    labelled(r"comments", require_colon=True, line_start=True),
)
_PACKING_RE = re.compile(r"packing\s*(?:services?)?[:\s]*(yes|no|true|false)\b", re.I)
_CLEANING_RE = re.compile(
    r"cleaning\s*(?:services?)?[:\s]*(yes|no|true|false)\b", re.I
)


class WebsiteExtractor(LeadExtractor):
    label = "Website"
    source = LeadSource.WEBSITE
    sender_domains = ("holdemremovals.co.uk",)

    def can_handle(self, sender: str, subject: str) -> bool:
        return super().can_handle(sender, subject) and (
            _SUBJECT_MARKER in (subject or "").lower()
        )

    def _extract(
        self, subject: str, plain_body: str, html_body: Optional[str]
    ) -> LeadCandidate:
        candidate = LeadCandidate()

        match = _SUBJECT_RE.search(subject)
        if match:
            candidate.first_name, candidate.last_name = split_name(match.group(1))
            candidate.from_postcode = extract_postcode(match.group(2)) or (
                match.group(2).strip().upper()
            )
            candidate.move_date = parse_date(match.group(3))

        text = html_to_text(html_body or plain_body)
        candidate.email = extract_email(text)
        candidate.phone = extract_phone(text)

        if not candidate.first_name:
            name = first_labelled_value(text, _NAME_LABELS)
            if name:
                candidate.first_name, candidate.last_name = split_name(name)

        self._set_origin(candidate, first_labelled_value(text, _FROM_ADDRESS_LABELS))
        self._set_destination(candidate, first_labelled_value(text, _TO_ADDRESS_LABELS))

        exit_postcode = first_labelled_value(text, _FROM_POSTCODE_LABELS)
        if exit_postcode:
            candidate.from_postcode = extract_postcode(exit_postcode) or (
                exit_postcode.upper()
            )
        destination = first_labelled_value(text, _TO_POSTCODE_LABELS)
        if destination:
            candidate.to_postcode = extract_postcode(destination) or destination.upper()

        if candidate.move_date is None:
            candidate.move_date = parse_date(text)
        bedrooms = first_labelled_value(text, _BEDROOM_LABELS)
        candidate.bedrooms = (
            extract_bedrooms(bedrooms) or parse_int(bedrooms) or extract_bedrooms(text)
        )

        packing = _PACKING_RE.search(text)
        if packing:
            candidate.packing_required = parse_flag(packing.group(1))
        cleaning = _CLEANING_RE.search(text)
        if cleaning:
            candidate.cleaning_required = parse_flag(cleaning.group(1))

        candidate.notes = first_labelled_value(text, _NOTES_LABELS)
        return candidate
