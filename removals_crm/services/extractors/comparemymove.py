"""CompareMyMove leads.

From: accounts@comparemymove.com
Subject: "Removals lead from comparemymove.com (Jane Doe)"
Body: HTML, one ``Label: value`` paragraph per field.
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
    parse_int,
    split_name,
)

_SUBJECT_NAME_RE = re.compile(r"\(([^)]+)\)")

# Label synonyms, most specific first
_NAME_LABELS = (
    labelled(r"customer\s*name"),
    labelled(r"customer", require_colon=True, line_start=True),
    labelled(r"name", require_colon=True, line_start=True),
)
_FROM_LABELS = (
    labelled(r"moving\s*from"),
    labelled(r"current\s*address"),
    labelled(r"from", require_colon=True, line_start=True),
)
_TO_LABELS = (
    labelled(r"moving\s*to"),
    labelled(r"new\s*address"),
    labelled(r"to", require_colon=True, line_start=True),
)
_DATE_LABELS = (
    labelled(r"move\s*date"),
    labelled(r"moving\s*date"),
    labelled(r"date", require_colon=True, line_start=True),
)
_BEDROOM_LABELS = (
    labelled(r"(?:number\s*of\s*)?bedrooms", require_colon=True),
    labelled(r"property\s*size", require_colon=True),
)
_SERVICES_LABELS = (
    labelled(r"additional\s*services"),
    labelled(r"services", require_colon=True, line_start=True),
)
_INFO_LABELS = (
    labelled(r"additional\s*information"),
    labelled(r"notes", require_colon=True, line_start=True),
)


class CompareMyMoveExtractor(LeadExtractor):
    label = "CompareMyMove"
    source = LeadSource.COMPAREMYMOVE
    sender_domains = ("comparemymove.com",)

    def _extract(
        self, subject: str, plain_body: str, html_body: Optional[str]
    ) -> LeadCandidate:
        text = html_to_text(html_body or plain_body)
        candidate = LeadCandidate()

        full_name = self._subject_name(subject) or first_labelled_value(
            text, _NAME_LABELS
        )
        if full_name:
            candidate.first_name, candidate.last_name = split_name(full_name)

        candidate.email = extract_email(text)
        candidate.phone = extract_phone(text)

        self._set_origin(candidate, first_labelled_value(text, _FROM_LABELS))
        self._set_destination(candidate, first_labelled_value(text, _TO_LABELS))
        if candidate.from_postcode is None:
            # Unlabelled body: the first postcode that is not the destination
            loose = extract_postcode(text)
            if loose and loose != candidate.to_postcode:
                candidate.from_postcode = loose

        candidate.move_date = parse_date(first_labelled_value(text, _DATE_LABELS))

        bedrooms_value = first_labelled_value(text, _BEDROOM_LABELS)
        candidate.bedrooms = (
            extract_bedrooms(bedrooms_value)
            or parse_int(bedrooms_value)
            or extract_bedrooms(text)
        )

        notes = []
        services = first_labelled_value(text, _SERVICES_LABELS)
        if services:
            notes.append(f"Services: {services}")
        additional = first_labelled_value(text, _INFO_LABELS)
        if additional:
            notes.append(f"Additional: {additional}")
        if notes:
            candidate.notes = "\n".join(notes)

        return candidate

    @staticmethod
    def _subject_name(subject: str) -> Optional[str]:
        match = _SUBJECT_NAME_RE.search(subject)
        return match.group(1).strip() if match else None
