"""GetAMover leads.

From: info@getamover.co.uk
Subject: "New Quote Request: John Smith, lead ID 12345"
Body: HTML.  Older mails lay the fields out as ``<td>Label</td><td>Value</td>``
rows; newer ones use free paragraphs split into "Moving from" / "Moving to"
sections.  Both layouts still arrive.
"""

import re
from typing import Dict, List, Optional, Tuple

from removals_crm.schemas.common import LeadSource
from removals_crm.schemas.lead import LeadCandidate
from removals_crm.services.extractors.base import LeadExtractor
from removals_crm.services.extractors.fields import (
    extract_bedrooms,
    extract_email,
    extract_postcode,
    first_labelled_value,
    html_to_text,
    labelled,
    loose_phone,
    parse_date,
    parse_int,
    split_name,
)

_SUBJECT_RE = re.compile(r"New Quote Request:\s*([^,]+),\s*lead\s*ID\s*(\d+)", re.I)
_ROW_RE = re.compile(r"<tr\b[^>]*>(.*?)</tr\s*>", re.I | re.S)
_CELL_RE = re.compile(r"<t[dh]\b[^>]*>(.*?)</t[dh]\s*>", re.I | re.S)

_FROM_SECTION_RE = re.compile(r"moving\s*from(.*?)(?=moving\s*to|$)", re.I | re.S)
_TO_SECTION_RE = re.compile(r"moving\s*to(.*?)(?=details|$)", re.I | re.S)

_PHONE_LABELS = (labelled(r"telephone|phone|tel"),)
_DATE_LABELS = (
    labelled(r"planned\s*moving\s*date"),
    labelled(r"move\s*date"),
)
_BEDROOM_LABELS = (labelled(r"(?:number\s*of\s*)?bedrooms"),)
_CATEGORY_LABELS = (labelled(r"category"),)
_ADDRESS_LABELS = (labelled(r"address"),)
_PROPERTY_LABELS = (labelled(r"property(?:\s*type)?"),)

# Normalised table label -> candidate field, first substring match wins
_TABLE_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("email", "email"),
    ("telephone", "phone"),
    ("phone", "phone"),
    ("moving from", "from_address"),
    ("from address", "from_address"),
    ("current address", "from_address"),
    ("moving to", "to_address"),
    ("to address", "to_address"),
    ("new address", "to_address"),
    ("from property", "from_property_type"),
    ("to property", "to_property_type"),
    ("moving date", "move_date"),
    ("move date", "move_date"),
    ("bedrooms", "bedrooms"),
    ("category", "category"),
    ("name", "name"),
)


def table_rows(html: Optional[str]) -> List[Tuple[str, str]]:
    """Return ``(label, value)`` pairs from rows with at least two cells."""
    if not html:
        return []
    rows = []
    for row in _ROW_RE.findall(html):
        cells = [html_to_text(cell).replace("\n", " ") for cell in _CELL_RE.findall(row)]
        if len(cells) >= 2 and cells[0]:
            rows.append((cells[0].rstrip(":").strip().lower(), cells[1].strip()))
    return rows


class GetAMoverExtractor(LeadExtractor):
    label = "GetAMover"
    source = LeadSource.GETAMOVER
    sender_domains = ("getamover.co.uk",)

    def _extract(
        self, subject: str, plain_body: str, html_body: Optional[str]
    ) -> LeadCandidate:
        candidate = LeadCandidate()

        match = _SUBJECT_RE.search(subject)
        if match:
            candidate.first_name, candidate.last_name = split_name(match.group(1))
            candidate.external_ref = f"GA{match.group(2)}"

        rows = table_rows(html_body)
        if rows:
            self._from_table(candidate, rows)
        else:
            self._from_sections(candidate, html_to_text(html_body or plain_body))

        return candidate

    def _from_table(self, candidate: LeadCandidate, rows: List[Tuple[str, str]]) -> None:
        values: Dict[str, str] = {}
        for label, value in rows:
            field = next(
                (name for needle, name in _TABLE_FIELDS if needle in label), None
            )
            if field and value and field not in values:
                values[field] = value

        if not candidate.first_name and values.get("name"):
            candidate.first_name, candidate.last_name = split_name(values["name"])
        candidate.email = extract_email(values.get("email"))
        candidate.phone = loose_phone(values.get("phone"))
        self._set_origin(candidate, values.get("from_address"))
        self._set_destination(candidate, values.get("to_address"))
        candidate.from_property_type = values.get("from_property_type")
        candidate.to_property_type = values.get("to_property_type")
        candidate.move_date = parse_date(values.get("move_date"))
        bedrooms = values.get("bedrooms")
        candidate.bedrooms = extract_bedrooms(bedrooms) or parse_int(bedrooms)
        if values.get("category"):
            candidate.notes = f"Category: {values['category']}"

    def _from_sections(self, candidate: LeadCandidate, text: str) -> None:
        candidate.email = extract_email(text)
        candidate.phone = loose_phone(first_labelled_value(text, _PHONE_LABELS))
        candidate.move_date = parse_date(first_labelled_value(text, _DATE_LABELS))
        candidate.bedrooms = parse_int(
            first_labelled_value(text, _BEDROOM_LABELS)
        ) or extract_bedrooms(text)

        from_section = _FROM_SECTION_RE.search(text)
        if from_section:
            section = from_section.group(1)
            self._set_origin(candidate, first_labelled_value(section, _ADDRESS_LABELS))
            candidate.from_postcode = candidate.from_postcode or extract_postcode(section)
            candidate.from_property_type = first_labelled_value(
                section, _PROPERTY_LABELS
            )

        to_section = _TO_SECTION_RE.search(text)
        if to_section:
            section = to_section.group(1)
            self._set_destination(
                candidate, first_labelled_value(section, _ADDRESS_LABELS)
            )
            candidate.to_postcode = candidate.to_postcode or extract_postcode(section)
            candidate.to_property_type = first_labelled_value(section, _PROPERTY_LABELS)

        category = first_labelled_value(text, _CATEGORY_LABELS)
        if category:
            candidate.notes = f"Category: {category}"
