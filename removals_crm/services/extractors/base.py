import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from removals_crm.core.constants import MAX_ADDRESS_LENGTH
from removals_crm.schemas.common import LeadSource
from removals_crm.schemas.ingestion import ExtractionResult
from removals_crm.schemas.lead import LeadCandidate
from removals_crm.services.extractors.fields import extract_postcode

logger = logging.getLogger(__name__)


class LeadExtractor(ABC):
    """Turns one partner's email layout into a :class:`LeadCandidate`.

    Subclasses declare ``label``, ``source`` and ``sender_domains`` and
    implement :meth:`_extract`.  :meth:`extract` never raises: parsing
    errors become a failed :class:`ExtractionResult`.  A candidate with
    only some fields filled in is still a success.
    """

    label: str = ""
    source: LeadSource = LeadSource.MANUAL
    sender_domains: Tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return type(self).__name__

    def can_handle(self, sender: str, subject: str) -> bool:
        """Cheap sender-domain test; *subject* is available to subclasses."""
        sender = (sender or "").lower()
        return any(domain in sender for domain in self.sender_domains)

    def extract(
        self, subject: str, plain_body: str, html_body: Optional[str] = None
    ) -> ExtractionResult:
        subject = subject or ""
        plain_body = plain_body or ""
        if not (subject.strip() or plain_body.strip() or (html_body or "").strip()):
            return ExtractionResult.failed(
                self.name, f"{self.label} extractor error: message is empty"
            )
        try:
            candidate = self._extract(subject, plain_body, html_body)
        except Exception as exc:
            logger.warning("%s could not parse message: %s", self.name, exc)
            return ExtractionResult.failed(
                self.name, f"{self.label} extractor error: {exc}"
            )
        candidate.source = self.source
        return ExtractionResult.ok(self.name, candidate)

    @abstractmethod
    def _extract(
        self, subject: str, plain_body: str, html_body: Optional[str]
    ) -> LeadCandidate:
        """Return the candidate; may raise, :meth:`extract` handles it."""

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _set_origin(candidate: LeadCandidate, address: Optional[str]) -> None:
        if not address:
            return
        candidate.from_address = address.strip()[:MAX_ADDRESS_LENGTH]
        candidate.from_postcode = extract_postcode(address) or candidate.from_postcode

    @staticmethod
    def _set_destination(candidate: LeadCandidate, address: Optional[str]) -> None:
        if not address:
            return
        candidate.to_address = address.strip()[:MAX_ADDRESS_LENGTH]
        candidate.to_postcode = extract_postcode(address) or candidate.to_postcode
