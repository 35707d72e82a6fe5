import logging
from typing import Iterable, List, Optional

from removals_crm.schemas.common import LeadSource
from removals_crm.schemas.ingestion import ExtractionResult
from removals_crm.services.extractors.base import LeadExtractor
from removals_crm.services.extractors.comparemymove import CompareMyMoveExtractor
from removals_crm.services.extractors.getamover import GetAMoverExtractor
from removals_crm.services.extractors.reallymoving import ReallyMovingExtractor
from removals_crm.services.extractors.website import WebsiteExtractor

logger = logging.getLogger(__name__)


def default_extractors() -> List[LeadExtractor]:
    return [
        CompareMyMoveExtractor(),
        ReallyMovingExtractor(),
        GetAMoverExtractor(),
        WebsiteExtractor(),
    ]


class ExtractorRegistry:
    """Ordered set of extractors; the first one that accepts a message wins.

    Results from different extractors are never merged.
    """

    def __init__(self, extractors: Optional[Iterable[LeadExtractor]] = None):
        self._extractors: List[LeadExtractor] = (
            list(extractors) if extractors is not None else default_extractors()
        )

    def detect(self, sender: str, subject: str) -> Optional[LeadExtractor]:
        for extractor in self._extractors:
            if extractor.can_handle(sender or "", subject or ""):
                return extractor
        return None

    def parse(
        self,
        sender: str,
        subject: str,
        plain_body: str,
        html_body: Optional[str] = None,
    ) -> ExtractionResult:
        extractor = self.detect(sender, subject)
        if extractor is None:
            # Newsletters, replies and other non-lead mail end up here
            logger.info("No extractor for message from %s: %r", sender, subject)
            return ExtractionResult.no_parser()
        return extractor.extract(subject, plain_body, html_body)

    def detect_source(self, sender: str, subject: str) -> LeadSource:
        extractor = self.detect(sender, subject)
        return extractor.source if extractor else LeadSource.MANUAL

    def names(self) -> List[str]:
        return [extractor.name for extractor in self._extractors]

    def labels(self) -> List[str]:
        return [extractor.label for extractor in self._extractors]
