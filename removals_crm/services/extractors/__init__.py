from removals_crm.services.extractors.base import LeadExtractor
from removals_crm.services.extractors.comparemymove import CompareMyMoveExtractor
from removals_crm.services.extractors.getamover import GetAMoverExtractor
from removals_crm.services.extractors.reallymoving import ReallyMovingExtractor
from removals_crm.services.extractors.registry import (
    ExtractorRegistry,
    default_extractors,
)
from removals_crm.services.extractors.website import WebsiteExtractor

__all__ = [
    "LeadExtractor",
    "CompareMyMoveExtractor",
    "ReallyMovingExtractor",
    "GetAMoverExtractor",
    "WebsiteExtractor",
    "ExtractorRegistry",
    "default_extractors",
]
