"""
Catalog AutoSpider – API Layer.

This package turns catalog detail pages into normalized documents: layout
detection, download-section extraction, indirect link resolution and
assembly, plus a thin FastAPI REST interface over the offline parsers.

Quick start (Python)::

    from api.pipeline import DetailPipeline
    from api.models import DetailPage

    result = DetailPipeline(fetch=handler.fetch).process(DetailPage(url, html))

Quick start (REST)::

    uvicorn api.server:app --reload
"""

from api.models import (
    LinkType,
    Layout,
    DetailPage,
    DownloadLink,
    LinkGroup,
    EpisodeLinkGroup,
    Section,
    NormalizedDocument,
    LinkStats,
    PipelineResult,
    ListingEntry,
    ListingPageResult,
)
from api.parsers import (
    classify_link,
    detect_layout,
    extract_episode_sections,
    extract_quality_sections,
    parse_detail_metadata,
    parse_listing_page,
)

__all__ = [
    # Models
    'LinkType',
    'Layout',
    'DetailPage',
    'DownloadLink',
    'LinkGroup',
    'EpisodeLinkGroup',
    'Section',
    'NormalizedDocument',
    'LinkStats',
    'PipelineResult',
    'ListingEntry',
    'ListingPageResult',
    # Parsers
    'classify_link',
    'detect_layout',
    'extract_episode_sections',
    'extract_quality_sections',
    'parse_detail_metadata',
    'parse_listing_page',
]
