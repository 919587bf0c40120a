"""
Catalog HTML parsers – public API.

Usage::

    from api.parsers import detect_layout, extract_episode_sections
    from api.parsers import extract_quality_sections, parse_listing_page
"""

from api.parsers.common import classify_link, default_label
from api.parsers.layout_detector import detect_layout
from api.parsers.episode_parser import extract_episode_sections
from api.parsers.quality_parser import extract_quality_sections, extract_fallback_sections
from api.parsers.detail_parser import parse_detail_metadata
from api.parsers.listing_parser import parse_listing_page

__all__ = [
    'classify_link',
    'default_label',
    'detect_layout',
    'extract_episode_sections',
    'extract_quality_sections',
    'extract_fallback_sections',
    'parse_detail_metadata',
    'parse_listing_page',
]
