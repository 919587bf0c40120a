"""
Decide whether a detail page lists downloads per episode or per quality tier.
"""

from __future__ import annotations

import re
import logging

from bs4.element import Tag

from api.models import Layout
from api.parsers.common import SCAN_HEADING_TAGS, heading_text, is_episode_heading

logger = logging.getLogger(__name__)

# A single stray match is noise; real episode pages repeat the pattern.
LAYOUT_THRESHOLD = 2

_SEASON_RE = re.compile(r'Season\s+\d+', re.IGNORECASE)
_SEASON_ANNOTATION_RE = re.compile(r'\{.+\}|\[\d+(?:\.\d+)?\s*MB/E\]', re.IGNORECASE)


def is_season_heading(text: str) -> bool:
    """``Season N`` together with a ``{...}`` or ``[NNNMB/E]`` annotation."""
    return bool(_SEASON_RE.search(text) and _SEASON_ANNOTATION_RE.search(text))


def detect_layout(root: Tag) -> Layout:
    """Classify the page under *root* as episode- or quality-based.

    Counts season headings and episode headings among ``h1``-``h5``; two or
    more of either kind means the page is episode-based.
    """
    season_count = 0
    episode_count = 0
    for heading in root.find_all(list(SCAN_HEADING_TAGS)):
        text = heading_text(heading)
        if not text:
            continue
        if is_season_heading(text):
            season_count += 1
        if is_episode_heading(text):
            episode_count += 1

    layout = Layout.EPISODE if (season_count >= LAYOUT_THRESHOLD
                                or episode_count >= LAYOUT_THRESHOLD) else Layout.QUALITY
    logger.debug('Layout %s (season headings=%d, episode headings=%d)',
                 layout.value, season_count, episode_count)
    return layout
