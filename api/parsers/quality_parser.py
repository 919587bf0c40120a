"""
Extract per-quality download groups from movie and quality-based pages.
"""

from __future__ import annotations

import re
import logging
from typing import Callable, Dict, List, Optional, Sequence

from bs4.element import Tag

from api.models import DownloadLink, LinkGroup, Section
from api.parsers.common import (
    DEFAULT_RESOLVER_HOSTS,
    HEADING_TAGS,
    anchor_label,
    anchors_in,
    classify_link,
    default_label,
    extract_quality,
    extract_size,
    heading_text,
    is_ignored_href,
    is_resolver_url,
    next_element_sibling,
)

logger = logging.getLogger(__name__)

DEFAULT_SECTION_HEADING = 'Download Links'
FALLBACK_GROUP_NAME = 'Direct Downloads'

_H5_QUALITY_RE = re.compile(r'480p|720p|1080p|BluRay|WEB-DL', re.IGNORECASE)
_H3_QUALITY_PATTERNS = (
    re.compile(r'Season\s*\d+.*\{.+\}', re.IGNORECASE),
    re.compile(r'Season\s*\d+.*\d+p', re.IGNORECASE),
    re.compile(r'\d+p.*Quality', re.IGNORECASE),
    re.compile(r'\{.+\}.*\d+p', re.IGNORECASE),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _download_link(a_tag: Tag) -> Optional[DownloadLink]:
    href = a_tag.get('href')
    if is_ignored_href(href):
        return None
    label = anchor_label(a_tag)
    link_type = classify_link(label)
    return DownloadLink(button_label=label or default_label(link_type),
                        url=href.strip(), type=link_type)


def _links_in(tag: Tag) -> List[DownloadLink]:
    links = []
    for a_tag in anchors_in(tag):
        link = _download_link(a_tag)
        if link is not None:
            links.append(link)
    return links


def _heading_section(heading: Tag) -> Optional[Section]:
    """One section from *heading* and the paragraph directly after it."""
    paragraph = next_element_sibling(heading)
    if paragraph is None or paragraph.name != 'p':
        return None
    links = _links_in(paragraph)
    if not links:
        return None
    text = heading_text(heading)
    group = LinkGroup(name=links[0].button_label, quality=extract_quality(text),
                      size=extract_size(text), links=links)
    return Section(heading=text, links=[group])


def _headed_sections(root: Tag, tag_name: str, matches: Callable[[str], bool]) -> List[Section]:
    sections = []
    for heading in root.find_all(tag_name):
        if not matches(heading_text(heading)):
            continue
        section = _heading_section(heading)
        if section is not None:
            sections.append(section)
    return sections


def _resolver_link_sections(root: Tag, resolver_hosts: Sequence[str]) -> List[Section]:
    """Group resolver-host anchors by their nearest preceding heading."""
    grouped: Dict[str, List[DownloadLink]] = {}
    for a_tag in root.find_all('a', href=True):
        if not is_resolver_url(a_tag.get('href'), resolver_hosts):
            continue
        link = _download_link(a_tag)
        if link is None:
            continue
        heading = a_tag.find_previous(list(HEADING_TAGS))
        text = heading_text(heading) if heading is not None else ''
        grouped.setdefault(text or DEFAULT_SECTION_HEADING, []).append(link)

    sections = []
    for text, links in grouped.items():
        group = LinkGroup(name=links[0].button_label, quality=extract_quality(text),
                          size=extract_size(text), links=links)
        sections.append(Section(heading=text, links=[group]))
    return sections


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_quality_sections(root: Tag,
                             resolver_hosts: Sequence[str] = DEFAULT_RESOLVER_HOSTS) -> List[Section]:
    """Extract quality-tier sections, trying each heading style in turn.

    1. ``h5`` quality headings (``720p``, ``BluRay``...) followed by a ``<p>``
       of buttons.
    2. ``h3`` season/quality headings with the same paragraph rule.
    3. Any anchors on a resolver host, grouped by their nearest heading.

    Each section holds exactly one ``LinkGroup`` named after its first button.
    """
    sections = _headed_sections(root, 'h5', lambda text: bool(_H5_QUALITY_RE.search(text)))
    if sections:
        logger.debug('Extracted %d sections from h5 quality headings', len(sections))
        return sections

    sections = _headed_sections(
        root, 'h3', lambda text: any(p.search(text) for p in _H3_QUALITY_PATTERNS))
    if sections:
        logger.debug('Extracted %d sections from h3 season/quality headings', len(sections))
        return sections

    sections = _resolver_link_sections(root, resolver_hosts)
    logger.debug('Extracted %d sections from resolver-host anchors', len(sections))
    return sections


def extract_fallback_sections(root: Tag) -> List[Section]:
    """Last resort: every paragraph with links inside ``.entry-inner``."""
    container = root.select_one('.entry-inner')
    if container is None:
        return []

    sections = []
    for paragraph in container.find_all('p'):
        links = _links_in(paragraph)
        if links:
            group = LinkGroup(name=FALLBACK_GROUP_NAME, links=links)
            sections.append(Section(heading=DEFAULT_SECTION_HEADING, links=[group]))
    logger.debug('Fallback scan found %d link paragraphs', len(sections))
    return sections
