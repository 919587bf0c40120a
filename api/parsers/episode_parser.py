"""
Extract per-episode download groups from episode-based detail pages.

Pages of this kind look like::

    <h3>Season 1 {Hindi-English} 720p [350MB/E]</h3>
    <h4>-:Episodes: 1:-</h4>
    <p><a href="..."><button>V-Cloud [Resumable]</button></a></p>
    <h4>-:Episodes: 2:-</h4>
    <p><a href="..."><button>V-Cloud [Resumable]</button></a></p>

Each season/quality heading opens a ``Section``; every button found below an
episode heading lands in the ``EpisodeLinkGroup`` of its type, keyed by
episode number.
"""

from __future__ import annotations

import re
import logging
from typing import Dict, List, Optional, Sequence

from bs4.element import Tag

from api.models import EpisodeLinkGroup, LinkType, Section
from api.parsers.common import (
    SCAN_HEADING_TAGS,
    anchor_label,
    anchors_in,
    classify_link,
    collapse_whitespace,
    default_label,
    extract_episode_number,
    heading_text,
    is_episode_heading,
    is_ignored_href,
    iter_following_siblings,
)

logger = logging.getLogger(__name__)

IMPLICIT_SECTION_HEADING = 'Episodes'

_SECTION_HEADING_RE = re.compile(r'Season\s*\d+|480p|720p|1080p', re.IGNORECASE)


def is_section_heading(text: str) -> bool:
    return bool(_SECTION_HEADING_RE.search(text))


def _episode_key(a_tag: Tag, container: Tag, current_episode: Optional[str]) -> str:
    # The anchor's own label first: one paragraph may hold several episodes.
    number = extract_episode_number(anchor_label(a_tag))
    if number:
        return number
    # Then the text around the anchor, without leaving the walked sibling,
    # otherwise a bare anchor would read the whole page.
    if a_tag is not container and a_tag.parent is not None:
        number = extract_episode_number(collapse_whitespace(a_tag.parent.get_text(' ')))
        if number:
            return number
    return current_episode or '1'


def collect_heading_links(heading: Tag, groups: Dict[LinkType, EpisodeLinkGroup],
                          current_episode: Optional[str], skip_url: Optional[str] = None) -> int:
    """Walk the siblings after *heading* and file every anchor into *groups*.

    Groups are keyed by link type; the first label seen for a type names the
    group and a repeated episode key overwrites the earlier URL.

    Returns:
        Number of anchors collected.
    """
    collected = 0
    for sibling in iter_following_siblings(heading):
        for a_tag in anchors_in(sibling):
            href = a_tag.get('href')
            if is_ignored_href(href) or (skip_url and href.strip() == skip_url):
                continue
            label = anchor_label(a_tag)
            link_type = classify_link(label)
            group = groups.get(link_type)
            if group is None:
                group = EpisodeLinkGroup(button_label=label or default_label(link_type),
                                         type=link_type)
                groups[link_type] = group
            key = _episode_key(a_tag, sibling, current_episode)
            group.links[key] = href.strip()
            collected += 1
    return collected


def positional_keys(headings: Sequence[Tag]) -> List[str]:
    """Episode keys for *headings* in order; headings without a number get
    their 1-based position."""
    keys = []
    for index, heading in enumerate(headings):
        keys.append(extract_episode_number(heading_text(heading)) or str(index + 1))
    return keys


def positional_groups(root: Tag, keys: Sequence[str],
                      skip_url: Optional[str] = None) -> List[EpisodeLinkGroup]:
    """Pair detached buttons with episodes by document order.

    Only non-generic buttons are considered. A type whose page-wide button
    count equals ``len(keys)`` is assigned one button per key; any other type
    is ambiguous and dropped.
    """
    if not keys:
        return []

    by_type: Dict[LinkType, List[Tag]] = {}
    for a_tag in root.find_all('a', href=True):
        href = a_tag.get('href')
        if is_ignored_href(href) or (skip_url and href.strip() == skip_url):
            continue
        link_type = classify_link(anchor_label(a_tag))
        if link_type is LinkType.GENERIC:
            continue
        by_type.setdefault(link_type, []).append(a_tag)

    groups = []
    for link_type, anchors in by_type.items():
        if len(anchors) != len(keys):
            logger.debug('Dropping %s buttons: %d buttons for %d episodes',
                         link_type.value, len(anchors), len(keys))
            continue
        group = EpisodeLinkGroup(button_label=anchor_label(anchors[0]) or default_label(link_type),
                                 type=link_type, positional=True)
        for key, a_tag in zip(keys, anchors):
            group.links[key] = a_tag.get('href').strip()
        groups.append(group)
    return groups


def extract_episode_sections(root: Tag) -> List[Section]:
    """Extract episode-keyed link groups from an episode-based page.

    Args:
        root: Parsed page (or its article body).

    Returns:
        Sections in document order, each holding at least one
        ``EpisodeLinkGroup``. Empty when nothing could be attributed to an
        episode; callers then fall back to quality extraction.
    """
    sections: List[Section] = []
    section_groups: List[Dict[LinkType, EpisodeLinkGroup]] = []
    episode_headings: List[Tag] = []
    season_headings: List[Tag] = []
    current_episode: Optional[str] = None
    anchors_found = 0

    for heading in root.find_all(list(SCAN_HEADING_TAGS)):
        text = heading_text(heading)
        if not text:
            continue

        if is_section_heading(text):
            sections.append(Section(heading=text))
            section_groups.append({})
            season_headings.append(heading)
            current_episode = extract_episode_number(text) if is_episode_heading(text) else None
        elif is_episode_heading(text):
            episode_headings.append(heading)
            current_episode = extract_episode_number(text)
            if not sections:
                sections.append(Section(heading=IMPLICIT_SECTION_HEADING))
                section_groups.append({})
        else:
            continue

        anchors_found += collect_heading_links(heading, section_groups[-1], current_episode)

    if anchors_found == 0:
        reference = episode_headings or season_headings
        groups = positional_groups(root, positional_keys(reference))
        if not groups:
            logger.debug('No episode links found under %d headings', len(reference))
            return []
        logger.debug('Assigned %d detached button types positionally', len(groups))
        return [Section(heading=IMPLICIT_SECTION_HEADING, links=list(groups))]

    result = []
    for section, groups in zip(sections, section_groups):
        section.links = [group for group in groups.values() if group.links]
        if section.links:
            result.append(section)

    logger.debug('Extracted %d episode sections', len(result))
    return result
