"""
Shared parsing utilities used by the extractors and the resolver.
"""

from __future__ import annotations

import re
import logging
from typing import Iterator, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from api.models import LinkType

logger = logging.getLogger(__name__)


HEADING_TAGS = ('h1', 'h2', 'h3', 'h4', 'h5', 'h6')
SCAN_HEADING_TAGS = ('h1', 'h2', 'h3', 'h4', 'h5')

# Upper bound on forward sibling steps taken from a single heading.
MAX_SIBLING_STEPS = 200

DEFAULT_RESOLVER_HOSTS = ('nexdrive.lol', 'gdtot', 'gdflix', 'driveleech')


# ---------------------------------------------------------------------------
# Link classification
# ---------------------------------------------------------------------------

# Ordered: first matching keyword wins. Batch labels often also carry a
# mirror name, so the batch keyword goes first.
LINK_TYPE_KEYWORDS: Tuple[Tuple[str, LinkType], ...] = (
    ('Batch/Zip', LinkType.BATCH_ARCHIVE),
    ('G-Direct', LinkType.DIRECT_HOST),
    ('V-Cloud', LinkType.CLOUD_MIRROR),
    ('Drive-[No Login]', LinkType.CLOUD_MIRROR),
    ('GDToT', LinkType.GDTOT),
    ('Filepress', LinkType.FILEPRESS),
    ('DropGalaxy', LinkType.DROPGALAXY),
    ('Fast [Resumable]', LinkType.FAST_SERVER),
    ('Drive-[Sharer]', LinkType.SHARER),
)


def classify_link(label: Optional[str]) -> LinkType:
    """Map a button/anchor label to its ``LinkType``.

    Case-sensitive substring match against ``LINK_TYPE_KEYWORDS``; labels
    matching nothing (including empty labels) are ``LinkType.GENERIC``.
    """
    if not label:
        return LinkType.GENERIC
    for keyword, link_type in LINK_TYPE_KEYWORDS:
        if keyword in label:
            return link_type
    return LinkType.GENERIC


def default_label(link_type: LinkType) -> str:
    """Label used for anchors that carry no text."""
    if link_type is LinkType.GENERIC:
        return 'Download'
    return f'{link_type.value} Button'


# ---------------------------------------------------------------------------
# Anchor helpers
# ---------------------------------------------------------------------------

_IGNORED_HREF_MARKERS = ('#respond', 'replytocom', '#comment')


def collapse_whitespace(text: str) -> str:
    return ' '.join(text.split())


def anchor_label(a_tag: Tag) -> str:
    """Label of a download anchor: the nested ``<button>`` text when present,
    otherwise the anchor's own text. May be empty."""
    button = a_tag.find('button')
    source = button if isinstance(button, Tag) else a_tag
    return collapse_whitespace(source.get_text())


def is_ignored_href(href: Optional[str]) -> bool:
    """True for hrefs that never point at a download (empty, fragments,
    comment/reply links)."""
    if not href or not href.strip():
        return True
    if href.startswith('#'):
        return True
    return any(marker in href for marker in _IGNORED_HREF_MARKERS)


def is_resolver_url(url: Optional[str], hosts: Sequence[str] = DEFAULT_RESOLVER_HOSTS) -> bool:
    """True when *url* points at one of the indirect resolver hosts."""
    if not url:
        return False
    return any(host in url for host in hosts)


def anchors_in(tag: Tag) -> List[Tag]:
    """All ``<a href>`` tags in *tag*, including *tag* itself."""
    if tag.name == 'a':
        return [tag] if tag.get('href') is not None else []
    return [a for a in tag.find_all('a', href=True)]


def iter_following_siblings(element: Tag, stop_tags: Sequence[str] = HEADING_TAGS + ('hr',),
                            limit: int = MAX_SIBLING_STEPS) -> Iterator[Tag]:
    """Yield the element siblings after *element*.

    Stops at the first sibling whose tag is in *stop_tags*, at the end of the
    siblings, or after *limit* steps.
    """
    steps = 0
    for sibling in element.next_siblings:
        if not isinstance(sibling, Tag):
            continue
        if sibling.name in stop_tags:
            return
        steps += 1
        if steps > limit:
            logger.debug('Sibling walk from <%s> hit the %d step cap', element.name, limit)
            return
        yield sibling


def next_element_sibling(element: Tag) -> Optional[Tag]:
    """The immediately following element sibling (text nodes skipped)."""
    for sibling in element.next_siblings:
        if isinstance(sibling, Tag):
            return sibling
    return None


def heading_text(tag: Tag) -> str:
    return collapse_whitespace(tag.get_text())


def content_root(soup: BeautifulSoup) -> Tag:
    """The article body of a resolver or detail page."""
    for selector in ('.entry.themeform', 'main'):
        node = soup.select_one(selector)
        if node is not None:
            return node
    return soup.body if soup.body is not None else soup


# ---------------------------------------------------------------------------
# Heading fields
# ---------------------------------------------------------------------------

_QUALITY_RE = re.compile(r'(480p|720p|1080p)', re.IGNORECASE)
_SIZE_RE = re.compile(r'\[\s*([0-9.]+\s*[MG]B(?:\s*/\s*E)?)\s*\]', re.IGNORECASE)


def extract_quality(text: Optional[str]) -> Optional[str]:
    """Resolution marker in *text* (``480p``/``720p``/``1080p``) or None."""
    if not text:
        return None
    match = _QUALITY_RE.search(text)
    return match.group(1).lower() if match else None


def extract_size(text: Optional[str]) -> Optional[str]:
    """Bracketed size annotation in *text*, e.g. ``700MB/E`` from
    ``"720p [700MB/E]"`` or ``4GB`` from ``"Batch/Zip [4GB]"``."""
    if not text:
        return None
    match = _SIZE_RE.search(text)
    if not match:
        return None
    return re.sub(r'\s+', '', match.group(1))


# ---------------------------------------------------------------------------
# Episode numbers
# ---------------------------------------------------------------------------

# Patterns that make a heading an episode heading.
EPISODE_HEADING_PATTERNS = (
    re.compile(r'episodes?\s*:\s*\d+', re.IGNORECASE),
    re.compile(r'-\s*:\s*episodes?\s*:\s*\d+\s*:-', re.IGNORECASE),
    re.compile(r's\d+e\d+', re.IGNORECASE),
    re.compile(r'-\s*episode[s\s]*\d+\s*-', re.IGNORECASE),
    re.compile(r'^episode\s*\d+$', re.IGNORECASE),
    re.compile(r'episode\s*\d+\s*added', re.IGNORECASE),
)

# Patterns that pull the episode number out of a heading or nearby text,
# most explicit first.
EPISODE_NUMBER_PATTERNS = (
    re.compile(r'-\s*:\s*Episodes?\s*:?\s*(\d+)\s*:-', re.IGNORECASE),
    re.compile(r'Episodes?\s*[:\-]?\s*(\d+)', re.IGNORECASE),
    re.compile(r'S\d+\s*E(\d+)', re.IGNORECASE),
    re.compile(r'(?<![A-Za-z0-9])E(\d{1,3})(?!\d)', re.IGNORECASE),
)


def is_episode_heading(text: str) -> bool:
    return any(pattern.search(text) for pattern in EPISODE_HEADING_PATTERNS)


def extract_episode_number(text: Optional[str]) -> Optional[str]:
    """Episode number in *text* as a string (leading zeros dropped), or None."""
    if not text:
        return None
    for pattern in EPISODE_NUMBER_PATTERNS:
        match = pattern.search(text)
        if match:
            return str(int(match.group(1)))
    return None
