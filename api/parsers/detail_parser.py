"""
Detail-page metadata parser.

Extracts the descriptive metadata of a single title from its detail page:
title, release year, language, quality/format, sizes, IMDb rating, synopsis,
screenshots and release notes. Download sections are handled separately by
the episode/quality extractors; the returned document carries no sections.

No network access is made here.
"""

from __future__ import annotations

import re
import logging
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from api.models import DetailPage, NormalizedDocument, handle_empty_value
from api.parsers.common import collapse_whitespace, next_element_sibling

logger = logging.getLogger(__name__)


DEFAULT_SUBTITLE = 'English'
DEFAULT_FORMAT = 'MKV'
DEFAULT_IMDB_RATING = '-'

SCREENSHOT_HOSTS = ('imgbb.top/ib/', 'i.imgur.com')
SCREENSHOT_EXCLUDES = ('poster', 'banner', 'logo', 'favicon')

_TITLE_RE = re.compile(r'Download\s+(.+?)\s+\((\d{4})\)')
_RATING_RE = re.compile(r'([0-9.]+/10)')
_IMDB_TEXT_RE = re.compile(r'IMDb Rating\s*:?-?\s*([0-9.]+/10)', re.IGNORECASE)

# (marker that must appear in the block text, value pattern). A value ends at
# the end of its line or where the next label on the same line starts.
_LABEL_FIELDS = {
    'series_name': ('Series Name:', r'Series Name\s*:\s*(.+?)(?:\n|Season|$)'),
    'season': ('Season:', r'Season\s*:\s*(.+?)(?:\n|Episode|$)'),
    'episode': ('Episode:', r'Episode\s*:\s*(.+?)(?:\n|Language|$)'),
    'release_year': ('Year:', r'Releas(?:ed|e) Year\s*:\s*(.+?)(?:\n|Episode Size|$)'),
    'language': ('Language:', r'Language\s*:\s*(.+?)(?:\n|Subtitle|$)'),
    'subtitle': ('Subtitle:', r'Subtitle\s*:\s*(.+?)(?:\n|Released|$)'),
    'size': ('Size:', r'(?<!Episode )Size\s*:\s*(.+?)(?:\n|Format|$)'),
    'episode_size': ('Episode Size:', r'Episode Size\s*:\s*(.+?)(?:\n|Complete|$)'),
    'complete_zip': ('Complete Zip:', r'Complete Zip\s*:\s*(.+?)(?:\n|Quality|$)'),
    'quality': ('Quality:', r'Quality\s*:\s*(.+?)(?:\n|Format|$)'),
    'format': ('Format:', r'Format\s*:\s*(.+?)(?:\n|Synopsis|$)'),
}
_LABEL_PATTERNS = {name: (marker, re.compile(pattern))
                   for name, (marker, pattern) in _LABEL_FIELDS.items()}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _block_texts(soup: BeautifulSoup) -> List[str]:
    """Text of every ``<p>``/``<div>`` with line breaks preserved."""
    texts = []
    for block in soup.find_all(['p', 'div']):
        lines = (collapse_whitespace(line) for line in block.get_text('\n').split('\n'))
        text = '\n'.join(line for line in lines if line)
        if text:
            texts.append(text)
    return texts


def _extract_label(texts: List[str], field_name: str) -> Optional[str]:
    """Value of a ``Label: value`` line; the last block that matches wins."""
    marker, pattern = _LABEL_PATTERNS[field_name]
    value = ''
    for text in texts:
        if marker not in text:
            continue
        match = pattern.search(text)
        if match:
            value = match.group(1).strip()
    return handle_empty_value(value)


def _extract_title(soup: BeautifulSoup) -> Tuple[Optional[str], Optional[str]]:
    """Name and year from ``<h1 class="post-title">Download Name (2023) ...``."""
    h1 = soup.select_one('h1.post-title')
    if h1 is None:
        return None, None
    match = _TITLE_RE.search(collapse_whitespace(h1.get_text()))
    if not match:
        return None, None
    return match.group(1).strip(), match.group(2)


def _extract_imdb_rating(soup: BeautifulSoup) -> str:
    anchor = soup.select_one('a[href*="imdb.com"]')
    if anchor is not None:
        match = _RATING_RE.search(anchor.get_text())
        if match:
            return match.group(1)

    # The label is often wrapped in <strong> with the value beside it, so
    # look a few levels up from the matching text.
    for text_node in soup.find_all(string=re.compile('IMDb', re.IGNORECASE)):
        node = text_node.parent
        for _ in range(3):
            if node is None:
                break
            text = collapse_whitespace(node.get_text(' '))
            match = _IMDB_TEXT_RE.search(text) or _RATING_RE.search(text)
            if match:
                return match.group(1)
            node = node.parent
    return DEFAULT_IMDB_RATING


def _extract_synopsis(soup: BeautifulSoup) -> Optional[str]:
    for heading in soup.find_all(['h2', 'h3', 'h4']):
        heading_lower = heading.get_text().lower()
        if 'synopsis' in heading_lower or 'plot' in heading_lower:
            paragraph = next_element_sibling(heading)
            if paragraph is not None and paragraph.name == 'p':
                text = collapse_whitespace(paragraph.get_text())
                if text:
                    return text

    for paragraph in soup.find_all('p'):
        text = collapse_whitespace(paragraph.get_text())
        if len(text) > 100 and 'Download' not in text and 'uploads' not in text:
            return text
    return None


def _is_screenshot_src(src: Optional[str]) -> bool:
    if not src:
        return False
    if not any(host in src for host in SCREENSHOT_HOSTS):
        return False
    return not any(word in src for word in SCREENSHOT_EXCLUDES)


def _extract_screenshots(soup: BeautifulSoup) -> List[str]:
    screenshots = []
    for heading in soup.find_all(['h2', 'h3', 'h4']):
        if 'screenshot' not in heading.get_text().lower():
            continue
        paragraph = next_element_sibling(heading)
        if paragraph is not None and paragraph.name == 'p':
            for img in paragraph.find_all('img'):
                src = img.get('src')
                if src:
                    screenshots.append(src)

    if not screenshots:
        for img in soup.find_all('img'):
            src = img.get('src')
            if _is_screenshot_src(src):
                screenshots.append(src)
    return screenshots


def _is_centered(tag: Tag) -> bool:
    return 'text-align: center' in (tag.get('style') or '')


def _extract_movie_notes(soup: BeautifulSoup) -> List[str]:
    """Centered paragraphs between the screenshots and the next ``<hr>``."""
    notes = []
    screenshot_img = None
    for img in soup.select('p img'):
        if _is_screenshot_src(img.get('src')):
            screenshot_img = img
            break

    if screenshot_img is not None:
        paragraph = screenshot_img.find_parent('p')
        for sibling in paragraph.find_next_siblings():
            if sibling.name == 'hr':
                break
            if sibling.name == 'p' and _is_centered(sibling):
                text = collapse_whitespace(sibling.get_text())
                if text:
                    notes.append(text)

    if not notes:
        for paragraph in soup.find_all('p'):
            if _is_centered(paragraph):
                text = collapse_whitespace(paragraph.get_text())
                if 'DOWNLOAD' in text:
                    notes.append(text)
    return notes


def _extract_details(soup: BeautifulSoup) -> List[str]:
    paragraph = soup.select_one('.entry-inner p')
    if paragraph is None:
        return []
    text = collapse_whitespace(paragraph.get_text())
    return [text] if text else []


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_detail_metadata(soup: BeautifulSoup, page: Optional[DetailPage] = None) -> NormalizedDocument:
    """Extract descriptive metadata from a parsed detail page.

    Args:
        soup: Parsed detail page.
        page: Source page; its listing ``title`` is used when the page
            itself carries no usable title.

    Returns:
        A ``NormalizedDocument`` with empty ``sections``.
    """
    texts = _block_texts(soup)
    movie_name, title_year = _extract_title(soup)
    series_name = _extract_label(texts, 'series_name')

    if series_name:
        content_type = 'series'
        title = series_name
    else:
        content_type = 'movie'
        title = movie_name or (page.title if page is not None else None)

    document = NormalizedDocument(
        title=title,
        release_year=_extract_label(texts, 'release_year') or title_year,
        language=_extract_label(texts, 'language'),
        quality=_extract_label(texts, 'quality'),
        format=_extract_label(texts, 'format') or DEFAULT_FORMAT,
        synopsis=_extract_synopsis(soup),
        screenshots=_extract_screenshots(soup),
        imdb_rating=_extract_imdb_rating(soup),
        content_type=content_type,
        season=_extract_label(texts, 'season'),
        episode=_extract_label(texts, 'episode'),
        subtitle=_extract_label(texts, 'subtitle') or DEFAULT_SUBTITLE,
        size=_extract_label(texts, 'size'),
        episode_size=_extract_label(texts, 'episode_size'),
        complete_zip=_extract_label(texts, 'complete_zip'),
        details=_extract_details(soup),
        movie_notes=_extract_movie_notes(soup),
    )

    logger.debug(
        'Parsed metadata: title=%s, type=%s, year=%s, screenshots=%d',
        document.title, document.content_type, document.release_year,
        len(document.screenshots),
    )
    return document
