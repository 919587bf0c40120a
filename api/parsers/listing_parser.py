"""
Catalog listing-page parser.

Extracts every title card (title, detail URL, publish date, thumbnail) from a
listing page. Deciding which entries to process (already known, force
update, ordering) is the responsibility of the caller (``spider.py``).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from api.models import ListingEntry, ListingPageResult
from api.parsers.common import collapse_whitespace
from utils.url_helper import absolute_url, clean_thumbnail

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _normalize_datetime(value: str) -> str:
    """ISO-8601 timestamp in UTC (``...Z``) when *value* parses, else as is."""
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime('%Y-%m-%dT%H:%M:%S.000Z')


def _extract_date(article: Tag) -> str:
    time_tag = article.select_one('time.published')
    if time_tag is not None:
        datetime_attr = time_tag.get('datetime')
        if datetime_attr:
            return _normalize_datetime(datetime_attr.strip())
        text = collapse_whitespace(time_tag.get_text())
        if text:
            return text

    byline = article.select_one('.post-byline')
    if byline is not None:
        byline_time = byline.find('time')
        source = byline_time if byline_time is not None else byline
        text = collapse_whitespace(source.get_text())
        if text:
            return text

    date_tag = article.select_one('.entry-date, .date, .published')
    if date_tag is not None:
        return collapse_whitespace(date_tag.get_text())
    return ''


def _parse_entry(a_tag: Tag, page_num: int, base_url: str) -> Optional[ListingEntry]:
    """Parse one ``.entry-title a`` into a *ListingEntry*.

    Returns *None* when the card has no title or link.
    """
    title = collapse_whitespace(a_tag.get_text())
    href = a_tag.get('href', '')
    if not title or not href:
        return None

    article = a_tag.find_parent('article')
    date = ''
    thumbnail = ''
    if article is not None:
        date = _extract_date(article)
        img = article.find('img')
        if img is not None:
            thumbnail = clean_thumbnail(img.get('src'))

    return ListingEntry(
        title=title,
        url=absolute_url(href, base_url),
        date=date,
        thumbnail=thumbnail,
        page=page_num,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_listing_page(html_content: str, page_num: int = 1, base_url: str = '') -> ListingPageResult:
    """Parse a catalog listing page.

    Args:
        html_content: Raw HTML of the listing page.
        page_num: Page number (stored on each entry).
        base_url: Site root used to make relative detail URLs absolute.

    Returns:
        ``ListingPageResult`` with entries in page order.
    """
    soup = BeautifulSoup(html_content, 'html.parser')
    entries = []
    for a_tag in soup.select('.entry-title a'):
        entry = _parse_entry(a_tag, page_num, base_url)
        if entry is not None:
            entries.append(entry)

    logger.debug('Listing page %d: %d entries', page_num, len(entries))
    return ListingPageResult(has_entries=bool(entries), entries=entries, page=page_num)
