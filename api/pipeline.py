"""
Detail-page pipeline: layout detection, extraction, resolution, assembly.

``DetailPipeline.process`` is total: it always returns a ``PipelineResult``
whose document may have empty ``sections`` but never raises.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from bs4 import BeautifulSoup

from api.assembler import assemble, episodes_sharing_url
from api.models import (
    DetailPage,
    DownloadLink,
    EpisodeLinkGroup,
    Layout,
    LinkGroup,
    LinkRef,
    LinkStats,
    NormalizedDocument,
    PipelineResult,
    ResolveContext,
    ResolveResult,
    Section,
)
from api.parsers.common import DEFAULT_RESOLVER_HOSTS
from api.parsers.detail_parser import parse_detail_metadata
from api.parsers.episode_parser import extract_episode_sections
from api.parsers.layout_detector import detect_layout
from api.parsers.quality_parser import extract_fallback_sections, extract_quality_sections
from api.resolver import DEFAULT_MAX_DEPTH, Fetch, LinkResolver

logger = logging.getLogger(__name__)


def extract_sections(root, layout: Layout,
                     resolver_hosts: Sequence[str] = DEFAULT_RESOLVER_HOSTS) -> List[Section]:
    """Run the extractor chain for *layout*.

    Episode pages try episode extraction first; every page then falls back
    to quality extraction and finally to the plain paragraph scan.
    """
    if layout is Layout.EPISODE:
        sections = extract_episode_sections(root)
        if sections:
            return sections
        logger.debug('Episode extraction found nothing, falling back to quality layout')

    sections = extract_quality_sections(root, resolver_hosts)
    if sections:
        return sections
    return extract_fallback_sections(root)


class DetailPipeline:
    """Turn one detail page into a ``NormalizedDocument``.

    Args:
        fetch: HTML fetch callable used to resolve indirect links. Without
            it links are left unresolved (offline mode).
        resolver_hosts: Host fragments identifying resolver pages.
        max_depth: Resolver hops followed per link.
    """

    def __init__(self, fetch: Optional[Fetch] = None,
                 resolver_hosts: Sequence[str] = DEFAULT_RESOLVER_HOSTS,
                 max_depth: int = DEFAULT_MAX_DEPTH):
        self.resolver_hosts = tuple(resolver_hosts)
        self.resolver = LinkResolver(fetch, self.resolver_hosts, max_depth) if fetch else None

    def process(self, page: DetailPage) -> PipelineResult:
        try:
            soup = BeautifulSoup(page.html or '', 'html.parser')
        except Exception as e:
            logger.error('Failed to parse %s: %s', page.url, e)
            return PipelineResult(document=NormalizedDocument(title=page.title))

        try:
            document = parse_detail_metadata(soup, page)
        except Exception as e:
            logger.error('Metadata extraction failed for %s: %s', page.url, e)
            document = NormalizedDocument(title=page.title)

        layout = None
        stats = LinkStats()
        try:
            root = soup.find('main') or soup
            layout = detect_layout(root)
            sections = extract_sections(root, layout, self.resolver_hosts)
            resolutions = self._resolve_all(page, sections)
            document.sections, stats = assemble(sections, resolutions)
        except Exception as e:
            logger.error('Download section extraction failed for %s: %s', page.url, e)
            document.sections = []

        logger.info('Processed %s: layout=%s, sections=%d, links=%d (unresolved %d)',
                    page.url, layout.value if layout else '-', len(document.sections),
                    stats.total_links, stats.unresolved)
        return PipelineResult(document=document, stats=stats, layout=layout)

    def _resolve_all(self, page: DetailPage,
                     sections: List[Section]) -> Dict[LinkRef, ResolveResult]:
        """Resolve every indirect link, one at a time, in document order."""
        resolutions: Dict[LinkRef, ResolveResult] = {}
        if self.resolver is None:
            return resolutions

        for section_index, section in enumerate(sections):
            for group_index, group in enumerate(section.links):
                for key, link, context in self._indirect_links(group):
                    if link.url == page.url:
                        continue
                    resolutions[(section_index, group_index, key)] = self.resolver.resolve(link, context)
        return resolutions

    def _indirect_links(self, group):
        """``(key, link, context)`` for each indirect link in *group*."""
        if isinstance(group, LinkGroup):
            for index, link in enumerate(group.links):
                if self.resolver.is_indirect(link.url):
                    yield str(index), link, ResolveContext(group_label=group.name)
        elif isinstance(group, EpisodeLinkGroup):
            for episode, url in group.links.items():
                if self.resolver.is_indirect(url):
                    # Only episodes behind the same page may be paired by position.
                    siblings = episodes_sharing_url(group, url)
                    link = DownloadLink(button_label=group.button_label, url=url, type=group.type)
                    yield episode, link, ResolveContext(episode_hint=episode,
                                                        group_label=group.button_label,
                                                        sibling_episodes=siblings)
