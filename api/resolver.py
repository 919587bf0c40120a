"""
Indirect link resolver.

A detail page rarely links to files directly: its buttons point at an
intermediate "resolver" page which in turn carries the real mirror buttons
(G-Direct, V-Cloud, Filepress...). ``LinkResolver`` fetches that page and
turns it into typed ``DownloadLink`` entries, or into per-episode
``EpisodeLinkGroup`` entries when the resolver page lists episodes.

The resolver never raises: any fetch or parse failure yields the original
link with ``resolved=False``.
"""

from __future__ import annotations

import re
import logging
from typing import Callable, Dict, List, Optional, Sequence, Set

from bs4 import BeautifulSoup
from bs4.element import Tag

from api.models import (
    DownloadLink,
    EpisodeLinkGroup,
    LinkType,
    ResolveContext,
    ResolveResult,
)
from api.parsers.common import (
    DEFAULT_RESOLVER_HOSTS,
    SCAN_HEADING_TAGS,
    anchor_label,
    classify_link,
    content_root,
    default_label,
    heading_text,
    is_ignored_href,
    is_resolver_url,
)
from api.parsers.episode_parser import collect_heading_links, positional_groups

logger = logging.getLogger(__name__)

Fetch = Callable[[str], Optional[str]]

DEFAULT_MAX_DEPTH = 2

# Closed list of button labels resolver pages use for their mirrors.
NAMED_BUTTON_LABELS = (
    'G-Direct',
    'V-Cloud',
    'DropGalaxy',
    'GDToT',
    'Filepress',
    'Batch/Zip',
    'Fast [Resumable]',
    'Drive-[No Login]',
    'Drive-[Sharer]',
)

_EPISODE_HEADING_PATTERNS = (
    re.compile(r'-\s*:\s*Episodes?\s*:?\s*(\d+)\s*:-', re.IGNORECASE),
    re.compile(r'Episodes?\s*:?\s*(\d+)', re.IGNORECASE),
    re.compile(r'Episode\s+(\d+)', re.IGNORECASE),
)


class ResolveError(RuntimeError):
    """Raised internally when a resolver page yields nothing usable."""


def _heading_episode(text: str) -> Optional[str]:
    for pattern in _EPISODE_HEADING_PATTERNS:
        match = pattern.search(text)
        if match:
            return str(int(match.group(1)))
    return None


def with_type_suffix(label: str, link_type: LinkType) -> str:
    """``"<label> [<type>]"`` unless *label* already ends with that suffix."""
    suffix = f'[{link_type.value}]'
    if label.endswith(suffix):
        return label
    return f'{label} {suffix}'


class LinkResolver:
    """Resolve indirect download links through their resolver pages.

    Args:
        fetch: Callable returning the HTML of a URL. It may raise (timeouts,
            HTTP errors) or return ``None``; both count as a failed
            resolution.
        resolver_hosts: Host fragments identifying resolver pages.
        max_depth: How many resolver hops to follow for one link. Links still
            on a resolver host after that are kept as they are.
    """

    def __init__(self, fetch: Fetch, resolver_hosts: Sequence[str] = DEFAULT_RESOLVER_HOSTS,
                 max_depth: int = DEFAULT_MAX_DEPTH):
        self.fetch = fetch
        self.resolver_hosts = tuple(resolver_hosts)
        self.max_depth = max(1, max_depth)

    def is_indirect(self, url: Optional[str]) -> bool:
        return is_resolver_url(url, self.resolver_hosts)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, link: DownloadLink, context: Optional[ResolveContext] = None) -> ResolveResult:
        """Resolve *link* into the downloads listed on its resolver page.

        Returns:
            ``ResolveResult`` with either flat ``links`` or per-episode
            ``episode_groups``. For batch archives the result is always flat
            and carries ``group_name`` = the original label. On failure the
            result holds just the original link and ``resolved`` is False.
        """
        context = context or ResolveContext()
        try:
            result = self._resolve_url(link.url, context, depth=1, visited={link.url})
        except Exception as e:
            logger.warning('Could not resolve %s (%s): %s', link.button_label, link.url, e)
            return ResolveResult(links=[link], resolved=False)

        if link.type is LinkType.BATCH_ARCHIVE:
            result = self._flatten_batch(link, result)

        logger.debug('Resolved %s into %d entries', link.url, result.entry_count)
        return result

    # ------------------------------------------------------------------
    # Resolution steps
    # ------------------------------------------------------------------

    def _resolve_url(self, url: str, context: ResolveContext, depth: int,
                     visited: Set[str]) -> ResolveResult:
        html = self.fetch(url)
        if not html:
            raise ResolveError(f'empty response from {url}')

        soup = BeautifulSoup(html, 'html.parser')
        root = content_root(soup)

        episode_groups = self._episode_heading_groups(root, url)
        if episode_groups:
            return ResolveResult(episode_groups=episode_groups, resolved=True,
                                 positional=any(group.positional for group in episode_groups))

        named = self._named_buttons(root, url)

        if len(context.sibling_episodes) >= 2:
            groups = self._positional_named_groups(named, context.sibling_episodes)
            if groups:
                return ResolveResult(episode_groups=groups, resolved=True, positional=True)

        links = self._first_per_type(named) or self._first_per_type(self._all_buttons(root, url))
        if not links:
            raise ResolveError(f'no download buttons on {url}')

        if depth < self.max_depth:
            links = self._resolve_nested(links, depth, visited)
        return ResolveResult(links=links, resolved=True)

    def _episode_heading_groups(self, root: Tag, url: str) -> List[EpisodeLinkGroup]:
        """Per-episode groups from ``Episode N`` headings on the resolver page."""
        headings = []
        keys = []
        for heading in root.find_all(list(SCAN_HEADING_TAGS)):
            number = _heading_episode(heading_text(heading))
            if number is not None:
                headings.append(heading)
                keys.append(number)
        if not headings:
            return []

        groups: Dict[LinkType, EpisodeLinkGroup] = {}
        found = 0
        for heading, number in zip(headings, keys):
            found += collect_heading_links(heading, groups, number, skip_url=url)
        if found:
            return [group for group in groups.values() if group.links]

        # Buttons detached from their headings
        return positional_groups(root, keys, skip_url=url)

    def _named_buttons(self, root: Tag, url: str) -> List[DownloadLink]:
        buttons = []
        for a_tag in root.find_all('a', href=True):
            href = a_tag.get('href')
            if is_ignored_href(href) or href.strip() == url:
                continue
            label = anchor_label(a_tag)
            if not any(name in label for name in NAMED_BUTTON_LABELS):
                continue
            buttons.append(DownloadLink(button_label=label, url=href.strip(),
                                        type=classify_link(label)))
        return buttons

    def _all_buttons(self, root: Tag, url: str) -> List[DownloadLink]:
        buttons = []
        for a_tag in root.find_all('a', href=True):
            href = a_tag.get('href')
            if is_ignored_href(href) or href.strip() == url:
                continue
            label = anchor_label(a_tag)
            link_type = classify_link(label)
            buttons.append(DownloadLink(button_label=label or default_label(link_type),
                                        url=href.strip(), type=link_type))
        return buttons

    @staticmethod
    def _first_per_type(buttons: List[DownloadLink]) -> List[DownloadLink]:
        seen = {}
        for button in buttons:
            if button.type not in seen:
                seen[button.type] = button
        return list(seen.values())

    @staticmethod
    def _positional_named_groups(buttons: List[DownloadLink],
                                 episodes: Sequence[str]) -> List[EpisodeLinkGroup]:
        """Pair named buttons with the caller's episodes when counts match.

        Types whose button count differs from the episode count are dropped.
        """
        by_type: Dict[LinkType, List[DownloadLink]] = {}
        for button in buttons:
            by_type.setdefault(button.type, []).append(button)

        groups = []
        for link_type, typed in by_type.items():
            if len(typed) != len(episodes):
                logger.debug('Dropping %s: %d buttons for %d episodes',
                             link_type.value, len(typed), len(episodes))
                continue
            group = EpisodeLinkGroup(button_label=typed[0].button_label, type=link_type,
                                     positional=True)
            for episode, button in zip(episodes, typed):
                group.links[episode] = button.url
            groups.append(group)
        return groups

    def _resolve_nested(self, links: List[DownloadLink], depth: int,
                        visited: Set[str]) -> List[DownloadLink]:
        """Follow links that still point at a resolver host."""
        result = []
        for link in links:
            if not self.is_indirect(link.url) or link.url in visited:
                result.append(link)
                continue
            visited.add(link.url)
            try:
                nested = self._resolve_url(link.url, ResolveContext(), depth + 1, visited)
            except Exception as e:
                logger.debug('Nested resolution of %s failed: %s', link.url, e)
                result.append(link)
                continue
            if nested.links:
                result.extend(nested.links)
            else:
                result.append(link)
        return result

    @staticmethod
    def _flatten_batch(original: DownloadLink, result: ResolveResult) -> ResolveResult:
        """Present a batch archive as one flat, labelled list."""
        entries = list(result.links)
        for group in result.episode_groups:
            for episode, url in group.links.items():
                entries.append(DownloadLink(button_label=f'{group.button_label} [Episode {episode}]',
                                            url=url, type=group.type))
        labelled = [
            DownloadLink(button_label=with_type_suffix(entry.button_label, entry.type),
                         url=entry.url, type=entry.type)
            for entry in entries
        ]
        return ResolveResult(links=labelled, resolved=result.resolved,
                             group_name=original.button_label, positional=result.positional)
