"""
Splice resolver output back into the extracted sections.

The input sections are never modified; ``assemble`` builds new sections and
groups so that the extractor output can be reused (e.g. for an offline
rendition of the same page).
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Tuple

from api.models import (
    DownloadLink,
    EpisodeLinkGroup,
    GroupEntry,
    LinkGroup,
    LinkRef,
    LinkStats,
    LinkType,
    ResolveResult,
    Section,
)
from api.parsers.common import extract_quality, extract_size

logger = logging.getLogger(__name__)


def episodes_sharing_url(group: EpisodeLinkGroup, url: str) -> Tuple[str, ...]:
    """Episode keys of *group* that point at *url* (a season-pack page when
    more than one)."""
    return tuple(episode for episode, episode_url in group.links.items() if episode_url == url)


def flatten_episode_groups(groups: List[EpisodeLinkGroup]) -> List[DownloadLink]:
    """``"<label> [Episode N]"`` links, one per episode entry."""
    links = []
    for group in groups:
        for episode, url in group.links.items():
            links.append(DownloadLink(button_label=f'{group.button_label} [Episode {episode}]',
                                      url=url, type=group.type))
    return links


def _assemble_quality_group(group: LinkGroup, section_index: int, group_index: int,
                            resolutions: Mapping[LinkRef, ResolveResult]) -> List[GroupEntry]:
    links: List[DownloadLink] = []
    batch_groups: List[LinkGroup] = []

    for link_index, link in enumerate(group.links):
        result = resolutions.get((section_index, group_index, str(link_index)))
        if result is None:
            links.append(link)
        elif not result.resolved:
            links.extend(result.links or [link])
        elif link.type is LinkType.BATCH_ARCHIVE:
            batch_groups.append(LinkGroup(
                name=result.group_name or link.button_label,
                quality=group.quality,
                size=extract_size(link.button_label) or group.size,
                links=list(result.links),
                type=LinkType.BATCH_ARCHIVE,
            ))
        else:
            links.extend(result.links)
            links.extend(flatten_episode_groups(result.episode_groups))

    entries: List[GroupEntry] = []
    if links:
        entries.append(LinkGroup(name=group.name, quality=group.quality, size=group.size,
                                 links=links, type=group.type))
    entries.extend(batch for batch in batch_groups if batch.links)
    return entries


class _EpisodeRegrouper:
    """Collects per-episode URLs of one section into groups keyed by type."""

    def __init__(self, entries: List[GroupEntry]):
        self.entries = entries
        self.by_type: Dict[LinkType, EpisodeLinkGroup] = {}

    def target(self, link_type: LinkType, label: str) -> EpisodeLinkGroup:
        group = self.by_type.get(link_type)
        if group is None:
            group = EpisodeLinkGroup(button_label=label, type=link_type)
            self.by_type[link_type] = group
            self.entries.append(group)
        return group

    def add(self, link_type: LinkType, label: str, episode: str, url: str,
            positional: bool = False) -> None:
        group = self.target(link_type, label)
        group.links[episode] = url
        group.positional = group.positional or positional


def _assemble_episode_group(group: EpisodeLinkGroup, section: Section, section_index: int,
                            group_index: int, resolutions: Mapping[LinkRef, ResolveResult],
                            regrouper: _EpisodeRegrouper) -> None:
    for episode, url in group.links.items():
        result = resolutions.get((section_index, group_index, episode))

        if result is None or not result.resolved:
            regrouper.add(group.type, group.button_label, episode, url, group.positional)
            continue

        if group.type is LinkType.BATCH_ARCHIVE:
            links = list(result.links)
            if links:
                regrouper.entries.append(LinkGroup(
                    name=result.group_name or group.button_label,
                    quality=extract_quality(section.heading),
                    size=extract_size(group.button_label),
                    links=links,
                    type=LinkType.BATCH_ARCHIVE,
                ))
            continue

        for link in result.links:
            regrouper.add(link.type, link.button_label, episode, link.url,
                          group.positional or result.positional)
        season_pack = len(episodes_sharing_url(group, url)) > 1
        for resolved_group in result.episode_groups:
            positional = group.positional or result.positional or resolved_group.positional
            if len(resolved_group.links) == 1:
                only_url = next(iter(resolved_group.links.values()))
                regrouper.add(resolved_group.type, resolved_group.button_label, episode,
                              only_url, positional)
            elif season_pack:
                for resolved_episode, resolved_url in resolved_group.links.items():
                    regrouper.add(resolved_group.type, resolved_group.button_label,
                                  resolved_episode, resolved_url, positional)
            else:
                # A page of this episode alone may only fill this episode's slot.
                own_url = resolved_group.links.get(episode)
                if own_url is None:
                    logger.debug('No entry for episode %s among %d resolved %s links',
                                 episode, len(resolved_group.links), resolved_group.type.value)
                    continue
                regrouper.add(resolved_group.type, resolved_group.button_label, episode,
                              own_url, positional)


def _link_histogram(sections: List[Section]) -> Tuple[int, Dict[str, int]]:
    histogram: Dict[str, int] = {}
    total = 0
    for section in sections:
        for group in section.links:
            if isinstance(group, LinkGroup):
                for link in group.links:
                    histogram[link.type.value] = histogram.get(link.type.value, 0) + 1
                    total += 1
            else:
                count = len(group.links)
                histogram[group.type.value] = histogram.get(group.type.value, 0) + count
                total += count
    return total, histogram


def assemble(sections: List[Section],
             resolutions: Mapping[LinkRef, ResolveResult]) -> Tuple[List[Section], LinkStats]:
    """Build the final sections from extracted *sections* and resolver output.

    Args:
        sections: Extractor output, in document order.
        resolutions: Resolver results keyed by ``(section_index,
            group_index, key)``; *key* is the link index (as a string) for
            ``LinkGroup`` entries and the episode key for
            ``EpisodeLinkGroup`` entries. Links without an entry are kept
            as extracted.

    Returns:
        ``(sections, stats)``; groups and sections left without links are
        dropped.
    """
    assembled: List[Section] = []
    for section_index, section in enumerate(sections):
        entries: List[GroupEntry] = []
        regrouper = _EpisodeRegrouper(entries)
        for group_index, group in enumerate(section.links):
            if isinstance(group, LinkGroup):
                entries.extend(_assemble_quality_group(group, section_index, group_index,
                                                       resolutions))
            else:
                _assemble_episode_group(group, section, section_index, group_index,
                                        resolutions, regrouper)

        entries = [entry for entry in entries if entry.links]
        if entries:
            assembled.append(Section(heading=section.heading, links=entries))

    total, histogram = _link_histogram(assembled)
    resolved = sum(1 for result in resolutions.values() if result.resolved)
    stats = LinkStats(
        total_links=total,
        indirect_links=len(resolutions),
        resolved=resolved,
        unresolved=len(resolutions) - resolved,
        histogram=histogram,
    )
    logger.debug('Assembled %d sections, %d links (%d resolved, %d unresolved)',
                 len(assembled), total, stats.resolved, stats.unresolved)
    return assembled, stats
