"""
Data models for the catalog scraping API layer.

All models use dataclasses for lightweight internal usage and easy
serialisation to dicts / JSON (for the FastAPI REST layer and the
document store).
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


def handle_empty_value(value):
    """Return *value* unless it is an empty string / None, in which case
    return ``None``."""
    return value if value not in ('', None) else None


# ---------------------------------------------------------------------------
# Link type
# ---------------------------------------------------------------------------

class LinkType(str, Enum):
    """Canonical download button type, derived from the button label."""
    DIRECT_HOST = 'G-Direct'
    CLOUD_MIRROR = 'V-Cloud'
    GDTOT = 'GDToT'
    FILEPRESS = 'Filepress'
    DROPGALAXY = 'DropGalaxy'
    BATCH_ARCHIVE = 'Batch/Zip'
    FAST_SERVER = 'Fast-Server'
    SHARER = 'Sharer'
    GENERIC = 'Download'

    def __str__(self) -> str:
        return self.value


class Layout(str, Enum):
    """Structural layout of a detail page."""
    EPISODE = 'episode'
    QUALITY = 'quality'

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

@dataclass
class DetailPage:
    """Raw detail-page HTML plus where it came from."""
    url: str
    html: str
    title: str = ''


# ---------------------------------------------------------------------------
# Download links
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DownloadLink:
    """A single typed download button.

    ``button_label`` is the full label text including any embedded size
    annotation (e.g. ``"G-Direct [650MB]"``).
    """
    button_label: str
    url: str
    type: LinkType = LinkType.GENERIC

    def to_dict(self) -> dict:
        return {
            'button_label': self.button_label,
            'url': self.url,
            'type': self.type.value,
        }


@dataclass
class LinkGroup:
    """One row of download buttons for a quality tier (or a batch archive)."""
    name: str
    quality: Optional[str] = None
    size: Optional[str] = None
    links: List[DownloadLink] = field(default_factory=list)
    type: Optional[LinkType] = None

    def __post_init__(self):
        self.quality = handle_empty_value(self.quality)
        self.size = handle_empty_value(self.size)

    def to_dict(self) -> dict:
        result = {
            'name': self.name,
            'quality': self.quality,
            'size': self.size,
            'links': [link.to_dict() for link in self.links],
        }
        if self.type is not None:
            result['type'] = self.type.value
        return result


@dataclass
class EpisodeLinkGroup:
    """Buttons of one type keyed by episode number.

    Episode keys are strings. Inserting an existing key overwrites it (last
    write wins). ``positional`` is set when episodes were paired with buttons
    by document position rather than by explicit episode markers.
    """
    button_label: str
    type: LinkType
    links: Dict[str, str] = field(default_factory=dict)
    positional: bool = False

    def to_dict(self) -> dict:
        return {
            'button_label': self.button_label,
            'type': self.type.value,
            'links': dict(self.links),
            'positional': self.positional,
        }


GroupEntry = Union[LinkGroup, EpisodeLinkGroup]


@dataclass
class Section:
    """A heading and the link groups found under it, in source order."""
    heading: str
    links: List[GroupEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'heading': self.heading,
            'links': [group.to_dict() for group in self.links],
        }


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

# (section_index, group_index, key) – key is the link index for quality
# groups and the episode key for episode groups.
LinkRef = Tuple[int, int, str]


@dataclass
class ResolveContext:
    """What the caller knows about the link being resolved."""
    episode_hint: Optional[str] = None
    group_label: Optional[str] = None
    sibling_episodes: Tuple[str, ...] = ()


@dataclass
class ResolveResult:
    """Output of resolving one indirect link."""
    links: List[DownloadLink] = field(default_factory=list)
    episode_groups: List[EpisodeLinkGroup] = field(default_factory=list)
    resolved: bool = False
    group_name: Optional[str] = None
    positional: bool = False

    @property
    def entry_count(self) -> int:
        return len(self.links) + len(self.episode_groups)


@dataclass
class LinkStats:
    """Per-document link diagnostics (observability only)."""
    total_links: int = 0
    indirect_links: int = 0
    resolved: int = 0
    unresolved: int = 0
    histogram: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

@dataclass
class NormalizedDocument:
    """All metadata and download sections extracted from one detail page."""
    title: Optional[str] = None
    release_year: Optional[str] = None
    language: Optional[str] = None
    quality: Optional[str] = None
    format: Optional[str] = 'MKV'
    synopsis: Optional[str] = None
    screenshots: List[str] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)
    imdb_rating: str = '-'
    content_type: str = 'movie'
    season: Optional[str] = None
    episode: Optional[str] = None
    subtitle: Optional[str] = 'English'
    size: Optional[str] = None
    episode_size: Optional[str] = None
    complete_zip: Optional[str] = None
    details: List[str] = field(default_factory=list)
    movie_notes: List[str] = field(default_factory=list)

    def __post_init__(self):
        for name in ('title', 'release_year', 'language', 'quality', 'format',
                     'synopsis', 'season', 'episode', 'subtitle', 'size',
                     'episode_size', 'complete_zip'):
            setattr(self, name, handle_empty_value(getattr(self, name)))

    def to_dict(self) -> dict:
        return {
            'title': self.title,
            'release_year': self.release_year,
            'language': self.language,
            'quality': self.quality,
            'format': self.format,
            'synopsis': self.synopsis,
            'screenshots': list(self.screenshots),
            'imdb_rating': self.imdb_rating,
            'content_type': self.content_type,
            'season': self.season,
            'episode': self.episode,
            'subtitle': self.subtitle,
            'size': self.size,
            'episode_size': self.episode_size,
            'complete_zip': self.complete_zip,
            'details': list(self.details),
            'movie_notes': list(self.movie_notes),
            'sections': [section.to_dict() for section in self.sections],
        }


@dataclass
class PipelineResult:
    """What ``DetailPipeline.process`` hands back to the orchestrator."""
    document: NormalizedDocument
    stats: LinkStats = field(default_factory=LinkStats)
    layout: Optional[Layout] = None

    def to_dict(self) -> dict:
        return {
            'document': self.document.to_dict(),
            'stats': self.stats.to_dict(),
            'layout': self.layout.value if self.layout else None,
        }


# ---------------------------------------------------------------------------
# Listing pages
# ---------------------------------------------------------------------------

@dataclass
class ListingEntry:
    """One title card as it appears on a catalog listing page."""
    title: str
    url: str
    date: str = ''
    thumbnail: str = ''
    page: int = 1

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ListingPageResult:
    """Result of parsing a catalog listing page."""
    has_entries: bool = False
    entries: List[ListingEntry] = field(default_factory=list)
    page: int = 1

    def to_dict(self) -> dict:
        return asdict(self)
