"""
Tests for api.parsers.quality_parser.
"""
import os
import sys

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from bs4 import BeautifulSoup

from api.models import LinkGroup, LinkType
from api.parsers.quality_parser import (
    DEFAULT_SECTION_HEADING,
    FALLBACK_GROUP_NAME,
    extract_fallback_sections,
    extract_quality_sections,
)


def _root(html):
    soup = BeautifulSoup(html, 'html.parser')
    return soup.find('main') or soup


class TestH5QualityHeadings:
    def test_two_tiers(self, quality_page_html):
        sections = extract_quality_sections(_root(quality_page_html))

        assert [s.heading for s in sections] == ['720p [700MB/E]', '1080p [1.4GB/E]']
        first = sections[0].links[0]
        assert isinstance(first, LinkGroup)
        assert first.name == 'G-Direct [700MB]'
        assert first.quality == '720p'
        assert first.size == '700MB/E'
        assert first.links[0].url == 'https://nexdrive.lol/movie-720p/'
        assert first.links[0].type is LinkType.DIRECT_HOST
        assert sections[1].links[0].size == '1.4GB/E'

    def test_three_tiers_keep_document_order(self, three_tier_page_html):
        sections = extract_quality_sections(_root(three_tier_page_html))

        assert [s.links[0].quality for s in sections] == ['480p', '720p', '1080p']
        for section in sections:
            assert len(section.links) == 1
            assert [link.type for link in section.links[0].links] == [
                LinkType.DIRECT_HOST, LinkType.GDTOT]

    def test_heading_without_paragraph_skipped(self):
        html = '''
        <main>
            <h5>480p</h5>
            <div><a href="https://nexdrive.lol/x/">G-Direct</a></div>
            <h5>720p</h5>
            <p><a href="https://nexdrive.lol/y/">G-Direct</a></p>
        </main>
        '''
        sections = extract_quality_sections(_root(html))
        assert [s.heading for s in sections] == ['720p']

    def test_bluray_heading(self):
        html = '<main><h5>BluRay Remux</h5><p><a href="https://nexdrive.lol/r/">Filepress</a></p></main>'
        sections = extract_quality_sections(_root(html))
        assert sections[0].links[0].quality is None
        assert sections[0].links[0].links[0].type is LinkType.FILEPRESS


class TestH3SeasonHeadings:
    def test_season_quality_heading(self):
        html = '''
        <main>
            <h3>Season 1 {Hindi-English} 720p</h3>
            <p><a href="https://nexdrive.lol/s1-720/"><button>Batch/Zip [3GB]</button></a></p>
            <h3>Unrelated heading</h3>
            <p><a href="https://nexdrive.lol/other/">G-Direct</a></p>
        </main>
        '''
        sections = extract_quality_sections(_root(html))
        assert len(sections) == 1
        group = sections[0].links[0]
        assert group.quality == '720p'
        assert group.links[0].type is LinkType.BATCH_ARCHIVE


class TestResolverHostFallback:
    def test_groups_by_previous_heading(self):
        html = '''
        <main>
            <h2>Movie 720p Links</h2>
            <div>
                <a href="https://nexdrive.lol/m720/">G-Direct</a>
                <a href="https://vcloud.example/direct">V-Cloud</a>
            </div>
            <h2>Movie 1080p Links</h2>
            <div><a href="https://gdflix.example/m1080/">GDToT</a></div>
        </main>
        '''
        sections = extract_quality_sections(_root(html))

        assert [s.heading for s in sections] == ['Movie 720p Links', 'Movie 1080p Links']
        # Only resolver-host anchors are taken
        assert len(sections[0].links[0].links) == 1
        assert sections[0].links[0].quality == '720p'

    def test_default_heading(self):
        html = '<main><div><a href="https://nexdrive.lol/x/">G-Direct</a></div></main>'
        sections = extract_quality_sections(_root(html))
        assert sections[0].heading == DEFAULT_SECTION_HEADING

    def test_custom_resolver_hosts(self):
        html = '<main><div><a href="https://links.example/x/">G-Direct</a></div></main>'
        assert extract_quality_sections(_root(html)) == []
        sections = extract_quality_sections(_root(html), resolver_hosts=('links.example',))
        assert len(sections) == 1

    def test_nothing_found(self):
        assert extract_quality_sections(_root('<main><p>No downloads</p></main>')) == []


class TestFallbackSections:
    def test_entry_inner_paragraphs(self):
        html = '''
        <div class="entry-inner">
            <p>Intro without links</p>
            <p><a href="https://files.example/a">Mirror A</a></p>
            <p><a href="https://files.example/b"><button>V-Cloud</button></a></p>
        </div>
        '''
        sections = extract_fallback_sections(BeautifulSoup(html, 'html.parser'))

        assert len(sections) == 2
        assert sections[0].links[0].name == FALLBACK_GROUP_NAME
        assert sections[0].links[0].links[0].type is LinkType.GENERIC
        assert sections[1].links[0].links[0].type is LinkType.CLOUD_MIRROR

    def test_no_container(self):
        assert extract_fallback_sections(BeautifulSoup('<p><a href="x">y</a></p>', 'html.parser')) == []
