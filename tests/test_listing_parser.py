"""
Tests for api.parsers.listing_parser.
"""
import os
import sys

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from api.parsers.listing_parser import parse_listing_page


BASE_URL = 'https://catalog.example'


class TestParseListingPage:
    def test_entries_in_page_order(self, listing_page_html):
        result = parse_listing_page(listing_page_html, page_num=2, base_url=BASE_URL)

        assert result.has_entries is True
        assert result.page == 2
        assert [e.title for e in result.entries] == [
            'Download First Movie (2023)',
            'Download Second Show (2024)',
            'Download Third (2022)',
        ]
        assert all(e.page == 2 for e in result.entries)

    def test_relative_url_made_absolute(self, listing_page_html):
        result = parse_listing_page(listing_page_html, base_url=BASE_URL)
        assert result.entries[1].url == 'https://catalog.example/download-second-show-2024/'
        assert result.entries[0].url == 'https://catalog.example/download-first-movie-2023/'

    def test_published_datetime_normalized(self, listing_page_html):
        result = parse_listing_page(listing_page_html, base_url=BASE_URL)
        assert result.entries[0].date == '2024-01-15T10:30:00.000Z'

    def test_datetime_converted_to_utc(self):
        html = '''
        <article>
            <h2 class="entry-title"><a href="/a/">A</a></h2>
            <time class="published" datetime="2024-01-15T15:30:00+05:30"></time>
        </article>
        '''
        result = parse_listing_page(html, base_url=BASE_URL)
        assert result.entries[0].date == '2024-01-15T10:00:00.000Z'

    def test_unparseable_datetime_kept(self):
        html = '''
        <article>
            <h2 class="entry-title"><a href="/a/">A</a></h2>
            <time class="published" datetime="yesterday"></time>
        </article>
        '''
        assert parse_listing_page(html).entries[0].date == 'yesterday'

    def test_byline_and_entry_date_fallbacks(self, listing_page_html):
        result = parse_listing_page(listing_page_html, base_url=BASE_URL)
        assert result.entries[1].date == 'January 14, 2024'
        assert result.entries[2].date == 'January 13, 2024'

    def test_thumbnails(self, listing_page_html):
        result = parse_listing_page(listing_page_html, base_url=BASE_URL)
        assert result.entries[0].thumbnail == 'wp-content/uploads/2024/01/first.jpg'
        assert result.entries[1].thumbnail == 'wp-content/uploads/2024/01/second.jpg'
        assert result.entries[2].thumbnail == ''

    def test_empty_page(self):
        result = parse_listing_page('<html><body><p>Nothing found</p></body></html>', page_num=9)
        assert result.has_entries is False
        assert result.entries == []
        assert result.page == 9

    def test_card_without_title_skipped(self):
        html = '<h2 class="entry-title"><a href="/x/">  </a></h2>'
        assert parse_listing_page(html).entries == []
