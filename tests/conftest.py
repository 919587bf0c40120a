"""
Pytest configuration and fixtures for Catalog AutoSpider tests.
"""
import os
import sys

# Add project root to path for imports
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

import pytest
import tempfile
import shutil

import requests


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield temp_path
    # Cleanup after test
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fake_fetch():
    """Return a factory building a fetch callable backed by a dict of pages.

    Unknown URLs raise ``requests.Timeout``; every requested URL is recorded
    in ``fetch.calls``.
    """
    def factory(pages):
        def fetch(url):
            fetch.calls.append(url)
            if url not in pages:
                raise requests.Timeout(f'timed out: {url}')
            return pages[url]
        fetch.calls = []
        return fetch
    return factory


@pytest.fixture
def episode_page_html():
    """Episode-based detail page: two episode headings, one V-Cloud button each."""
    return '''
    <html>
    <body>
    <main>
        <h4>Episodes: 1</h4>
        <p><a href="https://nexdrive.lol/show-s01e01/"><button>V-Cloud [Resumable]</button></a></p>
        <h4>Episodes: 2</h4>
        <p><a href="https://nexdrive.lol/show-s01e02/"><button>V-Cloud [Resumable]</button></a></p>
    </main>
    </body>
    </html>
    '''


@pytest.fixture
def season_page_html():
    """Episode-based page with two season sections."""
    return '''
    <html>
    <body>
    <main>
        <h3>Season 1 {Hindi-English} 720p [350MB/E]</h3>
        <h4>-:Episodes: 1:-</h4>
        <p><a href="https://nexdrive.lol/s1e1/"><button>G-Direct [350MB]</button></a></p>
        <h4>-:Episodes: 2:-</h4>
        <p><a href="https://nexdrive.lol/s1e2/"><button>G-Direct [350MB]</button></a></p>
        <h3>Season 1 {Hindi-English} 1080p [1GB/E]</h3>
        <h4>-:Episodes: 1:-</h4>
        <p><a href="https://nexdrive.lol/s1e1-1080/"><button>G-Direct [1GB]</button></a></p>
    </main>
    </body>
    </html>
    '''


@pytest.fixture
def detached_episode_page_html():
    """Episode headings and their buttons live in separate containers."""
    return '''
    <html>
    <body>
    <main>
        <div class="episode-list">
            <h4>Episode 1</h4>
            <h4>Episode 2</h4>
        </div>
        <div class="button-list">
            <a href="https://nexdrive.lol/e1/"><button>G-Direct [300MB]</button></a>
            <a href="https://nexdrive.lol/e2/"><button>G-Direct [300MB]</button></a>
            <a href="https://nexdrive.lol/v1/"><button>V-Cloud [Resumable]</button></a>
        </div>
    </main>
    </body>
    </html>
    '''


@pytest.fixture
def quality_page_html():
    """Quality-based detail page with two h5 tiers."""
    return '''
    <html>
    <body>
    <main>
        <h5>720p [700MB/E]</h5>
        <p><a href="https://nexdrive.lol/movie-720p/"><button>G-Direct [700MB]</button></a></p>
        <h5>1080p [1.4GB/E]</h5>
        <p><a href="https://nexdrive.lol/movie-1080p/"><button>G-Direct [1.4GB]</button></a></p>
    </main>
    </body>
    </html>
    '''


@pytest.fixture
def three_tier_page_html():
    """Quality page with 3 tiers and 2 buttons per tier."""
    tiers = []
    for quality, size in (('480p', '400MB'), ('720p', '1GB'), ('1080p', '2.2GB')):
        tiers.append(f'''
        <h5>Movie {quality} [{size}]</h5>
        <p>
            <a href="https://nexdrive.lol/movie-{quality}/"><button>G-Direct [{size}]</button></a>
            <a href="https://gdflix.example/movie-{quality}/"><button>GDToT [{size}]</button></a>
        </p>''')
    return '<html><body><main>' + ''.join(tiers) + '</main></body></html>'


@pytest.fixture
def batch_page_html():
    """Quality page whose only button is a batch archive."""
    return '''
    <html>
    <body>
    <main>
        <h5>Season 1 720p [4GB]</h5>
        <p><a href="https://nexdrive.lol/show-s01-zip/"><button>Batch/Zip [4GB]</button></a></p>
    </main>
    </body>
    </html>
    '''


@pytest.fixture
def batch_resolver_html():
    """Resolver page of a batch archive: three mirror buttons."""
    return '''
    <html>
    <body>
    <div class="entry themeform">
        <p><a href="https://fastdl.example/show-s01.zip"><button>Fast [Resumable]</button></a></p>
        <p><a href="https://vcloud.example/show-s01.zip"><button>Drive-[No Login]</button></a></p>
        <p><a href="https://sharer.example/show-s01.zip"><button>Drive-[Sharer]</button></a></p>
        <p><a href="#respond">Leave a reply</a></p>
    </div>
    </body>
    </html>
    '''


@pytest.fixture
def movie_resolver_html():
    """Non-episodic resolver page with duplicate mirrors."""
    return '''
    <html>
    <body>
    <div class="entry themeform">
        <p><a href="https://gdirect.example/file-fast"><button>G-Direct [700MB]</button></a></p>
        <p><a href="https://gdirect.example/file-slow"><button>G-Direct [700MB] (slow)</button></a></p>
        <p><a href="https://vcloud.example/file"><button>V-Cloud [Resumable]</button></a></p>
        <p><a href="https://filepress.example/file">Filepress</a></p>
    </div>
    </body>
    </html>
    '''


@pytest.fixture
def episode_resolver_html():
    """Resolver page listing buttons per episode heading."""
    return '''
    <html>
    <body>
    <div class="entry themeform">
        <h3>-:Episodes: 1:-</h3>
        <p>
            <a href="https://fastdl.example/ep1"><button>Fast [Resumable]</button></a>
            <a href="https://vcloud.example/ep1"><button>V-Cloud</button></a>
        </p>
        <hr>
        <h3>-:Episodes: 2:-</h3>
        <p>
            <a href="https://fastdl.example/ep2"><button>Fast [Resumable]</button></a>
            <a href="https://vcloud.example/ep2"><button>V-Cloud</button></a>
        </p>
    </div>
    </body>
    </html>
    '''


@pytest.fixture
def detail_page_html():
    """Movie detail page with metadata and a quality download tier."""
    return '''
    <html>
    <body>
    <main>
        <h1 class="post-title">Download Example Movie (2023) Hindi-English 720p</h1>
        <div class="entry-inner">
            <p>Download Example Movie (2023) in Hindi-English dual audio, available in 480p and 720p.</p>
            <p><strong>IMDb Rating:</strong> 7.5/10<br>
            Release Year: 2023<br>
            Language: Hindi-English<br>
            Size: 400MB || 1GB<br>
            Quality: 480p || 720p<br>
            Format: MKV</p>
            <h3>Synopsis/Plot:</h3>
            <p>A retired detective returns for one final case that brings him face to face with the past he tried to forget.</p>
            <h3>Screenshots:</h3>
            <p>
                <img src="https://imgbb.top/ib/shot1.png">
                <img src="https://imgbb.top/ib/shot2.png">
            </p>
            <p style="text-align: center;">Watch online or DOWNLOAD in HD</p>
            <p style="text-align: center;">Subtitles included</p>
            <hr>
            <h5>720p [1GB]</h5>
            <p><a href="https://nexdrive.lol/example-720p/"><button>G-Direct [1GB]</button></a></p>
        </div>
    </main>
    </body>
    </html>
    '''


@pytest.fixture
def series_detail_html():
    """Series detail page with label metadata."""
    return '''
    <html>
    <body>
    <main>
        <h1 class="post-title">Download Example Show (Season 1) Hindi 720p</h1>
        <div class="entry-inner">
            <p>Series Name: Example Show<br>
            Season: 1<br>
            Episode: 8<br>
            Language: Hindi<br>
            Subtitle: English<br>
            Released Year: 2024<br>
            Episode Size: 300MB<br>
            Complete Zip: 2.4GB<br>
            Quality: 720p</p>
        </div>
    </main>
    </body>
    </html>
    '''


@pytest.fixture
def listing_page_html():
    """Catalog listing page with three title cards."""
    return '''
    <html>
    <body>
    <main>
        <article class="post">
            <img src="https://catalog.example/wp-content/uploads/2024/01/first.jpg">
            <h2 class="entry-title"><a href="https://catalog.example/download-first-movie-2023/">Download First Movie (2023)</a></h2>
            <time class="published" datetime="2024-01-15T10:30:00+00:00">January 15, 2024</time>
        </article>
        <article class="post">
            <img src="/wp-content/uploads/2024/01/second.jpg">
            <h2 class="entry-title"><a href="/download-second-show-2024/">Download Second Show (2024)</a></h2>
            <div class="post-byline"><time>January 14, 2024</time></div>
        </article>
        <article class="post">
            <h2 class="entry-title"><a href="https://catalog.example/download-third-2022/">Download Third (2022)</a></h2>
            <span class="entry-date">January 13, 2024</span>
        </article>
    </main>
    </body>
    </html>
    '''
