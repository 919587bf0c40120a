import os
import sys
import json
import logging
import argparse
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Tuple

# Change to project root directory (parent of scripts folder)
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
os.chdir(project_root)
sys.path.insert(0, project_root)

from api.models import DetailPage, ListingEntry, PipelineResult
from api.parsers.common import DEFAULT_RESOLVER_HOSTS
from api.parsers.listing_parser import parse_listing_page
from api.pipeline import DetailPipeline
from utils.document_store import load_document_store, is_known_document, save_document
from utils.url_helper import listing_page_url

# Import unified configuration
try:
    from config import (
        BASE_URL, START_PAGE, END_PAGE,
        SPIDER_LOG_FILE, LOG_LEVEL, DOCUMENT_STORE_FILE,
        REQUEST_TIMEOUT, REQUEST_MAX_RETRIES, SESSION_COOKIE, USER_AGENT,
        PROXY_HTTP, PROXY_HTTPS
    )
except ImportError:
    # Fallback values if config.py doesn't exist
    BASE_URL = 'https://vegamovies.yoga'
    START_PAGE = 1
    END_PAGE = 1
    SPIDER_LOG_FILE = 'logs/spider.log'
    LOG_LEVEL = 'INFO'
    DOCUMENT_STORE_FILE = 'output/documents.json'
    REQUEST_TIMEOUT = 30
    REQUEST_MAX_RETRIES = 2
    SESSION_COOKIE = None
    USER_AGENT = None
    PROXY_HTTP = None
    PROXY_HTTPS = None

# Import request pacing configuration (with fallback)
try:
    from config import DELAY_LISTING, DELAY_DETAIL, DELAY_RESOLVER, DELAY_DEFAULT
except ImportError:
    DELAY_LISTING = (0.10, 0.05)
    DELAY_DETAIL = (0.15, 0.05)
    DELAY_RESOLVER = (0.15, 0.05)
    DELAY_DEFAULT = (0.15, 0.05)

# Import resolver / worker configuration (with fallback)
try:
    from config import RESOLVER_HOSTS, RESOLVER_MAX_DEPTH, SPIDER_WORKERS
except ImportError:
    RESOLVER_HOSTS = list(DEFAULT_RESOLVER_HOSTS)
    RESOLVER_MAX_DEPTH = 2
    SPIDER_WORKERS = 1

# Configure logging
from utils.logging_config import setup_logging
setup_logging(SPIDER_LOG_FILE, LOG_LEVEL)
logger = logging.getLogger(__name__)

# Import unified request handler
from utils.request_handler import RequestHandler, create_request_handler_from_config

# Per-thread request handler / pipeline (each worker owns its own session)
_worker_state = threading.local()


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description='Catalog Spider - Extract release metadata and download links from catalog pages')

    parser.add_argument('--start-page', type=int, default=START_PAGE,
                        help=f'Starting page number (default: {START_PAGE})')

    parser.add_argument('--end-page', type=int, default=END_PAGE,
                        help=f'Ending page number (default: {END_PAGE})')

    parser.add_argument('--all', action='store_true',
                        help='Parse all pages until an empty page is found (ignores --end-page)')

    parser.add_argument('--url', type=str,
                        help='Process a single detail page URL instead of listing pages')

    parser.add_argument('--force-update', action='store_true',
                        help='Re-process titles that are already in the document store')

    parser.add_argument('--dry-run', action='store_true',
                        help='Print documents that would be written without changing the store file')

    parser.add_argument('--no-resolve', action='store_true',
                        help='Do not follow indirect download links (keep resolver URLs)')

    parser.add_argument('--workers', type=int, default=SPIDER_WORKERS,
                        help=f'Number of detail pages processed concurrently (default: {SPIDER_WORKERS})')

    parser.add_argument('--store-file', type=str, default=DOCUMENT_STORE_FILE,
                        help=f'Document store JSON file (default: {DOCUMENT_STORE_FILE})')

    return parser.parse_args(argv)


def create_request_handler() -> RequestHandler:
    """Create a request handler from the loaded configuration."""
    return create_request_handler_from_config(
        base_url=BASE_URL,
        timeout=REQUEST_TIMEOUT,
        max_retries=REQUEST_MAX_RETRIES,
        session_cookie=SESSION_COOKIE,
        user_agent=USER_AGENT,
        proxy_http=PROXY_HTTP,
        proxy_https=PROXY_HTTPS,
        delay_listing=tuple(DELAY_LISTING),
        delay_detail=tuple(DELAY_DETAIL),
        delay_resolver=tuple(DELAY_RESOLVER),
        delay_default=tuple(DELAY_DEFAULT),
        resolver_hosts=tuple(RESOLVER_HOSTS),
    )


def get_worker_handler() -> RequestHandler:
    """Request handler owned by the current thread."""
    handler = getattr(_worker_state, 'handler', None)
    if handler is None:
        handler = create_request_handler()
        _worker_state.handler = handler
    return handler


def fetch_listing_entries(handler: RequestHandler, page_num: int) -> Optional[List[ListingEntry]]:
    """
    Fetch and parse one listing page.

    Returns:
        Entries in page order, an empty list for a page without entries, or
        None when the page could not be fetched
    """
    url = listing_page_url(BASE_URL, page_num)
    logger.info(f"Fetching listing page {page_num}: {url}")
    html = handler.get_page(url)
    if html is None:
        logger.error(f"Failed to fetch listing page {page_num}")
        return None

    result = parse_listing_page(html, page_num, BASE_URL)
    logger.info(f"Found {len(result.entries)} entries on page {page_num}")
    return result.entries


def select_entries(entries: List[ListingEntry], store, force_update: bool) -> List[ListingEntry]:
    """
    Pick the entries to process: last to first, skipping known titles
    unless force_update is set.
    """
    selected = []
    for entry in reversed(entries):
        if not force_update and is_known_document(store, entry.url):
            logger.debug(f"Skipping known title: {entry.title}")
            continue
        selected.append(entry)
    return selected


def process_entry(entry: ListingEntry, resolve: bool = True) -> Tuple[ListingEntry, Optional[PipelineResult]]:
    """
    Fetch one detail page and run it through the pipeline.

    Runs inside a worker thread; returns (entry, None) when the detail page
    cannot be fetched.
    """
    handler = get_worker_handler()
    html = handler.get_page(entry.url)
    if html is None:
        logger.error(f"Skipping {entry.url}: detail page could not be fetched")
        return entry, None

    pipeline = DetailPipeline(
        fetch=handler.fetch if resolve else None,
        resolver_hosts=RESOLVER_HOSTS,
        max_depth=RESOLVER_MAX_DEPTH,
    )
    result = pipeline.process(DetailPage(url=entry.url, html=html, title=entry.title))
    return entry, result


def store_result(entry: ListingEntry, result: PipelineResult, store, store_file: str,
                 dry_run: bool) -> None:
    """Persist one processed document (main thread only)."""
    document = result.document.to_dict()
    if dry_run:
        logger.info(f"[DRY-RUN] Would store {entry.url}:")
        logger.info(json.dumps(document, ensure_ascii=False, indent=2))
        return
    save_document(store_file, entry.url, document, title=entry.title, date=entry.date,
                  thumbnail=entry.thumbnail, store=store)


def process_entries(entries: List[ListingEntry], store, store_file: str, workers: int,
                    resolve: bool, dry_run: bool) -> Tuple[int, int]:
    """
    Process entries with a pool of workers.

    Returns:
        (processed count, failed count)
    """
    processed = 0
    failed = 0
    if not entries:
        return processed, failed

    with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        future_to_entry = {
            executor.submit(process_entry, entry, resolve): entry
            for entry in entries
        }

        for future in as_completed(future_to_entry):
            entry = future_to_entry[future]
            try:
                _, result = future.result()
            except Exception as e:
                logger.error(f"Error processing {entry.url}: {e}")
                failed += 1
                continue

            if result is None:
                failed += 1
                continue

            stats = result.stats
            logger.info(f"Processed '{result.document.title or entry.title}': "
                        f"{len(result.document.sections)} sections, {stats.total_links} links, "
                        f"{stats.unresolved} unresolved")
            store_result(entry, result, store, store_file, dry_run)
            processed += 1

    return processed, failed


def main(argv=None):
    args = parse_arguments(argv)

    logger.info("Starting catalog spider...")
    logger.info(f"Arguments: start_page={args.start_page}, end_page={args.end_page}, all={args.all}, "
                f"workers={args.workers}, resolve={not args.no_resolve}, dry_run={args.dry_run}")

    store = load_document_store(args.store_file)
    logger.info(f"Loaded {len(store)} documents from {args.store_file}")

    total_processed = 0
    total_failed = 0

    if args.url:
        entry = ListingEntry(title='', url=args.url)
        if not args.force_update and is_known_document(store, args.url):
            logger.info(f"{args.url} is already stored (use --force-update to re-process)")
            return 0
        total_processed, total_failed = process_entries(
            [entry], store, args.store_file, 1, not args.no_resolve, args.dry_run)
    else:
        listing_handler = create_request_handler()
        page_num = args.start_page
        while args.all or page_num <= args.end_page:
            entries = fetch_listing_entries(listing_handler, page_num)
            if entries is None:
                if args.all:
                    break
                page_num += 1
                continue
            if not entries:
                logger.info(f"No entries on page {page_num}, stopping")
                break

            selected = select_entries(entries, store, args.force_update)
            logger.info(f"Page {page_num}: {len(selected)} of {len(entries)} entries to process")
            processed, failed = process_entries(
                selected, store, args.store_file, args.workers, not args.no_resolve, args.dry_run)
            total_processed += processed
            total_failed += failed
            page_num += 1

    logger.info(f"Spider finished: {total_processed} documents processed, {total_failed} failed")
    return 0 if total_failed == 0 else 1


if __name__ == '__main__':
    sys.exit(main())
