"""
Document Store - JSON file persistence for normalized documents

Documents are keyed by their normalized detail-page URL (see
``utils.url_helper.normalize_url``) so a title keeps one record even when the
catalog changes domain. Saving an existing URL updates the record in place:
``create_date`` is kept and ``update_date`` refreshed.

File layout::

    {
      "download-show-2023": {
        "url": "download-show-2023",
        "source_url": "https://catalog.example/download-show-2023/",
        "title": "Show", "date": "...", "thumbnail": "...",
        "create_date": "2025-01-01 10:00:00",
        "update_date": "2025-01-02 09:30:00",
        "document": { ...NormalizedDocument.to_dict()... }
      }
    }

The file is rewritten atomically (temporary file + ``os.replace``).
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from typing import Dict, Optional

from utils.url_helper import normalize_url

logger = logging.getLogger(__name__)


def load_document_store(store_file) -> Dict[str, dict]:
    """Load all stored documents keyed by normalized URL.

    A missing file yields an empty store. An unreadable file is logged and
    treated as empty; it is not overwritten until the next save.
    """
    if not os.path.exists(store_file):
        return {}

    try:
        with open(store_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error reading document store {store_file}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Document store {store_file} is not a JSON object, ignoring its contents")
        return {}

    logger.debug(f"Loaded {len(data)} documents from {store_file}")
    return data


def is_known_document(store: Dict[str, dict], url) -> bool:
    """Check whether the document for *url* is already stored."""
    return normalize_url(url) in store


def _write_store(store_file, store: Dict[str, dict]) -> None:
    store_dir = os.path.dirname(os.path.abspath(store_file))
    os.makedirs(store_dir, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(prefix='.store-', suffix='.json', dir=store_dir)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(store, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, store_file)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def save_document(store_file, url, document: dict, title: str = '', date: str = '',
                  thumbnail: str = '', store: Optional[Dict[str, dict]] = None) -> dict:
    """Insert or update the document for *url* and write the store file.

    Args:
        store_file: Path of the JSON store
        url: Detail-page URL (absolute or relative)
        document: Serialized document (``NormalizedDocument.to_dict()``)
        title: Listing title
        date: Listing publish date
        thumbnail: Listing thumbnail path
        store: Already-loaded store to update in place; loaded from disk
            when omitted

    Returns:
        The stored record
    """
    if store is None:
        store = load_document_store(store_file)

    key = normalize_url(url)
    current_time = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    existing = store.get(key)

    record = {
        'url': key,
        'source_url': url,
        'title': title or (existing or {}).get('title', ''),
        'date': date or (existing or {}).get('date', ''),
        'thumbnail': thumbnail or (existing or {}).get('thumbnail', ''),
        'create_date': existing.get('create_date', current_time) if existing else current_time,
        'update_date': current_time,
        'document': document,
    }
    store[key] = record
    _write_store(store_file, store)

    if existing:
        logger.info(f"Updated document in store: {key}")
    else:
        logger.info(f"Added document to store: {key}")
    return record
