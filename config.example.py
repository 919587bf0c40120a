"""
Example configuration file for the Catalog Spider
Copy this file to config.py and fill in your actual values
"""

# === Site Configuration ===
BASE_URL = 'https://vegamovies.yoga'
START_PAGE = 1
END_PAGE = 5

# === Logging Configuration ===
LOG_LEVEL = 'INFO'  # Options: DEBUG, INFO, WARNING, ERROR, CRITICAL
SPIDER_LOG_FILE = 'logs/spider.log'

# === Storage Configuration ===
DOCUMENT_STORE_FILE = 'output/documents.json'

# === Request Configuration ===
REQUEST_TIMEOUT = 30  # Seconds per request
REQUEST_MAX_RETRIES = 2  # Extra attempts on network errors / 408, 429, 5xx...
SESSION_COOKIE = None  # e.g. 'cf_clearance=...'
USER_AGENT = None  # None keeps the built-in browser User-Agent

# Delay before each request: (minimum seconds, random extra seconds)
DELAY_LISTING = (0.10, 0.05)  # Listing pages (/page/N/)
DELAY_DETAIL = (0.15, 0.05)  # Detail pages
DELAY_RESOLVER = (0.15, 0.05)  # Resolver pages
DELAY_DEFAULT = (0.15, 0.05)

# === Proxy Configuration ===
PROXY_HTTP = None  # e.g. 'http://127.0.0.1:7890'
PROXY_HTTPS = None

# === Resolver Configuration ===
# Host fragments of pages that list the real download buttons
RESOLVER_HOSTS = ['nexdrive.lol', 'gdtot', 'gdflix', 'driveleech']
RESOLVER_MAX_DEPTH = 2  # Resolver hops followed per link

# === Spider Configuration ===
SPIDER_WORKERS = 1  # Detail pages processed concurrently
