# File: llms_scout/utils.py
"""llms_scout.utils: URL normalisation, domain helpers and page-type heuristics."""

from __future__ import annotations

import ipaddress
import re
from typing import Collection, List, Sequence
from urllib.parse import urlparse, urlunparse

from llms_scout.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "hostname",
    "root_domain",
    "is_http_url",
    "is_content_url",
    "is_documentation_url",
    "is_homepage_url",
    "remove_duplicates",
)

# Public suffixes that take two labels (``example.co.uk``).
TWO_PART_SUFFIXES = frozenset(
    {
        "co.uk", "org.uk", "ac.uk", "gov.uk", "me.uk", "ltd.uk", "plc.uk",
        "com.au", "net.au", "org.au", "edu.au",
        "co.nz", "org.nz", "co.jp", "ne.jp", "or.jp",
        "co.in", "net.in", "org.in", "co.za", "org.za",
        "com.br", "net.br", "com.mx", "com.cn", "net.cn", "org.cn",
        "com.sg", "com.hk", "com.tw", "com.tr", "co.kr", "co.il",
    }
)

NON_CONTENT_EXTENSIONS = (
    ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".ico",
    ".css", ".js", ".json", ".xml",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".rar", ".tar", ".gz",
    ".mp3", ".mp4", ".avi", ".mov", ".wmv",
)
NON_CONTENT_PATHS = ("/wp-admin/", "/wp-login.php", "/cdn-cgi/")

DOC_HOST_PREFIXES = ("docs.", "developer.", "developers.", "api.", "help.", "support.", "wiki.")
_DOC_PATH_RE = re.compile(
    r"/(?:docs?|documentation|guides?|api|reference|manual|tutorials?|help|kb|"
    r"knowledge-?base|developers?|getting-started|quickstart|sdk)(?:/|$|[-_.])"
)
_HOMEPAGE_PATHS = frozenset({"", "/", "/home", "/index", "/index.html", "/index.htm", "/index.php"})


def normalize_url(url: str) -> str:
    """Canonical form used as the identity of a page.

    Adds ``https://`` when the scheme is missing, lower-cases scheme and host,
    drops the fragment and strips the trailing slash (except for the root path).
    """
    url = url.strip()
    if "://" not in url:
        url = "https://" + url.lstrip("/")
    parsed = urlparse(url)
    path = parsed.path or "/"
    if path != "/":
        path = path.rstrip("/") or "/"
    return urlunparse((parsed.scheme.lower(), parsed.netloc.lower(), path, parsed.params, parsed.query, ""))


def hostname(url: str) -> str:
    """Lower-cased hostname of *url* (without port), ``""`` when absent."""
    return (urlparse(url).hostname or "").lower()


def _is_ip(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def root_domain(host: str) -> str:
    """Strip subdomains: ``docs.acme.co.uk`` → ``acme.co.uk``, ``www.acme.com`` → ``acme.com``."""
    host = host.lower().strip(".")
    if not host or _is_ip(host):
        return host
    parts = host.split(".")
    if len(parts) <= 2:
        return host
    if ".".join(parts[-2:]) in TWO_PART_SUFFIXES:
        return ".".join(parts[-3:])
    return ".".join(parts[-2:])


def is_http_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_content_url(url: str) -> bool:
    """True when *url* likely points to an HTML page rather than an asset."""
    path = urlparse(url).path.lower()
    if path.endswith(NON_CONTENT_EXTENSIONS):
        return False
    return not any(marker in path or path == marker.rstrip("/") for marker in NON_CONTENT_PATHS)


def is_documentation_url(url: str) -> bool:
    """Hostname/path heuristic for documentation, guides and developer portals."""
    parsed = urlparse(url.lower())
    host = parsed.hostname or ""
    if host.startswith(DOC_HOST_PREFIXES):
        return True
    return bool(_DOC_PATH_RE.search(parsed.path or ""))


def is_homepage_url(url: str) -> bool:
    return urlparse(url).path.lower().rstrip("/") in _HOMEPAGE_PATHS


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
