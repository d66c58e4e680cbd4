# llms_scout/crawler/scope.py
"""
Domain scope tracking: which hostnames belong to the website being summarized.
"""
from __future__ import annotations

from typing import Set

from llms_scout.utils import (
    DOC_HOST_PREFIXES,
    hostname,
    is_documentation_url,
    is_http_url,
    root_domain,
)


class DomainScope:
    """Tracks the root domain, its same-site variants and related doc subdomains.

    ``is_in_scope`` never mutates state; ``observe`` remembers the first-seen
    qualifying subdomain so later lookups are a set membership test.
    """

    def __init__(self, seed_url: str) -> None:
        host = hostname(seed_url)
        if not host:
            raise ValueError(f"Seed URL has no hostname: {seed_url!r}")
        self.root_domain: str = root_domain(host)
        self.domain_variants: Set[str] = {host, self.root_domain}
        if self.root_domain.count(".") >= 1:
            self.domain_variants.add(f"www.{self.root_domain}")
        self.related_subdomains: Set[str] = set()

    def is_in_scope(self, url: str) -> bool:
        if not is_http_url(url):
            return False
        host = hostname(url)
        if host in self.domain_variants or host in self.related_subdomains:
            return True
        return self._qualifies(host, url)

    def observe(self, url: str) -> bool:
        """Record *url*'s host if it is a newly seen related subdomain. Idempotent."""
        if not is_http_url(url):
            return False
        host = hostname(url)
        if host in self.domain_variants or host in self.related_subdomains:
            return True
        if not self._qualifies(host, url):
            return False
        self.related_subdomains.add(host)
        return True

    def add_variant(self, url_or_host: str) -> None:
        """Register a same-site hostname, e.g. the host the seed redirected to."""
        host = hostname(url_or_host) if "://" in url_or_host else url_or_host.lower()
        if not host:
            return
        self.domain_variants.add(host)
        # A redirect to another registrable domain (acme.com → acme.io) widens the site.
        other_root = root_domain(host)
        if other_root != self.root_domain:
            self.domain_variants.add(other_root)

    def confirm_subdomain(self, host: str) -> bool:
        """Accept a probed subdomain of the root domain regardless of its prefix."""
        host = host.lower()
        if not self._under_root(host):
            return False
        self.related_subdomains.add(host)
        return True

    def _under_root(self, host: str) -> bool:
        return host.endswith("." + self.root_domain)

    def _qualifies(self, host: str, url: str) -> bool:
        if not self._under_root(host):
            return False
        return host.startswith(DOC_HOST_PREFIXES) or is_documentation_url(url)
