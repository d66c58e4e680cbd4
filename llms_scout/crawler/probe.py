"""Модуль для проверки поддоменов документации и чтения sitemap.xml перед обходом."""

import asyncio
import logging
from typing import List, Optional, Sequence
from urllib.parse import urlparse, urlunparse

import aiohttp

from llms_scout.parser.sitemap_parser import is_sitemap_index, parse_sitemap
from llms_scout.utils import is_http_url

logger = logging.getLogger("LLMSScout.probe")


class ProbeResult:
    """Результат проверки одного кандидата."""

    def __init__(self, url: str, status: int) -> None:
        self.url: str = url
        self.status: int = status

    def __repr__(self) -> str:
        return f"<ProbeResult url={self.url} status={self.status}>"


class SubdomainProber:
    """HEAD-проверка типовых поддоменов (docs., help., support. …) корневого домена."""

    def __init__(
        self,
        root_domain: str,
        prefixes: Sequence[str],
        scheme: str = "https",
        timeout: float = 5.0,
        concurrency: int = 5,
    ) -> None:
        self.root_domain: str = root_domain
        self.prefixes: List[str] = [p.strip(".").lower() for p in prefixes if p.strip(".")]
        self.scheme: str = scheme
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.semaphore = asyncio.Semaphore(concurrency)

    def candidate_urls(self) -> List[str]:
        return [f"{self.scheme}://{prefix}.{self.root_domain}/" for prefix in self.prefixes]

    async def exists(self, session: aiohttp.ClientSession, url: str) -> Optional[ProbeResult]:
        """HEAD-запрос к URL; ProbeResult при статусе < 400, иначе None."""
        async with self.semaphore:
            try:
                async with session.head(url, allow_redirects=True, timeout=self.timeout) as response:
                    if response.status < 400:
                        return ProbeResult(str(response.url), response.status)
                    logger.debug("Probe %s -> HTTP %s", url, response.status)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.debug("Probe %s failed: %s", url, e)
        return None

    async def run(self, session: aiohttp.ClientSession, urls: Optional[Sequence[str]] = None) -> List[ProbeResult]:
        """Проверяет все кандидаты параллельно и возвращает существующие."""
        targets = list(urls) if urls is not None else self.candidate_urls()
        tasks = [asyncio.create_task(self.exists(session, url)) for url in targets]
        results = await asyncio.gather(*tasks)
        found = [r for r in results if r is not None]
        logger.info("Subdomain probe: %d of %d candidates respond", len(found), len(targets))
        return found


def sitemap_url(base_url: str) -> str:
    parsed = urlparse(base_url)
    return urlunparse((parsed.scheme, parsed.netloc, "/sitemap.xml", "", "", ""))


async def fetch_sitemap_urls(
    session: aiohttp.ClientSession,
    base_url: str,
    timeout: float = 10.0,
    limit: int = 500,
) -> List[str]:
    """Загружает /sitemap.xml (и один уровень sitemap index) и возвращает адреса страниц."""
    client_timeout = aiohttp.ClientTimeout(total=timeout)

    async def _get(url: str) -> bytes:
        async with session.get(url, timeout=client_timeout) as resp:
            if resp.status != 200:
                logger.debug("Sitemap %s -> HTTP %s", url, resp.status)
                return b""
            return await resp.read()

    try:
        content = await _get(sitemap_url(base_url))
        if not is_sitemap_index(content):
            return [u for u in parse_sitemap(content) if is_http_url(u)][:limit]
        urls: List[str] = []
        for child in parse_sitemap(content):
            if len(urls) >= limit:
                break
            urls.extend(u for u in parse_sitemap(await _get(child)) if is_http_url(u))
        return urls[:limit]
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.warning("Error loading sitemap for %s: %s", base_url, e)
        return []
