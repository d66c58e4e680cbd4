# File: tests/test_probe.py
# Subdomain probing and sitemap discovery against a local aiohttp server
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web

from llms_scout.config import CrawlBudget, ScoutConfig
from llms_scout.crawler.crawler import BatchCrawler
from llms_scout.crawler.probe import SubdomainProber, fetch_sitemap_urls, sitemap_url

URLSET = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
{entries}
</urlset>"""

INDEX = """<?xml version="1.0" encoding="UTF-8"?>
<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <sitemap><loc>{base}/sitemap-pages.xml</loc></sitemap>
  <sitemap><loc>{base}/sitemap-missing.xml</loc></sitemap>
</sitemapindex>"""


def urlset(*locs: str) -> str:
    return URLSET.format(entries="\n".join(f"  <url><loc>{loc}</loc></url>" for loc in locs))


async def _serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


@pytest_asyncio.fixture()
async def flat_site(unused_tcp_port: int) -> AsyncIterator[str]:
    """Сервер с /ok, медленным /slow и плоским sitemap.xml."""
    base = f"http://localhost:{unused_tcp_port}"

    async def ok(_request: web.Request) -> web.Response:
        return web.Response(text="ok")

    async def slow(_request: web.Request) -> web.Response:
        await asyncio.sleep(2)
        return web.Response(text="late")

    async def sitemap(_request: web.Request) -> web.Response:
        body = urlset(f"{base}/", f"{base}/docs", f"{base}/pricing", "ftp://files.example/x")
        return web.Response(text=body, content_type="application/xml")

    app = web.Application()
    app.router.add_get("/ok", ok)
    app.router.add_get("/slow", slow)
    app.router.add_get("/sitemap.xml", sitemap)
    async for url in _serve_app(app, unused_tcp_port):
        yield url


@pytest_asyncio.fixture()
async def indexed_site(unused_tcp_port: int) -> AsyncIterator[str]:
    """Сервер, где sitemap.xml является индексом из двух файлов, один из которых отсутствует."""
    base = f"http://localhost:{unused_tcp_port}"

    async def index(_request: web.Request) -> web.Response:
        return web.Response(text=INDEX.format(base=base), content_type="application/xml")

    async def pages(_request: web.Request) -> web.Response:
        return web.Response(text=urlset(f"{base}/a", f"{base}/b", f"{base}/c"), content_type="application/xml")

    app = web.Application()
    app.router.add_get("/sitemap.xml", index)
    app.router.add_get("/sitemap-pages.xml", pages)
    async for url in _serve_app(app, unused_tcp_port):
        yield url


@pytest_asyncio.fixture()
async def bare_site(unused_tcp_port: int) -> AsyncIterator[str]:
    """Сервер без sitemap.xml."""
    async for url in _serve_app(web.Application(), unused_tcp_port):
        yield url


def test_candidate_urls():
    prober = SubdomainProber("acme.example", ["docs", ".help.", ""])
    assert prober.candidate_urls() == ["https://docs.acme.example/", "https://help.acme.example/"]
    assert sitemap_url("https://acme.example/about?x=1") == "https://acme.example/sitemap.xml"


@pytest.mark.asyncio()
async def test_probe_reports_only_live_targets(flat_site):
    prober = SubdomainProber("localhost", [], timeout=0.5, concurrency=2)
    async with aiohttp.ClientSession() as session:
        found = await prober.run(session, [f"{flat_site}/ok", f"{flat_site}/missing", f"{flat_site}/slow"])
    assert [(r.url, r.status) for r in found] == [(f"{flat_site}/ok", 200)]


@pytest.mark.asyncio()
async def test_probe_unreachable_host_is_not_an_error():
    prober = SubdomainProber("invalid", ["docs"], scheme="http", timeout=0.5)
    async with aiohttp.ClientSession() as session:
        assert await prober.run(session) == []


@pytest.mark.asyncio()
async def test_sitemap_flat(flat_site):
    async with aiohttp.ClientSession() as session:
        urls = await fetch_sitemap_urls(session, flat_site)
        limited = await fetch_sitemap_urls(session, flat_site, limit=2)
    assert urls == [f"{flat_site}/", f"{flat_site}/docs", f"{flat_site}/pricing"]
    assert limited == urls[:2]


@pytest.mark.asyncio()
async def test_sitemap_index_follows_children(indexed_site):
    async with aiohttp.ClientSession() as session:
        urls = await fetch_sitemap_urls(session, indexed_site)
    assert urls == [f"{indexed_site}/a", f"{indexed_site}/b", f"{indexed_site}/c"]


@pytest.mark.asyncio()
async def test_missing_sitemap_yields_nothing(bare_site):
    async with aiohttp.ClientSession() as session:
        assert await fetch_sitemap_urls(session, bare_site) == []


@pytest.mark.asyncio()
async def test_crawler_seeds_frontier_from_sitemap(flat_site, fake_renderer, html):
    config = ScoutConfig(
        short=CrawlBudget(max_pages=5, max_depth=2, batch_size=5, concurrency=2),
        settle_delay=0,
        probe_subdomains=False,
        use_sitemap=True,
        min_content_chars=20,
    )
    renderer = fake_renderer(
        {
            f"{flat_site}/": html("Home"),
            f"{flat_site}/docs": html("Docs"),
            f"{flat_site}/pricing": html("Pricing"),
        }
    )
    async with aiohttp.ClientSession() as session:
        async with BatchCrawler(config, flat_site, renderer=renderer, session=session) as crawler:
            result = await crawler.crawl()
        assert not session.closed
    # the seed has no links; everything else came from the sitemap, docs first
    assert result.visited == [f"{flat_site}/", f"{flat_site}/docs", f"{flat_site}/pricing"]
    assert result.stats.succeeded == 3
