# File: tests/test_engine.py
"""Полный цикл Engine: обход (фейковый браузер) → секции по партиям → документ."""
import asyncio
import json

import pytest

from llms_scout.config import CrawlBudget, CrawlMode, ModelTier
from llms_scout.consolidator import ConsolidatedDocument
from llms_scout.crawler.fetcher import PlaywrightRenderer
from llms_scout.engine import Engine, start_scan
from llms_scout.errors import GenerationError, SeedFetchError
from llms_scout.generation.sections import SectionKind
from llms_scout.report import render_json, render_text


class RecordingSink:
    def __init__(self):
        self.documents = []
        self.failures = []

    def on_sections_ready(self, document):
        self.documents.append(document)

    async def on_failure(self, error):
        self.failures.append(error)


@pytest.fixture()
def engine(scout_config, acme_site, generator, fake_renderer):
    return Engine(scout_config, generator=generator, renderer_factory=lambda _cfg: fake_renderer(acme_site))


@pytest.mark.asyncio()
async def test_generates_document_for_site(engine, generator):
    sink = RecordingSink()
    result = await engine.generate("Acme", "Rockets for everyone", "https://acme.example", sink=sink)
    text = result.text

    assert text.startswith("# Acme\n\n> Rockets for everyone\n\n## Mission\n\nAcme builds reusable rockets.\n\n")
    assert text.endswith("\n") and not text.endswith("\n\n")
    assert text.index("## Mission") < text.index("## Important Links") < text.index("## Policies")
    assert "## Products and Services" not in text
    assert "- [Privacy Policy](https://acme.example/privacy): policies page" in text
    # link versions of both batches merged into categories, one entry per URL
    assert "### Documentation\n- [Acme Documentation](https://acme.example/docs): links page\n" in text
    assert "- [Getting started](https://acme.example/docs/start): links page" in text
    assert "### Company\n- [About Acme](https://acme.example/about): links page" in text
    assert text.count("(https://acme.example/docs)") == 1
    # every link in the document was observed during the crawl
    visited = set(result.crawl.visited)
    for url in ("https://acme.example/", "https://acme.example/docs", "https://acme.example/privacy"):
        assert url in visited

    assert result.mode is CrawlMode.SHORT
    assert result.filename == "llms.txt"
    assert generator.calls_for("consolidate") == []
    assert sink.documents == [result.document]
    assert sink.failures == []


@pytest.mark.asyncio()
async def test_batches_drive_section_requests(engine, generator):
    result = await engine.generate("Acme", "Rockets", "https://acme.example")
    assert len(generator.calls_for("mission")) == 1
    assert len(generator.calls_for("links")) == 2
    assert len(generator.calls_for("policies")) == 1
    assert generator.calls_for("products") == []
    skipped = [e.detail for e in result.events if e.kind == "section_skipped"]
    assert "products: no qualifying pages" in skipped


@pytest.mark.asyncio()
async def test_full_mode_uses_large_tier(scout_config, acme_site, generator, fake_renderer):
    config = scout_config.model_copy(
        update={
            "mode": CrawlMode.FULL,
            "full": CrawlBudget(max_pages=5, max_depth=2, batch_size=2, concurrency=2, model_tier=ModelTier.LARGE),
        }
    )
    engine = Engine(config, generator=generator, renderer_factory=lambda _cfg: fake_renderer(acme_site))
    result = await engine.generate("Acme", "Rockets", "https://acme.example")
    assert result.filename == "llms-full.txt"
    assert set(generator.tiers) == {ModelTier.LARGE}
    assert "two or three paragraphs" in generator.calls_for("mission")[0]


@pytest.mark.asyncio()
async def test_seed_failure_reaches_sink(scout_config, generator, fake_renderer):
    sink = RecordingSink()
    engine = Engine(scout_config, generator=generator, renderer_factory=lambda _cfg: fake_renderer({}))
    with pytest.raises(SeedFetchError, match="HTTP 404"):
        await engine.generate("Acme", "Rockets", "https://acme.example", sink=sink)
    assert isinstance(sink.failures[0], SeedFetchError)
    assert sink.documents == []
    assert generator.prompts == []


@pytest.mark.asyncio()
async def test_no_section_content_is_an_error(scout_config, acme_site, scripted, fake_renderer):
    sink = RecordingSink()
    gen = scripted(fail={"mission", "products", "links", "policies"})
    engine = Engine(scout_config, generator=gen, renderer_factory=lambda _cfg: fake_renderer(acme_site))
    with pytest.raises(GenerationError, match="No section content"):
        await engine.generate("Acme", "Rockets", "https://acme.example", sink=sink)
    assert isinstance(sink.failures[0], GenerationError)


@pytest.mark.asyncio()
async def test_partial_failures_degrade(scout_config, acme_site, scripted, fake_renderer):
    gen = scripted(fail={"mission"})
    engine = Engine(scout_config, generator=gen, renderer_factory=lambda _cfg: fake_renderer(acme_site))
    result = await engine.generate("Acme", "Rockets", "https://acme.example")
    assert SectionKind.MISSION not in result.document.sections
    assert "## Important Links" in result.text
    assert [e.kind for e in result.events].count("section_failed") == 1


@pytest.mark.asyncio()
async def test_start_scan_wraps_engine(scout_config, generator, monkeypatch, fake_renderer, html):
    pages = {
        "https://acme.example/": html("Acme", links=[("/pricing", "Pricing")]),
        "https://acme.example/pricing": html("Pricing plans"),
    }
    monkeypatch.setattr(PlaywrightRenderer, "from_config", staticmethod(lambda _cfg: fake_renderer(pages)))
    result = await start_scan(scout_config, "https://acme.example", "Acme", "Rockets", generator=generator)
    assert "[Pricing plans](https://acme.example/pricing): products page" in result.text


def test_run_respects_timeout(scout_config, acme_site, generator, fake_renderer):
    renderer = fake_renderer(acme_site, delay=1.0)
    engine = Engine(scout_config, generator=generator, renderer_factory=lambda _cfg: renderer)
    with pytest.raises(asyncio.TimeoutError):
        engine.run("Acme", "Rockets", "https://acme.example", timeout=0.05)
    assert renderer.closed


@pytest.mark.asyncio()
async def test_reports_written_to_disk(engine, tmp_path):
    result = await engine.generate("Acme", "Rockets for everyone", "https://acme.example")

    text_path = render_text(result.document, tmp_path / "out" / result.filename)
    assert text_path.read_text(encoding="utf-8") == result.text
    assert render_text("plain", tmp_path / "plain.txt").read_text(encoding="utf-8") == "plain"

    json_path = render_json(result, tmp_path / "report.json")
    data = json.loads(json_path.read_text(encoding="utf-8"))
    assert data["mode"] == "short"
    assert data["output_file"] == "llms.txt"
    assert data["document"] == result.text
    assert data["sections"] == ["mission", "links", "policies"]
    assert data["state"] == "done"
    assert data["stats"] == {"attempted": 5, "succeeded": 5, "failed": 0, "batches": 2}
    assert [p["url"] for p in data["pages"]][0] == "https://acme.example/"
    assert any(e["kind"] == "section_skipped" for e in data["events"])


def test_document_str_matches_render():
    doc = ConsolidatedDocument(title="Acme", sections={SectionKind.MISSION: "## Mission\nm"})
    assert str(doc) == "# Acme\n\n## Mission\nm\n"
