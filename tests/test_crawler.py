"""End-to-end tests for :class:`SiteArchiver` against a local site."""

import asyncio
import os
from collections import Counter

import pytest
from aiohttp import web

from site_archiver.crawler import SiteArchiver
from site_archiver.errors import SelectorContractError
from site_archiver.models import ScraperDefinition


_SERIES = """\
<html><body>
  <a class="chapter" href="/chapters/1">Chapter 1</a>
  <a class="chapter" href="/chapters/2">Chapter 2</a>
  <a class="chapter" href="http://elsewhere.invalid/3">Chapter 3</a>
</body></html>
"""

_CHAPTER = """\
<html><body>
  <img class="page" src="/img/{n}/a.jpg">
  <img class="page" src="/img/{n}/b.jpg">
  <img class="page" src="/img/{n}/c.jpg">
</body></html>
"""


def _site(hits: Counter, series: str = _SERIES) -> web.Application:
    async def series_page(request: web.Request) -> web.Response:
        hits[request.path] += 1
        return web.Response(text=series, content_type="text/html")

    async def chapter_page(request: web.Request) -> web.Response:
        hits[request.path] += 1
        return web.Response(text=_CHAPTER.format(n=request.match_info["n"]), content_type="text/html")

    async def image(request: web.Request) -> web.Response:
        hits[request.path] += 1
        return web.Response(body=request.path.encode(), content_type="image/jpeg")

    app = web.Application()
    app.router.add_get("/series", series_page)
    app.router.add_get("/chapters/{n}", chapter_page)
    app.router.add_get("/img/{n}/{name}", image)
    return app


def _definition(server, dest: str, steps) -> ScraperDefinition:
    return ScraperDefinition(
        dest=dest,
        urls=(str(server.make_url("/series")),),
        domain_whitelist=("127.0.0.1",),
        steps=steps,
    )


class TestSiteArchiver:
    def test_mirrors_series(self, tmp_path, serve, manga_steps, fast_settings) -> None:
        hits = Counter()
        root = os.path.join(str(tmp_path), "out", "manga")

        async def scenario():
            async with serve(_site(hits)) as server:
                archiver = SiteArchiver([_definition(server, root, manga_steps)], fast_settings)
                return await archiver.run()

        result = asyncio.run(scenario())

        assert sorted(os.listdir(root)) == ["Chapter 1", "Chapter 2"]
        for n in ("1", "2"):
            chapter = os.path.join(root, f"Chapter {n}")
            assert sorted(os.listdir(chapter)) == ["000-a.jpg", "001-b.jpg", "002-c.jpg"]
            with open(os.path.join(chapter, "001-b.jpg"), "rb") as f:
                assert f.read() == f"/img/{n}/b.jpg".encode()

        assert result.definitions == 1
        assert result.pages_processed == 3
        assert result.files_downloaded == 6
        assert result.files_failed == 0

    def test_second_run_is_idempotent(self, tmp_path, serve, manga_steps, fast_settings) -> None:
        hits = Counter()
        root = os.path.join(str(tmp_path), "out", "manga")

        async def scenario():
            async with serve(_site(hits)) as server:
                definition = _definition(server, root, manga_steps)
                await SiteArchiver([definition], fast_settings).run()
                after_first = Counter(hits)
                second = await SiteArchiver([definition], fast_settings).run()
                return after_first, second

        after_first, second = asyncio.run(scenario())

        new_hits = hits - after_first
        # Only the seed page is fetched again; no chapter pages and no images
        assert set(new_hits) <= {"/series"}
        assert second.files_downloaded == 0
        assert second.tasks_submitted == 0

    def test_resumes_partial_run(self, tmp_path, serve, manga_steps, fast_settings) -> None:
        hits = Counter()
        root = os.path.join(str(tmp_path), "out", "manga")
        os.makedirs(os.path.join(root, "Chapter 1"))

        async def scenario():
            async with serve(_site(hits)) as server:
                return await SiteArchiver([_definition(server, root, manga_steps)], fast_settings).run()

        result = asyncio.run(scenario())

        assert hits["/chapters/1"] == 0
        assert hits["/chapters/2"] == 1
        assert result.files_downloaded == 3

    def test_definitions_run_in_order(self, tmp_path, serve, manga_steps, fast_settings) -> None:
        hits = Counter()
        first = os.path.join(str(tmp_path), "first")
        second = os.path.join(str(tmp_path), "second")

        async def scenario():
            async with serve(_site(hits)) as server:
                definitions = [
                    _definition(server, first, manga_steps),
                    _definition(server, second, manga_steps[:1]),
                ]
                return await SiteArchiver(definitions, fast_settings).run()

        result = asyncio.run(scenario())

        assert result.definitions == 2
        # The second definition stops after link expansion: chapters are
        # fetched but their pages have no steps left
        assert not os.path.exists(second)
        assert len(os.listdir(first)) == 2

    def test_selector_contract_violation_aborts(self, tmp_path, serve, manga_steps, fast_settings) -> None:
        series = '<a class="chapter" href="/chapters/1">Chapter 1</a><a class="chapter">Chapter 2</a>'

        async def scenario():
            async with serve(_site(Counter(), series)) as server:
                await SiteArchiver(
                    [_definition(server, str(tmp_path / "out"), manga_steps)],
                    fast_settings,
                ).run()

        with pytest.raises(SelectorContractError):
            asyncio.run(scenario())
