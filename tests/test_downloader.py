"""Tests for the download executor.

Resources are served by a local ``aiohttp.web`` app; pacing is observed by
replacing the executor's ``_pause`` coroutine on the instance.
"""

import asyncio
import os

import aiohttp
from aiohttp import web

from site_archiver.crawler.downloader import DownloadExecutor
from site_archiver.models import DownloadTask


_IMAGE = b"\x89PNG fake image bytes" * 1000


def _app(hits: list) -> web.Application:
    async def image(request: web.Request) -> web.Response:
        hits.append(request.path)
        return web.Response(body=_IMAGE, content_type="image/png")

    async def broken(request: web.Request) -> web.Response:
        hits.append(request.path)
        return web.Response(status=500, text="boom")

    app = web.Application()
    app.router.add_get("/img/{name}", image)
    app.router.add_get("/broken/{name}", broken)
    return app


def _executor(session, pauses: list) -> DownloadExecutor:
    executor = DownloadExecutor(session, timeout=5, delay=5)

    async def record_pause() -> None:
        pauses.append(True)

    executor._pause = record_pause
    return executor


class TestDownloadExecutor:
    def test_downloads_batch(self, tmp_path, serve) -> None:
        hits, pauses = [], []
        dest = tmp_path / "out" / "Chapter 1"

        async def scenario() -> DownloadExecutor:
            async with serve(_app(hits)) as server, aiohttp.ClientSession() as session:
                executor = _executor(session, pauses)
                await executor.execute([
                    DownloadTask(str(server.make_url("/img/a.png")), str(dest / "000-a.png")),
                    DownloadTask(str(server.make_url("/img/b.png")), str(dest / "001-b.png")),
                ])
                return executor

        executor = asyncio.run(scenario())

        assert (dest / "000-a.png").read_bytes() == _IMAGE
        assert (dest / "001-b.png").read_bytes() == _IMAGE
        assert hits == ["/img/a.png", "/img/b.png"]
        assert len(pauses) == 2
        assert executor.stats.downloaded == 2
        assert sorted(os.listdir(dest)) == ["000-a.png", "001-b.png"]

    def test_existing_destination_skipped(self, tmp_path, serve) -> None:
        hits, pauses = [], []
        target = tmp_path / "000-a.png"
        target.write_bytes(b"already here")

        async def scenario() -> DownloadExecutor:
            async with serve(_app(hits)) as server, aiohttp.ClientSession() as session:
                executor = _executor(session, pauses)
                await executor.execute([DownloadTask(str(server.make_url("/img/a.png")), str(target))])
                return executor

        executor = asyncio.run(scenario())

        assert hits == []
        assert pauses == []
        assert target.read_bytes() == b"already here"
        assert executor.stats.skipped == 1

    def test_http_error_leaves_no_file(self, tmp_path, serve) -> None:
        hits, pauses = [], []

        async def scenario() -> DownloadExecutor:
            async with serve(_app(hits)) as server, aiohttp.ClientSession() as session:
                executor = _executor(session, pauses)
                await executor.execute([
                    DownloadTask(str(server.make_url("/broken/a.png")), str(tmp_path / "000-a.png")),
                    DownloadTask(str(server.make_url("/img/b.png")), str(tmp_path / "001-b.png")),
                ])
                return executor

        executor = asyncio.run(scenario())

        # The failure does not stop the batch
        assert sorted(os.listdir(tmp_path)) == ["001-b.png"]
        assert len(pauses) == 2
        assert executor.stats.failed == 1
        assert executor.stats.downloaded == 1

    def test_connection_refused_is_recovered(self, tmp_path, serve) -> None:
        pauses = []

        async def scenario() -> DownloadExecutor:
            async with serve(_app([])) as server:
                dead_url = str(server.make_url("/img/a.png"))

            async with aiohttp.ClientSession() as session:
                executor = _executor(session, pauses)
                await executor.execute([DownloadTask(dead_url, str(tmp_path / "sub" / "000-a.png"))])
                return executor

        executor = asyncio.run(scenario())

        assert executor.stats.failed == 1
        assert os.listdir(tmp_path / "sub") == []
        assert len(pauses) == 1

    def test_stale_partial_file_replaced(self, tmp_path, serve) -> None:
        (tmp_path / "000-a.png.part").write_bytes(b"truncated")

        async def scenario() -> None:
            async with serve(_app([])) as server, aiohttp.ClientSession() as session:
                executor = _executor(session, [])
                await executor.execute([DownloadTask(str(server.make_url("/img/a.png")), str(tmp_path / "000-a.png"))])

        asyncio.run(scenario())

        assert os.listdir(tmp_path) == ["000-a.png"]
        assert (tmp_path / "000-a.png").read_bytes() == _IMAGE

    def test_default_pause_sleeps(self, monkeypatch) -> None:
        slept = []

        async def fake_sleep(seconds: float) -> None:
            slept.append(seconds)

        async def scenario() -> None:
            executor = DownloadExecutor(None, timeout=5, delay=5)
            with monkeypatch.context() as patch:
                patch.setattr("site_archiver.crawler.downloader.asyncio.sleep", fake_sleep)
                await executor._pause()

        asyncio.run(scenario())

        assert slept == [5]
