"""Shared fixtures: local aiohttp servers and ready-made step tuples."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from site_archiver.config import ArchiverSettings
from site_archiver.models import DownloadResource, ExtractLinks


@pytest.fixture
def serve():
    """Return an async context manager that serves an ``aiohttp.web`` app.

    Usage::

        async with serve(app) as server:
            url = str(server.make_url("/page"))
    """

    @asynccontextmanager
    async def _serve(app: web.Application) -> AsyncIterator[TestServer]:
        server = TestServer(app)
        await server.start_server()
        try:
            yield server
        finally:
            await server.close()

    return _serve


@pytest.fixture
def manga_steps():
    return (
        ExtractLinks.from_selector("a.chapter"),
        DownloadResource.from_selector("img.page"),
    )


@pytest.fixture
def fast_settings():
    """Settings with every pacing delay disabled."""
    return ArchiverSettings(
        download_delay=0,
        min_request_delay=0,
        max_request_delay=0,
    )
