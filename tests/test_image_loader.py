import asyncio
from io import BytesIO

import pytest
import requests
from PIL import Image

from flower_snap.services import ImageLoader, ImageLoadError


def png_bytes(color, size=(8, 8)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class StubResponse:
    def __init__(self, content=b"", status_code=200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")


class StubSession:
    def __init__(self, responses=None, error=None):
        self.headers = {}
        self.responses = responses or {}
        self.error = error
        self.calls = []
        self.closed = False

    def get(self, url, timeout=None):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.responses[url]

    def close(self):
        self.closed = True


@pytest.fixture
def session():
    return StubSession({
        "http://x/a.png": StubResponse(png_bytes((255, 0, 0))),
        "http://x/b.png": StubResponse(png_bytes((0, 255, 0))),
        "http://x/c.png": StubResponse(png_bytes((0, 0, 255))),
        "http://x/broken.png": StubResponse(b"not an image"),
        "http://x/gone.png": StubResponse(status_code=404),
    })


def test_load_decodes_image(session):
    loader = ImageLoader(cache_size=2, session=session)

    image = asyncio.run(loader.load("http://x/a.png"))

    assert image.mode == "RGB"
    assert image.size == (8, 8)
    assert image.getpixel((0, 0)) == (255, 0, 0)
    assert "FlowerSnap" in session.headers["User-Agent"]


def test_cache_hit_skips_session(session):
    loader = ImageLoader(cache_size=2, session=session)

    async def scenario():
        first = await loader.load("http://x/a.png")
        second = await loader.load("http://x/a.png")
        return first, second

    first, second = asyncio.run(scenario())

    assert session.calls == ["http://x/a.png"]
    assert second is first


def test_least_recently_used_is_evicted(session):
    """Кэш ограничен cache_size и вытесняет давно не использованный адрес"""
    loader = ImageLoader(cache_size=2, session=session)

    async def scenario():
        await loader.load("http://x/a.png")
        await loader.load("http://x/b.png")
        await loader.load("http://x/a.png")
        await loader.load("http://x/c.png")

    asyncio.run(scenario())

    assert session.calls == ["http://x/a.png", "http://x/b.png", "http://x/c.png"]
    assert loader.cached("http://x/b.png") is None
    assert loader.cached("http://x/a.png") is not None
    assert loader.cached("http://x/c.png") is not None


def test_transport_error_is_image_load_error():
    session = StubSession(error=requests.exceptions.ConnectionError("no route"))
    loader = ImageLoader(session=session)

    with pytest.raises(ImageLoadError):
        asyncio.run(loader.load("http://x/a.png"))
    assert loader.cached("http://x/a.png") is None


def test_http_error_is_image_load_error(session):
    loader = ImageLoader(session=session)

    with pytest.raises(ImageLoadError):
        asyncio.run(loader.load("http://x/gone.png"))


def test_undecodable_body_is_image_load_error(session):
    loader = ImageLoader(session=session)

    with pytest.raises(ImageLoadError):
        asyncio.run(loader.load("http://x/broken.png"))
    assert loader.cached("http://x/broken.png") is None


def test_close_clears_cache(session):
    loader = ImageLoader(session=session)
    asyncio.run(loader.load("http://x/a.png"))

    loader.close()

    assert loader.cached("http://x/a.png") is None
    assert session.closed
