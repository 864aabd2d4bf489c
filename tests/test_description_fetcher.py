import asyncio

import pytest
import requests

from flower_snap.models import DescriptionRecord
from flower_snap.services import DescriptionFetcher, build_query_params, parse_description
from flower_snap.utils import FetchParseError, FetchTransportError

ROSA_RESPONSE = {
    "batchcomplete": "",
    "query": {
        "pageids": ["123"],
        "pages": {
            "123": {
                "pageid": 123,
                "ns": 0,
                "title": "Rosa",
                "extract": "A rose is...",
                "thumbnail": {"source": "http://x/img.jpg", "width": 500, "height": 375},
            }
        },
    },
}

MISSING_RESPONSE = {
    "batchcomplete": "",
    "query": {
        "pageids": ["-1"],
        "pages": {"-1": {"ns": 0, "title": "Bolero deep blue", "missing": ""}},
    },
}


class StubResponse:
    def __init__(self, payload=None, status_code=200, json_error=None):
        self.payload = payload
        self.status_code = status_code
        self.json_error = json_error

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self.json_error is not None:
            raise self.json_error
        return self.payload


class StubSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.calls = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        self.closed = True


def test_query_params():
    """Параметры запроса к Wikipedia"""
    assert build_query_params("Rosa") == {
        "format": "json",
        "action": "query",
        "prop": "extracts|pageimages",
        "exintro": "",
        "explaintext": "",
        "titles": "Rosa",
        "indexpageids": "",
        "redirects": "1",
        "pithumbsize": "500",
    }


def test_rosa_round_trip():
    session = StubSession(StubResponse(ROSA_RESPONSE))
    fetcher = DescriptionFetcher(url="https://example.org/w/api.php", session=session)

    record = fetcher.fetch_sync("Rosa")

    assert record == DescriptionRecord(
        title="Rosa",
        extract_text="A rose is...",
        image_url="http://x/img.jpg",
        page_id="123",
    )
    call = session.calls[0]
    assert call["url"] == "https://example.org/w/api.php"
    assert call["params"]["titles"] == "Rosa"
    assert call["timeout"] == fetcher.timeout
    assert "FlowerSnap" in session.headers["User-Agent"]


def test_missing_page_is_not_found():
    assert parse_description("Bolero Deep Blue", MISSING_RESPONSE) is None


@pytest.mark.parametrize("document", [
    {},
    {"batchcomplete": ""},
    {"query": {}},
    {"query": {"pages": {"123": {"extract": "text"}}}},
    {"query": {"pageids": [], "pages": {}}},
    {"query": {"pageids": ["7"], "pages": {}}},
])
def test_tolerates_missing_fields(document):
    assert parse_description("Rosa", document) is None


def test_missing_thumbnail_and_extract():
    document = {"query": {"pageids": ["5"], "pages": {"5": {"title": "Gaura"}}}}

    record = parse_description("gaura", document)

    assert record.title == "gaura"
    assert record.extract_text == ""
    assert record.image_url is None


@pytest.mark.parametrize("document", [
    ["not", "an", "object"],
    {"error": {"code": "badvalue", "info": "Unrecognized value"}},
    {"query": ["wrong"]},
    {"query": {"pageids": ["1"], "pages": {"1": "wrong"}}},
])
def test_malformed_document_is_parse_error(document):
    with pytest.raises(FetchParseError):
        parse_description("Rosa", document)


def test_invalid_json_is_parse_error():
    session = StubSession(StubResponse(json_error=ValueError("Expecting value")))
    fetcher = DescriptionFetcher(session=session)

    with pytest.raises(FetchParseError):
        fetcher.fetch_sync("Rosa")


def test_connection_error_is_transport_error():
    session = StubSession(error=requests.exceptions.ConnectionError("no route"))
    fetcher = DescriptionFetcher(session=session)

    with pytest.raises(FetchTransportError) as exc_info:
        fetcher.fetch_sync("Rosa")
    assert exc_info.value.details == {"label": "Rosa"}


def test_http_error_is_transport_error():
    session = StubSession(StubResponse(status_code=503))
    fetcher = DescriptionFetcher(session=session)

    with pytest.raises(FetchTransportError):
        fetcher.fetch_sync("Rosa")


def test_async_fetch():
    session = StubSession(StubResponse(ROSA_RESPONSE))
    fetcher = DescriptionFetcher(session=session)

    record = asyncio.run(fetcher.fetch("Rosa"))

    assert record.extract_text == "A rose is..."
    fetcher.close()
    assert session.closed
