"""Source map decoding and retrieval."""

from __future__ import annotations

import asyncio
import base64
import json

import pytest

from mapripper.config import RunConfig
from mapripper.errors import AssetFetchError, MapDecodeError
from mapripper.models import SourceEntry, SourceMapReference
from mapripper.sourcemap import (
    decode_data_uri,
    decode_source_map,
    fetch_source_map,
    fetch_source_maps,
)

MAP_URL = "https://example.com/static/app.js.map"


def _map(**fields) -> str:
    payload = {"version": 3, "file": "app.js", "mappings": "AAAA", "names": []}
    payload.update(fields)
    return json.dumps(payload)


def test_decode_pairs_sources_with_content() -> None:
    doc = decode_source_map(
        MAP_URL,
        _map(sources=["src/index.js", "src/util.js"], sourcesContent=["a()", "b()"]),
    )
    assert doc.entries == [
        SourceEntry("src/index.js", "a()"),
        SourceEntry("src/util.js", "b()"),
    ]
    assert doc.version == 3
    assert doc.file == "app.js"
    assert doc.url == MAP_URL


def test_decode_treats_short_or_null_content_as_unavailable() -> None:
    doc = decode_source_map(
        MAP_URL, _map(sources=["a.js", "b.js", "c.js"], sourcesContent=[None, "b"])
    )
    assert doc.sources_content == [None, "b", None]


def test_decode_missing_sources_is_empty() -> None:
    doc = decode_source_map(MAP_URL, json.dumps({"version": 3, "mappings": ""}))
    assert doc.entries == []
    assert doc.sources == []


def test_decode_missing_sources_content_keeps_sources() -> None:
    doc = decode_source_map(MAP_URL, _map(sources=["a.js"]))
    assert doc.entries == [SourceEntry("a.js", None)]


def test_decode_accepts_unused_standard_fields() -> None:
    doc = decode_source_map(
        MAP_URL,
        _map(sources=["a.js"], sourcesContent=["x"], sourceRoot="/root/", debug_id="abc"),
    )
    assert doc.source_root == "/root/"
    assert doc.sources == ["a.js"]


def test_decode_strips_xssi_prefix() -> None:
    body = ")]}'\n" + _map(sources=["a.js"], sourcesContent=["x"])
    assert decode_source_map(MAP_URL, body).sources == ["a.js"]


def test_decode_reports_html_login_page_with_url() -> None:
    with pytest.raises(MapDecodeError) as excinfo:
        decode_source_map(MAP_URL, "<!doctype html><title>Sign in</title>")
    assert excinfo.value.url == MAP_URL
    assert MAP_URL in str(excinfo.value)
    assert "HTML" in str(excinfo.value)


@pytest.mark.parametrize(
    "body", ['["a.js"]', '{"sources": "a.js"}', '{"sources": [1, 2]}']
)
def test_decode_rejects_structurally_invalid_maps(body: str) -> None:
    with pytest.raises(MapDecodeError):
        decode_source_map(MAP_URL, body)


def test_decode_data_uri_base64_and_plain() -> None:
    text = _map(sources=["inline.js"], sourcesContent=["x"])
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    assert decode_data_uri(f"data:application/json;charset=utf-8;base64,{encoded}") == text
    assert decode_data_uri("data:application/json,%7B%7D") == "{}"


def test_decode_data_uri_without_payload() -> None:
    with pytest.raises(MapDecodeError):
        decode_data_uri("data:application/json;base64")


def test_fetch_source_map_decodes_inline_maps_without_network(make_fetcher) -> None:
    text = _map(sources=["inline.js"], sourcesContent=["y"])
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    fetcher = make_fetcher({})
    ref = SourceMapReference(
        asset_url="https://example.com/a.js",
        map_url=f"data:application/json;base64,{encoded}",
    )
    doc = fetch_source_map(fetcher, ref)
    assert doc.entries == [SourceEntry("inline.js", "y")]
    assert fetcher.requested == []


def test_fetch_source_maps_preserves_reference_order(make_fetcher) -> None:
    fetcher = make_fetcher(
        {
            "https://example.com/a.js.map": _map(sources=["a.js"], sourcesContent=["a"]),
            "https://example.com/b.css.map": _map(sources=["b.scss"], sourcesContent=["b"]),
        }
    )
    refs = [
        SourceMapReference("https://example.com/a.js", "https://example.com/a.js.map"),
        SourceMapReference("https://example.com/b.css", "https://example.com/b.css.map"),
    ]
    docs, failures = asyncio.run(
        fetch_source_maps(fetcher, refs, RunConfig(entry_url="https://example.com/"))
    )
    assert [doc.sources for doc in docs] == [["a.js"], ["b.scss"]]
    assert failures == []


def test_fetch_source_maps_unauthorized_map_is_fatal(make_fetcher) -> None:
    fetcher = make_fetcher({"https://example.com/a.js.map": (401, "")})
    refs = [SourceMapReference("https://example.com/a.js", "https://example.com/a.js.map")]
    with pytest.raises(AssetFetchError) as excinfo:
        asyncio.run(
            fetch_source_maps(fetcher, refs, RunConfig(entry_url="https://example.com/"))
        )
    assert excinfo.value.status == 401
    assert "https://example.com/a.js.map" in str(excinfo.value)


def test_fetch_source_maps_keep_going_skips_bad_maps(make_fetcher) -> None:
    fetcher = make_fetcher(
        {
            "https://example.com/a.js.map": "<html>login</html>",
            "https://example.com/b.js.map": _map(sources=["b.js"], sourcesContent=["b"]),
        }
    )
    refs = [
        SourceMapReference("https://example.com/a.js", "https://example.com/a.js.map"),
        SourceMapReference("https://example.com/b.js", "https://example.com/b.js.map"),
    ]
    config = RunConfig(entry_url="https://example.com/", keep_going=True)
    docs, failures = asyncio.run(fetch_source_maps(fetcher, refs, config))
    assert [doc.url for doc in docs] == ["https://example.com/b.js.map"]
    assert [(f.stage, f.url) for f in failures] == [("map", "https://example.com/a.js.map")]
