#!/usr/bin/env python3
"""
Existence probes, all network replaced by FakeSession.

A probe must answer True/False and never raise, whatever the server (or the network) does.
"""
import itertools
from unittest.mock import patch

import pytest
import requests

from iconfetcher.candidates import CandidateKind
from iconfetcher.config import ResolverConfig
from iconfetcher.exceptions import FetchTimedOut
from iconfetcher.fetcher import fetcher
from iconfetcher.probes import PROBES, RasterProbe, ServiceProbe, VectorProbe, cache_busted, probe
from iconfetcher.tests.util import FakeSession, Reply, image_bytes

ICO_URL = "https://example.com/favicon.ico"
SVG_URL = "https://example.com/favicon.svg"


def test_cache_busted():
    assert cache_busted("https://example.com/favicon.ico", now=1700000000.123) == "https://example.com/favicon.ico?cache=1700000000123"
    assert cache_busted("https://www.google.com/s2/favicons?domain=example.com&sz=64", now=1) == "https://www.google.com/s2/favicons?domain=example.com&sz=64&cache=1000"


def test_strategy_table_covers_every_kind():
    assert set(PROBES.keys()) == set(CandidateKind)
    assert PROBES[CandidateKind.VECTOR] is VectorProbe
    assert PROBES[CandidateKind.RASTER] is RasterProbe
    assert issubclass(PROBES[CandidateKind.SERVICE], RasterProbe)


def test_raster_decodes_image(config, png_bytes):
    session = FakeSession({ICO_URL: Reply(200, 'image/x-icon', png_bytes)})
    assert probe(ICO_URL, config=config, session=session) is True

    method, url, kwargs = session.calls[0]
    assert method == 'GET'
    assert url.startswith(ICO_URL + "?cache=")
    assert kwargs['timeout'] == config.probe_timeout


@pytest.mark.parametrize("fmt", ['GIF', 'JPEG', 'ICO', 'WEBP'])
def test_raster_other_formats(config, fmt):
    body = image_bytes(size=(16, 16), fmt=fmt)
    session = FakeSession({ICO_URL: Reply(200, 'application/octet-stream', body)})
    assert probe(ICO_URL, config=config, session=session) is True


def test_raster_status_code_is_not_what_counts(config, png_bytes):
    # Like a browser <img>, an image body is an image even with a 404
    session = FakeSession({ICO_URL: Reply(404, 'image/png', png_bytes)})
    assert probe(ICO_URL, config=config, session=session) is True


def test_raster_html_404_page(config):
    session = FakeSession()
    assert probe(ICO_URL, config=config, session=session) is False


def test_raster_empty_reply(config):
    session = FakeSession({ICO_URL: Reply(200, 'image/x-icon', b'')})
    assert probe(ICO_URL, config=config, session=session) is False


def test_raster_truncated_image(config, png_bytes):
    session = FakeSession({ICO_URL: Reply(200, 'image/png', png_bytes[:20])})
    assert probe(ICO_URL, config=config, session=session) is False


def test_raster_zero_dimensions(config, png_bytes):
    """Decodes fine but has no area, some servers hand these out for missing icons"""
    session = FakeSession({ICO_URL: Reply(200, 'image/png', png_bytes)})
    with patch('iconfetcher.probes.Image.open') as mock_open:
        mock_open.return_value.__enter__.return_value.size = (0, 0)
        assert probe(ICO_URL, config=config, session=session) is False

        mock_open.return_value.__enter__.return_value.size = (16, 0)
        assert probe(ICO_URL, config=config, session=session) is False


@pytest.mark.parametrize("error", [
    requests.exceptions.ConnectionError("refused"),
    requests.exceptions.ConnectTimeout("slow"),
    requests.exceptions.ReadTimeout("slower"),
    requests.exceptions.SSLError("bad cert"),
    requests.exceptions.TooManyRedirects("loop"),
])
def test_network_trouble_is_false(config, error):
    session = FakeSession({ICO_URL: error, ('HEAD', SVG_URL): error})
    assert probe(ICO_URL, config=config, session=session) is False
    assert probe(SVG_URL, config=config, session=session) is False


def test_raster_too_large(png_bytes):
    config = ResolverConfig(probe_timeout=0.5, max_image_bytes=10)
    session = FakeSession({ICO_URL: Reply(200, 'image/png', png_bytes)})
    assert probe(ICO_URL, config=config, session=session) is False


def test_raster_body_over_time_budget(config, png_bytes):
    """The timeout covers the whole transfer, not just each socket read"""
    session = FakeSession({ICO_URL: Reply(200, 'image/png', png_bytes)})
    clock = itertools.chain([100.0], itertools.repeat(100.0 + config.probe_timeout + 1))
    with patch('iconfetcher.fetcher.time.monotonic', side_effect=clock):
        assert probe(ICO_URL, config=config, session=session) is False


def test_fetcher_raises_timed_out(png_bytes):
    session = FakeSession({ICO_URL: Reply(200, 'image/png', png_bytes)})
    clock = itertools.chain([0.0], itertools.repeat(10.0))
    with patch('iconfetcher.fetcher.time.monotonic', side_effect=clock):
        with pytest.raises(FetchTimedOut):
            fetcher(session=session).run(url=ICO_URL, timeout=3)


def test_unexpected_exception_is_false(config):
    session = FakeSession({ICO_URL: RuntimeError("something odd")})
    assert probe(ICO_URL, config=config, session=session) is False


def test_vector_head_ok(config):
    session = FakeSession({('HEAD', SVG_URL): Reply(200, 'image/svg+xml', b'')})
    assert probe(SVG_URL, config=config, session=session) is True

    method, url, kwargs = session.calls[0]
    assert method == 'HEAD'
    # No cache buster for the HEAD, the no-cache headers do that job
    assert url == SVG_URL
    assert kwargs['headers']['Cache-Control'] == 'no-cache'
    assert kwargs['timeout'] == config.probe_timeout


@pytest.mark.parametrize("reply, expected", [
    (Reply(200, 'image/svg+xml', b''), True),
    (Reply(200, 'image/png', b''), True),
    (Reply(200, 'text/svg', b''), True),
    (Reply(200, 'text/html', b''), False),
    (Reply(200, None, b''), False),
    (Reply(404, 'image/svg+xml', b''), False),
    (Reply(500, 'image/svg+xml', b''), False),
])
def test_vector_status_and_content_type(config, reply, expected):
    session = FakeSession({('HEAD', SVG_URL): reply})
    assert probe(SVG_URL, config=config, session=session) is expected


def test_service_probe_is_checked_like_an_image(config, png_bytes):
    url = "https://www.google.com/s2/favicons?domain=example.com&sz=64"
    session = FakeSession({url: Reply(200, 'image/png', png_bytes)})
    assert probe(url, config=config, session=session) is True
    assert session.calls[0][0] == 'GET'
    assert '&cache=' in session.calls[0][1]

    assert ServiceProbe(config=config, session=FakeSession())(url) is False


def test_explicit_kind_wins(config, png_bytes):
    # An svg URL forced through the raster probe will GET and try to decode
    session = FakeSession({SVG_URL: Reply(200, 'image/png', png_bytes)})
    assert probe(SVG_URL, config=config, session=session, kind=CandidateKind.RASTER) is True
    assert session.calls[0][0] == 'GET'
