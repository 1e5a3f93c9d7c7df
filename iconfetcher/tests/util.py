#!/usr/bin/env python3

import io
import re
from collections import namedtuple

from requests.structures import CaseInsensitiveDict

# What a fake URL answers with, either this or an Exception instance to raise
Reply = namedtuple('Reply', ['status_code', 'content_type', 'body'])

NOT_FOUND = Reply(404, 'text/html; charset=utf-8', b'<html><body>Not found</body></html>')

CACHE_BUST_RE = re.compile(r'[?&]cache=\d+$')


def strip_cache_buster(url):
    return CACHE_BUST_RE.sub('', url)


def image_bytes(size=(1, 1), fmt='PNG'):
    from PIL import Image
    buf = io.BytesIO()
    Image.new('RGB', size, color=(255, 0, 0)).save(buf, fmt)
    return buf.getvalue()


class FakeResponse():
    def __init__(self, url, reply, encoding=None):
        self.url = url
        self.status_code = reply.status_code
        self.headers = CaseInsensitiveDict({'Content-Type': reply.content_type} if reply.content_type else {})
        self.encoding = encoding
        self._body = reply.body or b''
        self.closed = False
        m = re.search(r'charset=([\w-]+)', reply.content_type or '')
        if m:
            self.encoding = m.group(1)

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self._body), chunk_size):
            yield self._body[i:i + chunk_size]

    def close(self):
        self.closed = True


class FakeSession():
    """
    Stands in for requests.Session, answers from a dict of url -> Reply (or Exception)

    Keys can be "url" or ("METHOD", "url"), the cache=<ts> buster is ignored when matching.
    Anything not listed gets a 404 HTML page.
    """

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        key = strip_cache_buster(url)
        reply = self.routes.get((method, key), self.routes.get(key, NOT_FOUND))
        if isinstance(reply, Exception):
            raise reply
        return FakeResponse(url, reply)

    def close(self):
        self.closed = True

    def requested_urls(self, method=None):
        return [strip_cache_buster(url) for m, url, kw in self.calls if method is None or m == method]

    def count(self, url):
        return self.requested_urls().count(url)
