#!/usr/bin/env python3
import pytest

from iconfetcher.config import ResolverConfig
from iconfetcher.tests.util import FakeSession, image_bytes


@pytest.fixture
def config():
    # Short budgets, nothing here should ever really wait
    return ResolverConfig(probe_timeout=0.5, html_timeout=0.5)


@pytest.fixture
def png_bytes():
    return image_bytes()


@pytest.fixture
def session():
    return FakeSession()
