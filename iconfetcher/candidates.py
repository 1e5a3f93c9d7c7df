from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List
from urllib.parse import urlparse

from loguru import logger

from iconfetcher.config import DEFAULT_ICON_SIZE
from iconfetcher.exceptions import InvalidUrl
from iconfetcher.validate_url import Origin, normalize

# Ordered from "most likely to be the site's real icon" to "generic", do not re-sort.
CONVENTIONAL_ICON_PATHS = [
    # Standard favicon in various formats
    "/favicon.ico",
    "/favicon.png",
    "/favicon.svg",
    "/favicon.jpg",
    "/favicon.jpeg",
    "/favicon.gif",
    "/favicon.webp",

    # Apple, usually better quality than the favicon
    "/apple-touch-icon.png",
    "/apple-touch-icon-precomposed.png",
    "/apple-touch-icon-180x180.png",
    "/apple-touch-icon-152x152.png",
    "/apple-touch-icon-120x120.png",

    # Microsoft tiles
    "/mstile-144x144.png",
    "/mstile-150x150.png",

    "/icon.png",
    "/icon.svg",
    "/icon.jpg",
    "/icon.ico",

    # Common asset directories
    "/assets/icon.png",
    "/assets/images/icon.png",
    "/images/icon.png",
    "/static/icon.png",
    "/static/favicon.png",
    "/img/favicon.png",
    "/img/icon.png",

    # PWA manifest icons
    "/manifest-icon.png",
    "/pwa-icon.png",
    "/app-icon.png",
]

GSTATIC_FAVICON_SERVICE = "https://t1.gstatic.com/faviconV2?client=SOCIAL&type=FAVICON&fallback_opts=TYPE,SIZE,URL&url={origin}&size={size}"
GOOGLE_S2_FAVICON_SERVICE = "https://www.google.com/s2/favicons?domain={host}&sz={size}"

SERVICE_PREFIXES = (
    GSTATIC_FAVICON_SERVICE.split('?')[0],
    GOOGLE_S2_FAVICON_SERVICE.split('?')[0],
)

VECTOR_EXTENSIONS = ('.svg',)


class CandidateKind(Enum):
    RASTER = 'raster'
    VECTOR = 'vector'
    SERVICE = 'service'


@dataclass(frozen=True)
class Candidate:
    url: str
    kind: CandidateKind

    def __str__(self):
        return self.url


def classify(url) -> CandidateKind:
    """Work out how a candidate URL has to be probed, only the path's extension counts (not the query)."""
    if url.startswith(SERVICE_PREFIXES):
        return CandidateKind.SERVICE

    path = urlparse(url).path.lower()
    if path.endswith(VECTOR_EXTENSIONS):
        return CandidateKind.VECTOR

    return CandidateKind.RASTER


def service_fallback_url(origin: Origin, size=DEFAULT_ICON_SIZE) -> str:
    """The unprobed last resort, only the bare hostname goes to the service"""
    return GOOGLE_S2_FAVICON_SERVICE.format(host=origin.hostname, size=size)


def generate_candidates(origin: Origin, size=DEFAULT_ICON_SIZE) -> Iterator[Candidate]:
    """
    Yield every icon location worth probing for this origin, in priority order.

    The conventional paths come first, then the two external favicon services (always last).
    This is a generator, call it again for a fresh sequence.
    """
    for path in CONVENTIONAL_ICON_PATHS:
        url = f"{origin.base}{path}"
        yield Candidate(url=url, kind=classify(url))

    yield Candidate(url=GSTATIC_FAVICON_SERVICE.format(origin=origin.base, size=size), kind=CandidateKind.SERVICE)
    yield Candidate(url=GOOGLE_S2_FAVICON_SERVICE.format(host=origin.host, size=size), kind=CandidateKind.SERVICE)


def candidate_urls(url, size=DEFAULT_ICON_SIZE) -> List[str]:
    try:
        origin = normalize(url)
    except InvalidUrl as e:
        logger.warning(f"No icon candidates, {str(e)}")
        return []

    return [c.url for c in generate_candidates(origin, size=size)]
