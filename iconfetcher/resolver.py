"""
Icon resolution

A small state machine that walks

    START -> DIRECT_PROBE -> HTML_PROBE -> SERVICE_FALLBACK -> DEFAULT

stopping at RESOLVED as soon as a candidate is confirmed. Every state has a way out that does
not depend on the network, so ``resolve()`` always ends with exactly one URL and never raises.
Worst case time is roughly (number of candidates x probe_timeout) + html_timeout.
"""

import asyncio
from enum import Enum

import requests
from loguru import logger

from iconfetcher.candidates import classify, generate_candidates, service_fallback_url
from iconfetcher.config import ResolverConfig
from iconfetcher.exceptions import InvalidUrl
from iconfetcher.html_tools import extract_icon_links_from_html
from iconfetcher.probes import PROBES
from iconfetcher.validate_url import normalize


class State(Enum):
    START = 'start'
    DIRECT_PROBE = 'direct_probe'
    HTML_PROBE = 'html_probe'
    SERVICE_FALLBACK = 'service_fallback'
    DEFAULT = 'default'
    RESOLVED = 'resolved'


TERMINAL_STATES = (State.RESOLVED, State.DEFAULT)

# Where to go when a state's handler raises
ON_ERROR = {
    State.START: State.DEFAULT,
    State.DIRECT_PROBE: State.HTML_PROBE,
    State.HTML_PROBE: State.SERVICE_FALLBACK,
    State.SERVICE_FALLBACK: State.DEFAULT,
}


class Resolution():
    """Everything belonging to one resolve call, thrown away when it ends"""

    def __init__(self, url, config, session):
        self.url = url
        self.config = config
        self.session = session
        self.origin = None
        self.result = None
        self.probed = []
        # (from_state, to_state) for every transition taken
        self.trace = []
        self._probes = {kind: klass(config=config, session=session) for kind, klass in PROBES.items()}

    def probe(self, candidate_url, kind=None):
        self.probed.append(candidate_url)
        kind = kind or classify(candidate_url)
        return self._probes[kind](candidate_url)


class IconResolver():
    """
    Find the best icon for a web-site URL.

    Usage:
        resolver = IconResolver(config=ResolverConfig(probe_timeout=1))
        icon_url = resolver.resolve("https://example.com")

    Each call gets its own session from ``session_factory`` and keeps nothing on the resolver,
    so one resolver can be shared between threads.
    """

    def __init__(self, config: ResolverConfig = None, session_factory=requests.Session):
        self.config = config or ResolverConfig()
        self.session_factory = session_factory

        self._handlers = {
            State.START: self._start,
            State.DIRECT_PROBE: self._direct_probe,
            State.HTML_PROBE: self._html_probe,
            State.SERVICE_FALLBACK: self._service_fallback,
        }

    def resolve(self, url) -> str:
        try:
            return self.resolve_with_trace(url).result
        except Exception as e:
            logger.error(f"Icon resolution for '{url}' failed - {str(e)}")
            return self.config.default_icon_url

    def resolve_with_trace(self, url) -> Resolution:
        """Like resolve() but hands back the whole Resolution (result, probed URLs, transitions)"""
        try:
            session = self.session_factory()
        except Exception as e:
            logger.error(f"Could not set up icon resolution for '{url}' - {str(e)}")
            r = Resolution(url=url, config=self.config, session=None)
            r.trace.append((State.START, State.DEFAULT))
            r.result = self.config.default_icon_url
            return r

        try:
            r = Resolution(url=url, config=self.config, session=session)
            state = State.START
            while state not in TERMINAL_STATES:
                try:
                    next_state = self._handlers[state](r)
                except Exception as e:
                    next_state = ON_ERROR[state]
                    logger.error(f"Icon resolution for '{url}' failed in {state.value}, moving to {next_state.value} - {str(e)}")
                r.trace.append((state, next_state))
                state = next_state

            if state == State.DEFAULT:
                r.result = self.config.default_icon_url
        finally:
            session.close()

        return r

    def _start(self, r):
        logger.debug(f"Looking for an icon for '{r.url}'")
        try:
            r.origin = normalize(r.url)
        except InvalidUrl as e:
            logger.warning(f"{str(e)}, using the default icon")
            return State.DEFAULT
        return State.DIRECT_PROBE

    def _direct_probe(self, r):
        for candidate in generate_candidates(r.origin, size=self.config.icon_size):
            if r.probe(candidate.url, kind=candidate.kind):
                logger.info(f"Icon for '{r.url}' found at '{candidate.url}'")
                r.result = candidate.url
                return State.RESOLVED
        return State.HTML_PROBE

    def _html_probe(self, r):
        for icon_url in extract_icon_links_from_html(r.url.strip(), config=self.config, session=r.session):
            if icon_url in r.probed:
                # Already failed in the direct phase, never retry
                continue
            if r.probe(icon_url):
                logger.info(f"Icon for '{r.url}' found in HTML at '{icon_url}'")
                r.result = icon_url
                return State.RESOLVED
        return State.SERVICE_FALLBACK

    def _service_fallback(self, r):
        # Not probed, this service always answers with something displayable
        r.result = service_fallback_url(r.origin, size=self.config.icon_size)
        logger.info(f"No icon found for '{r.url}', using '{r.result}'")
        return State.RESOLVED


def resolve_icon(url, config: ResolverConfig = None) -> str:
    """Resolve the icon for url, always returns a URL string and never raises"""
    return IconResolver(config=config).resolve(url)


async def resolve_icon_async(url, config: ResolverConfig = None) -> str:
    """
    Same as resolve_icon() but awaitable, the work runs in a thread.

    Cancelling the awaiting task abandons the whole call, the thread finishes its current
    probe in the background and its result is dropped.
    """
    return await asyncio.to_thread(resolve_icon, url, config)
