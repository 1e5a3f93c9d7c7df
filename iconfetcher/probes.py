"""
Existence probes - is there a usable image at this URL?

Each candidate kind gets its own probe, picked by ``probe()`` from ``PROBES``.
A probe never raises, anything that stops us from confirming the image is just ``False``.
"""

import io
import time

from loguru import logger
from PIL import Image

from iconfetcher.candidates import CandidateKind, classify
from iconfetcher.config import ResolverConfig
from iconfetcher.exceptions import FetchError, ImageDecodeError
from iconfetcher.fetcher import fetcher


def cache_busted(url, now=None):
    """Append cache=<ms timestamp> so we never get a stale cached answer."""
    ts = int((now if now is not None else time.time()) * 1000)
    return url + ('&' if '?' in url else '?') + f"cache={ts}"


def decoded_dimensions(content, url=''):
    """
    Fully decode the image bytes with Pillow and return (width, height)

    :raises ImageDecodeError: Not an image Pillow understands, or truncated/broken
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            # .open() is lazy, .load() actually decodes the pixel data
            img.load()
            return img.size
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(url=url, msg=f"({str(e)})") from e


class Probe():
    kind = None

    def __init__(self, config: ResolverConfig, session):
        self.config = config
        self.fetcher = fetcher(session=session, verify_tls=config.verify_tls)

    def check(self, url) -> bool:
        raise NotImplementedError

    def __call__(self, url) -> bool:
        try:
            return self.check(url)
        except FetchError as e:
            logger.debug(f"Probe {self.kind.value} '{url}' - {str(e)}")
        except ImageDecodeError as e:
            logger.debug(str(e))
        except Exception as e:
            logger.error(f"Probe {self.kind.value} '{url}' failed unexpectedly - {str(e)}")
        return False


class VectorProbe(Probe):
    """SVG can't be decoded by Pillow, so just ask the server about it with a HEAD"""
    kind = CandidateKind.VECTOR

    def check(self, url):
        result = self.fetcher.run(url=url,
                                  timeout=self.config.probe_timeout,
                                  request_headers={'Cache-Control': 'no-cache', 'Pragma': 'no-cache'},
                                  request_method='HEAD')

        content_type = result.content_type.lower()
        if result.ok and ('svg' in content_type or 'image' in content_type):
            logger.debug(f"Probe vector '{url}' - OK ({content_type})")
            return True

        logger.debug(f"Probe vector '{url}' - status {result.status_code}, content-type '{content_type}'")
        return False


class RasterProbe(Probe):
    """
    Download and decode the image, like a browser <img> would

    The status code is not looked at, only whether the body decodes to something with
    a real size - some servers answer a missing icon with a 0x0 or 1x0 placeholder.
    """
    kind = CandidateKind.RASTER

    def check(self, url):
        result = self.fetcher.run(url=cache_busted(url),
                                  timeout=self.config.probe_timeout,
                                  request_headers={'User-Agent': self.config.user_agent},
                                  request_method='GET',
                                  max_bytes=self.config.max_image_bytes)

        if not result.content:
            logger.debug(f"Probe {self.kind.value} '{url}' - empty reply, status {result.status_code}")
            return False

        width, height = decoded_dimensions(result.content, url=url)
        if width > 0 and height > 0:
            logger.debug(f"Probe {self.kind.value} '{url}' - OK {width}x{height}")
            return True

        logger.debug(f"Probe {self.kind.value} '{url}' - decoded but empty {width}x{height}")
        return False


class ServiceProbe(RasterProbe):
    # The favicon services answer with an image, so they are checked the same way
    kind = CandidateKind.SERVICE


PROBES = {
    CandidateKind.RASTER: RasterProbe,
    CandidateKind.VECTOR: VectorProbe,
    CandidateKind.SERVICE: ServiceProbe,
}


def probe(candidate_url, config=None, session=None, kind=None) -> bool:
    """
    Does a usable image exist at candidate_url? Never raises.

    :param candidate_url: absolute URL
    :param config: ResolverConfig, defaults are used when None
    :param session: requests.Session (or compatible), a throwaway one is made when None
    :param kind: CandidateKind if already known, otherwise worked out from the URL
    :return: bool
    """
    import requests

    config = config or ResolverConfig()
    own_session = session is None
    if own_session:
        session = requests.Session()

    try:
        kind = kind or classify(candidate_url)
        return PROBES[kind](config=config, session=session)(candidate_url)
    except Exception as e:
        logger.error(f"Could not probe '{candidate_url}' - {str(e)}")
        return False
    finally:
        if own_session:
            session.close()
