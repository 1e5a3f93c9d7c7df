from dataclasses import dataclass
from loguru import logger
from urllib.parse import urlparse

from iconfetcher.exceptions import InvalidUrl

SAFE_SCHEMES = ('http', 'https')


@dataclass(frozen=True)
class Origin:
    scheme: str
    host: str

    @property
    def base(self):
        return f"{self.scheme}://{self.host}"

    @property
    def hostname(self):
        """The host without any :port, IPv6 literals keep their brackets"""
        if self.host.startswith('['):
            return self.host[:self.host.index(']') + 1]
        return self.host.split(':', 1)[0]

    def __str__(self):
        return self.base


def normalize(url):
    """
    Validate an arbitrary string as an absolute http/https URL and reduce it to its origin.

    Path, query, fragment and any user:password@ part are discarded, the host is lower-cased
    and an explicit port is kept.

    - Input:  "https://Example.com:8443/some/page?x=1#top"
    - Output: Origin(scheme='https', host='example.com:8443')

    :param url: anything the caller was given
    :return: Origin
    :raises InvalidUrl: when there is nothing usable to build candidates from
    """
    import validators

    if not isinstance(url, str) or not url.strip():
        raise InvalidUrl(url, msg='(empty)')

    url = url.strip()

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
        port = parsed.port
    except ValueError as e:
        raise InvalidUrl(url, msg=f'({str(e)})') from e

    scheme = parsed.scheme.lower()
    if scheme not in SAFE_SCHEMES:
        raise InvalidUrl(url, msg=f"(scheme '{scheme}' not allowed)")

    if not hostname:
        raise InvalidUrl(url, msg='(no host)')

    # IPv6 literals lose their brackets in .hostname
    host = f"[{hostname}]" if ':' in hostname else hostname
    if port:
        host = f"{host}:{port}"

    origin = Origin(scheme=scheme, host=host)

    # "localhost" and other single-label hosts are fine here
    try:
        if not validators.url(origin.base, simple_host=True):
            raise InvalidUrl(url, msg='(failed validation)')
    except validators.ValidationError as e:
        raise InvalidUrl(url, msg='(failed validation)') from e

    logger.trace(f"Normalized '{url}' to origin '{origin}'")
    return origin
