from loguru import logger
from typing import List
from urllib.parse import urljoin, urlparse

from iconfetcher.config import ResolverConfig
from iconfetcher.exceptions import EmptyReply, FetchError, Non200ErrorCodeReceived, NotHtmlContent, ParseError
from iconfetcher.fetcher import fetcher

HTML_CONTENT_TYPES = ('text/html', 'application/xhtml+xml')

# Anything with "icon" in the rel, "icon", "shortcut icon", "apple-touch-icon", "mask-icon" etc
LINK_REL_ICON_KEYWORD = 'icon'

# <meta property=".."> or <meta name=".."> that usually point to a logo/preview image
META_IMAGE_KEYS = ('og:image', 'msapplication-tileimage', 'twitter:image')


def resolve_reference(reference, base_url):
    """
    Turn a href/content value into an absolute http(s) URL

    :raises ParseError: when it can't be resolved, or resolves to something we can't fetch (data:, javascript: ..)
    """
    reference = (reference or '').strip()
    if not reference:
        raise ParseError(reference, base_url)

    try:
        absolute = urljoin(base_url, reference)
        parsed = urlparse(absolute)
        # Accessing .port validates it
        parsed.port
    except ValueError as e:
        raise ParseError(reference, base_url, original_e=e) from e

    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ParseError(reference, base_url)

    return absolute


def extract_icon_links(html_content, base_url) -> List[str]:
    """
    Find every icon-ish reference in a HTML document

    <link rel="...icon..." href> first, then <meta og:image/msapplication-TileImage/twitter:image content>,
    each group in document order, all resolved against the page URL (or the document's own <base href>).
    Unresolvable references are skipped, duplicates are only returned once.
    """
    from bs4 import BeautifulSoup
    soup = BeautifulSoup(html_content, "html.parser")

    base_tag = soup.find('base', href=True)
    if base_tag:
        try:
            base_url = resolve_reference(base_tag['href'], base_url)
        except ParseError:
            pass

    references = []

    for link in soup.find_all('link', href=True):
        # bs4 gives "rel" as a list since it's a multi-valued attribute
        rel = link.get('rel') or []
        if isinstance(rel, str):
            rel = rel.split()
        if LINK_REL_ICON_KEYWORD in ' '.join(rel).lower():
            references.append(link['href'])

    for meta in soup.find_all('meta', content=True):
        keys = {(meta.get(attr) or '').strip().lower() for attr in ('property', 'name')}
        if keys.intersection(META_IMAGE_KEYS):
            references.append(meta['content'])

    icon_links = []
    for reference in references:
        try:
            absolute = resolve_reference(reference, base_url)
        except ParseError:
            continue
        if absolute not in icon_links:
            icon_links.append(absolute)

    return icon_links


def fetch_html(page_url, config: ResolverConfig, session) -> str:
    """
    Fetch the page itself, only HTML is accepted

    :raises FetchError: network trouble, timeout, non-2xx, empty reply, or not HTML
    """
    import chardet

    result = fetcher(session=session, verify_tls=config.verify_tls).run(
        url=page_url,
        timeout=config.html_timeout,
        request_headers={'User-Agent': config.user_agent},
        request_method='GET',
        max_bytes=config.max_html_bytes)

    if not result.ok:
        raise Non200ErrorCodeReceived(url=page_url, status_code=result.status_code)

    content_type = result.content_type.lower()
    if not any(t in content_type for t in HTML_CONTENT_TYPES):
        raise NotHtmlContent(url=page_url, content_type=content_type, status_code=result.status_code)

    if not result.content:
        raise EmptyReply(url=page_url, status_code=result.status_code)

    # If the server did not say which charset, don't trust requests' ISO-8859-1 guess, ask chardet
    encoding = result.encoding if 'charset=' in content_type else None
    if not encoding:
        encoding = chardet.detect(result.content)['encoding'] or 'utf-8'

    try:
        return result.content.decode(encoding, errors='replace')
    except LookupError:
        # Unknown charset name
        return result.content.decode('utf-8', errors='replace')


def extract_icon_links_from_html(page_url, config=None, session=None) -> List[str]:
    """
    Fetch page_url and return the icon references found in it, never raises for fetch trouble.

    :return: list of absolute URLs, possibly empty
    """
    import requests

    config = config or ResolverConfig()
    own_session = session is None
    if own_session:
        session = requests.Session()

    try:
        logger.debug(f"Fetching HTML of '{page_url}' to look for icons")
        html_content = fetch_html(page_url, config=config, session=session)
    except FetchError as e:
        logger.debug(f"No HTML to extract icons from - {str(e)}")
        return []
    finally:
        if own_session:
            session.close()

    icon_links = extract_icon_links(html_content, base_url=page_url)
    logger.debug(f"Found {len(icon_links)} icon references in HTML of '{page_url}'")
    return icon_links
