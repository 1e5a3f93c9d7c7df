from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from loguru import logger
import socket
import threading
import time

from iconfetcher.exceptions import ContentTooLarge, FetchNetworkError, FetchTimedOut

CHUNK_SIZE = 8192


@dataclass
class FetchResult:
    url: str
    status_code: int
    headers: dict = field(default_factory=dict)
    content: bytes = b''
    encoding: str = None

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    @property
    def content_type(self):
        return self.headers.get('content-type', '')


def abort_response(r):
    """
    Shut down the socket under a streamed requests response.

    A read() blocked in another thread returns straight away, closing alone would not wake it.
    """
    connection = getattr(getattr(r, 'raw', None), 'connection', None)
    sock = getattr(connection, 'sock', None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        # Already closed by the other side
        logger.trace(f"Socket shutdown after time budget - {str(e)}")


class fetcher():
    """
    Plain HTTP client around a requests.Session

    The timeout is a total wall-clock budget for the whole exchange: connect, headers and body.
    requests only applies its timeout per socket read, so a server trickling one byte at a time
    would never trip it. The exchange runs in a worker thread instead and the caller stops
    waiting once the budget is spent, shutting the socket so the worker ends too.
    """
    fetcher_description = "Basic fast Plaintext/HTTP Client"

    def __init__(self, session, verify_tls=True):
        self.session = session
        self.verify_tls = verify_tls

    def run(self,
            url,
            timeout,
            request_headers=None,
            request_method='GET',
            max_bytes=None):

        cancelled = threading.Event()
        in_flight = {}

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='iconfetcher-fetch')
        try:
            future = executor.submit(self._exchange,
                                     url=url,
                                     timeout=timeout,
                                     request_headers=request_headers,
                                     request_method=request_method,
                                     max_bytes=max_bytes,
                                     cancelled=cancelled,
                                     in_flight=in_flight)
            try:
                return future.result(timeout=timeout)
            except FutureTimeoutError:
                cancelled.set()
                abort_response(in_flight.get('response'))
                raise FetchTimedOut(url=url, timeout=timeout)
        finally:
            executor.shutdown(wait=False)

    def _exchange(self, url, timeout, request_headers, request_method, max_bytes, cancelled, in_flight):
        import requests

        deadline = time.monotonic() + timeout

        try:
            r = self.session.request(method=request_method,
                                     url=url,
                                     headers=request_headers or {},
                                     timeout=timeout,
                                     allow_redirects=True,
                                     stream=True,
                                     verify=self.verify_tls)
        except requests.exceptions.Timeout as e:
            raise FetchTimedOut(url=url, timeout=timeout) from e
        except requests.exceptions.RequestException as e:
            raise FetchNetworkError(url=url, msg=f"({str(e)})") from e

        in_flight['response'] = r

        try:
            content = b''
            # The caller may have given up while the headers were still arriving
            if cancelled.is_set():
                raise FetchTimedOut(url=url, timeout=timeout)
            if request_method.upper() != 'HEAD':
                chunks = []
                received = 0
                for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                    if cancelled.is_set() or time.monotonic() > deadline:
                        raise FetchTimedOut(url=url, timeout=timeout)
                    received += len(chunk)
                    if max_bytes and received > max_bytes:
                        raise ContentTooLarge(url=url, max_bytes=max_bytes)
                    chunks.append(chunk)
                content = b''.join(chunks)
        except requests.exceptions.Timeout as e:
            raise FetchTimedOut(url=url, timeout=timeout) from e
        except requests.exceptions.RequestException as e:
            if cancelled.is_set():
                raise FetchTimedOut(url=url, timeout=timeout) from e
            raise FetchNetworkError(url=url, status_code=r.status_code, msg=f"({str(e)})") from e
        finally:
            r.close()

        logger.trace(f"{request_method} '{url}' - status {r.status_code}, {len(content)} bytes")

        return FetchResult(url=url,
                           status_code=r.status_code,
                           # Lowercase all the keys
                           headers={k.lower(): v for k, v in r.headers.items()},
                           content=content,
                           encoding=r.encoding)
