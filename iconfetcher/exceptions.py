from loguru import logger


class InvalidUrl(ValueError):
    def __init__(self, url, msg=''):
        self.url = url
        self.msg = msg
        ValueError.__init__(self, f"Invalid URL '{url}' {msg}".strip())
        return


# @note - Everything below is converted to a boolean or an empty list before it reaches the resolver
class FetchError(Exception):
    def __init__(self, url, status_code=None, msg=''):
        # Set this so we can use it in other parts of the app
        self.url = url
        self.status_code = status_code
        self.msg = msg
        Exception.__init__(self, f"{self.__class__.__name__} for '{url}' {msg}".strip())
        return


class FetchTimedOut(FetchError):
    def __init__(self, url, timeout):
        self.timeout = timeout
        FetchError.__init__(self, url=url, msg=f"(no complete reply within {timeout}s)")
        return


class FetchNetworkError(FetchError):
    pass


class Non200ErrorCodeReceived(FetchError):
    def __init__(self, url, status_code):
        FetchError.__init__(self, url=url, status_code=status_code, msg=f"(status code {status_code})")
        return


class EmptyReply(FetchError):
    pass


class NotHtmlContent(FetchError):
    def __init__(self, url, content_type, status_code=None):
        self.content_type = content_type
        FetchError.__init__(self, url=url, status_code=status_code, msg=f"(content-type '{content_type}')")
        return


class ContentTooLarge(FetchError):
    def __init__(self, url, max_bytes):
        self.max_bytes = max_bytes
        FetchError.__init__(self, url=url, msg=f"(larger than {max_bytes} bytes)")
        return


class ImageDecodeError(Exception):
    def __init__(self, url, msg=''):
        self.url = url
        self.msg = msg
        Exception.__init__(self, f"Could not decode image at '{url}' {msg}".strip())
        return


class ParseError(Exception):
    def __init__(self, reference, base_url, original_e=None):
        self.reference = reference
        self.base_url = base_url
        self.original_e = original_e
        logger.trace(f"Skipping unresolvable reference '{reference}' on '{base_url}' {original_e or ''}")
        Exception.__init__(self, f"Could not resolve '{reference}' against '{base_url}'")
        return
