import os
from dataclasses import dataclass, fields

DEFAULT_ICON_URL = "https://placehold.co/100x100?text=App"
DEFAULT_USER_AGENT = "Mozilla/5.0 IconFetcher/1.0"

# Single image probe, HEAD or full image download+decode
DEFAULT_PROBE_TIMEOUT = 3.0
# Full HTML document transfer
DEFAULT_HTML_TIMEOUT = 5.0

DEFAULT_ICON_SIZE = 64
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024
DEFAULT_MAX_HTML_BYTES = 2 * 1024 * 1024

_TRUE_VALUES = {'y', 'yes', 't', 'true', 'on', '1'}

# field name -> environment variable
ENV_VARS = {
    'probe_timeout': 'ICON_PROBE_TIMEOUT',
    'html_timeout': 'ICON_HTML_TIMEOUT',
    'default_icon_url': 'ICON_DEFAULT_URL',
    'user_agent': 'ICON_USER_AGENT',
    'icon_size': 'ICON_SIZE',
    'max_image_bytes': 'ICON_MAX_IMAGE_BYTES',
    'max_html_bytes': 'ICON_MAX_HTML_BYTES',
    'verify_tls': 'ICON_VERIFY_TLS',
}


@dataclass(frozen=True)
class ResolverConfig:
    """Everything the resolver needs to know, passed in at construction time."""

    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    html_timeout: float = DEFAULT_HTML_TIMEOUT
    default_icon_url: str = DEFAULT_ICON_URL
    user_agent: str = DEFAULT_USER_AGENT
    icon_size: int = DEFAULT_ICON_SIZE
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    max_html_bytes: int = DEFAULT_MAX_HTML_BYTES
    verify_tls: bool = True

    @classmethod
    def from_env(cls, environ=None):
        """
        Build a config from ICON_* environment variables, anything unset keeps its default.

        :param environ: mapping to read from, defaults to os.environ
        :return: ResolverConfig
        """
        environ = os.environ if environ is None else environ
        kwargs = {}
        for f in fields(cls):
            value = environ.get(ENV_VARS[f.name])
            if value is None or value == '':
                continue
            if f.type in (bool, 'bool'):
                kwargs[f.name] = value.strip().lower() in _TRUE_VALUES
            elif f.type in (int, 'int'):
                kwargs[f.name] = int(value)
            elif f.type in (float, 'float'):
                kwargs[f.name] = float(value)
            else:
                kwargs[f.name] = value
        return cls(**kwargs)
