"""Launch URL and origin allow-list checks for mini-apps.

Everything here is pure and fails closed: anything that cannot be parsed or
compiled is treated as not allowed.
"""

import logging
import re
from urllib.parse import urlsplit

from miniapp_sso.schemas.app import AppConfig, UrlPathPattern

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")
DEFAULT_PORTS = {"http": 80, "https": 443}


def url_origin(url: str) -> str | None:
    """Return ``scheme://host[:port]`` for an absolute http(s) URL, else None.

    Host is lower-cased and default ports are dropped, matching how browsers
    serialize ``window.location.origin``.
    """
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES or not parts.hostname:
        return None

    host = parts.hostname.lower()
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def match_path_pattern(path_with_query: str, pattern: UrlPathPattern) -> bool:
    if not path_with_query.startswith("/"):
        path_with_query = "/" + path_with_query

    if pattern.pattern_type == "exact":
        return path_with_query == pattern.value
    if pattern.pattern_type == "prefix":
        return path_with_query.startswith(pattern.value)
    if pattern.pattern_type == "regex":
        try:
            return re.search(pattern.value, path_with_query) is not None
        except re.error:
            logger.warning("Invalid start URL regex pattern: %r", pattern.value)
            return False
    return False


def is_allowed_start_url(app: AppConfig, url: str) -> bool:
    origin = url_origin(url)
    if origin is None:
        return False

    allowed = {url_origin(o) or o for o in app.allowed_origins}
    if origin not in allowed:
        return False

    if not app.allowed_start_url_patterns:
        return True

    parts = urlsplit(url.strip())
    path_with_query = parts.path or "/"
    if parts.query:
        path_with_query = f"{path_with_query}?{parts.query}"

    return any(match_path_pattern(path_with_query, p) for p in app.allowed_start_url_patterns)
