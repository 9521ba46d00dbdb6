"""
URL helpers for bundle and packager addresses.
"""

from typing import Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit


def is_file_url(url: Optional[str]) -> bool:
    return bool(url) and urlsplit(url).scheme == 'file'


def get_query_param(url: Optional[str], name: str) -> Optional[str]:
    """Return the last value of query parameter ``name``, or None."""
    if not url:
        return None
    value = None
    for key, item in parse_qsl(urlsplit(url).query, keep_blank_values=True):
        if key == name:
            value = item
    return value


def replace_query_param(url: str, name: str, value: Optional[str]) -> str:
    """
    Return ``url`` with parameter ``name`` set to ``value``.

    A ``None`` value removes the parameter. Other parameters keep their order.
    """
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != name]
    if value is not None:
        query.append((name, value))
    return urlunsplit(parts._replace(query=urlencode(query)))


def flag_value(value: Optional[str]) -> bool:
    """Interpret a query-string flag ("true", "1", "yes")."""
    if not value:
        return False
    value = value.strip().lower()
    if value[:1] in ('t', 'y'):
        return True
    return value[:1].isdigit() and value.lstrip('0')[:1].isdigit()


def server_origin(url: Optional[str]) -> Optional[str]:
    """``scheme://host:port`` of a network URL, None for files or missing hosts."""
    if not url:
        return None
    parts = urlsplit(url)
    if not parts.hostname:
        return None
    host = parts.hostname
    if ':' in host:
        host = f"[{host}]"
    port = parts.port
    if port is None:
        port = 443 if parts.scheme == 'https' else 80
    return f"{parts.scheme}://{host}:{port}"


def packager_url(bundle_url: Optional[str]) -> Optional[str]:
    """Socket endpoint the packager uses to send shell commands."""
    origin = server_origin(bundle_url)
    if origin is None:
        return None
    return f"{origin}/message?role=shell"


def live_reload_url(script_url: Optional[str]) -> Optional[str]:
    """Long-poll endpoint for a script served over the network."""
    if not script_url or is_file_url(script_url):
        return None
    if not urlsplit(script_url).hostname:
        return None
    return urljoin(script_url, '/onchange')


def systrace_url(bundle_url: Optional[str]) -> Optional[str]:
    origin = server_origin(bundle_url)
    if origin is None:
        return None
    return f"{origin}/systrace"
