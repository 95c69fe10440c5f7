"""
URL helpers shared by the fetch layer and the analyzers.
"""
from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

import tldextract

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)

# Bundled public-suffix snapshot only; never fetched over the network
_TLD_EXTRACT = tldextract.TLDExtract(suffix_list_urls=())


def _host_port(scheme: str, hostname: str, port: Optional[int]) -> str:
    host = hostname.lower()
    if ":" in host:
        # IPv6 literal
        host = f"[{host}]"
    if port is not None and not ((scheme == "https" and port == 443) or (scheme == "http" and port == 80)):
        host = f"{host}:{port}"
    return host


def normalize_url(raw: str) -> str:
    """
    Canonicalize a user-supplied URL:
    - Default the scheme to https
    - Lowercase scheme and host
    - Remove default ports (80 for http, 443 for https)
    - Root path becomes "/"
    """
    url = raw.strip()
    if not _SCHEME_RE.match(url):
        url = f"https://{url}"

    p = urlsplit(url)
    if not p.hostname:
        raise ValueError(f"Invalid URL: {raw!r}")

    scheme = p.scheme.lower()
    host = _host_port(scheme, p.hostname, p.port)
    if p.username:
        userinfo = p.username + (f":{p.password}" if p.password else "")
        host = f"{userinfo}@{host}"

    path = p.path or "/"
    return urlunsplit((scheme, host, path, p.query, p.fragment))


def get_origin(url: str) -> str:
    p = urlsplit(url)
    scheme = p.scheme.lower()
    host = _host_port(scheme, p.hostname or "", p.port)
    return f"{scheme}://{host}"


def is_same_origin(a: str, b: str) -> bool:
    return get_origin(a) == get_origin(b)


def is_https(url: str) -> bool:
    return urlsplit(url).scheme.lower() == "https"


def to_http_url(url: str) -> str:
    p = urlsplit(url)
    netloc = p.netloc
    if p.port == 443:
        netloc = netloc.rsplit(":", 1)[0]
    return urlunsplit(("http", netloc, p.path, p.query, p.fragment))


def resolve_url(base: str, relative: str) -> str:
    """Resolve `relative` against `base`; a bare origin gets the root path "/"."""
    resolved = urljoin(base, relative.strip())
    p = urlsplit(resolved)
    if p.scheme in ("http", "https") and p.netloc and not p.path:
        return urlunsplit((p.scheme, p.netloc, "/", p.query, p.fragment))
    return resolved


def is_absolute_http_url(url: str) -> bool:
    return url.startswith(("http://", "https://"))


# ── Trailing slash ────────────────────────────────────────────────────────────

def has_trailing_slash(url: str) -> bool:
    path = urlsplit(url).path
    return len(path) > 1 and path.endswith("/")


def add_trailing_slash(url: str) -> str:
    p = urlsplit(url)
    path = p.path or "/"
    if not path.endswith("/"):
        path += "/"
    return urlunsplit((p.scheme, p.netloc, path, p.query, p.fragment))


def remove_trailing_slash(url: str) -> str:
    p = urlsplit(url)
    path = p.path
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return urlunsplit((p.scheme, p.netloc, path, p.query, p.fragment))


def toggle_trailing_slash(url: str) -> str:
    """Return the variant of `url` with the trailing slash flipped."""
    if has_trailing_slash(url):
        return remove_trailing_slash(url)
    return add_trailing_slash(url)


def normalize_for_comparison(url: str) -> str:
    """Strip the trailing slash (except on the root) so variants compare equal."""
    try:
        p = urlsplit(url)
        if not p.scheme or not p.netloc:
            return url
        return remove_trailing_slash(urlunsplit((p.scheme.lower(), p.netloc.lower(), p.path or "/", p.query, p.fragment)))
    except ValueError:
        return url


def registered_domain(url: str) -> str:
    """eTLD+1 of the URL's host, e.g. "blog.example.co.uk" -> "example.co.uk"."""
    host = urlsplit(url).hostname or ""
    ext = _TLD_EXTRACT(host)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return host


def is_same_site(a: str, b: str) -> bool:
    return registered_domain(a) == registered_domain(b)
