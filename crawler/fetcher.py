"""
Low-level HTTP fetcher. Every call is a single attempt bounded by the run timeout;
redirect chains are followed manually so each hop can be recorded.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urljoin

import requests

from config import DEFAULT_ACCEPT, DEFAULT_TIMEOUT_MS, DEFAULT_USER_AGENT, MAX_REDIRECTS
from logging_config import get_logger
from models import FetchedPage, FetchOptions, HeadResult, RedirectChain, RedirectHop

logger = get_logger(__name__)


class NetworkError(Exception):
    """A request timed out or could not connect. Callers treat it as absence of the resource."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


def make_session() -> requests.Session:
    """Session shared by every analyzer in a run. No retry adapter: one attempt per request."""
    session = requests.Session()
    session.headers.update({
        "Accept": DEFAULT_ACCEPT,
        "Accept-Language": "en-US,en;q=0.5",
    })
    return session


def fetch_page(
    url: str,
    session: requests.Session,
    options: Optional[FetchOptions] = None,
) -> FetchedPage:
    """
    Resolve the redirect chain, then GET the final URL (redirects followed)
    and return its body as text.
    """
    chain = follow_redirect_chain(url, session, options)
    resp = _request("GET", chain.final_url, session, options, allow_redirects=True)
    return FetchedPage(
        body=resp.text,
        status=resp.status_code,
        headers=_lower_headers(resp),
        final_url=chain.final_url,
    )


def fetch_without_redirect(
    url: str,
    session: requests.Session,
    options: Optional[FetchOptions] = None,
) -> HeadResult:
    """Single GET with redirect-following disabled, used to inspect one hop."""
    resp = _request("GET", url, session, options, allow_redirects=False)
    resp.close()
    return HeadResult(status=resp.status_code, headers=_lower_headers(resp))


def fetch_head(
    url: str,
    session: requests.Session,
    options: Optional[FetchOptions] = None,
) -> HeadResult:
    """HEAD request (redirects followed) for cheap existence / size checks."""
    resp = _request("HEAD", url, session, options, allow_redirects=True)
    return HeadResult(status=resp.status_code, headers=_lower_headers(resp))


def follow_redirect_chain(
    url: str,
    session: requests.Session,
    options: Optional[FetchOptions] = None,
) -> RedirectChain:
    """
    Follow Location headers one hop at a time, up to MAX_REDIRECTS requests.
    Stops as soon as a URL is revisited (is_circular=True) or a response is not
    a 3xx carrying a Location header. A hop that fails with NetworkError ends the
    walk and the partial chain is returned with interrupted=True.
    """
    hops: list[RedirectHop] = []
    seen_urls: set[str] = set()
    current_url = url

    for _ in range(MAX_REDIRECTS):
        if current_url in seen_urls:
            return RedirectChain(hops=hops, final_url=current_url, is_circular=True)
        seen_urls.add(current_url)

        try:
            result = fetch_without_redirect(current_url, session, options)
        except NetworkError as exc:
            logger.debug("Redirect chain for %s stopped at %s: %s", url, current_url, exc.reason)
            return RedirectChain(hops=hops, final_url=current_url, is_circular=False, interrupted=True)
        location = result.headers.get("location", "")

        if location and 300 <= result.status < 400:
            # Resolve relative redirect URLs
            next_url = urljoin(current_url, location)
            hops.append(RedirectHop(url=current_url, status=result.status, location=next_url))
            current_url = next_url
        else:
            return RedirectChain(hops=hops, final_url=current_url, is_circular=False)

    # Hop limit exhausted without reaching a final response
    return RedirectChain(hops=hops, final_url=current_url, is_circular=False)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _request(
    method: str,
    url: str,
    session: requests.Session,
    options: Optional[FetchOptions],
    allow_redirects: bool,
) -> requests.Response:
    options = options or FetchOptions()
    timeout_ms = options.timeout_ms or DEFAULT_TIMEOUT_MS
    headers = {
        "User-Agent": options.user_agent or DEFAULT_USER_AGENT,
        "Accept": DEFAULT_ACCEPT,
    }

    try:
        return session.request(
            method,
            url,
            headers=headers,
            timeout=timeout_ms / 1000,
            allow_redirects=allow_redirects,
        )
    except requests.exceptions.SSLError as exc:
        reason = f"SSL Error: {exc}"
    except requests.exceptions.Timeout:
        reason = f"Request timed out after {timeout_ms} ms"
    except requests.exceptions.ConnectionError as exc:
        reason = f"Connection Error: {exc}"
    except requests.exceptions.TooManyRedirects:
        reason = "Too many redirects"
    except requests.RequestException as exc:
        reason = f"Request failed: {exc}"

    logger.debug("%s %s failed: %s", method, url, reason)
    raise NetworkError(url, reason)


def _lower_headers(resp: requests.Response) -> dict[str, str]:
    return {k.lower(): v for k, v in resp.headers.items()}
