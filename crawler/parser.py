"""
HTML extractors. Pure functions over raw HTML text (or an already-built soup);
no network I/O happens here.

Every text-bearing extractor trims its value and treats an empty string as absent.
"""
from __future__ import annotations

import re
from typing import Optional, Union

from bs4 import BeautifulSoup, Tag

from config import NEXT_IMAGE_ATTRIBUTE
from models import FaviconLink, HreflangLink, ImageData

Markup = Union[str, BeautifulSoup]

_META_REFRESH_URL_RE = re.compile(r"""url\s*=\s*['"]?([^'";\s]+)""", re.IGNORECASE)
_CHARSET_RE = re.compile(r"charset=([^\s;]+)", re.IGNORECASE)

# <script type> values that carry data rather than executable code
_NON_JS_SCRIPT_TYPES = {"application/ld+json", "application/json", "text/template", "importmap", "speculationrules"}


def make_soup(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except Exception:
        return BeautifulSoup(html, "html.parser")


def _as_soup(markup: Markup) -> BeautifulSoup:
    if isinstance(markup, BeautifulSoup):
        return markup
    return make_soup(markup or "")


def _rel_values(tag: Tag) -> list[str]:
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return [r.lower() for r in rel]


def _attr(tag: Tag, name: str) -> Optional[str]:
    value = tag.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        value = " ".join(value)
    return value


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _find_meta(soup: BeautifulSoup, attr: str, value: str) -> Optional[Tag]:
    value = value.lower()
    for meta in soup.find_all("meta"):
        if (_attr(meta, attr) or "").strip().lower() == value:
            return meta
    return None


# ── Canonical / indexing ──────────────────────────────────────────────────────

def get_canonical_url(markup: Markup) -> Optional[str]:
    soup = _as_soup(markup)
    for link in soup.find_all("link"):
        if "canonical" in _rel_values(link):
            return _clean(_attr(link, "href"))
    return None


def has_noindex_directive(markup: Markup) -> bool:
    """True when <meta name="robots"> or <meta name="googlebot"> contains noindex."""
    soup = _as_soup(markup)
    robots = _find_meta(soup, "name", "robots")
    googlebot = _find_meta(soup, "name", "googlebot")
    combined = " ".join([
        (_attr(robots, "content") or "") if robots is not None else "",
        (_attr(googlebot, "content") or "") if googlebot is not None else "",
    ])
    return "noindex" in combined.lower()


def get_meta_refresh(markup: Markup) -> Optional[str]:
    soup = _as_soup(markup)
    meta = _find_meta(soup, "http-equiv", "refresh")
    if meta is None:
        return None
    content = _attr(meta, "content")
    if not content:
        return None
    match = _META_REFRESH_URL_RE.search(content)
    return match.group(1) if match else None


# ── Meta tags ─────────────────────────────────────────────────────────────────

def get_meta_tag(markup: Markup, name: str) -> Optional[str]:
    """Look up a meta tag by name= first, then property= (Open Graph)."""
    soup = _as_soup(markup)
    value = None
    by_name = _find_meta(soup, "name", name)
    if by_name is not None:
        value = _attr(by_name, "content")
    if value is None:
        by_property = _find_meta(soup, "property", name)
        if by_property is not None:
            value = _attr(by_property, "content")
    return _clean(value)


def get_charset(markup: Markup) -> Optional[str]:
    soup = _as_soup(markup)
    meta = soup.find("meta", charset=True)
    if meta is not None:
        charset = _clean(_attr(meta, "charset"))
        if charset:
            return charset

    http_equiv = _find_meta(soup, "http-equiv", "content-type")
    if http_equiv is not None:
        content = _attr(http_equiv, "content") or ""
        match = _CHARSET_RE.search(content)
        if match:
            return match.group(1)
    return None


def get_viewport(markup: Markup) -> Optional[str]:
    soup = _as_soup(markup)
    meta = _find_meta(soup, "name", "viewport")
    if meta is None:
        return None
    return _clean(_attr(meta, "content"))


def get_title(markup: Markup) -> Optional[str]:
    soup = _as_soup(markup)
    title_tag = soup.find("title")
    if title_tag is None:
        return None
    return _clean(title_tag.get_text())


# ── Link elements ─────────────────────────────────────────────────────────────

def get_favicon_links(markup: Markup) -> list[FaviconLink]:
    soup = _as_soup(markup)
    links: list[FaviconLink] = []
    for link in soup.find_all("link"):
        rel = " ".join(_rel_values(link))
        if "icon" not in rel:
            continue
        href = _attr(link, "href")
        if href:
            links.append(FaviconLink(
                rel=rel,
                href=href,
                type=_attr(link, "type"),
                sizes=_attr(link, "sizes"),
            ))
    return links


def get_hreflang_links(markup: Markup) -> list[HreflangLink]:
    soup = _as_soup(markup)
    links: list[HreflangLink] = []
    for link in soup.find_all("link"):
        if "alternate" not in _rel_values(link):
            continue
        hreflang = _clean(_attr(link, "hreflang"))
        href = _clean(_attr(link, "href"))
        if hreflang and href:
            links.append(HreflangLink(hreflang=hreflang.lower(), href=href))
    return links


def get_preconnect_hrefs(markup: Markup) -> list[str]:
    soup = _as_soup(markup)
    hrefs: list[str] = []
    for link in soup.find_all("link"):
        if "preconnect" in _rel_values(link):
            href = _clean(_attr(link, "href"))
            if href:
                hrefs.append(href)
    return hrefs


# ── Images ────────────────────────────────────────────────────────────────────

def get_images(markup: Markup) -> list[ImageData]:
    soup = _as_soup(markup)
    images: list[ImageData] = []
    for img in soup.find_all("img"):
        alt = _attr(img, "alt")
        images.append(ImageData(
            src=(_attr(img, "src") or "").strip(),
            alt=alt.strip() if alt is not None else None,
            loading=(_attr(img, "loading") or "").strip().lower(),
            has_width=bool(_clean(_attr(img, "width"))),
            has_height=bool(_clean(_attr(img, "height"))),
            is_next_image=img.has_attr(NEXT_IMAGE_ATTRIBUTE),
        ))
    return images


# ── Scripts / styles ──────────────────────────────────────────────────────────

def get_jsonld_blocks(markup: Markup) -> list[str]:
    """Raw text of every <script type="application/ld+json"> block, trimmed."""
    soup = _as_soup(markup)
    blocks: list[str] = []
    for script in soup.find_all("script"):
        if (_attr(script, "type") or "").strip().lower() == "application/ld+json":
            blocks.append(script.get_text().strip())
    return blocks


def get_render_blocking_scripts(markup: Markup) -> list[str]:
    """
    Executable <script> tags inside <head> with none of async, defer or
    type="module". Returns each script's src, or "inline" for inline code.
    """
    soup = _as_soup(markup)
    head = soup.find("head")
    if head is None:
        return []

    blocking: list[str] = []
    for script in head.find_all("script"):
        script_type = (_attr(script, "type") or "").strip().lower()
        if script_type == "module" or script_type in _NON_JS_SCRIPT_TYPES:
            continue
        if script.has_attr("async") or script.has_attr("defer"):
            continue
        blocking.append((_attr(script, "src") or "").strip() or "inline")
    return blocking


def get_inline_styles(markup: Markup) -> list[str]:
    soup = _as_soup(markup)
    return [style.get_text() for style in soup.find_all("style")]


def get_resource_urls(markup: Markup) -> list[str]:
    """src/href of every <script>, <link> and <img> element, in document order."""
    soup = _as_soup(markup)
    urls: list[str] = []
    for tag in soup.find_all(["script", "link", "img"]):
        attr = "href" if tag.name == "link" else "src"
        value = _clean(_attr(tag, attr))
        if value:
            urls.append(value)
    return urls
