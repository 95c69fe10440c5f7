"""
Parses sitemap XML: either a <urlset> of page entries or a <sitemapindex>
of child sitemaps. Namespaced and namespace-less documents are both accepted.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from lxml import etree

from config import SITEMAP_XML_PATH
from models import SitemapDocument, SitemapEntry


class SitemapParseError(Exception):
    """Malformed XML or an unexpected root element."""


def sitemap_url(site_url: str) -> str:
    parsed = urlparse(site_url)
    return f"{parsed.scheme}://{parsed.netloc}{SITEMAP_XML_PATH}"


def parse_sitemap_xml(xml: str) -> SitemapDocument:
    root = _parse_xml(xml)
    tag = _local_tag(root.tag)

    if tag == "sitemapindex":
        sitemaps = []
        for sm_elem in _children(root, "sitemap"):
            loc = _child_text(sm_elem, "loc")
            if loc:
                sitemaps.append(loc)
        return SitemapDocument(kind="sitemapindex", sitemaps=sitemaps)

    if tag == "urlset":
        urls = []
        for url_elem in _children(root, "url"):
            loc = _child_text(url_elem, "loc")
            if loc:
                urls.append(SitemapEntry(
                    loc=loc,
                    lastmod=_child_text(url_elem, "lastmod"),
                    changefreq=_child_text(url_elem, "changefreq"),
                    priority=_child_text(url_elem, "priority"),
                ))
        return SitemapDocument(kind="urlset", urls=urls)

    raise SitemapParseError(f"Unexpected root element <{tag}>")


def _parse_xml(xml: str) -> etree._Element:
    """Parse XML string; any syntax error becomes SitemapParseError."""
    if not xml or not xml.strip():
        raise SitemapParseError("Empty document")
    parser = etree.XMLParser(resolve_entities=False, no_network=True, recover=False)
    try:
        root = etree.fromstring(xml.strip().encode("utf-8"), parser)
    except etree.XMLSyntaxError as exc:
        raise SitemapParseError(f"XML parse error: {exc}") from exc
    if root is None:
        raise SitemapParseError("Empty document")
    return root


def _local_tag(tag) -> str:
    """Strip namespace from tag name."""
    if not isinstance(tag, str):
        return ""
    if "}" in tag:
        return tag.split("}")[1]
    return tag


def _children(elem: etree._Element, name: str) -> list[etree._Element]:
    return [child for child in elem if _local_tag(child.tag) == name]


def _child_text(elem: etree._Element, name: str) -> Optional[str]:
    for child in _children(elem, name):
        if child.text and child.text.strip():
            return child.text.strip()
    return None
