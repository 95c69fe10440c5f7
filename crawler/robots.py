"""
Parses robots.txt text into user-agent groups and Sitemap directives.
"""
from __future__ import annotations

from urllib.parse import urlparse

from config import ROBOTS_TXT_PATH
from models import RobotsData, RobotsGroup


def robots_url(site_url: str) -> str:
    parsed = urlparse(site_url)
    return f"{parsed.scheme}://{parsed.netloc}{ROBOTS_TXT_PATH}"


def parse_robots(text: str) -> RobotsData:
    """
    Every User-agent line opens a new group; Disallow/Allow lines attach to the
    most recent group and are ignored before the first one. Sitemap lines are
    global. Empty Disallow/Allow values are not rules.
    """
    data = RobotsData()
    current: RobotsGroup | None = None

    for raw_line in text.splitlines():
        line = raw_line.strip()

        # Skip blank lines and comments
        if not line or line.startswith("#"):
            continue
        if ":" not in line:
            continue

        directive, _, value = line.partition(":")
        directive = directive.strip().lower()
        value = value.strip()

        if directive == "user-agent":
            current = RobotsGroup(user_agent=value)
            data.groups.append(current)

        elif directive == "disallow":
            if current is not None and value:
                current.disallow.append(value)

        elif directive == "allow":
            if current is not None and value:
                current.allow.append(value)

        elif directive == "sitemap":
            if value:
                data.sitemap_urls.append(value)

    return data
