"""
Image analyzer: alt text, optimized-image usage, lazy loading, file size, dimensions.
Findings are aggregated per check, not per image.
"""
from __future__ import annotations

from analyzers.base import BaseAnalyzer
from config import LARGE_IMAGE_SIZE_BYTES, MAX_IMAGE_HEAD_REQUESTS
from crawler.fetcher import NetworkError, fetch_head
from crawler.parser import get_images
from crawler.urls import is_absolute_http_url
from models import AuditContext, Category, Finding, ImageCode, ImageData


def _summary(images: list[ImageData]) -> dict:
    return {"count": len(images), "srcs": [img.src for img in images]}


class ImageAnalyzer(BaseAnalyzer):
    name = "images"
    category = Category.IMAGES

    def analyze(self, ctx: AuditContext) -> list[Finding]:
        url = ctx.normalized_url
        try:
            html, headers = self.load_homepage(ctx)
        except NetworkError:
            return []

        images = get_images(html)
        if not images:
            return []

        findings: list[Finding] = []
        is_nextjs = "Next.js" in headers.get("x-powered-by", "")

        # ── Alt text ───────────────────────────────────────────────────────────
        missing_alt = [img for img in images if not img.has_alt]
        if missing_alt:
            findings.append(self.warning(
                ImageCode.IMG_MISSING_ALT,
                f"{len(missing_alt)} image(s) missing alt attribute",
                "Images without alt attributes are inaccessible to screen readers and may hurt SEO rankings.",
                'Add descriptive alt text to all images. Use alt="" only for purely decorative images.',
                details=_summary(missing_alt),
                url=url,
            ))

        empty_alt = [img for img in images if img.has_alt and img.alt == ""]
        if empty_alt:
            findings.append(self.info(
                ImageCode.IMG_EMPTY_ALT,
                f"{len(empty_alt)} image(s) with empty alt attribute",
                "Empty alt text marks images as decorative. Verify these images are truly decorative "
                "and not content-bearing.",
                'Review images with alt="" and add descriptive text if they convey meaningful content.',
                details=_summary(empty_alt),
                url=url,
            ))

        # ── next/image ─────────────────────────────────────────────────────────
        if is_nextjs:
            plain = [img for img in images if not img.is_next_image]
            if plain:
                findings.append(self.info(
                    ImageCode.IMG_NO_NEXT_IMAGE,
                    f"{len(plain)} image(s) not using next/image component",
                    "The next/image component provides automatic optimization, lazy loading, and responsive sizing.",
                    "Replace <img> tags with the Next.js <Image> component for automatic optimization.",
                    details=_summary(plain),
                    url=url,
                ))

        # ── Lazy loading (first image is assumed above the fold) ──────────────
        not_lazy = [img for img in images[1:] if img.loading != "lazy"]
        if not_lazy:
            findings.append(self.info(
                ImageCode.IMG_NO_LAZY_LOADING,
                f'{len(not_lazy)} below-fold image(s) missing loading="lazy"',
                "Images without lazy loading are fetched immediately, increasing initial page load time and hurting LCP.",
                'Add loading="lazy" to images that appear below the fold to defer loading until needed.',
                details=_summary(not_lazy),
                url=url,
            ))

        # ── File size ──────────────────────────────────────────────────────────
        large_files = self._large_files(ctx, images)
        if large_files:
            findings.append(self.warning(
                ImageCode.IMG_LARGE_FILE,
                f"{len(large_files)} image(s) exceed {LARGE_IMAGE_SIZE_BYTES // 1024}KB",
                "Large images significantly slow page load times and negatively impact Core Web Vitals (LCP).",
                "Compress images, use modern formats like WebP or AVIF, and serve appropriately sized images.",
                details={"files": large_files},
                url=url,
            ))

        # ── Dimensions ─────────────────────────────────────────────────────────
        no_dimensions = [img for img in images if not img.has_width or not img.has_height]
        if no_dimensions:
            findings.append(self.warning(
                ImageCode.IMG_MISSING_DIMENSIONS,
                f"{len(no_dimensions)} image(s) missing width/height attributes",
                "Images without explicit dimensions cause layout shifts (CLS) as the browser cannot "
                "reserve space before loading.",
                "Add width and height attributes to all images to prevent cumulative layout shift.",
                details=_summary(no_dimensions),
                url=url,
            ))

        return findings

    @staticmethod
    def _large_files(ctx: AuditContext, images: list[ImageData]) -> list[dict]:
        """HEAD up to MAX_IMAGE_HEAD_REQUESTS absolute images and report oversized ones."""
        candidates = [img for img in images if is_absolute_http_url(img.src)][:MAX_IMAGE_HEAD_REQUESTS]
        large: list[dict] = []
        for img in candidates:
            try:
                result = fetch_head(img.src, ctx.session, ctx.fetch_options)
            except NetworkError:
                continue
            try:
                size = int(result.headers.get("content-length", ""))
            except ValueError:
                continue
            if size > LARGE_IMAGE_SIZE_BYTES:
                large.append({"src": img.src, "size_kb": round(size / 1024)})
        return large
