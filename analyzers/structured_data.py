"""
Structured-data analyzer: validates every JSON-LD block on the homepage.
"""
from __future__ import annotations

import json
from typing import Any

from analyzers.base import BaseAnalyzer
from config import JSONLD_REQUIRED_FIELDS
from crawler.fetcher import NetworkError
from crawler.parser import get_jsonld_blocks
from models import AuditContext, Category, Finding, StructuredDataCode

_SNIPPET_CHARS = 200


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, dict)) and len(value) == 0)


class StructuredDataAnalyzer(BaseAnalyzer):
    name = "structured-data"
    category = Category.STRUCTURED_DATA

    def analyze(self, ctx: AuditContext) -> list[Finding]:
        url = ctx.normalized_url
        try:
            html, _ = self.load_homepage(ctx)
        except NetworkError:
            return []

        blocks = get_jsonld_blocks(html)
        if not blocks:
            return [self.warning(
                StructuredDataCode.JSONLD_MISSING,
                "No JSON-LD structured data found",
                "Structured data helps search engines understand your content and can enable rich results "
                "(FAQ snippets, breadcrumbs, product cards).",
                'Add a <script type="application/ld+json"> block with schema.org markup relevant to your page content.',
                url=url,
            )]

        findings: list[Finding] = []
        detected_types: list[str] = []

        for raw in blocks:
            if not raw:
                continue
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                findings.append(self.error(
                    StructuredDataCode.JSONLD_INVALID_JSON,
                    "Invalid JSON in JSON-LD block",
                    'A <script type="application/ld+json"> block contains malformed JSON that search engines cannot parse.',
                    "Fix the JSON syntax error. Validate your JSON-LD at https://search.google.com/test/rich-results.",
                    details={"snippet": raw[:_SNIPPET_CHARS]},
                    url=url,
                ))
                continue

            objects = data if isinstance(data, list) else [data]
            for obj in objects:
                if not isinstance(obj, dict):
                    continue
                findings.extend(self._check_object(obj, detected_types, url))

        if detected_types:
            findings.append(self.passed(
                StructuredDataCode.JSONLD_FOUND,
                f"Found structured data: {', '.join(detected_types)}",
                "Valid JSON-LD structured data was detected on the page.",
                "Verify your structured data at https://search.google.com/test/rich-results.",
                details={"types": detected_types},
                url=url,
            ))

        return findings

    def _check_object(self, obj: dict[str, Any], detected_types: list[str], url: str) -> list[Finding]:
        findings: list[Finding] = []

        if not obj.get("@context"):
            findings.append(self.warning(
                StructuredDataCode.JSONLD_MISSING_CONTEXT,
                "JSON-LD block missing @context",
                "Without @context, search engines may not recognize the structured data vocabulary.",
                'Add "@context": "https://schema.org" to your JSON-LD object.',
                url=url,
            ))

        if not obj.get("@type"):
            findings.append(self.warning(
                StructuredDataCode.JSONLD_MISSING_TYPE,
                "JSON-LD block missing @type",
                "Without @type, search engines cannot determine what kind of entity the data describes.",
                'Add an @type property (e.g. "WebSite", "Organization", "Article").',
                url=url,
            ))
            return findings

        schema_type = obj["@type"]
        if isinstance(schema_type, list):
            schema_type = ",".join(str(t) for t in schema_type)
        schema_type = str(schema_type)
        detected_types.append(schema_type)

        required = JSONLD_REQUIRED_FIELDS.get(schema_type)
        if required:
            missing = [name for name in required if _is_empty(obj.get(name))]
            if missing:
                findings.append(self.warning(
                    StructuredDataCode.JSONLD_EMPTY_FIELDS,
                    f"JSON-LD {schema_type} missing required fields: {', '.join(missing)}",
                    f"The {schema_type} schema is missing fields that Google expects for rich result eligibility.",
                    f"Add the missing properties: {', '.join(missing)}. See https://schema.org/{schema_type} for details.",
                    details={"type": schema_type, "missing_fields": missing},
                    url=url,
                ))
        return findings
