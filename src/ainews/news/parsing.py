"""Recovery of enrichment fields from raw model output.

Free models routinely wrap JSON in markdown fences, add a sentence before
or after the object, put literal newlines inside string values, or leave
quotes unescaped. Each step below is tried in order until one yields at
least ``MIN_FIELDS`` of the expected keys.
"""

from __future__ import annotations

import json
import logging
import re

from ainews.errors import ResponseParseError
from ainews.news import EnrichmentResult

logger = logging.getLogger(__name__)

FIELDS: tuple[str, ...] = (
    "category",
    "title_zh_tw",
    "title_zh_cn",
    "summary_en",
    "summary_zh_tw",
    "summary_zh_cn",
)

MIN_FIELDS = 3

_FENCE_START_RE = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_END_RE = re.compile(r"\s*```$")

_KEY_ALT = "|".join(FIELDS)
# Value runs until a quote that is followed by the next known key or the
# closing brace, so stray unescaped quotes inside the value are tolerated.
_FIELD_RES: dict[str, re.Pattern[str]] = {
    key: re.compile(
        rf'"{key}"\s*:\s*"(.*?)"\s*(?=,\s*"(?:{_KEY_ALT})"\s*:|,?\s*\}}|$)',
        re.DOTALL,
    )
    for key in FIELDS
}


def strip_code_fence(text: str) -> str:
    """Remove a leading/trailing markdown code fence if present."""
    text = text.strip()
    text = _FENCE_START_RE.sub("", text)
    text = _FENCE_END_RE.sub("", text)
    return text.strip()


def extract_object(text: str) -> str:
    """Substring from the first ``{`` to the last ``}`` (or ``text`` unchanged)."""
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    return text


def _from_mapping(data: object) -> dict[str, str] | None:
    if not isinstance(data, dict):
        return None
    fields: dict[str, str] = {}
    for key in FIELDS:
        value = data.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            fields[key] = value
    return fields


def _try_json(text: str) -> dict[str, str] | None:
    try:
        return _from_mapping(json.loads(text))
    except json.JSONDecodeError:
        return None


def _repair_value(value: str) -> str:
    value = value.replace("\\n", " ").replace("\\r", " ")
    value = value.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    value = value.replace('\\"', '"').replace("\\\\", "\\")
    return re.sub(r"\s{2,}", " ", value).strip()


def extract_fields(text: str) -> dict[str, str]:
    """Pull each expected field out with a permissive per-field pattern."""
    fields: dict[str, str] = {}
    for key, pattern in _FIELD_RES.items():
        match = pattern.search(text)
        if not match:
            continue
        value = _repair_value(match.group(1))
        if value:
            fields[key] = value
    return fields


def _to_result(fields: dict[str, str]) -> EnrichmentResult:
    return EnrichmentResult(**{key: fields.get(key) for key in FIELDS})


def parse_enrichment(raw: str) -> EnrichmentResult:
    """Recover an EnrichmentResult from model output.

    Raises:
        ResponseParseError: fewer than ``MIN_FIELDS`` fields could be recovered.
    """
    text = extract_object(strip_code_fence(raw or ""))

    fields = _try_json(text)
    if fields is not None and len(fields) >= MIN_FIELDS:
        return _to_result(fields)

    # Literal line breaks inside string values make the JSON invalid
    flattened = text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    fields = _try_json(flattened)
    if fields is not None and len(fields) >= MIN_FIELDS:
        logger.debug("Recovered model output after newline normalisation")
        return _to_result(fields)

    fields = extract_fields(text)
    if len(fields) >= MIN_FIELDS:
        logger.info(
            "Recovered %d/%d fields by pattern matching", len(fields), len(FIELDS)
        )
        return _to_result(fields)

    raise ResponseParseError(
        f"Only {len(fields)} of {len(FIELDS)} fields recoverable: {(raw or '')[:120]!r}"
    )
