"""Parse the structured analysis out of a free-form model response."""

import json
import logging
import re

from pydantic import ValidationError

from ..models.schemas import AnalysisResult

logger = logging.getLogger(__name__)

_JSON_FENCE_RE = re.compile(r"```json[ \t]*\n?([\s\S]*?)\n?```", re.IGNORECASE)
_FENCE_RE = re.compile(r"```\n?([\s\S]*?)\n?```")


def extract_json(text: str) -> str:
    """Interior of the first ```json block, else of the first fenced block, else the whole text."""
    m = _JSON_FENCE_RE.search(text) or _FENCE_RE.search(text)
    if m:
        return m.group(1)
    return text


def extract_analysis(text: str) -> AnalysisResult:
    """Return the parsed analysis, or a degraded result holding the raw text.

    Only text that is not a JSON object degrades; fields of unexpected types
    in a valid object are tolerated and the object is returned as is.
    """
    try:
        data = json.loads(extract_json(text).strip())
    except json.JSONDecodeError as e:
        logger.warning("Analysis response is not valid JSON, returning raw text: %s", e)
        return AnalysisResult.degraded(text)

    if not isinstance(data, dict):
        logger.warning("Analysis response is JSON %s, not an object; returning raw text", type(data).__name__)
        return AnalysisResult.degraded(text)

    try:
        return AnalysisResult.from_model_output(data)
    except ValidationError as e:
        logger.warning("Analysis fields could not be read, keeping the object as returned: %s", e)
        result = AnalysisResult()
        result._source = {k: v for k, v in data.items() if k not in ("analise_texto", "erro_parse")}
        return result
