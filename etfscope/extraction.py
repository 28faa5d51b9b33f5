"""
Locate the JSON object embedded in a model answer.

Search order:
    1. The first fenced code block tagged ``json``.
    2. The span from the first ``{`` to the last ``}`` in the text.

The brace scan is lenient on purpose: stray braces in surrounding prose can
make it fail, in which case ``NoPayloadFound`` is raised like any other miss.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from etfscope.errors import NoPayloadFound

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)


def _load_object(candidate: str) -> Optional[dict[str, Any]]:
    try:
        value = json.loads(candidate)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def extract_payload(text: str) -> dict[str, Any]:
    """
    Return the JSON object embedded in ``text``.

    Raises:
        NoPayloadFound: If neither the fenced block nor the brace span parses
            as a JSON object.
    """
    if not text:
        raise NoPayloadFound("Response text is empty.")

    fence = _JSON_FENCE.search(text)
    if fence:
        payload = _load_object(fence.group(1))
        if payload is not None:
            logger.debug("extract_payload | parsed fenced json block")
            return payload
        logger.debug("extract_payload | fenced block did not parse, trying brace span")

    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last > first:
        payload = _load_object(text[first : last + 1])
        if payload is not None:
            logger.debug("extract_payload | parsed brace span [%d:%d]", first, last + 1)
            return payload

    raise NoPayloadFound("No JSON object found in response text.")
