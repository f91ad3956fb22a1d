"""
Extraction of the itinerary JSON object from free-form model output.

Models wrap their answer in markdown fences, prefix it with chatter or leave
``//`` comments in it. Extraction runs in two independent stages: a fenced
block extractor, then a balanced-brace scanner over whatever text remains.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

from travel_planner.exceptions import GenerationError
from travel_planner.services.prompts import INVALID_DESTINATION_SENTINEL

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


REJECTION_PHRASES = (
    "not a valid travel destination",
    "not a real place",
    "invalid destination",
    "cannot create an itinerary for",
    "insufficient to create a meaningful itinerary",
    "need a real destination",
)

FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


def detect_invalid_destination(text: str) -> bool:
    """True when the model refused the destination instead of planning a trip"""
    if INVALID_DESTINATION_SENTINEL in text:
        return True
    lowered = text.lower()
    return any(phrase in lowered for phrase in REJECTION_PHRASES)


def extract_fenced_block(text: str) -> Optional[str]:
    """Return the body of the first markdown code fence, if any"""
    match = FENCE_PATTERN.search(text)
    if not match:
        return None
    return match.group(1)


def extract_brace_block(text: str) -> Optional[str]:
    """
    Return the largest balanced top-level ``{...}`` substring.

    Braces inside JSON string literals are ignored. Unterminated objects
    (e.g. a truncated response) never produce a candidate.
    """
    best: Optional[str] = None
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            # quotes only matter once we are inside an object
            if depth > 0:
                in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                candidate = text[start:i + 1]
                if best is None or len(candidate) > len(best):
                    best = candidate

    return best


def strip_comments(text: str) -> str:
    """Remove ``//`` line comments and ``/* */`` block comments outside string literals"""
    out = []
    i = 0
    length = len(text)
    in_string = False

    while i < length:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            newline = text.find("\n", i)
            i = length if newline == -1 else newline
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = length if end == -1 else end + 2
        else:
            out.append(ch)
            i += 1

    return "".join(out)


def locate_json(text: str) -> Optional[str]:
    fenced = extract_fenced_block(text)
    if fenced is not None and "{" in fenced:
        return extract_brace_block(fenced) or fenced.strip()
    return extract_brace_block(text)


def parse_itinerary_json(text: str) -> Dict[str, Any]:
    """Parse the itinerary object out of a raw model response"""
    logger.info(f"Raw LLM response (first 200 chars): {text[:200]}")

    json_string = locate_json(text)
    if json_string is None:
        logger.error("Failed to find JSON in the response")
        raise GenerationError("Failed to parse JSON response: No JSON found in response")

    json_string = strip_comments(json_string).strip()

    try:
        data = json.loads(json_string)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse LLM response as JSON: {e}")
        logger.error(f"Full JSON string (first 1000 chars): {json_string[:1000]}")
        raise GenerationError("Failed to parse JSON response: Invalid JSON format")

    if not isinstance(data, dict):
        raise GenerationError("Failed to parse JSON response: expected a JSON object")

    logger.info(f"Successfully parsed JSON with keys: {list(data.keys())}")
    return data
