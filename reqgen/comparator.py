# reqgen/comparator.py
"""
Comparator / Result Classifier.

200 responses are compared structurally to the baseline JSON in
non-extensible mode: every baseline field must be present with an equal
value, and the response may not carry fields the baseline lacks. Key
order and whitespace do not matter; arrays must have the same length and
their elements may appear in any order.

Any other status code is compared literally against the baseline text,
e.g. "404 Not Found".
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from reqgen.types import ComparisonResult, ResponseOutcome

logger = logging.getLogger(__name__)

OK_STATUS = 200


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _child(path: str, key: str) -> str:
    return f"{path}.{key}"


def json_diff(expected: Any, actual: Any, path: str = "$") -> List[str]:
    """Non-extensible structural diff; an empty list means equal."""
    diffs: List[str] = []

    exp_type, act_type = _json_type(expected), _json_type(actual)
    if exp_type != act_type:
        diffs.append(f"{path}: type mismatch (expected {exp_type}, got {act_type})")
        return diffs

    if isinstance(expected, dict):
        for key in expected:
            if key not in actual:
                diffs.append(f"{_child(path, key)}: missing key in actual")
            else:
                diffs.extend(json_diff(expected[key], actual[key], _child(path, key)))
        for key in actual:
            if key not in expected:
                diffs.append(f"{_child(path, key)}: unexpected key in actual")

    elif isinstance(expected, list):
        if len(expected) != len(actual):
            diffs.append(f"{path}: length mismatch (expected {len(expected)}, got {len(actual)})")
        else:
            diffs.extend(_array_diff(expected, actual, path))

    elif expected != actual:
        diffs.append(f"{path}: expected {expected!r}, got {actual!r}")

    return diffs


def _array_diff(expected: List[Any], actual: List[Any], path: str) -> List[str]:
    positional: List[str] = []
    for i, (exp_item, act_item) in enumerate(zip(expected, actual)):
        positional.extend(json_diff(exp_item, act_item, f"{path}[{i}]"))
    if not positional:
        return []

    # Order-insensitive: each expected element needs its own equal element.
    unused = list(range(len(actual)))
    for exp_item in expected:
        match = next((j for j in unused if not json_diff(exp_item, actual[j])), None)
        if match is None:
            return positional
        unused.remove(match)
    return []


def _parse(text: str, side: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{side} is not valid JSON: {e}") from e


def compare_json(baseline_text: str, actual_text: str) -> ComparisonResult:
    """
    Structural comparison of two JSON texts.

    Returns ERROR when either side cannot be parsed, FAIL with the diff on
    a content mismatch, PASS otherwise.
    """
    try:
        expected = _parse(baseline_text, "baseline")
        actual = _parse(actual_text, "response body")
    except ValueError as e:
        logger.warning(f"Cannot compare JSON: {e}")
        return ComparisonResult.error(f"Problem asserting response against baseline: {e}")

    diffs = json_diff(expected, actual)
    if diffs:
        return ComparisonResult.failed("; ".join(diffs))
    return ComparisonResult.passed()


def compare_status_line(baseline_text: str, status_line: str) -> ComparisonResult:
    if baseline_text == status_line:
        return ComparisonResult.passed()
    return ComparisonResult.failed(f"expected status line {baseline_text!r}, got {status_line!r}")


def compare_response(baseline_text: Optional[str], response: ResponseOutcome) -> ComparisonResult:
    """Classify one response against its baseline value."""
    baseline_text = baseline_text or ""
    if response.status_code == OK_STATUS:
        return compare_json(baseline_text, response.body_text)
    return compare_status_line(baseline_text, response.status_line)


def response_output(response: ResponseOutcome) -> str:
    """What goes into the Output table: the body for 200s, the status line otherwise."""
    if response.status_code == OK_STATUS:
        return response.body_text
    return response.status_line
