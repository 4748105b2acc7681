# reqgen/request_builder.py
"""
Parses a filled request template into a StructuredRequest.

Expected layout:

    <METHOD> <path-suffix>
    Host: <host>
    <header-name>: <header-value>
    ...
    <blank line>
    <body>

METHOD is GET, PUT, POST or DELETE. The URL is host + path-suffix. Header
lines run until the first blank line. Lines after it, up to the next
blank line, are joined without separators into the body, which is kept
only for PUT and POST.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Tuple

from reqgen.errors import MalformedHeader, MalformedRequestLine, UnsupportedMethod
from reqgen.types import HttpMethod, StructuredRequest

logger = logging.getLogger(__name__)

# Only LF and CRLF end a line; other separators belong to the value.
_LINE_BREAK = re.compile(r"\r?\n")


def _is_blank(line: str) -> bool:
    return not line.strip()


def parse_request_line(line: str) -> Tuple[HttpMethod, str]:
    parts = line.strip().split(" ", 1)
    if len(parts) < 2 or not parts[1].strip():
        raise MalformedRequestLine(f"expected '<METHOD> <path>', got {line!r}", 1, line)

    method_name, suffix = parts[0], parts[1].strip()
    try:
        method = HttpMethod(method_name)
    except ValueError:
        raise UnsupportedMethod(
            f"unsupported method {method_name!r} (expected one of "
            f"{', '.join(m.value for m in HttpMethod)})",
            1,
            line,
        ) from None
    return method, suffix


def parse_host_line(line: str) -> str:
    parts = line.split()
    if len(parts) < 2:
        raise MalformedRequestLine(f"expected 'Host: <host>', got {line!r}", 2, line)
    if parts[0].rstrip(":").lower() != "host":
        logger.warning(f"Second template line does not start with 'Host:' ({line!r}); using {parts[1]!r}")
    return parts[1]


def parse_header_line(line: str, line_no: int) -> Tuple[str, str]:
    if ":" not in line:
        raise MalformedHeader(f"header line has no ':' ({line!r})", line_no, line)
    name, value = line.split(":", 1)
    name = name.strip()
    if not name:
        raise MalformedHeader(f"header line has an empty name ({line!r})", line_no, line)
    return name, value.strip()


def build_request(filled: str) -> StructuredRequest:
    """Parse fully substituted template text into a StructuredRequest."""
    lines: List[str] = _LINE_BREAK.split(filled)
    if not lines or _is_blank(lines[0]):
        raise MalformedRequestLine("template is empty or starts with a blank line", 1)
    if len(lines) < 2:
        raise MalformedRequestLine("template has no Host line", 2)

    method, suffix = parse_request_line(lines[0])
    host = parse_host_line(lines[1])

    headers: Dict[str, str] = {}
    idx = 2
    while idx < len(lines) and not _is_blank(lines[idx]):
        name, value = parse_header_line(lines[idx], idx + 1)
        headers[name] = value
        idx += 1

    body_parts: List[str] = []
    if idx < len(lines):
        idx += 1  # skip the separator
        while idx < len(lines) and not _is_blank(lines[idx]):
            body_parts.append(lines[idx])
            idx += 1
    body = "".join(body_parts)

    if body and not method.allows_body:
        logger.debug(f"Ignoring {len(body)} body chars on {method.value} request")
        body = ""

    return StructuredRequest(method=method, url=host + suffix, headers=headers, body=body)
