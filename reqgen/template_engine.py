# reqgen/template_engine.py
"""
Fills <<name>> markers in a request template from a NamedFields record.

Substitution is recursive: a field value may itself contain markers, which
are resolved on the next pass. Passes repeat until one finds no markers.
Fields that refer to each other in a loop never converge, so the number
of passes is bounded and TemplateCycleDetected is raised past the bound.
"""

from __future__ import annotations

import logging
import re
from typing import List, Mapping, Optional, Set, Union

from reqgen.errors import TemplateCycleDetected
from reqgen.record import NamedFields

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 100

MARKER_OPEN = "<<"
MARKER_CLOSE = ">>"

_SPLIT_RE = re.compile(r"(?=<<)|(?<=>>)")

FieldSource = Union[NamedFields, Mapping[str, str]]


def tokenize(template: str) -> List[str]:
    """Split so every <<name>> marker is its own token."""
    return [t for t in _SPLIT_RE.split(template) if t]


def is_marker(token: str) -> bool:
    return (
        len(token) >= len(MARKER_OPEN) + len(MARKER_CLOSE)
        and token.startswith(MARKER_OPEN)
        and token.endswith(MARKER_CLOSE)
    )


def marker_name(token: str) -> str:
    return token[len(MARKER_OPEN):-len(MARKER_CLOSE)]


class TemplateEngine:
    """
    Resolves templates against a record.

    Missing fields are logged and substituted with an empty string; they
    never abort the substitution.
    """

    def __init__(self, max_passes: int = DEFAULT_MAX_PASSES):
        if max_passes < 1:
            raise ValueError("max_passes must be >= 1")
        self.max_passes = max_passes

    def render(self, template: str, fields: FieldSource, case_id: Optional[str] = None) -> str:
        text = template
        passes = 0
        reported: Set[str] = set()

        while True:
            tokens = tokenize(text)
            markers = [t for t in tokens if is_marker(t)]
            if not markers:
                logger.debug(f"Template resolved in {passes} pass(es)")
                return text

            if passes >= self.max_passes:
                raise TemplateCycleDetected(passes, (marker_name(m) for m in markers))

            out: List[str] = []
            for token in tokens:
                if is_marker(token):
                    out.append(self._lookup(marker_name(token), fields, reported, case_id))
                else:
                    out.append(token)
            text = "".join(out)
            passes += 1

    @staticmethod
    def _lookup(name: str, fields: FieldSource, reported: Set[str], case_id: Optional[str]) -> str:
        if isinstance(fields, NamedFields):
            present = fields.has(name)
            value = fields.get(name)
        else:
            present = name in fields
            value = fields.get(name) or ""

        if not present and name not in reported:
            reported.add(name)
            where = f" (case {case_id})" if case_id else ""
            logger.info(f"Template marker <<{name}>> has no value in the input record{where}")
        return value


def render_template(template: str, fields: FieldSource, max_passes: int = DEFAULT_MAX_PASSES) -> str:
    """Convenience wrapper around TemplateEngine.render()."""
    return TemplateEngine(max_passes).render(template, fields)
