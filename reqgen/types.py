# reqgen/types.py
"""
Shared types, enums, and dataclasses for the request pipeline.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, Any, Optional, List


class HttpMethod(str, Enum):
    """Methods the request template may use."""
    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"

    @property
    def allows_body(self) -> bool:
        return self in (HttpMethod.PUT, HttpMethod.POST)


class Outcome(str, Enum):
    """Terminal classification of one test case."""
    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"


@dataclass
class StructuredRequest:
    """Parsed, ready-to-dispatch request."""
    method: HttpMethod
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {**asdict(self), "method": self.method.value}


@dataclass
class ResponseOutcome:
    """Normalized response handed to the comparator."""
    status_code: int
    status_line: str
    body_text: str = ""


@dataclass
class ComparisonResult:
    """PASS, or FAIL/ERROR with a diagnostic."""
    outcome: Outcome
    diagnostic: str = ""

    @classmethod
    def passed(cls) -> "ComparisonResult":
        return cls(Outcome.PASS)

    @classmethod
    def failed(cls, diagnostic: str) -> "ComparisonResult":
        return cls(Outcome.FAIL, diagnostic)

    @classmethod
    def error(cls, diagnostic: str) -> "ComparisonResult":
        return cls(Outcome.ERROR, diagnostic)

    @property
    def is_pass(self) -> bool:
        return self.outcome is Outcome.PASS


@dataclass
class CaseResult:
    """Everything recorded for one executed case."""
    case_id: str
    label: str
    result: ComparisonResult
    output: Optional[str] = None  # response body or status line, when a response came back
    request: Optional[StructuredRequest] = None
    duration_ms: Optional[float] = None

    @property
    def outcome(self) -> Outcome:
        return self.result.outcome

    def to_dict(self) -> Dict[str, Any]:
        return {
            "case_id": self.case_id,
            "label": self.label,
            "outcome": self.outcome.value,
            "diagnostic": self.result.diagnostic,
            "output": self.output,
            "request": self.request.to_dict() if self.request else None,
            "duration_ms": self.duration_ms,
        }


@dataclass
class RunContext:
    """Running totals and per-case results, owned by the pipeline driver."""
    run_id: str
    started_at: str = ""
    ended_at: str = ""
    total: int = 0
    failed: int = 0
    cases: List[CaseResult] = field(default_factory=list)

    def record(self, case: CaseResult) -> None:
        self.cases.append(case)
        self.total += 1
        if not case.result.is_pass:
            self.failed += 1

    @property
    def passed(self) -> int:
        return self.total - self.failed

    @property
    def errors(self) -> int:
        return sum(1 for c in self.cases if c.outcome is Outcome.ERROR)

    def summary(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "errors": self.errors,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "overall_passed": self.failed == 0,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "summary": self.summary(),
            "cases": [c.to_dict() for c in self.cases],
        }
