"""Data-driven HTTP API test harness: template-generated requests checked against baselines."""

from reqgen.comparator import compare_json, compare_response
from reqgen.executor import RequestExecutor
from reqgen.record import IndexedList, NamedFields, Record, RecordKind, Scalar
from reqgen.request_builder import build_request
from reqgen.runner import RequestGenerator, WorkbookRunner, run_case
from reqgen.template_engine import TemplateEngine, render_template
from reqgen.types import (
    CaseResult,
    ComparisonResult,
    HttpMethod,
    Outcome,
    ResponseOutcome,
    RunContext,
    StructuredRequest,
)

__version__ = "1.0.0"

__all__ = [
    "CaseResult",
    "ComparisonResult",
    "HttpMethod",
    "IndexedList",
    "NamedFields",
    "Outcome",
    "Record",
    "RecordKind",
    "RequestExecutor",
    "RequestGenerator",
    "ResponseOutcome",
    "RunContext",
    "Scalar",
    "StructuredRequest",
    "TemplateEngine",
    "WorkbookRunner",
    "build_request",
    "compare_json",
    "compare_response",
    "render_template",
    "run_case",
]
