# reqgen/runner.py
"""
Pipeline driver: workbook rows -> requests -> responses -> outcomes.

Cases run one at a time in ascending case-id order. A failure inside one
case (bad template, parse error, transport error, unparsable JSON) is
recorded as an ERROR for that case and the run moves on. Only input-stage
problems (missing template, unreadable workbook) abort the run.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

import httpx

from reqgen.comparator import compare_response, response_output
from reqgen.config import Settings
from reqgen.errors import DataSourceError, MissingRequiredField, ReqGenError, TemplateNotFound
from reqgen.executor import RequestExecutor
from reqgen.record import NamedFields
from reqgen.reporter import Reporter
from reqgen.request_builder import build_request
from reqgen.template_engine import DEFAULT_MAX_PASSES, TemplateEngine
from reqgen.types import CaseResult, ComparisonResult, Outcome, RunContext, StructuredRequest
from reqgen.workbook import DataWorkbook

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_PATH = Path(__file__).parent / "templates" / "http_request_template.txt"

LABEL_FIELD = "TestCase"
BASELINE_FIELD = "Response"

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _now() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def load_template(path: Optional[Union[str, Path]] = None) -> str:
    """Read the request template; the packaged default when path is None."""
    p = Path(path) if path else DEFAULT_TEMPLATE_PATH
    if not p.is_file():
        raise TemplateNotFound(f"Request template not found: {p}")
    try:
        return p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateNotFound(f"Cannot read request template {p}: {e}") from e


# ==================== Request generation ====================

class RequestGenerator:
    """Fills the shared template for one case and parses it into a request."""

    def __init__(
        self,
        template: str,
        max_passes: int = DEFAULT_MAX_PASSES,
        required_fields: Iterable[str] = (),
    ):
        self.template = template
        self.engine = TemplateEngine(max_passes)
        self.required_fields = list(required_fields)

    def fill(self, record: NamedFields, case_id: Optional[str] = None) -> str:
        missing = record.missing(self.required_fields)
        if missing:
            raise MissingRequiredField(missing)
        return self.engine.render(self.template, record, case_id)

    def generate(self, record: NamedFields, case_id: Optional[str] = None) -> StructuredRequest:
        return build_request(self.fill(record, case_id))


def select_cases(inputs: Dict[str, NamedFields]) -> List[Tuple[str, str, NamedFields]]:
    """(case_id, label, record) in ascending case-id order; rows without id or label are skipped."""
    selected = []
    for case_id in sorted(inputs):
        record = inputs[case_id]
        label = record.get(LABEL_FIELD).strip()
        if not case_id or not label:
            logger.info(f"Skipping row with blank ID or {LABEL_FIELD} (id={case_id!r})")
            continue
        selected.append((case_id, label, record))
    return selected


def run_case(
    case_id: str,
    label: str,
    record: NamedFields,
    baseline: Optional[NamedFields],
    generator: RequestGenerator,
    executor: RequestExecutor,
) -> CaseResult:
    """Run one case end to end. Pipeline errors become an ERROR outcome."""
    t0 = time.perf_counter()
    request: Optional[StructuredRequest] = None

    def elapsed() -> float:
        return round((time.perf_counter() - t0) * 1000, 2)

    if baseline is None or not baseline.has(BASELINE_FIELD):
        msg = f"no baseline {BASELINE_FIELD!r} value for case {case_id}"
        logger.error(f"❌ {case_id} ({label}): {msg}")
        return CaseResult(case_id, label, ComparisonResult.error(msg), duration_ms=elapsed())

    try:
        request = generator.generate(record, case_id)
        response = executor.execute(request)
    except ReqGenError as e:
        msg = f"{type(e).__name__}: {e}"
        logger.error(f"❌ {case_id} ({label}): {msg}")
        return CaseResult(case_id, label, ComparisonResult.error(msg), request=request, duration_ms=elapsed())

    result = compare_response(baseline.get(BASELINE_FIELD), response)
    case = CaseResult(
        case_id,
        label,
        result,
        output=response_output(response),
        request=request,
        duration_ms=elapsed(),
    )

    if result.is_pass:
        logger.info(f"✅ {case_id} ({label}): {request.method.value} {request.url} → {response.status_line}")
    else:
        logger.warning(f"❌ {case_id} ({label}): {result.outcome.value} - {result.diagnostic}")
    return case


# ==================== Workbook run ====================

class WorkbookRunner:
    """
    Runs every case in a workbook and writes the Output, Comparison and
    Result sheets back, plus optional JSON/HTML reports.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.BaseTransport] = None,
        progress_cb: Optional[Callable[[Dict[str, Any]], None]] = None,
    ):
        self.settings = settings
        self._transport = transport
        self._progress_cb = progress_cb

    def run(self) -> RunContext:
        s = self.settings

        # Input stage: anything wrong here aborts before a single case runs.
        template = load_template(s.template_path)
        if not s.workbook:
            raise DataSourceError("No workbook configured (set REQGEN_WORKBOOK or pass a path)")
        book = DataWorkbook(s.workbook, input_sheet=s.input_sheet, baseline_sheet=s.baseline_sheet)
        cases = select_cases(book.inputs())
        baselines = book.baselines()
        book.reset_report_sheets()

        ctx = RunContext(
            run_id=f"run_{datetime.now():%Y%m%d_%H%M%S}_{uuid.uuid4().hex[:6]}",
            started_at=_now(),
        )
        generator = RequestGenerator(template, s.max_template_passes, s.required_fields)

        logger.info(f"🧪 Running {len(cases)} case(s) from {s.workbook}")
        self._emit("run_start", run_id=ctx.run_id, cases=len(cases))

        with RequestExecutor(
            proxy=s.proxy,
            cookies=s.cookies,
            timeout_sec=s.timeout_sec,
            verify_ssl=s.verify_ssl,
            transport=self._transport,
        ) as executor:
            for case_id, label, record in cases:
                self._emit("case_start", case_id=case_id, label=label)
                try:
                    case = run_case(case_id, label, record, baselines.get(case_id), generator, executor)
                except Exception as e:
                    logger.exception(f"Unexpected failure in case {case_id}")
                    case = CaseResult(case_id, label, ComparisonResult.error(f"{type(e).__name__}: {e}"))
                try:
                    self._write_case(book, case)
                except Exception as e:
                    logger.exception(f"Cannot write results for case {case_id}")
                    case = CaseResult(
                        case_id,
                        label,
                        ComparisonResult.error(f"result write failed: {type(e).__name__}: {e}"),
                        request=case.request,
                        duration_ms=case.duration_ms,
                    )
                    book.write_result(case_id, label, Outcome.ERROR)
                ctx.record(case)
                self._emit("case_done", case_id=case_id, outcome=case.outcome.value)

        ctx.ended_at = _now()
        book.write_summary(ctx.total, ctx.failed, ctx.started_at, ctx.ended_at)
        saved_to = book.save(s.output_workbook)

        logger.info(f"📊 {ctx.total} case(s), {ctx.passed} passed, {ctx.failed} failed ({ctx.errors} errors)")
        self._emit("run_done", **ctx.summary())

        if s.write_reports:
            Reporter(s.reports_dir).create_reports(ctx, extra={"workbook": str(saved_to)})
        return ctx

    @staticmethod
    def _write_case(book: DataWorkbook, case: CaseResult) -> None:
        if case.output is not None:
            book.write_output(case.case_id, case.label, case.output)
        if case.outcome is not Outcome.PASS:
            book.write_comparison(case.case_id, case.label, case.result.diagnostic)
        book.write_result(case.case_id, case.label, case.outcome)

    def _emit(self, event: str, **data):
        """Emit progress event"""
        if self._progress_cb:
            try:
                self._progress_cb({"event": event, **data})
            except Exception:
                logger.debug("progress_cb failed", exc_info=True)
