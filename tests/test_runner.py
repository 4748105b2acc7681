from __future__ import annotations

import json

import httpx
import openpyxl
import pytest

from reqgen.config import Settings
from reqgen.errors import DataSourceError, MissingRequiredField, TemplateNotFound
from reqgen.executor import RequestExecutor
from reqgen.record import NamedFields
from reqgen.runner import RequestGenerator, WorkbookRunner, load_template, run_case, select_cases
from reqgen.types import HttpMethod, Outcome
from reqgen.workbook import DataWorkbook

INPUT_HEADER = ["ID", "TestCase", "Method", "Path", "Host", "Body"]
HOST = "http://api.test"


@pytest.fixture
def generator(template_text):
    return RequestGenerator(template_text)


@pytest.fixture
def executor(mock_transport):
    with RequestExecutor(transport=mock_transport) as ex:
        yield ex


def _record(**fields) -> NamedFields:
    return NamedFields({"Host": HOST, "Body": "", **fields})


def test_default_template_is_packaged():
    text = load_template()
    assert text.startswith("<<Method>> <<Path>>")


def test_missing_template(tmp_path):
    with pytest.raises(TemplateNotFound):
        load_template(tmp_path / "missing.txt")


def test_generator_builds_request(generator):
    req = generator.generate(_record(Method="POST", Path="/users", TestCase="create", Body='{"name":"Cy"}'))
    assert req.method is HttpMethod.POST
    assert req.url == "http://api.test/users"
    assert req.headers == {"Accept": "application/json", "X-Case": "create"}
    assert req.body == '{"name":"Cy"}'


def test_generator_checks_required_fields(template_text):
    gen = RequestGenerator(template_text, required_fields=["Method", "Path", "Host"])
    with pytest.raises(MissingRequiredField) as exc:
        gen.generate(NamedFields({"Method": "GET"}))
    assert exc.value.fields == ["Path", "Host"]


def test_select_cases_sorts_and_skips_unlabelled():
    inputs = {
        "010": NamedFields({"TestCase": "ten"}),
        "002": NamedFields({"TestCase": "two"}),
        "005": NamedFields({"TestCase": "  "}),
        "": NamedFields({"TestCase": "no id"}),
    }
    assert [(cid, label) for cid, label, _ in select_cases(inputs)] == [("002", "two"), ("010", "ten")]


def test_run_case_pass(generator, executor):
    baseline = NamedFields({"Response": '{"name": "Bob", "active": true, "id": 2}'})
    case = run_case("1", "get bob", _record(Method="GET", Path="/users/2", TestCase="get bob"), baseline, generator, executor)
    assert case.outcome is Outcome.PASS
    assert json.loads(case.output) == {"id": 2, "name": "Bob", "active": True}
    assert case.request.url == "http://api.test/users/2"


def test_run_case_status_line(generator, executor):
    baseline = NamedFields({"Response": "404 Not Found"})
    case = run_case("1", "missing", _record(Method="GET", Path="/nope", TestCase="missing"), baseline, generator, executor)
    assert case.outcome is Outcome.PASS
    assert case.output == "404 Not Found"


def test_run_case_template_cycle_is_error(generator, executor):
    baseline = NamedFields({"Response": "{}"})
    record = _record(Method="GET", Path="<<Path>>", TestCase="loop")
    case = run_case("1", "loop", record, baseline, generator, executor)
    assert case.outcome is Outcome.ERROR
    assert "TemplateCycleDetected" in case.result.diagnostic
    assert case.output is None


def test_run_case_transport_error(generator):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with RequestExecutor(transport=httpx.MockTransport(handler)) as ex:
        case = run_case(
            "1", "down", _record(Method="GET", Path="/users/1", TestCase="down"),
            NamedFields({"Response": "{}"}), generator, ex,
        )
    assert case.outcome is Outcome.ERROR
    assert "TransportError" in case.result.diagnostic
    assert case.request is not None


def test_run_case_without_baseline_does_not_call(generator):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    with RequestExecutor(transport=httpx.MockTransport(handler)) as ex:
        case = run_case("1", "x", _record(Method="GET", Path="/users/1", TestCase="x"), None, generator, ex)
    assert case.outcome is Outcome.ERROR
    assert calls == []


@pytest.fixture
def workbook_path(make_workbook):
    return make_workbook(
        inputs=[
            INPUT_HEADER,
            ["003", "user not found", "GET", "/users/9", HOST, ""],
            ["001", "get ada", "GET", "/users/1", HOST, ""],
            ["002", "get bob extra field", "GET", "/users/2", HOST, ""],
            ["004", "bad method", "PATCH", "/users/1", HOST, ""],
            ["005", "", "GET", "/users/1", HOST, ""],
            ["006", "create user", "POST", "/users", HOST, '{"name":"Cy"}'],
            ["007", "not json", "GET", "/broken", HOST, ""],
        ],
        baselines=[
            ["ID", "Response"],
            ["001", '{"roles": ["dev", "admin"], "name": "Ada", "id": 1}'],
            ["002", '{"id": 2, "name": "Bob"}'],
            ["003", "404 Not Found"],
            ["004", "{}"],
            ["006", '{"id": 3, "name": "Cy"}'],
            ["007", '{"ok": true}'],
        ],
    )


def _settings(workbook_path, template_file, tmp_path, **extra) -> Settings:
    return Settings(
        workbook=str(workbook_path),
        template_path=str(template_file),
        reports_dir=str(tmp_path / "reports"),
        **extra,
    )


def test_workbook_run(workbook_path, template_file, tmp_path, mock_transport):
    events = []
    runner = WorkbookRunner(
        _settings(workbook_path, template_file, tmp_path),
        transport=mock_transport,
        progress_cb=events.append,
    )
    ctx = runner.run()

    outcomes = {c.case_id: c.outcome for c in ctx.cases}
    assert [c.case_id for c in ctx.cases] == ["001", "002", "003", "004", "006", "007"]
    assert outcomes == {
        "001": Outcome.PASS,
        "002": Outcome.FAIL,
        "003": Outcome.PASS,
        "004": Outcome.ERROR,
        "006": Outcome.PASS,
        "007": Outcome.ERROR,
    }
    assert ctx.total == 6
    assert ctx.failed == 3
    assert ctx.errors == 2
    assert ctx.failed <= ctx.total
    assert events[0]["event"] == "run_start"
    assert events[-1]["event"] == "run_done"

    wb = openpyxl.load_workbook(workbook_path)
    result = list(wb["Result"].iter_rows(values_only=True))
    assert result[1][:2] == (6, 3)
    assert [r[2] for r in result[3:]] == ["PASS", "FAIL", "PASS", "ERROR", "PASS", "ERROR"]

    comparison = list(wb["Comparison"].iter_rows(values_only=True))[1:]
    assert [r[0] for r in comparison] == ["002", "004", "007"]
    assert "unexpected key" in comparison[0][2]

    output = list(wb["Output"].iter_rows(values_only=True))[1:]
    assert [r[0] for r in output] == ["001", "002", "003", "006", "007"]
    assert output[2][2] == "404 Not Found"

    report = json.loads((tmp_path / "reports" / f"{ctx.run_id}.json").read_text(encoding="utf-8"))
    assert report["summary"]["total"] == 6
    assert (tmp_path / "reports" / f"{ctx.run_id}.html").exists()


def test_workbook_run_to_separate_output(workbook_path, template_file, tmp_path, mock_transport):
    out = tmp_path / "results.xlsx"
    settings = _settings(workbook_path, template_file, tmp_path, output_workbook=str(out), write_reports=False)
    WorkbookRunner(settings, transport=mock_transport).run()

    assert "Result" in openpyxl.load_workbook(out).sheetnames
    assert "Result" not in openpyxl.load_workbook(workbook_path).sheetnames
    assert not (tmp_path / "reports").exists()


def test_rerun_replaces_previous_results(workbook_path, template_file, tmp_path, mock_transport):
    settings = _settings(workbook_path, template_file, tmp_path, write_reports=False)
    WorkbookRunner(settings, transport=mock_transport).run()
    WorkbookRunner(settings, transport=mock_transport).run()

    wb = openpyxl.load_workbook(workbook_path)
    assert wb.sheetnames.count("Result") == 1
    assert len(list(wb["Result"].iter_rows(values_only=True))) == 3 + 6


def test_missing_template_aborts_before_any_case(workbook_path, tmp_path, mock_transport):
    settings = _settings(workbook_path, tmp_path / "missing.txt", tmp_path)
    with pytest.raises(TemplateNotFound):
        WorkbookRunner(settings, transport=mock_transport).run()
    assert "Result" not in openpyxl.load_workbook(workbook_path).sheetnames


def test_missing_workbook_aborts(template_file, tmp_path):
    settings = _settings(tmp_path / "nope.xlsx", template_file, tmp_path)
    with pytest.raises(DataSourceError):
        WorkbookRunner(settings).run()


def test_control_characters_in_body_do_not_abort_run(make_workbook, template_file, tmp_path, mock_transport):
    def handler(request):
        if request.url.path == "/garbage":
            return httpx.Response(200, text="garbage\x01body")
        return mock_transport.handler(request)

    path = make_workbook(
        inputs=[
            INPUT_HEADER,
            ["001", "garbage body", "GET", "/garbage", HOST, ""],
            ["002", "get bob", "GET", "/users/2", HOST, ""],
        ],
        baselines=[
            ["ID", "Response"],
            ["001", '{"ok": true}'],
            ["002", '{"id": 2, "name": "Bob", "active": true}'],
        ],
    )
    settings = _settings(path, template_file, tmp_path, write_reports=False)
    ctx = WorkbookRunner(settings, transport=httpx.MockTransport(handler)).run()

    assert [(c.case_id, c.outcome) for c in ctx.cases] == [("001", Outcome.ERROR), ("002", Outcome.PASS)]

    wb = openpyxl.load_workbook(path)
    output = list(wb["Output"].iter_rows(values_only=True))[1:]
    assert output[0] == ("001", "garbage body", "garbagebody")
    result = list(wb["Result"].iter_rows(values_only=True))
    assert result[1][:2] == (2, 1)
    assert [r[:3] for r in result[3:]] == [("001", "garbage body", "ERROR"), ("002", "get bob", "PASS")]


def test_failed_result_write_only_errors_that_case(workbook_path, template_file, tmp_path, mock_transport, monkeypatch):
    original = DataWorkbook.write_output

    def write_output(self, case_id, label, text):
        if case_id == "001":
            raise ValueError("cell rejected")
        original(self, case_id, label, text)

    monkeypatch.setattr(DataWorkbook, "write_output", write_output)
    settings = _settings(workbook_path, template_file, tmp_path, write_reports=False)
    ctx = WorkbookRunner(settings, transport=mock_transport).run()

    first = ctx.cases[0]
    assert first.case_id == "001"
    assert first.outcome is Outcome.ERROR
    assert "cell rejected" in first.result.diagnostic
    assert ctx.total == 6
    assert ctx.failed == 3 + 1

    wb = openpyxl.load_workbook(workbook_path)
    result = list(wb["Result"].iter_rows(values_only=True))
    assert result[1][:2] == (6, 4)
    assert [r[2] for r in result[3:]] == ["ERROR", "FAIL", "PASS", "ERROR", "PASS", "ERROR"]
