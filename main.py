"""CLI entrypoint: run every case in an Excel workbook against the target API.

Usage:
    python main.py tests.xlsx
    python main.py tests.xlsx --template my_template.txt --output results.xlsx
    python main.py tests.xlsx --proxy http://127.0.0.1:8888 --timeout 10

Exit codes: 0 all cases passed, 1 some case failed or errored, 2 the run
could not start (missing template, unreadable workbook).
"""
import argparse
import logging
import sys

from dotenv import load_dotenv

from reqgen.config import Settings
from reqgen.errors import DataSourceError, TemplateNotFound
from reqgen.runner import WorkbookRunner

logger = logging.getLogger("reqgen")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Data-driven HTTP API tests from an Excel workbook")
    parser.add_argument("workbook", nargs="?", help="Workbook with Input and Baseline sheets (default: REQGEN_WORKBOOK)")
    parser.add_argument("--template", dest="template_path", help="Request template file")
    parser.add_argument("--output", dest="output_workbook", help="Save results here instead of overwriting the workbook")
    parser.add_argument("--proxy", help="Outbound proxy URL")
    parser.add_argument("--timeout", dest="timeout_sec", type=float, help="Per-request timeout in seconds")
    parser.add_argument("--reports-dir", help="Directory for JSON/HTML run reports")
    parser.add_argument("--no-reports", action="store_true", help="Skip JSON/HTML run reports")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    return parser


def main(argv=None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    overrides = {
        k: v for k, v in vars(args).items()
        if v is not None and k != "no_reports"
    }
    if args.no_reports:
        overrides["write_reports"] = False
    settings = Settings(**overrides)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        ctx = WorkbookRunner(settings).run()
    except (TemplateNotFound, DataSourceError) as e:
        logger.error(f"❌ Run aborted: {e}")
        return 2

    print(f"\n{'='*60}")
    print(f"📊 {ctx.total} case(s): {ctx.passed} passed, {ctx.failed} failed ({ctx.errors} errors)")
    print(f"⏱️  {ctx.started_at} → {ctx.ended_at}")
    print(f"{'='*60}")
    return 0 if ctx.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
