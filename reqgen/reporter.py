# reqgen/reporter.py
"""
Run reports: <run_id>.json (full case detail) and <run_id>.html (summary
table rendered with Jinja2). Both files are written atomically.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, BaseLoader, select_autoescape

from reqgen.types import RunContext

logger = logging.getLogger(__name__)

# ==================== HTML Template ====================

_HTML_TEMPLATE = """<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>API Test Run — {{ run_id }}</title>
<meta name="viewport" content="width=device-width,initial-scale=1"/>
<style>
  :root { --bg:#f7fafc; --fg:#111; --muted:#666; --card:#fff; --ok:#1a7f37; --bad:#d00000; --warn:#f59e0b; }
  * { box-sizing: border-box; }
  body { font-family: Inter, 'Segoe UI', Roboto, sans-serif; background: var(--bg); color: var(--fg); margin: 0; padding: 20px; }
  .wrap { max-width: 1100px; margin: 0 auto; }
  .card { background: var(--card); border-radius: 12px; box-shadow: 0 4px 12px rgba(0,0,0,0.08); padding: 20px; margin-bottom: 16px; }
  h1,h2 { margin: 0 0 12px 0; }
  .muted { color: var(--muted); font-size: 13px; }
  .badge { display: inline-block; padding: 4px 12px; border-radius: 6px; font-size: 12px; font-weight: 600; color: #fff; }
  .badge.PASS { background: var(--ok); }
  .badge.FAIL { background: var(--bad); }
  .badge.ERROR { background: var(--warn); }
  .kv { display: grid; grid-template-columns: 180px 1fr; gap: 8px; font-size: 14px; }
  table { width: 100%; border-collapse: collapse; font-size: 14px; }
  th, td { padding: 10px; border-bottom: 1px solid #eee; text-align: left; vertical-align: top; }
  th { background: #eef4ff; font-weight: 600; }
  pre { background: #f0f3f7; padding: 8px; border-radius: 8px; overflow: auto; font-size: 12px; margin: 0; white-space: pre-wrap; }
</style>
</head>
<body>
<div class="wrap">
  <h1>API Test Run</h1>
  <div class="muted"><strong>{{ run_id }}</strong> • generated {{ now }}</div>

  <div class="card">
    <h2>Summary</h2>
    <div class="kv">
      <div>Total</div><div>{{ summary.total }}</div>
      <div>Passed</div><div>{{ summary.passed }}</div>
      <div>Failed</div><div>{{ summary.failed }} ({{ summary.errors }} error{{ '' if summary.errors == 1 else 's' }})</div>
      <div>Started</div><div>{{ summary.started_at }}</div>
      <div>Ended</div><div>{{ summary.ended_at }}</div>
    </div>
  </div>

  <div class="card">
    <h2>Cases</h2>
    <table>
      <thead><tr><th>ID</th><th>Test case</th><th>Outcome</th><th>Request</th><th>Detail</th></tr></thead>
      <tbody>
        {% for case in cases %}
        <tr>
          <td>{{ case.case_id }}</td>
          <td>{{ case.label }}</td>
          <td><span class="badge {{ case.outcome }}">{{ case.outcome }}</span></td>
          <td>{% if case.request %}<code>{{ case.request.method }} {{ case.request.url }}</code>{% endif %}</td>
          <td>{% if case.diagnostic %}<pre>{{ case.diagnostic }}</pre>{% endif %}</td>
        </tr>
        {% endfor %}
      </tbody>
    </table>
  </div>
</div>
</body>
</html>
"""

_env = Environment(
    loader=BaseLoader(),
    autoescape=select_autoescape(enabled_extensions=("html", "xml"), default_for_string=True),
    enable_async=False,
)


class Reporter:
    """Writes JSON and HTML reports for a finished RunContext."""

    def __init__(self, reports_dir: Union[str, Path] = "reports"):
        self.reports_dir = Path(reports_dir)
        self.reports_dir.mkdir(parents=True, exist_ok=True)

    def create_reports(self, ctx: RunContext, extra: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
        """
        Returns:
            Dict with paths: {"json", "html"}
        """
        json_path = self.reports_dir / f"{ctx.run_id}.json"
        html_path = self.reports_dir / f"{ctx.run_id}.html"

        data = ctx.to_dict()
        if extra:
            data["meta"] = extra
        self._atomic_json_dump(json_path, data)
        logger.info(f"✅ JSON report → {json_path}")

        html = _env.from_string(_HTML_TEMPLATE).render(
            run_id=ctx.run_id,
            now=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            summary=data["summary"],
            cases=data["cases"],
        )
        self._atomic_text_write(html_path, html)
        logger.info(f"✅ HTML report → {html_path}")

        return {"json": str(json_path), "html": str(html_path)}

    @staticmethod
    def _atomic_text_write(path: Path, text: str) -> None:
        """Atomic file write"""
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(path)

    @staticmethod
    def _atomic_json_dump(path: Path, data: Any) -> None:
        """Atomic JSON write"""
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(path)
