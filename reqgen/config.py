# reqgen/config.py
from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized, env-driven configuration for a test run.
    Override via REQGEN_* environment variables or a .env file at repo root.
    Dict/list fields take JSON, e.g. REQGEN_COOKIES='{"JSESSIONID": "abc"}'.
    """
    workbook: Optional[str] = None
    template_path: Optional[str] = None  # None -> packaged http_request_template.txt
    output_workbook: Optional[str] = None  # None -> results saved back into `workbook`
    input_sheet: str = "Input"
    baseline_sheet: str = "Baseline"

    proxy: Optional[str] = None
    timeout_sec: float = Field(default=30.0, gt=0)
    verify_ssl: bool = False
    cookies: Dict[str, str] = Field(default_factory=dict)

    max_template_passes: int = Field(default=100, ge=1)
    required_fields: List[str] = Field(default_factory=list)

    reports_dir: str = "reports"
    write_reports: bool = True
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="REQGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
