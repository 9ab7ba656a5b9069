"""Configuration schema using Pydantic.

Single data model with defaults for a test run, persisted to
~/.siteprobe/config.json and overridable with SITEPROBE_* env vars.
"""

from pathlib import Path

from pydantic import BaseModel, Field, ConfigDict
from pydantic_settings import BaseSettings


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720


class BrowserConfig(BaseModel):
    """Browser launched at the start of each suite."""
    browser_type: str = "chromium"  # chromium | firefox | webkit
    headless: bool = False
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)


class TimeoutConfig(BaseModel):
    """Timeouts in milliseconds."""
    default_ms: int = 15000  # per test case
    short_ms: int = 5000  # selector fallbacks
    long_ms: int = 60000
    rpc_ms: int = 30000  # per automation server request
    handshake_ms: int = 2000


class ServerConfig(BaseModel):
    """Automation server process."""
    command: list[str] = Field(default_factory=list)  # empty -> `python -m siteprobe serve`
    cwd: str = ""
    env: dict[str, str] = Field(default_factory=dict)


class PathsConfig(BaseModel):
    reports_dir: str = "reports"
    artifacts_dir: str = "reports/artifacts"
    logs_dir: str = "~/.siteprobe/logs"

    @property
    def reports_path(self) -> Path:
        return Path(self.reports_dir).expanduser()

    @property
    def artifacts_path(self) -> Path:
        return Path(self.artifacts_dir).expanduser()

    @property
    def logs_path(self) -> Path:
        return Path(self.logs_dir).expanduser()


class PerformanceThresholds(BaseModel):
    """Upper bounds in milliseconds."""
    page_load_time: int = 5000
    network_time: int = 3000
    dom_content_loaded: int = 2000


class ComplianceConfig(BaseModel):
    require_https: bool = True
    required_headers: list[str] = Field(default_factory=lambda: ["X-Frame-Options", "X-Content-Type-Options"])
    privacy_policy_required: bool = True
    terms_of_service_required: bool = True


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_sink: bool = True
    screenshots_on_failure: bool = True
    colors: bool = True


class Config(BaseSettings):
    """Root configuration for siteprobe."""
    target_website: str = "caliber"
    base_url: str = ""  # overrides the website's base URL when set
    environment: str = "production"
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    performance: PerformanceThresholds = Field(default_factory=PerformanceThresholds)
    compliance: ComplianceConfig = Field(default_factory=ComplianceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(
        env_prefix="SITEPROBE_",
        env_nested_delimiter="__"
    )
