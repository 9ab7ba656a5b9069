"""Layout, retention and summary of the reports directory."""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger

REPORT_DIRS = (
    "e2e/smoke",
    "e2e/functional",
    "performance",
    "security",
    "accessibility",
    "logs",
)
REPORT_TYPES = ("e2e", "performance", "security", "accessibility")
ARTIFACT_TYPES = ("screenshots",)
REPORT_SUFFIXES = (".html", ".json", ".txt")

# days to keep files, per directory under the reports root
RETENTION_DAYS = {
    "e2e": 30,
    "performance": 30,
    "security": 30,
    "accessibility": 30,
    "logs": 14,
}
ARTIFACT_RETENTION_DAYS = {"screenshots": 14}


def _files(root: Path) -> list[Path]:
    if not root.is_dir():
        return []
    return [p for p in root.rglob("*") if p.is_file()]


def directory_size(root: Path) -> int:
    return sum(p.stat().st_size for p in _files(root))


class ReportManager:
    """Owns the reports tree: where reports go and how long they stay."""

    def __init__(self, reports_root: Path, artifacts_root: Path | None = None):
        self.reports_root = Path(reports_root)
        self.artifacts_root = Path(artifacts_root) if artifacts_root else self.reports_root / "artifacts"
        self.stamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")

    def initialize_directories(self) -> list[Path]:
        """Create missing report directories; returns the ones created."""
        created = []
        targets = [self.reports_root / d for d in REPORT_DIRS]
        targets += [self.artifacts_root / t for t in ARTIFACT_TYPES]
        for path in targets:
            if not path.exists():
                path.mkdir(parents=True, exist_ok=True)
                created.append(path)
                logger.debug("Created report directory: {}", path)
        return created

    def report_dir(self, report_type: str) -> Path:
        return self.reports_root / report_type

    def get_report_path(self, report_type: str, suite: str, fmt: str = "html") -> Path:
        name = report_type.replace("/", "-")
        return self.reports_root / report_type / f"{name}-{suite}-{self.stamp}.{fmt}"

    def get_artifact_path(self, artifact_type: str, name: str, fmt: str = "png") -> Path:
        return self.artifacts_root / artifact_type / f"{name}-{self.stamp}.{fmt}"

    def clean_directory(self, path: Path, retention_days: int, now: float | None = None) -> list[Path]:
        """Delete files under path older than retention_days."""
        cutoff = (now if now is not None else time.time()) - retention_days * 86400
        removed = []
        for file in _files(path):
            if file.stat().st_mtime < cutoff:
                file.unlink()
                removed.append(file)
                logger.info("Cleaned old report: {}", file)
        return removed

    def clean_old_reports(self, now: float | None = None) -> list[Path]:
        removed = []
        for rel, days in RETENTION_DAYS.items():
            removed += self.clean_directory(self.reports_root / rel, days, now)
        for rel, days in ARTIFACT_RETENTION_DAYS.items():
            removed += self.clean_directory(self.artifacts_root / rel, days, now)
        return removed

    def generate_summary(self) -> dict[str, Any]:
        """Count reports and artifacts, then write summary.json."""
        reports = {
            t: sum(1 for p in _files(self.reports_root / t) if p.suffix in REPORT_SUFFIXES) for t in REPORT_TYPES
        }
        artifacts = {
            t: sum(1 for p in _files(self.artifacts_root / t) if not p.name.startswith(".")) for t in ARTIFACT_TYPES
        }
        summary_path = self.reports_root / "summary.json"
        summary = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "reports": reports,
            "artifacts": artifacts,
            "totalSize": directory_size(self.reports_root),
        }
        self.reports_root.mkdir(parents=True, exist_ok=True)
        summary_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        return summary
