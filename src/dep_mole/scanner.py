"""
Report building for a project scan.

Merges the manifest, the usage analysis and the install probe into one
record per package name.
"""

import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from .analyzer import AnalysisResult, UsageAnalyzer, get_usage_analyzer
from .dependency import DependencyRecord
from .error_handling import ErrorCategory, get_error_handler
from .install_checker import check_installed
from .parsers import Manifest, load_manifest
from .structured_logging import (
    clear_scan_context,
    get_scanner_logger,
    set_scan_context,
)


@dataclass(frozen=True)
class DependencyReport:
    """All dependency records of one scan."""

    manifest: Manifest
    records: List[DependencyRecord]
    scan_duration_ms: int = 0

    @property
    def healthy(self) -> List[DependencyRecord]:
        return [r for r in self.records if r.healthy]

    @property
    def unused(self) -> List[DependencyRecord]:
        return [r for r in self.records if not r.used]

    @property
    def not_installed(self) -> List[DependencyRecord]:
        """Declared records absent from node_modules."""
        return [r for r in self.records if r.declared and not r.installed]

    @property
    def missing(self) -> List[DependencyRecord]:
        return [r for r in self.records if r.missing]

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def has_problems(self) -> bool:
        """True when any record is unused, not installed or missing."""
        return any(not r.healthy for r in self.records)

    def get(self, name: str) -> Optional[DependencyRecord]:
        for record in self.records:
            if record.name == name:
                return record
        return None


def build_report(
    manifest: Manifest,
    analysis: AnalysisResult,
    presence: Dict[str, bool],
    scan_duration_ms: int = 0,
) -> DependencyReport:
    """
    Combine manifest, analysis and install presence into a report.

    Args:
        manifest: Declared names per section
        analysis: Usage analyzer output
        presence: Install-directory probe result per name

    Returns:
        DependencyReport with declared records first (manifest order),
        then synthetic records for missing imports (analyzer order)
    """
    logger = get_scanner_logger()
    unused = analysis.unused

    records = [
        DependencyRecord(
            name=name,
            declared=True,
            used=name not in unused,
            installed=presence.get(name, False),
        )
        for name in manifest.declared_names
    ]

    for name in analysis.missing:
        if manifest.is_declared(name):
            get_error_handler().warning(
                ErrorCategory.VALIDATION,
                f"{name} is declared but the analyzer reported it missing",
                "scanner",
                "build_report",
                details={"package": name},
            )
            continue
        if presence.get(name):
            logger.debug("missing_package_resolved_transitively", package_name=name)
        records.append(DependencyRecord.missing_import(name))

    return DependencyReport(
        manifest=manifest, records=records, scan_duration_ms=scan_duration_ms
    )


class DependencyScanner:
    """Runs the manifest reader, usage analyzer and install probe for a project."""

    def __init__(self, analyzer: Optional[UsageAnalyzer] = None):
        self.analyzer = analyzer or get_usage_analyzer()

    async def scan(self, project_root: Union[str, Path]) -> DependencyReport:
        """
        Scan a project root.

        Raises:
            ManifestNotFound: If package.json is absent
            ManifestParseError: If package.json is malformed
            AnalyzerFailure: If the usage analyzer fails
        """
        root = Path(project_root).resolve()
        logger = get_scanner_logger()
        set_scan_context(scan_id=uuid.uuid4().hex[:12], project_root=str(root))
        try:
            start_time = time.monotonic()
            manifest = load_manifest(root)
            logger.info(
                "scan_started", total_declared=len(manifest.declared_names)
            )

            analysis = await self.analyzer.analyze(root)

            candidates = manifest.declared_names + [
                name for name in analysis.missing if not manifest.is_declared(name)
            ]
            presence = check_installed(root, candidates)

            duration_ms = int((time.monotonic() - start_time) * 1000)
            report = build_report(manifest, analysis, presence, duration_ms)

            logger.info(
                "scan_completed",
                total_records=len(report.records),
                unused=len(report.unused),
                not_installed=len(report.not_installed),
                missing=len(report.missing),
                scan_duration_ms=duration_ms,
            )
            return report
        finally:
            clear_scan_context()


def get_dependency_scanner(
    analyzer: Optional[UsageAnalyzer] = None,
) -> DependencyScanner:
    """Factory function to create a dependency scanner."""
    return DependencyScanner(analyzer)
