"""
Usage analysis through an external static analyzer.

dep-mole never parses JavaScript itself. It asks ``depcheck`` which
declared packages are unused and which imported packages are undeclared.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .cli_config import get_config
from .error_handling import AnalyzerFailure, ErrorCategory, get_error_handler
from .structured_logging import get_analyzer_logger


@dataclass(frozen=True)
class AnalysisResult:
    """Output of a usage analysis run."""

    unused_prod: Tuple[str, ...] = ()
    unused_dev: Tuple[str, ...] = ()
    # Only the keys are consumed; values are the analyzer's own metadata
    missing: Dict[str, Any] = field(default_factory=dict)

    @property
    def unused(self) -> frozenset:
        return frozenset(self.unused_prod) | frozenset(self.unused_dev)

    @classmethod
    def from_depcheck(cls, data: Dict[str, Any]) -> "AnalysisResult":
        """Build a result from depcheck's ``--json`` document."""
        missing = data.get("missing") or {}
        if not isinstance(missing, dict):
            raise AnalyzerFailure("depcheck output has a malformed 'missing' field")
        return cls(
            unused_prod=tuple(data.get("dependencies") or ()),
            unused_dev=tuple(data.get("devDependencies") or ()),
            missing=dict(missing),
        )


class UsageAnalyzer(ABC):
    """Reports declared-but-unused and imported-but-undeclared packages."""

    @abstractmethod
    async def analyze(self, project_root: Path) -> AnalysisResult:
        """Analyze the sources under project_root."""
        pass


class DepcheckAnalyzer(UsageAnalyzer):
    """Runs the depcheck CLI as a subprocess and parses its JSON output."""

    def __init__(
        self,
        command: Optional[List[str]] = None,
        timeout: Optional[float] = None,
        ignore_patterns: Optional[List[str]] = None,
    ):
        config = get_config().analyzer
        self.command = list(command or config.command)
        self.timeout = timeout or config.timeout_seconds
        self.ignore_patterns = list(
            config.ignore_patterns if ignore_patterns is None else ignore_patterns
        )

    def build_cmd(self) -> List[str]:
        cmd = self.command + [
            "--json",
            "--ignore-bin-package=false",
            "--skip-missing=false",
        ]
        if self.ignore_patterns:
            cmd.append(f"--ignore-patterns={','.join(self.ignore_patterns)}")
        cmd.append(".")
        return cmd

    async def analyze(self, project_root: Path) -> AnalysisResult:
        logger = get_analyzer_logger()
        cmd = self.build_cmd()
        logger.debug("analyzer_started", command=cmd, cwd=str(project_root))

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(project_root),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self._report("Could not start usage analyzer", e, command=cmd[0])
            raise AnalyzerFailure(f"Could not run {cmd[0]}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            self._report("Usage analyzer timed out", e, timeout=self.timeout)
            raise AnalyzerFailure(
                f"depcheck did not finish within {self.timeout:g} seconds"
            ) from e

        # depcheck exits non-zero whenever it finds issues, so only the
        # output tells success from failure
        output = stdout.decode("utf-8", errors="replace").strip()
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            detail = stderr.decode("utf-8", errors="replace").strip()[:500]
            self._report(
                "Usage analyzer produced no JSON",
                e,
                return_code=process.returncode,
                stderr=detail,
            )
            raise AnalyzerFailure(
                f"depcheck failed (exit code {process.returncode}): "
                f"{detail or 'no output'}"
            ) from e

        if not isinstance(data, dict):
            raise AnalyzerFailure("depcheck output is not a JSON object")

        result = AnalysisResult.from_depcheck(data)
        logger.info(
            "analyzer_finished",
            return_code=process.returncode,
            unused_count=len(result.unused),
            missing_count=len(result.missing),
        )
        return result

    def _report(self, message: str, exception: Exception, **details) -> None:
        get_error_handler().error(
            ErrorCategory.ANALYZER,
            message,
            "analyzer",
            "analyze",
            exception=exception,
            details=details,
            suggestions=[
                "Check that Node.js and npx are installed",
                "Run 'npx depcheck' in the project to see its own error",
            ],
        )


def get_usage_analyzer(
    command: Optional[Union[str, List[str]]] = None
) -> UsageAnalyzer:
    """Factory for the default usage analyzer."""
    if isinstance(command, str):
        command = command.split()
    return DepcheckAnalyzer(command=command)
