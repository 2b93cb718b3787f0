"""
Reporting and output formatting for dependency reports.

Provides color-coded console output using the Rich library, plus a JSON
rendering for automation.
"""

import json
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel

from .dependency import DependencyRecord
from .filters import FilteredView, Status
from .registry_clients import RegistryCheckResult

# Presentation theme, fixed for the whole process
THEME = {
    "success": "green",
    "unused": "yellow",
    "not_installed": "magenta",
    "missing": "red",
    "info": "blue",
}

STATUS_SECTIONS = {
    Status.HEALTHY.value: ("✅ Healthy dependencies", THEME["success"]),
    Status.UNUSED.value: (
        "🟡 Unused dependencies (declared but not imported)",
        THEME["unused"],
    ),
    Status.NOT_INSTALLED.value: (
        "⚠️  Declared but missing in node_modules",
        THEME["not_installed"],
    ),
    Status.MISSING.value: (
        "🔴 Missing dependencies (imported but not in package.json)",
        THEME["missing"],
    ),
}

FLAT_SECTIONS = {
    "prod": ("📦 dependencies", THEME["info"]),
    "dev": ("🛠️  devDependencies", THEME["info"]),
    "peer": ("🤝 peerDependencies", THEME["info"]),
}

ALL_GOOD_MESSAGE = "✅ All dependencies look good!"

# Shown for a requested status section that came out empty
EMPTY_SECTION_MESSAGES = {
    Status.HEALTHY.value: ("No healthy dependencies found.", THEME["info"]),
    Status.UNUSED.value: ("✅ No unused dependencies found.", THEME["success"]),
    Status.NOT_INSTALLED.value: (
        "✅ No declared dependencies missing from node_modules.",
        THEME["success"],
    ),
    Status.MISSING.value: ("✅ No missing dependencies found.", THEME["success"]),
}


class DependencyReporter:
    """Formats and displays dependency reports."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_report(self, view: FilteredView, project_root: str) -> None:
        """
        Print the filtered report section by section.

        Args:
            view: Filtered and grouped records
            project_root: Scanned project directory
        """
        self.console.print()
        self.console.print(
            Panel(
                f"📦 Dependency Check Report: {project_root}",
                border_style=THEME["info"],
            )
        )

        sections = FLAT_SECTIONS if view.flat else STATUS_SECTIONS
        requested = {status.value for status in view.options.statuses}
        for key, records in view.groups.items():
            if records:
                title, color = sections[key]
                self._print_section(title, color, records, with_flags=view.flat)
            elif key in requested:
                message, color = EMPTY_SECTION_MESSAGES[key]
                self.console.print()
                self.console.print(message, style=color)

        if view.all_good:
            self.console.print()
            self.console.print(ALL_GOOD_MESSAGE, style=THEME["success"])

    def _print_section(
        self,
        title: str,
        color: str,
        records: List[DependencyRecord],
        with_flags: bool = False,
    ) -> None:
        self.console.print()
        self.console.print(f"{title} ({len(records)})", style=f"bold {color}")
        for record in records:
            line = f"  - {record.name}"
            if with_flags:
                line += self._status_suffix(record)
            self.console.print(line, markup=False, highlight=False)

    def _status_suffix(self, record: DependencyRecord) -> str:
        flags = []
        if not record.used:
            flags.append("unused")
        if not record.installed:
            flags.append("not installed")
        return f" ({', '.join(flags)})" if flags else ""

    def print_verification(self, results: List[RegistryCheckResult]) -> None:
        """Print one line per registry lookup."""
        self.console.print()
        self.console.print("🔍 Verifying dependencies on npm...", style=THEME["info"])
        self.console.print()
        if not results:
            self.console.print("No dependencies to verify.", style=THEME["info"])
            return

        for result in results:
            if result.exists:
                self.console.print(
                    f"✅ {result.package_name} exists on npm. "
                    f"Latest version: {result.latest_version}",
                    style=THEME["success"],
                    markup=False,
                    highlight=False,
                )
            else:
                self.console.print(
                    f"❌ {result.package_name} not found on npm!",
                    style=THEME["missing"],
                    markup=False,
                    highlight=False,
                )


def build_json_output(
    view: FilteredView,
    project_root: str,
    verification: Optional[List[RegistryCheckResult]] = None,
) -> Dict[str, Any]:
    """Serializable form of a filtered report."""
    results: Dict[str, Any] = {
        "project_root": project_root,
        "mode": "flat" if view.flat else "status",
        "groups": {
            key: [
                {
                    "name": r.name,
                    "declared": r.declared,
                    "used": r.used,
                    "installed": r.installed,
                }
                for r in records
            ]
            for key, records in view.groups.items()
        },
        "all_good": view.all_good,
    }
    if view.options.dependency_type is not None:
        results["type_filter"] = view.options.dependency_type.value
    if verification is not None:
        results["verification"] = [r.to_dict() for r in verification]
    return results


def output_json_results(
    view: FilteredView,
    project_root: str,
    verification: Optional[List[RegistryCheckResult]] = None,
) -> None:
    """Print results as JSON on stdout."""
    print(
        json.dumps(
            build_json_output(view, project_root, verification),
            indent=2,
            ensure_ascii=False,
        )
    )
