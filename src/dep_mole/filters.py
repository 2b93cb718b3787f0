"""
Filtering and grouping of a dependency report for display.

A type filter narrows the declared records to one manifest section. Then
either flat mode groups them by section or status mode splits them into
health buckets.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from .dependency import DependencyRecord, DependencyType
from .error_handling import InvalidOptionCombination
from .scanner import DependencyReport


class Status(Enum):
    """Health buckets of status mode, in display order."""

    HEALTHY = "healthy"
    UNUSED = "unused"
    NOT_INSTALLED = "notinstalled"
    MISSING = "missing"


@dataclass(frozen=True)
class FilterOptions:
    """Validated filter selection."""

    dependency_type: Optional[DependencyType] = None
    statuses: FrozenSet[Status] = frozenset()
    flat: bool = False

    @classmethod
    def from_flags(
        cls,
        all_types: bool = False,
        prod: bool = False,
        dev: bool = False,
        peer: bool = False,
        healthy: bool = False,
        unused: bool = False,
        notinstalled: bool = False,
        missing: bool = False,
        flat: bool = False,
    ) -> "FilterOptions":
        """
        Build options from CLI flags.

        Raises:
            InvalidOptionCombination: If type flags conflict, or flat mode is
                combined with a status filter
        """
        type_flags = {
            DependencyType.PROD: prod,
            DependencyType.DEV: dev,
            DependencyType.PEER: peer,
        }
        selected_types = [t for t, enabled in type_flags.items() if enabled]
        if len(selected_types) > 1:
            flags = ", ".join(f"--{t.value}" for t in selected_types)
            raise InvalidOptionCombination(f"Only one type filter allowed, got {flags}")
        if all_types and selected_types:
            raise InvalidOptionCombination(
                f"--all cannot be combined with --{selected_types[0].value}"
            )

        status_flags = {
            Status.HEALTHY: healthy,
            Status.UNUSED: unused,
            Status.NOT_INSTALLED: notinstalled,
            Status.MISSING: missing,
        }
        statuses = frozenset(s for s, enabled in status_flags.items() if enabled)
        if flat and statuses:
            flags = ", ".join(f"--{s.value}" for s in Status if s in statuses)
            raise InvalidOptionCombination(f"--flat cannot be combined with {flags}")

        return cls(
            dependency_type=selected_types[0] if selected_types else None,
            statuses=statuses,
            flat=flat,
        )

    @property
    def shown_statuses(self) -> List[Status]:
        """Status buckets on display; all of them when none was requested."""
        if not self.statuses:
            return list(Status)
        return [s for s in Status if s in self.statuses]


@dataclass
class FilteredView:
    """Records selected for display, grouped by section or by status."""

    options: FilterOptions
    groups: Dict[str, List[DependencyRecord]] = field(default_factory=dict)
    # Judged on the whole report, not on what the filters kept
    all_good: bool = True

    @property
    def flat(self) -> bool:
        return self.options.flat

    @property
    def is_empty(self) -> bool:
        return not any(self.groups.values())

    def selected_names(self) -> List[str]:
        """Unique names on display, in display order."""
        names: Dict[str, None] = {}
        for records in self.groups.values():
            for record in records:
                names.setdefault(record.name, None)
        return list(names)


def filter_by_type(
    report: DependencyReport, dependency_type: Optional[DependencyType]
) -> List[DependencyRecord]:
    """Drop declared records outside the section. Missing records have no section and stay."""
    if dependency_type is None:
        return list(report.records)
    names = report.manifest.names_of(dependency_type)
    return [r for r in report.records if r.missing or r.name in names]


def group_flat(
    report: DependencyReport, records: List[DependencyRecord]
) -> Dict[str, List[DependencyRecord]]:
    groups = {}
    for dependency_type in DependencyType:
        names = report.manifest.names_of(dependency_type)
        groups[dependency_type.value] = [
            r for r in records if r.declared and r.name in names
        ]
    return groups


def group_by_status(
    records: List[DependencyRecord], statuses: List[Status]
) -> Dict[str, List[DependencyRecord]]:
    predicates = {
        Status.HEALTHY: lambda r: r.healthy,
        Status.UNUSED: lambda r: not r.used,
        Status.NOT_INSTALLED: lambda r: r.declared and not r.installed,
        Status.MISSING: lambda r: r.missing,
    }
    return {
        status.value: [r for r in records if predicates[status](r)]
        for status in statuses
    }


def apply_filters(report: DependencyReport, options: FilterOptions) -> FilteredView:
    """Apply the type filter, then flat grouping or status filtering."""
    records = filter_by_type(report, options.dependency_type)
    if options.flat:
        groups = group_flat(report, records)
    else:
        groups = group_by_status(records, options.shown_statuses)
    return FilteredView(
        options=options, groups=groups, all_good=not report.has_problems
    )
