"""
Manifest reading for npm projects.

Loads ``package.json`` from a project root and extracts the declared
dependency names per section.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, List, Tuple, Union

from .cli_config import get_config
from .dependency import DependencyType
from .error_handling import (
    ErrorCategory,
    ManifestNotFound,
    ManifestParseError,
    get_error_handler,
    log_parsing_error,
)

MANIFEST_FILE_NAME = "package.json"


@dataclass(frozen=True)
class Manifest:
    """Declared dependency names of a project, by manifest section."""

    path: Path
    prod: Tuple[str, ...] = ()
    dev: Tuple[str, ...] = ()
    peer: Tuple[str, ...] = ()

    def names_of(self, dependency_type: DependencyType) -> Tuple[str, ...]:
        if dependency_type is DependencyType.PROD:
            return self.prod
        if dependency_type is DependencyType.DEV:
            return self.dev
        return self.peer

    @property
    def declared_names(self) -> List[str]:
        """All declared names, first-seen order across prod, dev, peer."""
        seen = {}
        for name in self.prod + self.dev + self.peer:
            seen.setdefault(name, None)
        return list(seen)

    def types_of(self, name: str) -> FrozenSet[DependencyType]:
        return frozenset(t for t in DependencyType if name in self.names_of(t))

    def is_declared(self, name: str) -> bool:
        return name in self.prod or name in self.dev or name in self.peer


def _validate_manifest_path(manifest_path: Path) -> Path:
    if not manifest_path.is_file():
        raise ManifestNotFound(manifest_path)

    max_file_size = get_config().security.max_file_size_bytes
    try:
        file_size = manifest_path.stat().st_size
    except OSError as e:
        raise ManifestParseError(f"Cannot access {manifest_path}: {e}") from e
    if file_size > max_file_size:
        raise ManifestParseError(
            f"{manifest_path} is too large: {file_size} bytes (max: {max_file_size})"
        )

    return manifest_path


def _section_names(
    data: Dict, dependency_type: DependencyType, manifest_path: Path
) -> Tuple[str, ...]:
    section = dependency_type.manifest_key
    section_deps = data.get(section)
    if section_deps is None:
        return ()
    if not isinstance(section_deps, dict):
        get_error_handler().warning(
            ErrorCategory.PARSING,
            f"Ignoring {section}: expected an object",
            "parsers",
            "parse_package_json",
            details={
                "file_path": manifest_path.name,
                "data_type": type(section_deps).__name__,
            },
        )
        return ()

    names = []
    for package in section_deps:
        if not isinstance(package, str) or not package.strip():
            get_error_handler().warning(
                ErrorCategory.PARSING,
                f"Invalid package name in {section}: {str(package)[:50]}",
                "parsers",
                "parse_package_json",
                details={"section": section, "file_path": manifest_path.name},
            )
            continue
        name = package.strip()
        if name not in names:
            names.append(name)
    return tuple(names)


def parse_package_json(manifest_path: Union[str, Path]) -> Manifest:
    """
    Parse a package.json file into a Manifest.

    Extracts dependency names from ``dependencies``, ``devDependencies`` and
    ``peerDependencies``. Absent sections are empty.

    Args:
        manifest_path: Path to the package.json file

    Returns:
        Manifest: Declared names per section

    Raises:
        ManifestNotFound: If the file does not exist
        ManifestParseError: If the file cannot be read or is not a JSON object
    """
    path = _validate_manifest_path(Path(manifest_path))

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        log_parsing_error(
            f"Invalid JSON format in package.json: {e}",
            "parsers",
            "parse_package_json",
            file_path=str(path),
            exception=e,
        )
        raise ManifestParseError(f"Invalid JSON in {path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        log_parsing_error(
            f"Error reading package.json: {e}",
            "parsers",
            "parse_package_json",
            file_path=str(path),
            exception=e,
        )
        raise ManifestParseError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        log_parsing_error(
            "package.json must contain a JSON object",
            "parsers",
            "parse_package_json",
            file_path=str(path),
        )
        raise ManifestParseError(f"{path} must contain a JSON object")

    return Manifest(
        path=path,
        prod=_section_names(data, DependencyType.PROD, path),
        dev=_section_names(data, DependencyType.DEV, path),
        peer=_section_names(data, DependencyType.PEER, path),
    )


def load_manifest(project_root: Union[str, Path]) -> Manifest:
    """Load the manifest at its fixed location under the project root."""
    return parse_package_json(Path(project_root) / MANIFEST_FILE_NAME)
