from pathlib import Path
from typing import Dict, Iterable, Union

from .error_handling import ErrorCategory, get_error_handler

INSTALL_DIR_NAME = "node_modules"


def is_installed(project_root: Union[str, Path], name: str) -> bool:
    """True when ``<project_root>/node_modules/<name>`` exists."""
    try:
        return (Path(project_root) / INSTALL_DIR_NAME / name).exists()
    except (OSError, ValueError) as e:
        # An unreadable entry counts as not installed
        get_error_handler().warning(
            ErrorCategory.FILESYSTEM,
            f"Cannot check install directory for {name}",
            "install_checker",
            "is_installed",
            details={"package_name": name},
            exception=e,
        )
        return False


def check_installed(
    project_root: Union[str, Path], names: Iterable[str]
) -> Dict[str, bool]:
    """Check the install directory for each name. Existence only, no version check."""
    return {name: is_installed(project_root, name) for name in names}
