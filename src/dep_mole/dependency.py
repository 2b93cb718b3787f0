from dataclasses import dataclass
from enum import Enum


class DependencyType(Enum):
    """Manifest section a declared name comes from."""

    PROD = "prod"
    DEV = "dev"
    PEER = "peer"

    @property
    def manifest_key(self) -> str:
        return _MANIFEST_KEYS[self]


_MANIFEST_KEYS = {
    DependencyType.PROD: "dependencies",
    DependencyType.DEV: "devDependencies",
    DependencyType.PEER: "peerDependencies",
}


@dataclass(frozen=True)
class DependencyRecord:
    """Declared, used and installed state of one package name."""

    name: str
    declared: bool
    used: bool
    installed: bool

    def __post_init__(self):
        # An undeclared record only ever stands for an imported-but-missing package
        if not self.declared and (not self.used or self.installed):
            raise ValueError(
                f"Undeclared record {self.name!r} must be used and not installed"
            )

    @property
    def healthy(self) -> bool:
        return self.used and self.installed

    @property
    def missing(self) -> bool:
        return not self.declared

    @classmethod
    def missing_import(cls, name: str) -> "DependencyRecord":
        """Record for a package imported in source but absent from package.json."""
        return cls(name=name, declared=False, used=True, installed=False)
