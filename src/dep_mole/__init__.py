"""dep-mole: compare declared, imported and installed npm dependencies."""

__version__ = "1.0.0"
