"""Find, report and safely rewrite SQL embedded in host artifacts."""

__version__ = "0.1.0"
