"""AEO Analyzer: audits a page for how likely AI assistants are to cite it."""

__version__ = "0.1.0"
