"""Interview Judge - sandboxed evaluation of interview-practice submissions."""

__version__ = "0.1.0"
