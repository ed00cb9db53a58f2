"""Git Replay - replay recorded CVS history onto a git branch."""

__version__ = "0.1.0"
