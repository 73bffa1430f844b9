"""Command Line Interface Package"""

from lazycommit.cli.main import main, run

__all__ = ["main", "run"]
