"""PyNamu — namu-wiki style markup engine."""

from pynamu._version import __version__

__all__ = ["__version__"]
