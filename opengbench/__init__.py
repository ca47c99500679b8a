"""OpenG platform driver for graph benchmarks."""

from .lib import __version__
