"""eagerlint: static N+1 query detection for Laravel/Eloquent PHP code."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("eagerlint")
except PackageNotFoundError:
    __version__ = "dev"

from eagerlint.analysis import analyze  # noqa: E402

__all__ = ["__version__", "analyze"]
