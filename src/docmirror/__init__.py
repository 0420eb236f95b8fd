"""docmirror: local mirror of a remote documentation corpus with staged updates."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("docmirror")
except PackageNotFoundError:
    # Running from a source checkout.
    __version__ = "0.0.0"
