"""
Pennant: POSIX/GNU-style command-line flags with pluggable settable values.

    >>> from pennant import FlagSet, BoolValue, DurationValue
    >>> flags = FlagSet("fetch")
    >>> verbose, timeout = BoolValue(), DurationValue()
    >>> _ = flags.register("verbose", verbose, "v")
    >>> _ = flags.register("timeout", timeout)
    >>> flags.parse("-v --timeout=1m30s url -- -literal")
    ['url', '-literal']

Layout
- values: the Value contract and the built-in variants.
- flags: Flag entries, the FlagSet registry and the process-wide commandline().
- parsing: the dispatcher state machine behind FlagSet.parse().
- faults: fault codes, error policies and the error/warning hierarchy.
"""
__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'pennant'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.1.0"

from .faults import *
from .flags import *
from .values import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 1, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the values
__all__ += values.__all__  # type: ignore[attr-defined]
# Load the exposed API of the flags
__all__ += flags.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
