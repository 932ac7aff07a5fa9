__title__ = 'thorn'
__license__ = 'MIT'
__version__ = "0.1.0"

import logging

from .options import *
from .tasks import *
from .registry import *
from .dispatch import *
from .formatting import *
from .commands import *
from .faults import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
))

version_info = VersionInfo(0, 1, 0, "final", 0)

# Library logging: silent unless the application configures handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = (
    "__title__",
    "__license__",
    "__version__",
    "version_info",
)

__all__ += options.__all__  # type: ignore[attr-defined]
__all__ += tasks.__all__  # type: ignore[attr-defined]
__all__ += registry.__all__  # type: ignore[attr-defined]
__all__ += dispatch.__all__  # type: ignore[attr-defined]
__all__ += formatting.__all__  # type: ignore[attr-defined]
__all__ += commands.__all__  # type: ignore[attr-defined]
__all__ += faults.__all__  # type: ignore[attr-defined]
