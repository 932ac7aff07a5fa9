"""
Process-wide record of command classes.

ExtensionRegistry tracks
- classes: every command class ever defined, in definition order.
- children: for each class, its direct subclasses in definition order.
- files: for each source unit (absolute file path), the classes it defined or
  reopened, in declaration order. A source unit can contribute classes across
  several loads (entries are appended, never replaced), and a class reopened in
  another file is reported by both files.

Write path
- register() and track() are called while classes are being defined; both are
  append-only. freeze() ends the setup phase: later writes raise RuntimeError.
- Readers never mutate anything and return read-only snapshots.

The module exposes one shared instance, `extensions`, used by the declarative
layer (thorn.commands). Separate instances are handy for isolated use.
"""
import logging
import os.path
import sys
from collections import defaultdict

logger = logging.getLogger(__name__)


def source_unit(module, /):
    """
    Identify the source unit of a module name: its absolute file path when the
    module has one, the module name in angle brackets otherwise.
    """
    filename = getattr(sys.modules.get(module), "__file__", None)
    if not filename:
        return f"<{module}>"
    return os.path.abspath(filename)


class ExtensionRegistry:
    """
    Append-only registry of command classes, their subclasses and source units.
    """

    def __init__(self):
        # dicts double as insertion-ordered sets
        self._classes = {}
        self._children = defaultdict(dict)
        self._files = defaultdict(list)
        self._frozen = False

    @property
    def frozen(self):
        return self._frozen

    @property
    def classes(self):
        """
        Every registered class, in registration order.
        """
        return tuple(self._classes)

    def freeze(self):
        """
        End the setup phase; further register()/track() calls raise RuntimeError.
        """
        self._frozen = True
        logger.debug("extension registry frozen with %d classes", len(self._classes))

    def _writable(self, cls):
        if self._frozen:
            raise RuntimeError(f"extension registry is frozen, cannot record {cls.__qualname__!r}")

    def register(self, cls, parent=None, source=None, /):
        """
        Record a newly defined class once, under its parent and its source unit.

        Raises
        - ValueError when the class was already registered.
        - RuntimeError once the registry is frozen.
        """
        self._writable(cls)
        if cls in self._classes:
            raise ValueError(f"class {cls.__qualname__!r} is already registered")
        self._classes[cls] = None
        if parent is not None:
            self._children[parent][cls] = None
        if source is not None:
            self._files[source].append(cls)
        logger.debug("registered %s (parent=%s, source=%s)", cls.__qualname__, getattr(parent, "__qualname__", None), source)

    def track(self, cls, source, /):
        """
        Record that `source` (re)opened an already registered class.
        """
        self._writable(cls)
        if cls not in self._classes:
            raise ValueError(f"class {cls.__qualname__!r} is not registered")
        self._files[source].append(cls)
        logger.debug("tracked %s in %s", cls.__qualname__, source)

    def subclasses(self, cls, /):
        """
        Direct subclasses of `cls`, in registration order.
        """
        return tuple(self._children.get(cls, ()))

    def descendants(self, cls, /):
        """
        All subclasses of `cls` at any depth, in registration order.
        """
        found = {}
        pending = list(self.subclasses(cls))
        while pending:
            child = pending.pop(0)
            if child not in found:
                found[child] = None
                pending.extend(self.subclasses(child))
        return tuple(x for x in self._classes if x in found)

    def defined_in(self, source, /):
        """
        Classes defined or reopened in `source`, in declaration order.

        Relative paths are made absolute before the lookup.
        """
        if not source.startswith("<"):
            source = os.path.abspath(source)
        return tuple(self._files.get(source, ()))

    @property
    def files(self):
        """
        Snapshot of source unit → classes.
        """
        return {source: tuple(classes) for source, classes in self._files.items()}

    def __contains__(self, cls):
        return cls in self._classes

    def __len__(self):
        return len(self._classes)

    def __repr__(self):
        return f"extension-registry(classes={len(self._classes)}, files={len(self._files)}, frozen={self._frozen})"


extensions = ExtensionRegistry()


__all__ = (
    "ExtensionRegistry",
    "extensions",
    "source_unit",
)
