"""
Thorn task layer: task descriptors, per-class definitions, and chain resolution.

What this module provides
- Task: immutable descriptor (name, usage, description, resolved options, handler).
- DynamicTask: the lookup sentinel returned when no declared task matches a name.
- Definition: the declarations of one command class (group, default task, class-wide
  default options, aliases, tasks) plus a reference to its parent definition.
- Builder: two-step declaration surface; desc()/method_options() accumulate pending
  state that the next declare() binds and then clears.
- Resolution functions walking the ancestor chain explicitly:
  ancestors, group, default_task, default_options, aliases, resolve_alias,
  declare, lookup, all_tasks.

Precedence
- Every inherited value is resolved by walking ancestors() nearest first; the first
  explicit value wins. Option and alias mappings are merged root first so that a
  more-derived entry replaces the same key from an ancestor entry by entry.

Lifecycle
- Definitions are populated while classes are being defined (single-threaded).
- Afterwards everything here is read-only; lookups never mutate a definition.
"""
import logging
from collections.abc import Mapping

from .options import normalize, resolve
from .utils import Unset, mirror

logger = logging.getLogger(__name__)

HELP = "help"
STANDARD = "standard"


def _text(value, field, name):
    if not isinstance(value, str):
        raise TypeError(f"task {name!r} {field} must be a string")
    return value


class Task:
    """
    Immutable task descriptor.

    Fields
    - name: str, unique within a command class.
    - usage: str, descriptive usage line ("animal TYPE"); never validated against arguments.
    - description: str, kept verbatim (indentation and trailing newline included).
    - options: read-only mapping name → Option, already resolved against the class chain.
    - handler: callable invoked by the dispatcher.
    """
    __slots__ = ("_name", "_usage", "_description", "_options", "_handler")

    dynamic = False

    def __init__(self, name, usage, description, options, handler):
        if not isinstance(name, str) or not name:
            raise ValueError(f"task name {name!r} must be a non-empty string")
        if handler is not None and not callable(handler):
            raise TypeError(f"task {name!r} handler must be callable")
        object.__setattr__(self, "_name", name)
        object.__setattr__(self, "_usage", _text(usage, "usage", name))
        object.__setattr__(self, "_description", _text(description, "description", name))
        object.__setattr__(self, "_options", dict(normalize(options)))
        object.__setattr__(self, "_handler", handler)

    name = mirror("name")
    usage = mirror("usage")
    description = mirror("description")
    options = mirror("options")
    handler = mirror("handler")

    @property
    def summary(self):
        """
        First line of the description (what the summary help shows).
        """
        return self._description.split("\n", 1)[0].strip()

    def __setattr__(self, name, value, /):
        raise AttributeError(f"task {self._name!r} is immutable")

    def __delattr__(self, name, /):
        raise AttributeError(f"task {self._name!r} is immutable")

    def __repr__(self):
        return f"{type(self).__name__.lower()}(name={self._name!r}, usage={self._usage!r}, options={self._options!r})"


class DynamicTask(Task):
    """
    Sentinel descriptor for names that match no declared task.

    It is a Task (so callers can treat lookup results uniformly) but carries no
    handler; the dispatcher routes it to a dynamic-invocation capability or
    reports TaskNotFoundError.
    """
    __slots__ = ()

    dynamic = True

    def __init__(self, name):
        # any user token is a valid sentinel name, the empty string included
        if not isinstance(name, str):
            raise TypeError("dynamic task name must be a string")
        object.__setattr__(self, "_name", name)
        object.__setattr__(self, "_usage", name)
        object.__setattr__(self, "_description", "a dynamically-generated task")
        object.__setattr__(self, "_options", {})
        object.__setattr__(self, "_handler", None)


class Definition:
    """
    Declarations of one command class.

    Attributes (mutated only while the class is being defined)
    - name: str, label of the class (usually its qualified name).
    - parent: Definition | None
    - owner: the Python class described by this definition, when there is one.
    - group: str | Unset
    - default: str | Unset, name of the default task.
    - defaults: dict name → Option, class-wide default options.
    - aliases: dict token → canonical task name.
    - tasks: dict name → Task, in declaration order.
    """

    def __init__(self, name, parent=None, *, owner=None):
        if parent is not None and not isinstance(parent, Definition):
            raise TypeError("definition parent must be a definition")
        self.name = name
        self.parent = parent
        self.owner = owner
        self.group = Unset
        self.default = Unset
        self.defaults = {}
        self.aliases = {}
        self.tasks = {}

    def __repr__(self):
        return f"definition({self.name!r})"


def ancestors(definition, /):
    """
    Return the chain (definition, parent, grandparent, ...), nearest first.
    """
    chain = []
    while definition is not None:
        chain.append(definition)
        definition = definition.parent
    return tuple(chain)


def group(definition, /):
    """
    Nearest explicitly declared group name, "standard" when none was declared.
    """
    for x in ancestors(definition):
        if x.group is not Unset:
            return x.group
    return STANDARD


def default_task(definition, /):
    """
    Nearest explicitly declared default task name, the built-in "help" otherwise.
    """
    for x in ancestors(definition):
        if x.default is not Unset:
            return x.default
    return HELP


def default_options(definition, /):
    """
    Effective class-wide default options: root defaults overridden by each descendant.
    """
    return resolve(*(x.defaults for x in reversed(ancestors(definition))))


def aliases(definition, /):
    """
    Effective alias table: root mappings overridden by each descendant, entry by entry.
    """
    table = {}
    for x in reversed(ancestors(definition)):
        table.update(x.aliases)
    return table


def map_aliases(definition, mapping, /):
    """
    Record alias declarations on a definition.

    Keys are single tokens or tuples of tokens; several tokens may map to the
    same task. Targets are checked lazily at dispatch time.
    """
    if not isinstance(mapping, Mapping):
        raise TypeError(f"{definition.name} aliases must be a mapping")
    for tokens, target in mapping.items():
        if not isinstance(target, str) or not target.strip():
            raise TypeError(f"{definition.name} alias target must be a non-empty string")
        for token in (tokens,) if isinstance(tokens, str) else tokens:
            if not isinstance(token, str) or not token.strip():
                raise TypeError(f"{definition.name} alias tokens must be non-empty strings")
            definition.aliases[token] = target.strip()


def resolve_alias(definition, token, /):
    """
    Map an alias token to its canonical task name; other tokens pass through unchanged.
    """
    target = aliases(definition).get(token, token)
    if target != token:
        logger.debug("alias %r resolved to task %r in %s", token, target, definition.name)
    return target


def declare(definition, name, usage, description, overrides, handler, /):
    """
    Create (or replace) a task on `definition`.

    The task options are the class's effective default options merged with
    `overrides` (task-level declarations win on key collision).
    """
    if not isinstance(name, str) or not name or name.split() != [name]:
        raise ValueError(f"{definition.name} task name {name!r} must be a non-empty single word")
    if not callable(handler):
        raise TypeError(f"{definition.name} task {name!r} handler must be callable")
    task = Task(name, usage, description, resolve(default_options(definition), overrides), handler)
    if name in definition.tasks:
        logger.debug("task %r redeclared in %s", name, definition.name)
    definition.tasks[name] = task
    logger.debug("declared task %r in %s with options %s", name, definition.name, list(task.options))
    return task


def lookup(definition, name, /):
    """
    Find a task by name in `definition` then up its ancestors.

    Returns a DynamicTask sentinel (never raises) when no ancestor declares it.
    """
    for x in ancestors(definition):
        try:
            return x.tasks[name]
        except KeyError:
            continue
    return DynamicTask(name)


def all_tasks(definition, /):
    """
    Ordered union of the tasks visible from `definition`, for help rendering.

    Ancestor tasks come first, in declaration order. A task redeclared lower in the
    chain keeps the position of its first declaration but shows the derived Task.
    """
    tasks = {}
    for x in reversed(ancestors(definition)):
        tasks.update(x.tasks)
    return tuple(tasks.values())


class Builder:
    """
    Two-step declaration context for one definition.

        builder = Builder(definition)
        builder.desc("foo BAR", "do some fooing").method_options(force="boolean")
        builder.declare("foo", handler)   # binds the pending state, then clears it

    Pending state applies to the next declare() only.
    """

    def __init__(self, definition):
        if not isinstance(definition, Definition):
            raise TypeError("builder argument must be a definition")
        self._definition = definition
        self.clear()

    @property
    def pending(self):
        """
        True while desc() or method_options() state waits for a declare().
        """
        return self._usage is not Unset or bool(self._options)

    def desc(self, usage, description="", /):
        self._usage = _text(usage, "usage", usage)
        self._description = _text(description, "description", usage)
        return self

    def method_options(self, mapping=None, /, **options):
        self._options |= normalize(mapping) | normalize(options)
        return self

    def declare(self, name, handler, /):
        try:
            usage = self._usage if self._usage is not Unset else name
            return declare(self._definition, name, usage, self._description, self._options, handler)
        finally:
            self.clear()

    def clear(self):
        self._usage = Unset
        self._description = ""
        self._options = {}


__all__ = (
    "HELP",
    "STANDARD",
    "Task",
    "DynamicTask",
    "Definition",
    "Builder",
    "ancestors",
    "group",
    "default_task",
    "default_options",
    "aliases",
    "map_aliases",
    "resolve_alias",
    "declare",
    "lookup",
    "all_tasks",
)
