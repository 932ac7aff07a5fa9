"""
Thorn declarative layer: define scripts as classes, run them from argv.

What this module provides
- Script: base class of every command class. Subclasses declare:
  • group = "name"                  descriptive label (inherited, default "standard")
  • default_task = "name"           task run when argv is empty (inherited, default "help")
  • default_options = {...}         class-wide option baseline (merged with ancestors)
  • aliases = {"-T": "animal", ("-f", "--foo"): "foo"}
  • tasks: methods decorated with @desc and/or @method_options
- desc(usage, description) / method_options(**options): decorators recording pending
  declaration state on a method; the class body binds it when the class is built.
- reopen(script): class decorator adding declarations to an existing script from
  another module (both modules are then reported by the extension registry).
- Script.start(argv): dispatch argv to a task and return the task's result.

Quick start
    from thorn import Script, desc, method_options

    class Zoo(Script):
        default_task = "animal"
        aliases = {"-a": "animal"}

        @desc("animal TYPE", "horse around")
        @method_options(force="boolean", times="numeric")
        def animal(self, type="horse"):
            return type, self.options

    if __name__ == "__main__":
        Zoo.start(shell=True)

Class-level queries (on the class, not on instances)
- group, default_task, opts, aliases, tasks, parent, subclasses, files, definition
- Script["name"] → Task (a DynamicTask sentinel when nothing matches)

Design notes
- Every class gets its own Definition record; inherited values are resolved by
  walking the parent chain explicitly (see thorn.tasks), not through attribute lookup.
- Classes register with the process-wide extension registry when they are defined.
- Script.start() raises typed faults; with shell=True it prints the fault and a help
  excerpt to stderr and exits with status 1 instead.
"""
import logging
import sys
from types import MappingProxyType

from rich.console import Console

from . import faults, formatting, tasks
from .dispatch import Dispatcher
from .faults import *
from .options import normalize
from .registry import extensions, source_unit
from .tasks import Builder, Definition
from .utils import Unset, rename

logger = logging.getLogger(__name__)

console = Console()

# class attributes consumed by the class body instead of being stored on the class
_DECLARATIVES = ("group", "default_task", "default_options", "aliases")


def _pending(function, step):
    """
    Append a builder step to a function's pending declaration state.
    """
    if not callable(function):
        raise TypeError("task declarations must decorate a callable")
    try:
        function.__pending__ = (*getattr(function, "__pending__", ()), step)
    except AttributeError:
        raise TypeError("task declarations must decorate a function") from None
    return function


def desc(usage, description="", /):
    """
    Declare the usage line and description of the decorated method's task.

        @desc("animal TYPE", "horse around")
        def animal(self, type): ...
    """
    if not isinstance(usage, str) or not usage.strip():
        raise TypeError("desc() usage must be a non-empty string")
    if not isinstance(description, str):
        raise TypeError("desc() description must be a string")

    @rename("desc")
    def wrapper(function, /):
        return _pending(function, lambda builder: builder.desc(usage, description))

    return wrapper


def method_options(mapping=None, /, **options):
    """
    Declare task-level options for the decorated method.

    Values are kinds ("boolean", "numeric", "string", "required", "optional"),
    Kind members, Option specs or option(...) declarations. They override the
    class default options with the same name.

        @method_options(force="boolean", param="numeric")
        def zoo(self): ...
    """
    declared = normalize(mapping) | normalize(options)

    @rename("method_options")
    def wrapper(function, /):
        return _pending(function, lambda builder: builder.method_options(declared))

    return wrapper


def _populate(cls, definition, namespace):
    """
    Bind class-level declarations and decorated methods of `namespace` to `definition`.
    """
    if "group" in namespace:
        if not isinstance(group := namespace["group"], str) or not group.strip():
            raise TypeError(f"{definition.name} group must be a non-empty string")
        definition.group = group.strip()
    if "default_task" in namespace:
        if not isinstance(default := namespace["default_task"], str) or not default.strip():
            raise TypeError(f"{definition.name} default_task must be a non-empty string")
        definition.default = default.strip()
    if "default_options" in namespace:
        definition.defaults.update(normalize(namespace["default_options"]))
    if "aliases" in namespace:
        tasks.map_aliases(definition, namespace["aliases"])

    builder = Builder(definition)
    for name, object in namespace.items():
        steps = getattr(object, "__pending__", ())
        if not steps:
            continue
        for step in steps:
            step(builder)
        builder.declare(name, object)


class ScriptType(type):
    """
    Metaclass building a Definition for every Script class.

    Responsibilities
    - Pop the declarative class attributes (group, default_task, default_options,
      aliases) and record them on the class's own Definition.
    - Declare a task for every method carrying pending desc/method_options state.
    - Register the class with the extension registry (root class excluded).
    - Expose resolved, read-only views on the class: group, default_task, opts,
      aliases, tasks, parent, subclasses, files; and cls["task"] lookups.
    """

    def __new__(cls, name, bases, namespace, **options):
        parents = [base for base in bases if isinstance(base, ScriptType)]
        if len(parents) > 1:
            raise TypeError(f"script {name!r} cannot extend more than one script")
        parent = parents[0] if parents else None

        declaratives = {key: namespace.pop(key) for key in _DECLARATIVES if key in namespace}

        self = super().__new__(cls, name, bases, namespace, **options)

        definition = Definition(
            self.__qualname__,
            parent.__definition__ if parent is not None else None,
            owner=self,
        )
        self.__definition__ = definition
        _populate(self, definition, declaratives | namespace)

        if parent is not None:
            extensions.register(self, parent, source_unit(self.__module__))
        return self

    @property
    def definition(cls):
        return cls.__definition__

    @property
    def group(cls):
        return tasks.group(cls.__definition__)

    @property
    def default_task(cls):
        return tasks.default_task(cls.__definition__)

    @property
    def opts(cls):
        """
        Effective class-wide default options (name → Option).
        """
        return MappingProxyType(tasks.default_options(cls.__definition__))

    @property
    def aliases(cls):
        return MappingProxyType(tasks.aliases(cls.__definition__))

    @property
    def tasks(cls):
        """
        Visible tasks (declared and inherited), in help order.
        """
        return MappingProxyType({task.name: task for task in tasks.all_tasks(cls.__definition__)})

    @property
    def parent(cls):
        parent = cls.__definition__.parent
        return parent.owner if parent is not None else None

    @property
    def subclasses(cls):
        return extensions.subclasses(cls)

    @property
    def files(cls):
        """
        Source units that defined or reopened this class.
        """
        return tuple(source for source, classes in extensions.files.items() if cls in classes)

    def __getitem__(cls, name):
        return tasks.lookup(cls.__definition__, name)


class ScriptDispatcher(Dispatcher):
    """
    Dispatcher running tasks as methods of a fresh script instance.

    The instance is built with the resolved options; the task method then gets
    the positional arguments. When the script defines __dynamic__(name, *args),
    unmatched task names are routed to it.
    """

    def __init__(self, script, /, **runtime):
        if not isinstance(script, ScriptType):
            raise TypeError("script dispatcher argument must be a script class")
        dynamic = None
        if callable(getattr(script, "__dynamic__", None)):
            def dynamic(name, args, options):
                return script(options).__dynamic__(name, *args)
        super().__init__(script.__definition__, dynamic=dynamic, **runtime)
        self._script = script

    def split(self, task, tokens, /, *, index=2):
        # the target of 'help' is a task name or alias, never an option
        if task.name != tasks.HELP or not tokens:
            return super().split(task, tokens, index=index)
        target, *tokens = tokens
        args, raw = super().split(task, tokens, index=index + 1)
        return [target, *args], raw

    def invoke(self, task, args, options, /):
        instance = self._script(options)
        # an undecorated override in a subclass still runs under the inherited task
        method = getattr(instance, task.name, None)
        if callable(method):
            return method(*args)
        return task.handler(instance, *args)


class Script(metaclass=ScriptType):
    """
    Base class of command classes.

    Instances are created per dispatch with the resolved option map, available
    as `self.options`. The built-in `help` task renders the summary of every
    visible task, or the full description of one task.
    """

    def __init__(self, options=None, /):
        self.options = dict(options or {})

    @desc("help [TASK]", "describe available tasks")
    def help(self, task=None, /):
        definition = type(self).__definition__
        if task is None:
            text = formatting.summary(definition)
        else:
            found = tasks.lookup(definition, tasks.resolve_alias(definition, task))
            if found.dynamic:
                raise TaskNotFoundError(
                    "unknown task %r at second position" % task,
                    title="unknown task",
                    code=FaultCode.TASK_NOT_FOUND,
                    input=task,
                    index=2,
                    hint="run 'help' to see available tasks",
                    docs=getdoc(FaultCode.TASK_NOT_FOUND),
                )
            text = formatting.detail(found)
        console.out(text, end="" if text.endswith("\n") else "\n", highlight=False)

    @classmethod
    def start(cls, argv=Unset, /, *, shell=False, fancy=False, colorful=True):
        """
        Dispatch argv (sys.argv[1:] by default) and return the task's result.

        Parameters
        - argv: Unset | str | Iterable[str]; strings are split shell-style.
        - shell: print faults with a help excerpt and exit(1) instead of raising.
        - fancy: render faults inside a panel (shell mode).
        - colorful: style fault output (shell mode).
        """
        if argv is Unset:
            argv = sys.argv[1:]
        dispatcher = ScriptDispatcher(cls, shell=shell, fancy=fancy, colorful=colorful)
        try:
            return dispatcher.dispatch(argv)
        except CommandException as fault:
            if not shell:
                raise
            cls._excerpt(fault)
            trigger(fault, shell=shell, fancy=fancy, colorful=colorful, prog=cls.__definition__.name)

    @classmethod
    def _excerpt(cls, fault):
        """
        Print the help most relevant to a fault to stderr.
        """
        definition = cls.__definition__
        if name := fault.options.get("task"):
            text = formatting.detail(tasks.lookup(definition, name))
        else:
            text = formatting.summary(definition)
        faults.console.out(text, end="" if text.endswith("\n") else "\n", highlight=False)


def reopen(script, /):
    """
    Class decorator adding declarations to an existing script.

    The decorated class body is read like a script body (class-level
    declaratives and decorated methods); methods are attached to `script`, and
    the decorating module is recorded as one more source unit of `script`.
    The decorator returns `script` itself:

        @reopen(Amazing)
        class Amazing:
            @desc("goodbye", "say goodbye")
            def goodbye(self): ...
    """
    if not isinstance(script, ScriptType):
        raise TypeError("reopen() argument must be a script class")

    @rename("reopen")
    def wrapper(source, /):
        if not isinstance(source, type):
            raise TypeError("@reopen() must be applied to a class")
        namespace = {key: value for key, value in vars(source).items() if not key.startswith("__")}
        for name, object in namespace.items():
            if name not in _DECLARATIVES:
                setattr(script, name, object)
        _populate(script, script.__definition__, namespace)
        extensions.track(script, source_unit(source.__module__))
        logger.debug("reopened %s from %s", script.__qualname__, source.__module__)
        return script

    return wrapper


__all__ = (
    "Script",
    "desc",
    "method_options",
    "reopen",
)
