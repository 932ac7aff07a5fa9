"""
Thorn dispatcher: turn an argv-like token list into a task invocation.

Phases (one call, no shared state written)
- selection
  • empty argv → the default task of the definition.
  • otherwise argv[0] goes through the alias table, then lookup().
  • an alias whose target does not exist → AmbiguousAliasError.
  • no matching task → the dynamic capability when one was supplied,
    TaskNotFoundError otherwise.
- split
  • '--name', '--name=value' and declared short aliases are options.
  • boolean options consume nothing; every other kind consumes the next token
    (or the inline '=value').
  • a bare '--' ends option parsing; everything after it is positional.
  • anything else is positional, in order. Switch-shaped tokens that name no
    declared option stay positional and raise an UnknownOptionWarning.
- coercion
  • boolean → True, numeric → int/float, string kinds unchanged.
  • absent required options → MissingRequiredOptionError.
  • absent options with a default get it; other absent options are omitted.
- invocation
  • invoke(task, args, options), overridable by subclasses.

Messages are position-first (“at second position”) so users can learn by trying.
"""
import collections
import difflib
import logging
import shlex
from collections import deque
from collections.abc import Iterable

from .faults import *
from .options import coerce, is_switch
from .tasks import Definition, all_tasks, aliases, default_task, lookup, resolve_alias
from .utils import Unset, ordinal

logger = logging.getLogger(__name__)

Invocation = collections.namedtuple("Invocation", ("task", "args", "options"))


def tokenize(argv, /):
    """
    Normalize an argv-like input into a list of string tokens.

    - str: shell-like string, split with shlex.split.
    - Iterable[str]: used as-is (each element must be a string).
    """
    if isinstance(argv, str):
        return shlex.split(argv)
    if isinstance(argv, Iterable):
        tokens = list(argv)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("argv must be a string or an iterable of strings")
        return tokens
    raise TypeError("argv must be a string or an iterable of strings")


class Dispatcher:
    """
    Resolve and run tasks of one definition.

    Parameters
    - definition: Definition whose tasks, aliases and defaults drive dispatch.
    - dynamic: optional callable(name, args, options) used when no task matches.
    - shell, fancy, colorful: runtime flags forwarded to warnings (errors are
      always raised to the caller).

    Instances keep no per-call state, so one dispatcher can serve concurrent calls.
    """

    def __init__(self, definition, /, *, dynamic=None, shell=False, fancy=False, colorful=True):
        if not isinstance(definition, Definition):
            raise TypeError("dispatcher argument must be a definition")
        if dynamic is not None and not callable(dynamic):
            raise TypeError("dispatcher dynamic handler must be callable")
        self._definition = definition
        self._dynamic = dynamic
        self._runtime = {"shell": shell, "fancy": fancy, "colorful": colorful}

    @property
    def definition(self):
        return self._definition

    def _hint(self, name):
        known = [task.name for task in all_tasks(self._definition)] + list(aliases(self._definition))
        try:
            return "did you mean %r? run 'help' to see available tasks" % difflib.get_close_matches(name, known, 1)[0]
        except IndexError:
            return "run 'help' to see available tasks"

    def select(self, tokens, /):
        """
        Pick the task for a token list; returns (task, remaining tokens).

        The returned task can be a DynamicTask sentinel; only an alias pointing
        at a missing task is an error at this stage.
        """
        tokens = deque(tokens)
        if not tokens:
            name = default_task(self._definition)
            logger.debug("no task given, using default %r of %s", name, self._definition.name)
            return lookup(self._definition, name), tokens

        token = tokens.popleft()
        name = resolve_alias(self._definition, token)
        task = lookup(self._definition, name)
        if task.dynamic and name != token:
            raise AmbiguousAliasError(
                "alias %r at first position maps to unknown task %r" % (token, name),
                title="ambiguous alias",
                code=FaultCode.AMBIGUOUS_ALIAS,
                input=token,
                target=name,
                index=1,
                hint="declare a task named %r or fix the alias" % name,
                docs=getdoc(FaultCode.AMBIGUOUS_ALIAS),
            )
        return task, tokens

    def split(self, task, tokens, /, *, index=2):
        """
        Split tokens into positional arguments and raw option values.

        Returns (args, raw) where raw maps option name → (value, position).
        """
        switches = {switch: option for option in task.options.values() for switch in option.switches}
        tokens = deque(tokens)
        args = []
        raw = {}

        while tokens:
            token = tokens.popleft()

            if token == "--":
                args.extend(tokens)
                break

            input, assigned, value = token.partition("=")
            option = switches.get(input) if token.startswith("-") else None

            if option is None:
                if is_switch(token):
                    trigger(UnknownOptionWarning(
                        "unknown option %r at %s position, kept as an argument" % (input, ordinal(index)),
                        title="unknown option",
                        code=FaultCode.UNKNOWN_OPTION,
                        input=input,
                        index=index,
                        suggestions=difflib.get_close_matches(input, switches, 3),
                        hint="run 'help %s' to see its options" % task.name,
                        docs=getdoc(FaultCode.UNKNOWN_OPTION),
                    ), **self._runtime)
                args.append(token)
                index += 1
                continue

            if option.boolean:
                if assigned:
                    raise InvalidOptionValueError(
                        "flag %r at %s position cannot take a value" % (input, ordinal(index)),
                        title="flag cannot take a value",
                        code=FaultCode.INVALID_OPTION_VALUE,
                        task=task.name,
                        input=input,
                        index=index,
                        hint="remove everything from '=' (for example: %s)" % input,
                        docs=getdoc(FaultCode.INVALID_OPTION_VALUE),
                    )
                raw[option.name] = (True, index)
            elif assigned:
                raw[option.name] = (value, index)
            else:
                try:
                    raw[option.name] = (tokens.popleft(), index)
                except IndexError:
                    raise InvalidOptionValueError(
                        "option %r at %s position expects a value" % (input, ordinal(index)),
                        title="missing option value",
                        code=FaultCode.INVALID_OPTION_VALUE,
                        task=task.name,
                        input=input,
                        index=index,
                        hint="pass a value after a space or inline (for example: %s=<value>)" % input,
                        docs=getdoc(FaultCode.INVALID_OPTION_VALUE),
                    ) from None
                index += 1
            index += 1

        return args, raw

    def coerce(self, task, raw, /):
        """
        Type the raw option values of `task` and enforce required options.
        """
        options = {}
        for name, option in task.options.items():
            if name in raw:
                value, index = raw[name]
                try:
                    options[name] = coerce(option, value)
                except ValueError:
                    raise InvalidOptionValueError(
                        "option '--%s' at %s position expects a number, got %r" % (name, ordinal(index), value),
                        title="invalid option value",
                        code=FaultCode.INVALID_OPTION_VALUE,
                        input="--" + name,
                        value=value,
                        task=task.name,
                        index=index,
                        hint="pass a number (for example: --%s=1 or --%s=1.5)" % (name, name),
                        docs=getdoc(FaultCode.INVALID_OPTION_VALUE),
                    ) from None
            elif option.default is not Unset:
                options[name] = option.default
            elif option.required:
                raise MissingRequiredOptionError(
                    "task %r requires option '--%s'" % (task.name, name),
                    title="missing required option",
                    code=FaultCode.MISSING_REQUIRED_OPTION,
                    input="--" + name,
                    task=task.name,
                    hint="pass it as --%s=<value> (run 'help %s' for details)" % (name, task.name),
                    docs=getdoc(FaultCode.MISSING_REQUIRED_OPTION),
                )
        return options

    def parse(self, argv, /):
        """
        Resolve argv into an Invocation(task, args, options) without running anything.

        Dynamic (unmatched) tasks keep every remaining token as a positional
        argument and get an empty option map.
        """
        task, tokens = self.select(tokenize(argv))
        if task.dynamic:
            return Invocation(task, tuple(tokens), {})
        args, raw = self.split(task, tokens)
        return Invocation(task, tuple(args), self.coerce(task, raw))

    def dispatch(self, argv=(), /):
        """
        Parse argv and run the selected task; returns the handler's result.
        """
        task, args, options = self.parse(argv)
        if task.dynamic:
            if self._dynamic is None:
                raise TaskNotFoundError(
                    "unknown task %r at first position" % task.name,
                    title="unknown task",
                    code=FaultCode.TASK_NOT_FOUND,
                    input=task.name,
                    index=1,
                    hint=self._hint(task.name),
                    docs=getdoc(FaultCode.TASK_NOT_FOUND),
                )
            logger.debug("task %r not declared in %s, using dynamic handler", task.name, self._definition.name)
            return self._dynamic(task.name, args, options)
        logger.debug("dispatching %r of %s with args=%r options=%r", task.name, self._definition.name, args, options)
        return self.invoke(task, args, options)

    def invoke(self, task, args, options, /):
        """
        Call the task handler with the positional arguments and the option map.
        """
        return task.handler(args, options)


__all__ = (
    "Invocation",
    "Dispatcher",
    "tokenize",
)
