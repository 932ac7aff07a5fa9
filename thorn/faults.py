"""
Thorn faults: typed dispatch errors and warnings, rendered with rich.

Types
- FaultCode: stable numbers for every fault a user can run into; the hundreds
  digit names the domain (routing, options, warnings).
- Fault: shared behavior (message + read-only details, rich rendering, copy.replace).
- CommandException / CommandWarning: the error and warning roots; concrete faults
  pin a FaultCode.

Surfacing
- trigger(fault, **runtime) applies the runtime flags (shell, fancy, colorful, prog)
  and then lets the fault decide: errors raise, warnings go through `warnings`.
- With shell=True both are printed to stderr instead; errors then exit with status 1.
- The dispatcher itself never terminates the process; only Script.start(shell=True) does.

Host hooks (looked up on __main__, all optional)
- __prog__: program name in fault headers.
- __styles__: palette overrides, keyed like Fault.palette.
- __codes__: FaultCode → label used instead of the number.
- __docs__: FaultCode → short documentation returned by getdoc().
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


def _host(name, default, /):
    return getattr(sys.modules.get("__main__"), name, default)


class FaultCode(IntEnum):
    """
    Fault identifiers.

    - 111xx routing: TASK_NOT_FOUND, AMBIGUOUS_ALIAS
    - 112xx options: MISSING_REQUIRED_OPTION, INVALID_OPTION_VALUE
    - 121xx warnings: UNKNOWN_OPTION
    """
    TASK_NOT_FOUND              = 11101
    AMBIGUOUS_ALIAS             = 11102

    MISSING_REQUIRED_OPTION     = 11211
    INVALID_OPTION_VALUE        = 11212

    UNKNOWN_OPTION              = 12111

    def normalize(self):
        """
        Label for this code: the host's __codes__ entry, else the number as a string.
        """
        return str(_host("__codes__", {}).get(self, self.value))


class Fault:
    """
    Behavior shared by CommandException and CommandWarning.

    `message` is the one-line, lowercased, position-first sentence. Everything
    else (code, title, hint, offending input, runtime flags) travels in the
    read-only `options` mapping.
    """
    code = Unset
    label = "fault"
    palette = {
        "prog": "bold #F2F2F2",
        "code": "bold cyan",
        "title": "bold magenta",
        "message": "#BDBDBD",
        "hint": "italic green",
    }

    def __init__(self, message=Unset, /, **options):
        if not isinstance(message, str | type(Unset)):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def fault_code(self):
        return self.options.get("code", self.code)

    def _style(self, key):
        if not self.options.get("colorful", False):
            return ""
        return defaultdict(str, self.palette | _host("__styles__", {}))[key]

    def __rich__(self):
        prog = _host("__prog__", self.options.get("prog", "thorn"))
        code = self.fault_code
        header = Text.assemble(
            "[ ",
            (str(prog), self._style("prog")),
            " · ",
            (code.normalize() if isinstance(code, FaultCode) else "?", self._style("code")),
            " | ",
            (self.options.get("title", self.label).title(), self._style("title")),
            " ]",
        )
        body = [Text(str(self.message), self._style("message"))]
        if hint := self.options.get("hint"):
            body.append(Text.assemble(" → ", (hint, self._style("hint"))))
        if suggestions := self.options.get("suggestions"):
            body.append(Text(" close matches: " + ", ".join(suggestions), self._style("hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*body), title=header, title_align="left")
        return Group(header, *body)

    def __replace__(self, /, **overrides):
        return type(self)(self.message, **(dict(self.options) | overrides))


class CommandException(Fault, Exception):
    """
    Root of every dispatch error.
    """
    label = "error"

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self
        console.print(self)
        sys.exit(1)


class TaskNotFoundError(CommandException):
    code = FaultCode.TASK_NOT_FOUND


class AmbiguousAliasError(CommandException):
    code = FaultCode.AMBIGUOUS_ALIAS


class MissingRequiredOptionError(CommandException):
    code = FaultCode.MISSING_REQUIRED_OPTION


class InvalidOptionValueError(CommandException):
    code = FaultCode.INVALID_OPTION_VALUE


class CommandWarning(Fault, Warning):
    """
    Root of non-terminal dispatch issues.
    """
    label = "warning"
    palette = Fault.palette | {"code": "bold yellow", "title": "bold #FFC2E0"}

    def __trigger__(self):
        if self.options.get("shell", False):
            console.print(self)
            return
        # point at the caller of the outermost thorn frame
        warnings.warn(self, stacklevel=len(inspect.stack()))


class UnknownOptionWarning(CommandWarning):
    code = FaultCode.UNKNOWN_OPTION


def trigger(fault, /, **options):
    """
    Surface `fault` with the runtime options merged into its details.

    Raises TypeError when the object is not a fault.
    """
    if not isinstance(fault, Fault) or not callable(getattr(fault, "__trigger__", None)):
        raise TypeError("trigger() argument must be a command exception or warning")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    Short documentation for `code` from the host's __docs__ mapping, None when absent.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault code")
    return _host("__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "CommandException",
    "TaskNotFoundError",
    "AmbiguousAliasError",
    "MissingRequiredOptionError",
    "InvalidOptionValueError",
    "CommandWarning",
    "UnknownOptionWarning",
    "trigger",
    "getdoc",
)
