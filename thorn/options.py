"""
Thorn option layer: option specs, the option resolver, and value coercion.

What this module provides
- Kind: the closed set of option kinds (boolean, numeric, string, required, optional).
- Option: an immutable spec for one named option (kind, switch aliases, default).
- option(...): convenience factory accepted anywhere a declaration is expected.
- normalize(mapping): turn declaration values (Kind | str | Option) into Option specs.
- resolve(*mappings): the option resolver; later mappings override earlier ones.
- coerce(option, raw): convert a raw command-line token into the option's typed value.

Merge rule
- A key present in a more-derived mapping replaces the whole spec of the same key
  from an earlier mapping (no partial merge inside one Option); keys missing from
  later mappings are inherited unchanged.

Quick look
    >>> base = normalize({"force": "boolean", "param": "numeric"})
    >>> task = normalize({"param": Kind.REQUIRED})
    >>> {name: x.kind for name, x in resolve(base, task).items()}
    {'force': Kind.BOOLEAN, 'param': Kind.REQUIRED}
"""
import re
from collections.abc import Iterable, Mapping
from enum import Enum

from .utils import Unset


class Kind(Enum):
    """
    option kinds.

    - BOOLEAN: presence-only switch; never consumes a value.
    - NUMERIC: consumes one value, coerced to int or float.
    - STRING: consumes one value, kept as a string.
    - REQUIRED: string option that must be given on every invocation.
    - OPTIONAL: string option that may be omitted.
    """
    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    STRING = "string"
    REQUIRED = "required"
    OPTIONAL = "optional"

    def __repr__(self):
        return f"Kind.{self.name}"


# Shape accepted for a switch token: '-x', '--name', '--long-name' (unicode letters allowed).
_SWITCH = re.compile(r"--?[^\W\d_](-?[^\W_]+)*")

_NUMBER = re.compile(r"[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?")
_INTEGER = re.compile(r"[-+]?\d+")


class Option:
    """
    Immutable spec for one named option.

    Fields
    - name: str, the option name; its long switch is '--' + name.
    - kind: Kind
    - aliases: tuple[str, ...], extra switch tokens (e.g. '-f') resolving to this option.
    - default: value used when the option is absent (Unset when there is none).

    Equality and hashing are value-based so resolved option maps compare naturally.
    """
    __slots__ = ("_name", "_kind", "_aliases", "_default")

    def __init__(self, name, kind=Kind.STRING, /, *, aliases=(), default=Unset):
        if not isinstance(name, str):
            raise TypeError("option name must be a string")
        if not (name := name.strip().lstrip("-")):
            raise ValueError("option name must be a non-empty string")
        if isinstance(aliases, str):
            aliases = (aliases,)
        if not isinstance(aliases, Iterable):
            raise TypeError(f"option {name!r} aliases must be an iterable of strings")
        aliases = tuple(aliases)
        for alias in aliases:
            if not isinstance(alias, str) or not _SWITCH.fullmatch(alias):
                raise ValueError(f"option {name!r} alias {alias!r} must look like '-x' or '--name'")

        object.__setattr__(self, "_name", name)
        object.__setattr__(self, "_kind", _kind(kind, name))
        object.__setattr__(self, "_aliases", aliases)
        object.__setattr__(self, "_default", default)

    name = property(lambda self: self._name)
    kind = property(lambda self: self._kind)
    aliases = property(lambda self: self._aliases)
    default = property(lambda self: self._default)

    @property
    def switches(self):
        """
        Every token that selects this option: '--name' first, then the aliases.
        """
        return ("--" + self._name,) + self._aliases

    @property
    def boolean(self):
        return self._kind is Kind.BOOLEAN

    @property
    def required(self):
        return self._kind is Kind.REQUIRED and self._default is Unset

    def __setattr__(self, name, value, /):
        raise AttributeError(f"option {self._name!r} is immutable")

    def __delattr__(self, name, /):
        raise AttributeError(f"option {self._name!r} is immutable")

    def __replace__(self, /, **overrides):
        fields = {"name": self._name, "kind": self._kind, "aliases": self._aliases, "default": self._default}
        fields |= overrides
        return type(self)(fields.pop("name"), fields.pop("kind"), **fields)

    def __eq__(self, other):
        if not isinstance(other, Option):
            return NotImplemented
        return (self._name, self._kind, self._aliases, self._default) == \
            (other._name, other._kind, other._aliases, other._default)

    def __hash__(self):
        return hash((self._name, self._kind, self._aliases))

    def __repr__(self):
        extras = "".join((
            f", aliases={self._aliases!r}" if self._aliases else "",
            f", default={self._default!r}" if self._default is not Unset else "",
        ))
        return f"option({self._name!r}, {self._kind!r}{extras})"


def _kind(x, name):
    """
    Resolve a kind declaration (Kind member or its lowercase name) to a Kind.
    """
    if isinstance(x, Kind):
        return x
    if isinstance(x, str):
        try:
            return Kind(x.strip().lower())
        except ValueError:
            choices = ", ".join(repr(kind.value) for kind in Kind)
            raise ValueError(f"option {name!r} kind {x!r} is not one of {choices}") from None
    raise TypeError(f"option {name!r} kind must be a Kind or a string")


def is_switch(token, /):
    """
    True when `token` has the shape of a switch ('-x', '--name'), ignoring any '=value' tail.
    """
    return bool(_SWITCH.fullmatch(token.partition("=")[0]))


def option(kind=Kind.STRING, /, *aliases, default=Unset):
    """
    Declare an option value for use inside option mappings.

    The name is taken from the mapping key when the mapping is normalized:

        default_options = {"force": option("boolean", "-f")}
    """
    return _Pending(_kind(kind, "(pending)"), aliases, default)


class _Pending:
    """
    Nameless option declaration produced by option(); named by normalize().
    """
    __slots__ = ("kind", "aliases", "default")

    def __init__(self, kind, aliases, default):
        self.kind = kind
        self.aliases = aliases
        self.default = default


def normalize(mapping, /):
    """
    Normalize an option declaration mapping into {name: Option}.

    Accepted values
    - Kind member or kind name ("boolean", "numeric", "string", "required", "optional").
    - Option instance (renamed to its key when the names differ).
    - option(...) declarations.
    Keys may carry leading dashes ('--force' and 'force' are the same name).

    Raises
    - TypeError when the mapping or a value has an unsupported type.
    - ValueError when a name or kind is invalid.
    """
    if mapping is None or mapping is Unset:
        return {}
    if not isinstance(mapping, Mapping):
        raise TypeError("option declarations must be a mapping")

    options = {}
    for key, value in mapping.items():
        if not isinstance(key, str):
            raise TypeError("option declaration keys must be strings")
        name = key.strip().lstrip("-")
        if isinstance(value, Option):
            x = value if value.name == name else Option(name, value.kind, aliases=value.aliases, default=value.default)
        elif isinstance(value, _Pending):
            x = Option(name, value.kind, aliases=value.aliases, default=value.default)
        else:
            x = Option(name, value)
        options[x.name] = x
    return options


def resolve(*mappings):
    """
    Merge option mappings from least to most derived scope.

    Pure: inputs are not modified. Insertion order follows the first time a
    name appears, while the value comes from the last mapping defining it.
    """
    resolved = {}
    for mapping in mappings:
        resolved.update(normalize(mapping))
    return resolved


def coerce(option, raw, /):
    """
    Convert a raw token for `option` into its typed value.

    - BOOLEAN → True (presence)
    - NUMERIC → int when integral, float otherwise
    - STRING / REQUIRED / OPTIONAL → the raw string

    Raises
    - ValueError when a numeric option receives a non-numeric token; the
      dispatcher turns it into an InvalidOptionValueError with position details.
    """
    match option.kind:
        case Kind.BOOLEAN:
            return True
        case Kind.NUMERIC:
            if not isinstance(raw, str) or not _NUMBER.fullmatch(raw := raw.strip()):
                raise ValueError(f"option {option.name!r} expects a number, got {raw!r}")
            return int(raw) if _INTEGER.fullmatch(raw) else float(raw)
        case _:
            return raw


__all__ = (
    "Kind",
    "Option",
    "option",
    "is_switch",
    "normalize",
    "resolve",
    "coerce",
)
