"""
Small helpers shared across thorn.

- Unset: falsy "not given" sentinel, distinct from None (None can be a real default).
- rename("name"): decorator giving generated closures a readable name in tracebacks.
- mirror("field"): read-only property over self._field; containers come back frozen.
- ordinal(n): "first" ... "tenth", then "11th", "22nd", ... for position-first messages.
"""
import functools
from collections.abc import Mapping, Sequence, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Type of the Unset sentinel. There is exactly one instance and no subclasses.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType cannot be subclassed")

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"


Unset = UnsetType()


def rename(name, /):
    """
    Decorator setting __name__ and __qualname__ of a function to `name`.
    """
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def wrapper(function):
        function.__name__ = function.__qualname__ = name
        return function

    return wrapper


def _freeze(value):
    if isinstance(value, Mapping):
        return MappingProxyType(value)
    if isinstance(value, Set):
        return frozenset(value)
    if isinstance(value, Sequence) and not isinstance(value, str | bytes | bytearray):
        return tuple(value)
    return value


def mirror(field, /):
    """
    Property reading `self._<field>`.

    Mappings are returned as live read-only proxies, sets as frozensets and
    other sequences as tuples, so callers cannot mutate private state.
    """
    if not isinstance(field, str):
        raise TypeError("mirror() argument must be a string")
    attribute = "_" + field

    @rename(field)
    def getter(self):
        return _freeze(getattr(self, attribute))

    return property(getter)


_WORDS = ("first", "second", "third", "fourth", "fifth", "sixth", "seventh", "eighth", "ninth", "tenth")


@functools.cache
def ordinal(number, /):
    if 1 <= number <= len(_WORDS):
        return _WORDS[number - 1]
    if number % 100 in (11, 12, 13):
        return f"{number}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


__all__ = (
    "UnsetType",
    "Unset",
    "rename",
    "mirror",
    "ordinal",
)
