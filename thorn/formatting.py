"""
Plain-text help rendering.

- signature(task): usage followed by one bracketed token per option.
    boolean   → [--name]
    numeric   → [--name=N]
    string    → [--name=NAME]
    optional  → [--name=NAME]
    required  → --name=NAME      (unbracketed: it must be given)
- summary(definition): one aligned line per visible task; descriptions start in
  the same column, three spaces past the widest signature.
- detail(task): the signature on its own line, then the description verbatim.

The output is plain text (no markup, no color) so it can be compared byte for byte.
"""
from .options import Kind
from .tasks import all_tasks

GUTTER = 3


def flag(option, /):
    """
    Render one option for a signature line.
    """
    switch = "--" + option.name
    match option.kind:
        case Kind.BOOLEAN:
            return f"[{switch}]"
        case Kind.NUMERIC:
            return f"[{switch}=N]"
        case Kind.REQUIRED:
            return f"{switch}={option.name.upper()}"
        case _:
            return f"[{switch}={option.name.upper()}]"


def signature(task, /):
    return " ".join([task.usage, *map(flag, task.options.values())])


def summary(definition, /):
    tasks = all_tasks(definition)
    if not tasks:
        return ""
    signatures = [signature(task) for task in tasks]
    width = max(map(len, signatures)) + GUTTER
    lines = (f"{left.ljust(width)}{task.summary}".rstrip() for left, task in zip(signatures, tasks))
    return "\n".join(lines) + "\n"


def detail(task, /):
    return f"{signature(task)}\n{task.description}"


__all__ = (
    "flag",
    "signature",
    "summary",
    "detail",
)
