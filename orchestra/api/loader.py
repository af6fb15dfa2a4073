"""Resolve a ``package.module:attribute`` pointer to a runnable."""

import importlib

from ..agent import Runnable
from ..config import Settings


def load_runnable(pointer: str, settings: Settings | None = None) -> Runnable:
    """Import the attribute named by ``pointer``.

    The attribute is either a ready Agent/Router/Workflow or a factory that
    takes ``Settings`` and returns one.
    """
    module_name, sep, attribute = pointer.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Invalid target {pointer!r}; use package.module:attribute")

    module = importlib.import_module(module_name)
    try:
        target = getattr(module, attribute)
    except AttributeError:
        raise ValueError(f"{attribute!r} not found in module {module_name!r}") from None

    if not hasattr(target, "invoke") and callable(target):
        target = target(settings or Settings())

    if not (hasattr(target, "invoke") and hasattr(target, "stream")):
        raise TypeError(f"{pointer!r} is not an Agent, Router or Workflow")
    return target
