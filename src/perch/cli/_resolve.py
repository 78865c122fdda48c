"""Locate the ``App`` named on the command line."""

import importlib

from perch.app import App


def resolve_app(target: str) -> App:
    """Import ``"package.module:name"`` and return the perch App it names.

    *name* defaults to ``app``. If it names a factory (any callable that
    is not itself an App) the factory is called with no arguments.

    Raises:
        ModuleNotFoundError: The module cannot be imported.
        AttributeError: The module has no such attribute.
        TypeError: The attribute is not an App, or its factory failed.
    """
    module_name, _, attr = target.partition(":")
    found = getattr(importlib.import_module(module_name), attr or "app")

    if not isinstance(found, App) and callable(found):
        try:
            found = found()
        except Exception as exc:
            msg = f"App factory {target!r} failed: {exc}"
            raise TypeError(msg) from exc

    if isinstance(found, App):
        return found
    msg = f"{target!r} is a {type(found).__name__}, not a perch.App"
    raise TypeError(msg)
