"""Resolve ``module:attribute`` factory references from config."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from importlib import import_module
from pathlib import Path
from typing import Any, Callable, Iterator

from eqcontract.probe import describe_error

log = logging.getLogger(__name__)


class FactoryError(Exception):
    """Raised when a factory reference cannot be resolved to a callable."""


@contextmanager
def project_on_path(project_root: Path) -> Iterator[None]:
    """Make modules under *project_root* importable for the duration."""
    root = str(Path(project_root).resolve())
    added = root not in sys.path
    if added:
        sys.path.insert(0, root)
    try:
        yield
    finally:
        if added and root in sys.path:
            sys.path.remove(root)


def resolve_factory(ref: str) -> Callable[[], Any]:
    """Import ``package.module:attr.path`` and return the callable it names."""
    module_name, sep, attr_path = ref.partition(":")
    if not sep or not module_name or not attr_path:
        raise FactoryError(f"Factory reference must be 'module:attribute', got {ref!r}")

    try:
        obj: Any = import_module(module_name)
    except ImportError as exc:
        raise FactoryError(
            f"Cannot import module '{module_name}' for {ref!r}: {describe_error(exc)}"
        ) from exc
    except Exception as exc:
        raise FactoryError(
            f"Importing '{module_name}' for {ref!r} raised {describe_error(exc)}"
        ) from exc

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as exc:
            raise FactoryError(f"'{module_name}' has no attribute '{attr_path}'") from exc
        except Exception as exc:
            raise FactoryError(
                f"Looking up '{attr_path}' on '{module_name}' raised {describe_error(exc)}"
            ) from exc

    if not callable(obj):
        raise FactoryError(f"{ref!r} resolved to a non-callable {type(obj).__name__}")

    log.debug("Resolved factory %s", ref)
    return obj


def resolve_target(target: dict[str, Any]) -> tuple[Callable[[], Any], Callable[[], Any], Callable[[], Any]]:
    """Resolve a config target's (equal, unequal, foreign) factories."""
    return (
        resolve_factory(target["equal"]),
        resolve_factory(target["unequal"]),
        resolve_factory(target["foreign"]),
    )
