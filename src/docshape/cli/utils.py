"""
CLI utility helpers - object loading and output formatting.
"""

from __future__ import annotations

import dataclasses
import importlib
import json
from datetime import datetime
from enum import Enum
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from docshape.core.errors import DocshapeError
from docshape.decoding.shapes import ShapeDescriptor

console = Console()
err_console = Console(stderr=True)


# ── Object loading ───────────────────────────────────────────────────────


def load_object(spec: str) -> Any:
    """Import ``package.module:attr`` (``attr`` may be dotted)."""
    module_name, sep, attr_path = spec.partition(":")
    if not sep or not module_name or not attr_path:
        raise typer.BadParameter(f"expected module:attribute, got {spec!r}")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"cannot import {module_name!r}: {exc}") from exc
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise typer.BadParameter(f"{module_name!r} has no attribute {attr_path!r}") from None
    return obj


# ── Output helpers ───────────────────────────────────────────────────────


def to_plain(value: Any) -> Any:
    """Convert decoded values into JSON-friendly data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        data = {f.name: to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
        return {"__shape__": type(value).__qualname__, **data}
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_plain(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return to_plain(value.value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return value


def output_value(value: Any, *, as_json: bool = False) -> None:
    """Render a decoded value to the terminal."""
    plain = to_plain(value)
    if as_json:
        console.print_json(json.dumps(plain, default=str))
        return
    console.print(plain)


def output_error(error: DocshapeError, *, as_json: bool = False) -> None:
    """Render a docshape error and exit with status 1."""
    if as_json:
        err_console.print_json(json.dumps(error.to_dict(), default=str))
    else:
        err_console.print(f"[bold red]Error[/bold red] ({type(error).__name__}): {escape(str(error))}")
        for key, value in error.context.to_dict().items():
            err_console.print(f"  [cyan]{key}[/cyan]: {escape(str(value))}")
    raise typer.Exit(code=1)


def print_descriptor(descriptor: ShapeDescriptor, namespace: str) -> None:
    """Render a shape's fields as a Rich table."""
    table = Table(title=f"{descriptor.name} [{namespace}]", show_lines=False, pad_edge=False)
    for column in ("field", "key", "type", "required", "mode"):
        table.add_column(column, overflow="fold")
    for spec in descriptor.fields:
        if spec.embedded is not None:
            mode = f"embedded {spec.embedded.name}"
        elif spec.remain:
            mode = "remain"
        elif spec.skip:
            mode = "skip"
        else:
            mode = ""
        table.add_row(
            spec.attr,
            spec.tag_for(namespace) or "",
            _type_label(spec.annotation),
            "yes" if spec.required else "",
            mode,
        )
    console.print(table)


def _type_label(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__qualname__
    return repr(annotation).replace("typing.", "")
