"""
Root Typer application for the docshape CLI.

Commands::

    docshape decode post.yaml --target docshape.examples.blocks:Post \\
        --registry docshape.examples.blocks:BLOCK_REGISTRY
    docshape describe --target docshape.examples.blocks:Post --namespace yaml
    docshape codecs
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import typer
from rich.table import Table
from typer import Typer

from docshape.cli.utils import (
    console,
    load_object,
    output_error,
    output_value,
    print_descriptor,
)
from docshape.codecs.registry import codec_for_path, get_codec, list_codecs
from docshape.core.errors import ConfigError, DecodeError
from docshape.core.logging import configure_from_settings
from docshape.core.settings import get_settings
from docshape.decoding.decoder import Decoder
from docshape.decoding.registry import TypeRegistry
from docshape.decoding.shapes import describe as describe_shape

app = Typer(
    name="docshape",
    help="docshape - decode discriminated-union records from JSON, YAML, TOML and msgpack.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from docshape import __version__

        typer.echo(f"docshape {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log level for structured logs on stderr (default: DOCSHAPE_LOG_LEVEL).",
    ),
) -> None:
    """docshape CLI - decode and inspect record shapes."""
    configure_from_settings(get_settings(), level=log_level)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("decode")
def decode_cmd(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Record file to decode."),
    target: str = typer.Option(..., "--target", "-t", help="Target shape or interface, as module:attr."),
    registries: list[str] | None = typer.Option(None, "--registry", "-r", help="TypeRegistry as module:attr."),
    preprocessors: list[str] | None = typer.Option(
        None, "--preprocessor", "-p", help="Preprocessor (or sequence of them) as module:attr."
    ),
    codec: str | None = typer.Option(None, "--codec", "-c", help="Codec name; defaults to the file extension."),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Tag namespace."),
    weak: bool | None = typer.Option(None, "--weak/--strict", help="Toggle weak typing."),
    discriminator: str | None = typer.Option(None, "--discriminator", "-d", help="Discriminator key."),
    json_out: bool = typer.Option(False, "--json", help="Print JSON."),
) -> None:
    """Decode one record file and print the populated value."""
    settings = get_settings()

    if codec:
        try:
            codec_obj = get_codec(codec)
        except KeyError as exc:
            raise typer.BadParameter(str(exc.args[0]), param_hint="--codec") from None
    else:
        try:
            codec_obj = codec_for_path(path)
        except KeyError:
            codec_obj = get_codec(settings.codec)

    target_obj = load_object(target)
    registry_objs = [_load_registry(spec) for spec in registries or ()]
    preprocessor_objs = [p for spec in preprocessors or () for p in _load_preprocessors(spec)]

    try:
        decoder = Decoder.from_settings(
            settings,
            codec=codec_obj,
            namespace=namespace or settings.namespace,
            weak_typing=settings.weak_typing if weak is None else weak,
            discriminator=discriminator or settings.discriminator,
            registries=registry_objs,
            preprocessors=preprocessor_objs,
        )
        value = decoder.decode(path.read_bytes(), target_obj)
    except (DecodeError, ConfigError) as exc:
        output_error(exc, as_json=json_out)
        return

    output_value(value, as_json=json_out)


@app.command("describe")
def describe_cmd(
    target: str = typer.Option(..., "--target", "-t", help="Shape class as module:attr."),
    namespace: str = typer.Option("json", "--namespace", "-n", help="Tag namespace."),
) -> None:
    """Show how a shape's fields map to document keys."""
    try:
        descriptor = describe_shape(load_object(target))
    except ConfigError as exc:
        output_error(exc)
        return
    print_descriptor(descriptor, namespace.lower())


@app.command("codecs")
def codecs_cmd() -> None:
    """List registered codecs."""
    table = Table(title="Codecs", show_lines=False, pad_edge=False)
    for column in ("name", "namespace", "extensions", "binary"):
        table.add_column(column)
    for name in list_codecs():
        codec = get_codec(name)
        table.add_row(name, codec.namespace, " ".join(codec.extensions), "yes" if codec.binary else "")
    console.print(table)


# ── Private helpers ──────────────────────────────────────────────────────


def _load_registry(spec: str) -> TypeRegistry:
    obj = load_object(spec)
    if not isinstance(obj, TypeRegistry):
        raise typer.BadParameter(f"{spec!r} is not a TypeRegistry", param_hint="--registry")
    return obj


def _load_preprocessors(spec: str) -> list:
    obj = load_object(spec)
    if callable(obj):
        return [obj]
    if isinstance(obj, Iterable):
        return list(obj)
    raise typer.BadParameter(f"{spec!r} is not a preprocessor", param_hint="--preprocessor")
