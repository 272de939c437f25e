"""
CLI layer for docshape.

Provides a Typer application that decodes files from the terminal. All
decoding logic lives in ``docshape.decoding``; this package handles only
argument parsing and coloured output.

Entry point::

    docshape --help
"""

from docshape.cli.app import app

__all__ = ["app"]
