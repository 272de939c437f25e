"""
Test support utilities for docshape tests.

Shapes and registries shared by several test modules.
Import them as ``from tests._support.shapes import ...``.
"""
