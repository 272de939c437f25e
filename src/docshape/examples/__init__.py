"""Example shapes used by the CLI help, the docs and the test-suite."""
