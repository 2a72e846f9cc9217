#!/usr/bin/env python
"""
Thin wrapper script to invoke the commit_drafter CLI.

Running ``python cmt.py`` is equivalent to running the ``cmt`` console
script installed via ``pyproject.toml``.
"""

from commit_drafter.cli import main


if __name__ == "__main__":
    main(prog_name="cmt")
