"""
CLI module for the jos_chat package.

Provides the jos-history command line interface.
"""

from jos_chat.cli.history_cli import build_parser, main

__all__ = [
    "build_parser",
    "main",
]
