"""
CLI module for EML decoding.

Provides command-line tools for dumping and extracting .eml files.
"""

from eml_decoder.cli.decode import main as decode_main

__all__ = ["decode_main"]
