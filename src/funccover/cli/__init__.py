"""
funccover CLI tools.

- instrument: rewrite Python sources for function coverage
"""

from .main import main

__all__ = ["main"]
