"""
Sandbox Module
==============

Isolated execution of generated code.
"""

from paper_replication.sandbox.base import CodeExecutor, normalize_language
from paper_replication.sandbox.e2b_executor import E2BExecutor

__all__ = [
    "CodeExecutor",
    "E2BExecutor",
    "normalize_language",
]
