"""Shared prompt components for stage agents.

This module contains sharp instructions about how to think about the
generated application's quality, not just output format.
"""

from .code_principles import (
    ARCHITECTURE_PRINCIPLES,
    ASSEMBLY_PRINCIPLES,
    CODE_PRINCIPLES,
    COMPONENT_PRINCIPLES,
)

__all__ = [
    "ARCHITECTURE_PRINCIPLES",
    "ASSEMBLY_PRINCIPLES",
    "CODE_PRINCIPLES",
    "COMPONENT_PRINCIPLES",
]
