"""core module init"""
from shielded_output.core.description import (
    OutputDescription,
    OutputOpening,
    OutputParameters,
)

__all__ = [
    "OutputDescription",
    "OutputOpening",
    "OutputParameters",
]
