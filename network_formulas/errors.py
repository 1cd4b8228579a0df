"""Exception types raised while loading a trained network description."""

from __future__ import annotations


class NetworkFormulaError(ValueError):
    """Base class for invalid network descriptions."""


class MalformedDocumentError(NetworkFormulaError):
    """Raised when the input document is missing, unreadable or lacks required keys."""


class LayerSpecError(NetworkFormulaError):
    """Raised when a layer specification string does not follow the layer grammar."""


class ParameterCountError(NetworkFormulaError):
    """Raised when the parameter list does not match the declared layers."""


__all__ = [
    "NetworkFormulaError",
    "MalformedDocumentError",
    "LayerSpecError",
    "ParameterCountError",
]
