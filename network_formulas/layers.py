"""Layer specification parsing and per-layer formula rendering.

A trained network records its layers as the type names emitted by the network
definition macro, e.g. ``LinLayer :: <2, 1>`` or ``SigmaLayer :: <10>``. This
module turns such strings into immutable descriptors that know how many
parameters they consume and how to write the scalar assignments for their
output neurons.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Sequence, Union

from .errors import LayerSpecError, ParameterCountError

Real = Union[Decimal, float, int]

SEPARATOR = " :: "


class LayerKind(enum.Enum):
    LINEAR = "LinLayer"
    SIGMA = "SigmaLayer"

    @property
    def prefix(self) -> str:
        return self.value


_BODY_PATTERNS: Dict[LayerKind, "re.Pattern[str]"] = {
    LayerKind.LINEAR: re.compile(r"<(?P<neurons_in>[0-9]+), (?P<neurons_out>[0-9]+)>"),
    LayerKind.SIGMA: re.compile(r"<(?P<neurons>[0-9]+)>"),
}

_SHORTEST_BODIES: Dict[LayerKind, str] = {
    LayerKind.LINEAR: "<0, 0>",
    LayerKind.SIGMA: "<0>",
}


def _min_length(kind: LayerKind) -> int:
    return len(kind.prefix) + len(SEPARATOR) + len(_SHORTEST_BODIES[kind])


def neuron_symbol(layer_index: int, neuron_index: int) -> str:
    """Name of the scalar produced by ``layer_index`` at ``neuron_index``."""
    return f"s_{layer_index}_{neuron_index}"


def format_real(value: Real) -> str:
    # Decimal writes its exponent as "E", float as "e".
    return str(value).replace("E", "e")


@dataclass(frozen=True)
class LayerDescriptor:
    """One parsed layer: its kind and input/output widths."""

    kind: LayerKind
    neurons_in: int
    neurons_out: int

    def __post_init__(self) -> None:
        if self.neurons_in < 1 or self.neurons_out < 1:
            raise LayerSpecError("Layer neuron counts must be positive integers.")
        if self.kind is LayerKind.SIGMA and self.neurons_in != self.neurons_out:
            raise LayerSpecError("SigmaLayer must have matching input and output widths.")

    @classmethod
    def parse(cls, spec: str) -> "LayerDescriptor":
        """Build a descriptor from ``LinLayer :: <IN, OUT>`` or ``SigmaLayer :: <N>``."""
        if not isinstance(spec, str):
            raise LayerSpecError(f"Bad layer specification {spec!r}: expected a string.")

        kind = next((k for k in LayerKind if spec.startswith(k.prefix)), None)
        if kind is None:
            raise LayerSpecError(f"Bad layer specification {spec!r}: unknown layer type.")

        if len(spec) < _min_length(kind):
            raise LayerSpecError(f"Bad layer specification {spec!r}: too short.")

        ident_end = len(kind.prefix)
        body_start = ident_end + len(SEPARATOR)
        if spec[ident_end:body_start] != SEPARATOR:
            raise LayerSpecError(
                f"Bad layer specification {spec!r}: expected '{SEPARATOR}' after {kind.prefix}."
            )

        body = spec[body_start:]
        if not (body.startswith("<") and body.endswith(">")):
            raise LayerSpecError(f"Bad layer specification {spec!r}: arguments must be in '<...>'.")

        match = _BODY_PATTERNS[kind].fullmatch(body)
        if match is None:
            raise LayerSpecError(f"Bad layer specification {spec!r}: malformed neuron counts.")

        if kind is LayerKind.LINEAR:
            neurons_in = int(match.group("neurons_in"))
            neurons_out = int(match.group("neurons_out"))
        else:
            neurons_in = neurons_out = int(match.group("neurons"))

        return cls(kind=kind, neurons_in=neurons_in, neurons_out=neurons_out)

    @property
    def spec(self) -> str:
        if self.kind is LayerKind.LINEAR:
            return f"{self.kind.prefix}{SEPARATOR}<{self.neurons_in}, {self.neurons_out}>"
        return f"{self.kind.prefix}{SEPARATOR}<{self.neurons_out}>"

    def params_count(self) -> int:
        if self.kind is LayerKind.LINEAR:
            return self.neurons_in * self.neurons_out + self.neurons_out
        if self.kind is LayerKind.SIGMA:
            return 0
        raise RuntimeError(f"Unsupported layer kind {self.kind!r}.")

    def formula_fragment(self, layer_index: int, params: Sequence[Real], offset: int = 0) -> str:
        """Render one assignment line per output neuron of this layer.

        Parameters
        ----------
        layer_index:
            1-based position of the layer; layer 0 is the network input.
        params:
            Flat parameter list of the whole network. It is only read.
        offset:
            Index of the first parameter that belongs to this layer.
        """
        if layer_index < 1:
            raise ValueError("layer_index must be a positive integer")
        if offset < 0 or offset + self.params_count() > len(params):
            raise ParameterCountError(
                f"Layer {layer_index} ({self.spec}) needs {self.params_count()} parameters "
                f"starting at index {offset}, but only {len(params)} were given."
            )

        if self.kind is LayerKind.LINEAR:
            return self._linear_fragment(layer_index, params, offset)
        if self.kind is LayerKind.SIGMA:
            return self._sigma_fragment(layer_index)
        raise RuntimeError(f"Unsupported layer kind {self.kind!r}.")

    def _linear_fragment(self, layer_index: int, params: Sequence[Real], offset: int) -> str:
        bias_start = offset + self.neurons_in * self.neurons_out
        lines = []
        for i in range(self.neurons_out):
            row = offset + i * self.neurons_in
            terms = [
                f"({format_real(params[row + j])})*{neuron_symbol(layer_index - 1, j)}"
                for j in range(self.neurons_in)
            ]
            terms.append(f"({format_real(params[bias_start + i])})")
            lines.append(f"{neuron_symbol(layer_index, i)} = {' + '.join(terms)};\n")
        return "".join(lines)

    def _sigma_fragment(self, layer_index: int) -> str:
        return "".join(
            f"{neuron_symbol(layer_index, i)} = sigma({neuron_symbol(layer_index - 1, i)});\n"
            for i in range(self.neurons_out)
        )


def parse_layer_spec(spec: str) -> LayerDescriptor:
    return LayerDescriptor.parse(spec)


__all__ = [
    "Real",
    "SEPARATOR",
    "LayerKind",
    "LayerDescriptor",
    "neuron_symbol",
    "format_real",
    "parse_layer_spec",
]
