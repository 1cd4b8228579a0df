"""Network assembly: parameter validation and ordered formula generation."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterator, Mapping, Sequence, Tuple, Union

import yaml

from .errors import MalformedDocumentError, ParameterCountError
from .layers import LayerDescriptor, Real


class _DecimalLoader(yaml.SafeLoader):
    """Safe loader that reads YAML floats as Decimal from their scalar text."""


def _construct_decimal(loader: _DecimalLoader, node: yaml.ScalarNode) -> Decimal:
    text = loader.construct_scalar(node).replace("_", "").lower()
    # Sexagesimal and the special values have no direct Decimal spelling.
    if ":" in text or text.lstrip("+-") in (".inf", ".nan"):
        return Decimal(repr(loader.construct_yaml_float(node)))
    return Decimal(text)


_DecimalLoader.add_constructor("tag:yaml.org,2002:float", _construct_decimal)


def _to_decimal(value: Any, *, index: int) -> Decimal:
    """Convert a loaded parameter to Decimal; only real numbers are accepted."""
    if isinstance(value, bool):
        raise MalformedDocumentError(f"Invalid parameter at params[{index}]: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    raise MalformedDocumentError(f"Invalid parameter at params[{index}]: {value!r}")


def load_network_document(path: Union[str, Path]) -> Any:
    """Read a trained network document (YAML or JSON) from disk.

    Floats are parsed straight into Decimal so no digits are lost to binary
    floating point.
    """
    p = Path(path)
    if not p.is_file():
        raise MalformedDocumentError(f"Network document not found: {p}")

    try:
        raw_text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MalformedDocumentError(f"Could not read {p}: {exc}") from exc

    try:
        if p.suffix == ".json":
            return json.loads(raw_text, parse_float=Decimal)
        # YAML is a superset of JSON, so it covers any other extension too.
        return yaml.load(raw_text, Loader=_DecimalLoader)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise MalformedDocumentError(f"Could not parse {p}: {exc}") from exc


class NetworkAssembler:
    """Ordered layers plus the flat parameter list they share.

    Layer ``i`` (1-based) reads the contiguous parameter slice that follows the
    slices of all earlier layers. The assembler must be validated before any
    formula is produced; validation happens at most once.
    """

    def __init__(self, layers: Sequence[LayerDescriptor], params: Sequence[Real]):
        self.layers: Tuple[LayerDescriptor, ...] = tuple(layers)
        self.params: Tuple[Real, ...] = tuple(params)
        self._validated = False

    @classmethod
    def from_document(cls, data: Any) -> "NetworkAssembler":
        if not isinstance(data, Mapping):
            raise MalformedDocumentError("Malformed data: document must be a mapping.")
        for key in ("layers", "params"):
            if key not in data or data[key] is None:
                raise MalformedDocumentError(f"Malformed data: missing '{key}'.")
            if not isinstance(data[key], list):
                raise MalformedDocumentError(f"Malformed data: '{key}' must be a list.")

        layers = [LayerDescriptor.parse(spec) for spec in data["layers"]]
        params = [_to_decimal(value, index=i) for i, value in enumerate(data["params"])]
        return cls(layers, params)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "NetworkAssembler":
        return cls.from_document(load_network_document(path))

    @property
    def validated(self) -> bool:
        return self._validated

    def total_params(self) -> int:
        return sum(layer.params_count() for layer in self.layers)

    def validate(self) -> None:
        if self._validated:
            return
        expected = self.total_params()
        if expected != len(self.params):
            raise ParameterCountError(
                f"Wrong number of parameters for given network: "
                f"layers need {expected}, got {len(self.params)}."
            )
        self._validated = True

    def parameter_slices(self) -> Iterator[Tuple[int, LayerDescriptor, int, int]]:
        """Yield ``(layer_index, layer, start, stop)`` for every layer in order."""
        offset = 0
        for layer_index, layer in enumerate(self.layers, start=1):
            stop = offset + layer.params_count()
            yield layer_index, layer, offset, stop
            offset = stop

    def formula_fragments(self) -> Iterator[str]:
        self.validate()
        for layer_index, layer, start, _ in self.parameter_slices():
            yield layer.formula_fragment(layer_index, self.params, start)

    def render(self) -> str:
        """Every fragment block followed by a blank line, in layer order."""
        return "".join(fragment + "\n" for fragment in self.formula_fragments())


__all__ = [
    "NetworkAssembler",
    "load_network_document",
]
