"""Symbolic view of an assembled network for derivative-based analysis.

The textual formulas keep every layer separate. Here the layers are
substituted forward into sympy expressions so the final outputs are written
directly in terms of the network inputs ``s_0_*``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Tuple, Union

import sympy as sp

from .layers import LayerKind, Real, format_real, neuron_symbol
from .network import NetworkAssembler

Expression = sp.Expr
Activation = Callable[[Expression], Expression]


def soft_relu(z: Expression) -> Expression:
    return sp.log(1 + sp.exp(z))


def relu(z: Expression) -> Expression:
    return sp.Max(0, z)


def tanh(z: Expression) -> Expression:
    return (sp.exp(z) - sp.exp(-z)) / (sp.exp(z) + sp.exp(-z))


def sigmoid(z: Expression) -> Expression:
    return 1 / (1 + sp.exp(-z))


def activation_from_name(name: str) -> Activation:
    mapping = {"soft_relu": soft_relu, "tanh": tanh, "sigmoid": sigmoid, "relu": relu}
    try:
        return mapping[name]
    except KeyError as exc:
        raise ValueError(f"Unsupported activation '{name}'.") from exc


def _stringify(expr: Expression, simplify_output: bool = False) -> str:
    value = sp.simplify(expr) if simplify_output else expr
    return str(value)


def _to_latex(expr: Expression, simplify_output: bool = False) -> str:
    value = sp.simplify(expr) if simplify_output else expr
    return sp.latex(value)


def _literal(value: Real) -> Expression:
    text = format_real(value)
    # Never below the default precision; longer literals keep every digit.
    return sp.Float(text, max(15, len(text)))


@dataclass(frozen=True)
class SymbolicModel:
    """Network outputs as closed-form expressions of its input symbols."""

    name: str
    outputs: Tuple[Expression, ...]
    output_symbols: Tuple[sp.Symbol, ...]
    input_symbols: Tuple[sp.Symbol, ...]
    neurons: Dict[str, Expression]

    def gradients(self) -> Tuple[Tuple[Tuple[Expression, ...], ...], Tuple[Tuple[Tuple[Expression, ...], ...], ...]]:
        first_order = tuple(
            tuple(sp.diff(output, x) for x in self.input_symbols)
            for output in self.outputs
        )
        second_order = tuple(
            tuple(
                tuple(sp.diff(dx, xj) for xj in self.input_symbols)
                for dx in row
            )
            for row in first_order
        )
        return first_order, second_order

    def jacobian(self) -> Tuple[Tuple[Expression, ...], ...]:
        return self.gradients()[0]

    def hessians(self) -> Tuple[Tuple[Tuple[Expression, ...], ...], ...]:
        return self.gradients()[1]


def build_network_model(
    assembler: NetworkAssembler,
    sigma: Union[str, Activation, None] = None,
    name: str = "Network",
) -> SymbolicModel:
    """Compose every layer of ``assembler`` into output expressions.

    Parameters
    ----------
    assembler:
        Network to compose. It is validated first.
    sigma:
        Definition used for ``SigmaLayer``. ``None`` keeps ``sigma`` as an
        undefined function; a name or callable substitutes a closed form.
    name:
        Label stored on the returned model.
    """
    assembler.validate()
    if not assembler.layers:
        raise ValueError("Cannot build a symbolic model of a network without layers")

    if sigma is None:
        sigma_fn: Activation = sp.Function("sigma")
    elif isinstance(sigma, str):
        sigma_fn = activation_from_name(sigma)
    else:
        sigma_fn = sigma

    x = tuple(
        sp.Symbol(neuron_symbol(0, j), real=True)
        for j in range(assembler.layers[0].neurons_in)
    )
    neurons: Dict[str, Expression] = {}
    layer_input: Tuple[Expression, ...] = x

    for layer_index, layer, start, _ in assembler.parameter_slices():
        if layer.neurons_in != len(layer_input):
            raise ValueError(
                f"Layer {layer_index} ({layer.spec}) expects {layer.neurons_in} inputs, "
                f"but the previous layer produces {len(layer_input)}."
            )

        if layer.kind is LayerKind.LINEAR:
            bias_start = start + layer.neurons_in * layer.neurons_out
            layer_output = tuple(
                sum(
                    _literal(assembler.params[start + i * layer.neurons_in + j])
                    * layer_input[j]
                    for j in range(layer.neurons_in)
                )
                + _literal(assembler.params[bias_start + i])
                for i in range(layer.neurons_out)
            )
        elif layer.kind is LayerKind.SIGMA:
            layer_output = tuple(sigma_fn(value) for value in layer_input)
        else:
            raise RuntimeError(f"Unsupported layer kind {layer.kind!r}.")

        for i, value in enumerate(layer_output):
            neurons[neuron_symbol(layer_index, i)] = value
        layer_input = layer_output

    last_index = len(assembler.layers)
    return SymbolicModel(
        name=name,
        outputs=layer_input,
        output_symbols=tuple(
            sp.Symbol(neuron_symbol(last_index, i), real=True) for i in range(len(layer_input))
        ),
        input_symbols=x,
        neurons=neurons,
    )


def formulas_to_dict(
    assembler: NetworkAssembler,
    model: SymbolicModel | None = None,
    *,
    simplify_output: bool = False,
) -> Dict[str, object]:
    """Serialize the layer formulas, and optionally a composed model, to a JSON-ready dict."""
    fragments = list(assembler.formula_fragments())
    payload: Dict[str, object] = {
        "layers": [layer.spec for layer in assembler.layers],
        "parameter_count": assembler.total_params(),
        "fragments": [fragment.splitlines() for fragment in fragments],
    }
    if model is None:
        return payload

    first_order, _ = model.gradients()
    payload["model"] = model.name
    payload["input_symbols"] = [str(symbol) for symbol in model.input_symbols]
    payload["outputs"] = {
        str(symbol): _stringify(expr, simplify_output=simplify_output)
        for symbol, expr in zip(model.output_symbols, model.outputs)
    }
    payload["jacobian"] = {
        str(out_symbol): {
            str(in_symbol): _stringify(grad, simplify_output=simplify_output)
            for in_symbol, grad in zip(model.input_symbols, row)
        }
        for out_symbol, row in zip(model.output_symbols, first_order)
    }
    return payload


def formulas_to_latex(model: SymbolicModel, *, simplify_output: bool = False) -> str:
    """Serialize the composed outputs and their Jacobian to a LaTeX-friendly text block."""
    lines: list[str] = []
    lines.append(r"\textbf{" + f"Model: {model.name}" + r"}")
    for symbol, expr in zip(model.output_symbols, model.outputs):
        lines.append(sp.latex(symbol) + " = " + _to_latex(expr, simplify_output=simplify_output))

    lines.append(r"\\")
    lines.append(r"\textbf{Jacobian}")
    for out_symbol, row in zip(model.output_symbols, model.jacobian()):
        for in_symbol, grad in zip(model.input_symbols, row):
            lines.append(
                r"\frac{\partial "
                + sp.latex(out_symbol)
                + r"}{\partial "
                + sp.latex(in_symbol)
                + "} = "
                + _to_latex(grad, simplify_output=simplify_output)
            )

    return "\n".join(lines)


__all__ = [
    "Expression",
    "Activation",
    "SymbolicModel",
    "soft_relu",
    "relu",
    "tanh",
    "sigmoid",
    "activation_from_name",
    "build_network_model",
    "formulas_to_dict",
    "formulas_to_latex",
]
