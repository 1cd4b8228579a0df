"""CLI for turning a trained network document into explicit neuron formulas."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

import sympy as sp

from network_formulas import (
    NetworkAssembler,
    build_network_model,
    formulas_to_dict,
    formulas_to_latex,
)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Write one formula per neuron for a trained feed-forward network."
    )
    parser.add_argument(
        "document",
        type=Path,
        help="YAML or JSON file with 'layers' and 'params' lists",
    )
    parser.add_argument(
        "--symbolic",
        action="store_true",
        help="Also print the network outputs composed in terms of the inputs",
    )
    parser.add_argument(
        "--sigma",
        choices=["soft_relu", "tanh", "sigmoid", "relu"],
        default=None,
        help="Closed form substituted for sigma in symbolic output (default: keep sigma abstract)",
    )
    parser.add_argument("--jacobian", action="store_true", help="Print first-order derivatives of the outputs")
    parser.add_argument("--latex", action="store_true", help="Print LaTeX-formatted symbolic equations")
    parser.add_argument(
        "--export-json",
        type=Path,
        help="Path to write formulas (and symbolic outputs, if requested) as JSON",
    )
    parser.add_argument(
        "--export-latex",
        type=Path,
        help="Path to write composed outputs and Jacobian in LaTeX text format",
    )
    parser.add_argument(
        "--simplify",
        action="store_true",
        help="Apply sympy.simplify to exported expressions",
    )
    return parser.parse_args(argv)


def _format_expr(prefix: str, expr: sp.Expr, latex: bool = False) -> str:
    if latex:
        return f"{prefix} = ${sp.latex(expr)}$"
    return f"{prefix} = {expr}"


def _wants_model(args: argparse.Namespace) -> bool:
    return bool(args.symbolic or args.jacobian or args.export_latex or args.sigma)


def _symbolic_report(model, args: argparse.Namespace) -> str:
    lines = [f"Inputs: {', '.join(str(s) for s in model.input_symbols)}"]
    for symbol, expr in zip(model.output_symbols, model.outputs):
        lines.append(_format_expr(str(symbol), expr, latex=args.latex))

    if args.jacobian:
        lines.append("\nFirst-order gradients:")
        for out_symbol, row in zip(model.output_symbols, model.jacobian()):
            for in_symbol, grad in zip(model.input_symbols, row):
                lines.append(_format_expr(f"∂{out_symbol}/∂{in_symbol}", grad, latex=args.latex))
    return "\n".join(lines)


def _write_exports(assembler: NetworkAssembler, model, args: argparse.Namespace) -> None:
    if args.export_json:
        payload = formulas_to_dict(assembler, model, simplify_output=args.simplify)
        args.export_json.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote JSON formulas to {args.export_json}", file=sys.stderr)

    if args.export_latex and model is None:
        print(f"Skipped LaTeX export to {args.export_latex}: the network has no layers", file=sys.stderr)
    elif args.export_latex:
        latex_payload = formulas_to_latex(model, simplify_output=args.simplify)
        args.export_latex.write_text(latex_payload, encoding="utf-8")
        print(f"Wrote LaTeX formulas to {args.export_latex}", file=sys.stderr)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)

    # Everything is computed before the first write so a failure leaves stdout empty.
    try:
        assembler = NetworkAssembler.from_file(args.document)
        text = assembler.render()
        # A network without layers has no outputs to compose.
        wants_model = _wants_model(args) and bool(assembler.layers)
        model = build_network_model(assembler, sigma=args.sigma) if wants_model else None
        report = _symbolic_report(model, args) if model is not None and (args.symbolic or args.jacobian) else None
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    sys.stdout.write(text)
    if report is not None:
        print(report)

    _write_exports(assembler, model, args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
