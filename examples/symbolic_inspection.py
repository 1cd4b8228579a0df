"""Batch symbolic inspection of the bundled network documents.

Renders the per-neuron formulas for every ``*.yaml`` file next to this script,
composes the outputs with a sigmoid in place of sigma and writes JSON/LaTeX
exports to `examples/outputs/`.
"""

from __future__ import annotations

import json
from pathlib import Path

from network_formulas import (
    NetworkAssembler,
    build_network_model,
    formulas_to_dict,
    formulas_to_latex,
)

EXAMPLES_DIR = Path(__file__).resolve().parent
OUTPUT_DIR = EXAMPLES_DIR / "outputs"
OUTPUT_DIR.mkdir(exist_ok=True)


def _run(name: str, assembler: NetworkAssembler) -> None:
    model = build_network_model(assembler, sigma="sigmoid", name=name)

    json_path = OUTPUT_DIR / f"{name}.json"
    latex_path = OUTPUT_DIR / f"{name}.tex"

    json_path.write_text(json.dumps(formulas_to_dict(assembler, model), indent=2), encoding="utf-8")
    latex_path.write_text(formulas_to_latex(model), encoding="utf-8")

    print(f"[{name}] formulas:")
    print(assembler.render(), end="")
    print(f"  outputs: {len(model.outputs)} composed over {len(model.input_symbols)} inputs")
    print(f"  parameters: {assembler.total_params()}")
    print(f"  artifacts -> {json_path.name}, {latex_path.name}")


def main() -> None:
    for path in sorted(EXAMPLES_DIR.glob("*.yaml")):
        _run(path.stem, NetworkAssembler.from_file(path))


if __name__ == "__main__":
    main()
