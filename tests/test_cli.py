# tests/test_cli.py
import json

import pytest

from main import main

TWO_LAYER_DOC = 'layers:\n  - "LinLayer :: <2, 1>"\n  - "SigmaLayer :: <1>"\nparams: [0.5, 0.5, 1.0]\n'


def _write(tmp_path, text, name="net.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_prints_fragments_in_layer_order(tmp_path, capsys):
    path = _write(tmp_path, TWO_LAYER_DOC)
    assert main([str(path)]) == 0
    captured = capsys.readouterr()
    assert captured.out == (
        "s_1_0 = (0.5)*s_0_0 + (0.5)*s_0_1 + (1.0);\n"
        "\n"
        "s_2_0 = sigma(s_1_0);\n"
        "\n"
    )
    assert captured.err == ""


def test_empty_network_prints_nothing(tmp_path, capsys):
    path = _write(tmp_path, "layers: []\nparams: []\n")
    assert main([str(path)]) == 0
    assert capsys.readouterr().out == ""


def test_missing_argument_is_usage_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code != 0
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "usage" in captured.err


def test_extra_argument_is_usage_error(tmp_path, capsys):
    path = _write(tmp_path, TWO_LAYER_DOC)
    with pytest.raises(SystemExit) as excinfo:
        main([str(path), str(path)])
    assert excinfo.value.code != 0
    assert capsys.readouterr().out == ""


@pytest.mark.parametrize(
    "text,message",
    [
        ("params: [1.0]\n", "Malformed data"),
        ('layers: ["LinLayer :: <1, 1>"]\n', "Malformed data"),
        ('layers: ["LinLayer :: <1, 1>"]\nparams: [1.0]\n', "Wrong number of parameters"),
        ('layers: ["LinLayer :: <1, 1>"]\nparams: [1.0, 2.0, 3.0]\n', "Wrong number of parameters"),
        ('layers: ["LinLayer :: <1,1>"]\nparams: [1.0, 2.0]\n', "Bad layer specification"),
    ],
)
def test_errors_are_reported_without_output(tmp_path, capsys, text, message):
    path = _write(tmp_path, text)
    assert main([str(path)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("Error: ")
    assert message in captured.err


def test_missing_file_is_reported(tmp_path, capsys):
    assert main([str(tmp_path / "nope.yaml")]) == 1
    assert "not found" in capsys.readouterr().err


def test_json_document(tmp_path, capsys):
    path = _write(
        tmp_path,
        json.dumps({"layers": ["LinLayer :: <1, 1>"], "params": [2.0, -1.0]}),
        name="net.json",
    )
    assert main([str(path)]) == 0
    assert capsys.readouterr().out == "s_1_0 = (2.0)*s_0_0 + (-1.0);\n\n"


def test_symbolic_report(tmp_path, capsys):
    path = _write(tmp_path, TWO_LAYER_DOC)
    assert main([str(path), "--symbolic", "--jacobian"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("s_1_0 = (0.5)*s_0_0")
    assert "Inputs: s_0_0, s_0_1" in out
    assert "s_2_0 = sigma(" in out
    assert "First-order gradients:" in out
    assert "∂s_2_0/∂s_0_0" in out


def test_width_mismatch_is_reported_only_in_symbolic_mode(tmp_path, capsys):
    path = _write(tmp_path, 'layers: ["LinLayer :: <2, 3>", "SigmaLayer :: <2>"]\nparams: [0, 0, 0, 0, 0, 0, 0, 0, 0]\n')
    assert main([str(path)]) == 0
    capsys.readouterr()

    assert main([str(path), "--symbolic"]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "expects 2 inputs" in captured.err


def test_exports(tmp_path, capsys):
    path = _write(tmp_path, TWO_LAYER_DOC)
    json_path = tmp_path / "out.json"
    latex_path = tmp_path / "out.tex"
    assert main([str(path), "--sigma", "sigmoid", "--export-json", str(json_path), "--export-latex", str(latex_path)]) == 0

    payload = json.loads(json_path.read_text(encoding="utf-8"))
    assert payload["layers"] == ["LinLayer :: <2, 1>", "SigmaLayer :: <1>"]
    assert payload["fragments"][1] == ["s_2_0 = sigma(s_1_0);"]
    assert "s_2_0" in payload["outputs"]
    assert r"\textbf{Jacobian}" in latex_path.read_text(encoding="utf-8")

    captured = capsys.readouterr()
    assert "Wrote JSON formulas" in captured.err
    assert captured.out.endswith("s_2_0 = sigma(s_1_0);\n\n")


@pytest.mark.parametrize("flags", [["--symbolic"], ["--jacobian", "--sigma", "tanh"]])
def test_symbolic_flags_on_empty_network(tmp_path, capsys, flags):
    path = _write(tmp_path, "layers: []\nparams: []\n")
    assert main([str(path), *flags]) == 0
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Error" not in captured.err


def test_latex_export_skipped_for_empty_network(tmp_path, capsys):
    path = _write(tmp_path, "layers: []\nparams: []\n")
    latex_path = tmp_path / "out.tex"
    assert main([str(path), "--export-latex", str(latex_path)]) == 0
    assert not latex_path.exists()
    assert "Skipped LaTeX export" in capsys.readouterr().err


def test_long_literals_reach_stdout_unrounded(tmp_path, capsys):
    path = _write(tmp_path, 'layers: ["LinLayer :: <1, 1>"]\nparams: [0.12345678901234567890123, 1.0]\n')
    assert main([str(path)]) == 0
    assert capsys.readouterr().out == "s_1_0 = (0.12345678901234567890123)*s_0_0 + (1.0);\n\n"
