from __future__ import annotations

import importlib.util
import sys
from pathlib import Path

from conftest import ROOT


def _load_example(name: str):
    spec = importlib.util.spec_from_file_location(name, ROOT / "examples" / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_multiscale_example_reports_counts_after_connectivity(tmp_path: Path, monkeypatch, capsys) -> None:
    example = _load_example("multiscale_segmentation_example")
    monkeypatch.setattr(sys, "argv", ["example", "-s", "20", "50", "--results-dir", str(tmp_path)])

    example.main()

    output = capsys.readouterr().out
    assert "hhts: requested 20, got 20 (0 split by connectivity)" in output
    assert "hhts: requested 50, got 50 (0 split by connectivity)" in output
    assert (tmp_path / "hhts_overview.png").is_file()
    assert (tmp_path / "slic_overview.png").is_file()
