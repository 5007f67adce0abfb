import importlib.util
import json
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]


def _load_cli():
    spec = importlib.util.spec_from_file_location("run_comparison", REPO_ROOT / "scripts" / "run_comparison.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_cli_dumps_results_and_run_data(tmp_path, capsys):
    cli = _load_cli()
    output = tmp_path / "compare.json"

    cli.main(
        [
            str(REPO_ROOT / "horses" / "uma1.json"),
            str(REPO_ROOT / "horses" / "uma2.json"),
            "--course",
            "10101",
            "--samples",
            "3",
            "--seed",
            "5",
            "--dump",
            str(output),
        ]
    )

    payload = json.loads(output.read_text(encoding="utf-8"))
    assert len(payload["results"]) == 3
    assert set(payload["runData"]) == {"minrun", "maxrun", "meanrun", "medianrun"}
    assert set(payload["runData"]["medianrun"]) == {"t", "p", "v", "hp", "sk", "sdly", "dh"}
    assert "Special Week vs Silence Suzuka" in capsys.readouterr().out


def test_cli_requires_second_horse():
    cli = _load_cli()
    with pytest.raises(SystemExit):
        cli.main([str(REPO_ROOT / "horses" / "uma1.json"), "--samples", "1"])
