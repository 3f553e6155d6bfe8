import json

import pytest

from mlpnets.core.errors import DimensionMismatchError
from mlpnets.training import pipelines


def _gate_config(tmp_path, gate="and", **train):
    config = pipelines.load_preset(f"{gate}-gate")
    config["train"].update({"run_dir": str(tmp_path), "max_epochs": 20000})
    config["train"].update(train)
    return config


def test_presets_include_builtin_and_file_presets():
    names = set(pipelines.presets())
    assert {"and-gate", "or-gate", "xor-gate", "iris-onehot"} <= names
    iris = pipelines.load_preset("iris-onehot")
    assert iris["data"]["name"] == "iris"
    assert iris["model"]["hidden_layers"] == 2
    with pytest.raises(KeyError):
        pipelines.load_preset("does-not-exist")


def test_load_preset_returns_independent_copies():
    first = pipelines.load_preset("and-gate")
    first["train"]["learning_rate"] = 0.9
    assert pipelines.load_preset("and-gate")["train"]["learning_rate"] == 0.5


def test_and_gate_run_writes_artifacts(tmp_path):
    result = pipelines.run_pipeline(_gate_config(tmp_path, threshold=0.5))
    assert result.converged
    assert result.global_error <= 0.05
    assert result.message == ""

    records = [json.loads(line) for line in (tmp_path / "metrics_train.jsonl").read_text().splitlines()]
    assert len(records) == result.epochs
    assert records[-1]["global_error"] == pytest.approx(result.global_error)
    assert (tmp_path / "metrics_train.csv").exists()

    manifest = json.loads((tmp_path / "manifest.json").read_text())
    assert manifest["outcome"]["converged"] is True
    assert manifest["topology"] == {"layer_dims": [2, 2, 1], "bias": True, "links": 9}
    assert manifest["dataset"]["gate"] == "and"

    test_metrics = json.loads((tmp_path / "metrics_test.json").read_text())
    assert test_metrics["accuracy"] == 1.0
    summary = json.loads((tmp_path / "summary.json").read_text())
    assert summary["epochs"] == result.epochs
    assert summary["epochs_to_target"] == result.epochs
    assert json.loads((tmp_path / "config.json").read_text())["data"]["options"]["gate"] == "and"


def test_runs_are_deterministic(tmp_path):
    first = pipelines.run_pipeline(_gate_config(tmp_path / "a", max_epochs=50, max_global_error=0.0))
    second = pipelines.run_pipeline(_gate_config(tmp_path / "b", max_epochs=50, max_global_error=0.0))
    assert first.epochs == second.epochs == 50
    assert (tmp_path / "a" / "metrics_train.jsonl").read_text() == (
        tmp_path / "b" / "metrics_train.jsonl"
    ).read_text()


def test_non_convergence_is_reported_not_raised(tmp_path):
    config = _gate_config(tmp_path, gate="xor", max_epochs=30, patience=None)
    config["model"]["hidden_layers"] = 0
    result = pipelines.run_pipeline(config)
    assert not result.converged
    assert result.epochs == 30
    assert "error margin" in result.message
    manifest = json.loads((tmp_path / "manifest.json").read_text())
    assert manifest["outcome"]["converged"] is False
    assert manifest["outcome"]["message"] == result.message


def test_configured_width_must_match_the_dataset(tmp_path):
    config = _gate_config(tmp_path)
    config["model"]["inputs"] = 3
    with pytest.raises(DimensionMismatchError):
        pipelines.run_pipeline(config)


def test_missing_sections_are_rejected():
    with pytest.raises(KeyError):
        pipelines.run_pipeline({"data": {"name": "truth_table"}})


def test_read_config_file(tmp_path):
    yaml_path = tmp_path / "override.yaml"
    yaml_path.write_text("train:\n  learning_rate: 0.1\n")
    assert pipelines.read_config_file(yaml_path) == {"train": {"learning_rate": 0.1}}
    json_path = tmp_path / "override.json"
    json_path.write_text(json.dumps({"model": {"hidden_layers": 2}}))
    assert pipelines.read_config_file(json_path)["model"]["hidden_layers"] == 2
    toml_path = tmp_path / "override.toml"
    toml_path.write_text("[train]\n")
    with pytest.raises(ValueError):
        pipelines.read_config_file(toml_path)
