import numpy as np
import pytest

from mlpnets.data import available_datasets, get_dataset
from mlpnets.data.truth_table import truth_table
from mlpnets.data.utils import deterministic_split


def test_builtin_datasets_are_registered():
    assert {"csv", "iris", "truth_table"} <= set(available_datasets())


def test_and_truth_table():
    inputs, targets = truth_table("and")
    assert inputs.tolist() == [[0, 0], [0, 1], [1, 0], [1, 1]]
    assert targets.ravel().tolist() == [0.0, 0.0, 0.0, 1.0]


def test_three_input_xor_is_parity():
    inputs, targets = truth_table("xor", arity=3)
    assert inputs.shape == (8, 3)
    assert np.array_equal(targets.ravel(), inputs.sum(axis=1) % 2)


def test_truth_table_dataset_trains_and_tests_on_every_row():
    spec = get_dataset("truth_table", gate="OR")
    assert spec.name == "truth_table:or"
    assert spec.splits == {"train": 4, "test": 4}
    assert spec.data_spec.d_in == 2 and spec.data_spec.d_out == 1
    assert [float(ex.targets[0]) for ex in spec.train] == [0.0, 1.0, 1.0, 1.0]


def test_unknown_names_raise_key_error():
    with pytest.raises(KeyError):
        truth_table("implies")
    with pytest.raises(KeyError):
        get_dataset("mnist")


def test_iris_is_scaled_and_one_hot():
    spec = get_dataset("iris")
    assert spec.splits == {"train": 150, "test": 0}
    assert spec.data_spec.d_in == 4
    assert spec.data_spec.d_out == 3
    assert spec.data_spec.num_classes == 3
    inputs = np.stack([ex.inputs for ex in spec.train])
    targets = np.stack([ex.targets for ex in spec.train])
    assert inputs.min() == 0.0 and inputs.max() == 1.0
    assert np.array_equal(targets.sum(axis=1), np.ones(150))


def test_iris_split_and_single_output():
    spec = get_dataset("iris", one_hot_targets=False, test_split=0.2, seed=1)
    assert spec.splits == {"train": 120, "test": 30}
    assert spec.data_spec.d_out == 1
    values = {float(ex.targets[0]) for ex in spec.train + spec.test}
    assert values == {0.0, 0.5, 1.0}


def test_deterministic_split_is_seeded():
    first = deterministic_split(20, test_split=0.25, seed=3)
    second = deterministic_split(20, test_split=0.25, seed=3)
    assert np.array_equal(first.test, second.test)
    assert first.sizes == {"train": 15, "test": 5}
    assert not set(first.train) & set(first.test)
    with pytest.raises(ValueError):
        deterministic_split(10, test_split=1.0)


def _write_csv(path, rows):
    path.write_text("\n".join(rows) + "\n")
    return path


def test_csv_multiclass_classification(tmp_path):
    path = _write_csv(
        tmp_path / "flowers.csv",
        ["a,b,target", "1,10,red", "2,20,green", "3,30,blue", "4,40,red"],
    )
    spec = get_dataset("csv", csv_path=str(path))
    assert spec.name == "csv:flowers"
    assert spec.data_spec.task_type == "multiclass"
    assert spec.data_spec.d_out == 3
    assert spec.data_spec.normalization["classes"] == ["blue", "green", "red"]
    assert spec.train[0].inputs.tolist() == [0.0, 0.0]
    assert spec.train[-1].inputs.tolist() == [1.0, 1.0]


def test_csv_binary_and_regression(tmp_path):
    path = _write_csv(tmp_path / "data.csv", ["x,label,y", "0,no,5", "1,yes,15", "2,no,10"])
    binary = get_dataset("csv", csv_path=path, target_col="label")
    assert binary.data_spec.task_type == "binary"
    assert [float(ex.targets[0]) for ex in binary.train] == [0.0, 1.0, 0.0]

    frame = _write_csv(tmp_path / "reg.csv", ["x,y", "0,5", "1,15", "2,10"])
    regression = get_dataset("csv", csv_path=frame, target_col="y", task="regression")
    assert regression.data_spec.task_type == "regression"
    assert [float(ex.targets[0]) for ex in regression.train] == [0.0, 1.0, 0.5]


def test_csv_requires_path_and_target(tmp_path):
    with pytest.raises(ValueError):
        get_dataset("csv")
    path = _write_csv(tmp_path / "d.csv", ["x,y", "0,1"])
    with pytest.raises(KeyError):
        get_dataset("csv", csv_path=path, target_col="target")
