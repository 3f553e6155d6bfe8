import math

import numpy as np
import pytest

from mlpnets.core.errors import ConfigurationError, DimensionMismatchError, NotComputedError
from mlpnets.core.links import BIAS_SOURCE
from mlpnets.core.network import Network
from mlpnets.core.types import Example
from mlpnets.core.units import HiddenUnit, InputUnit, OutputUnit, UnitKind


@pytest.mark.parametrize(
    "n_in, n_hidden, width, n_out",
    [(1, 0, 0, 1), (2, 1, 2, 1), (4, 2, 4, 3), (3, 3, 5, 2)],
)
@pytest.mark.parametrize("bias", [True, False])
def test_construction_counts(n_in, n_hidden, width, n_out, bias):
    net = Network(n_in, n_hidden, width, n_out, bias=bias)
    expected = [n_in] + [width] * n_hidden + [n_out]
    assert net.layer_sizes == expected
    for k in range(len(expected) - 1):
        assert net.links_between(k) == expected[k] * expected[k + 1]
    pair_links = sum(a * b for a, b in zip(expected[:-1], expected[1:]))
    bias_links = sum(expected[1:]) if bias else 0
    assert net.num_links == pair_links + bias_links
    assert [layer.kind for layer in net.layers] == (
        [UnitKind.INPUT] + [UnitKind.HIDDEN] * n_hidden + [UnitKind.OUTPUT]
    )


@pytest.mark.parametrize(
    "args",
    [(0, 1, 2, 1), (2, -1, 2, 1), (2, 1, 0, 1), (2, 1, 2, 0), (2.5, 1, 2, 1), (True, 1, 2, 1)],
)
def test_invalid_counts_raise_configuration_error(args):
    with pytest.raises(ConfigurationError):
        Network(*args)


def test_non_positive_init_scale_is_rejected():
    with pytest.raises(ConfigurationError):
        Network(2, 1, 2, 1, init_scale=0.0)


def test_weights_are_seeded_and_not_symmetric():
    first = Network(2, 1, 3, 1, seed=7).state_dict()
    second = Network(2, 1, 3, 1, seed=7).state_dict()
    for key in first:
        assert np.array_equal(first[key], second[key])
    w0 = first["W0"]
    assert np.all(np.abs(w0) <= 0.5)
    assert len(np.unique(w0)) == w0.size
    assert np.all(first["b1"] == 0.0)


def test_activations_lie_in_open_unit_interval():
    rng = np.random.default_rng(0)
    net = Network(3, 2, 4, 2, seed=3)
    net.load_example(Example(5.0 * rng.standard_normal(3), [0.0, 1.0]))
    net.forward()
    for idx in range(1, len(net.layers)):
        for unit in net.units(idx):
            assert 0.0 < unit.get_activation() < 1.0


def test_single_link_forward_is_sigmoid_of_input():
    net = Network(1, 0, 0, 1, bias=False)
    net.load_state_dict({"W0": np.array([[1.0]])})
    net.load_example(Example([0.3], [1.0]))
    out = net.forward()
    assert out.shape == (1,)
    assert out[0] == pytest.approx(1.0 / (1.0 + math.exp(-0.3)))


def test_output_activations_are_idempotent():
    net = Network(2, 1, 3, 2, seed=1)
    net.load_example(Example([0.2, 0.9], [1.0, 0.0]))
    net.forward()
    first = net.output_activations()
    second = net.output_activations()
    assert np.array_equal(first, second)
    first[0] = 42.0
    assert net.output_activations()[0] != 42.0


def test_reading_before_forward_raises():
    net = Network(2, 1, 2, 1)
    with pytest.raises(NotComputedError):
        net.output_activations()
    with pytest.raises(NotComputedError):
        net.forward()
    net.load_example(Example([0.0, 1.0], [1.0]))
    with pytest.raises(NotComputedError):
        net.output_activations()
    with pytest.raises(NotComputedError):
        net.unit(1, 0).get_activation()


def test_loading_a_new_example_invalidates_downstream_activations():
    net = Network(2, 1, 2, 1)
    net.load_example(Example([0.0, 1.0], [1.0]))
    net.forward()
    net.load_example(Example([1.0, 1.0], [0.0]))
    assert net.unit(0, 0).get_activation() == 1.0
    assert net.unit(1, 0).activation is None
    with pytest.raises(NotComputedError):
        net.output_activations()


def test_dimension_mismatch_leaves_network_untouched():
    net = Network(2, 1, 2, 1, seed=4)
    net.load_example(Example([0.5, 0.5], [1.0]))
    before = net.forward()
    weights = net.state_dict()

    with pytest.raises(DimensionMismatchError) as excinfo:
        net.load_example(Example([0.1, 0.2, 0.3], [1.0]))
    assert excinfo.value.expected == 2
    assert excinfo.value.actual == 3
    with pytest.raises(DimensionMismatchError):
        net.load_example(Example([0.1, 0.2], [1.0, 0.0]))

    assert np.array_equal(net.output_activations(), before)
    for key, value in net.state_dict().items():
        assert np.array_equal(value, weights[key])


def test_unit_views_expose_variant_fields():
    net = Network(2, 1, 3, 1)
    net.load_example(Example([1.0, 0.0], [1.0]))
    net.forward()

    inp = net.unit(0, 1)
    assert isinstance(inp, InputUnit)
    assert inp.incoming == ()
    assert len(inp.outgoing) == 3

    hidden = net.unit(1, 0)
    assert isinstance(hidden, HiddenUnit)
    assert len(hidden.incoming) == 2 + 1
    assert len(hidden.outgoing) == 1
    with pytest.raises(NotComputedError):
        hidden.get_error()

    out = net.unit(2, 0)
    assert isinstance(out, OutputUnit)
    assert out.outgoing == ()
    assert out.target == 1.0
    assert net.links.source[list(out.incoming)].tolist().count(BIAS_SOURCE) == 1
    for link_id in out.incoming:
        assert net.links.target[link_id] == out.uid

    with pytest.raises(IndexError):
        net.unit(1, 3)


def test_predict_runs_inference_without_targets():
    net = Network(2, 1, 2, 1)
    out = net.predict([0.3, 0.7])
    assert out.shape == (1,)
    assert net.unit(2, 0).target is None


def test_load_state_dict_validates_keys_and_shapes():
    net = Network(2, 1, 2, 1)
    state = dict(net.state_dict())
    state.pop("b2")
    with pytest.raises(KeyError):
        net.load_state_dict(state)
    bad = dict(net.state_dict())
    bad["W0"] = np.zeros((3, 2))
    with pytest.raises(DimensionMismatchError):
        net.load_state_dict(bad)


def test_describe_reports_topology():
    net = Network(4, 2, 4, 3, bias=False)
    description = net.describe()
    assert description.layer_dims == [4, 4, 4, 3]
    assert description.bias is False
    assert net.parameter_count() == 4 * 4 + 4 * 4 + 4 * 3
