"""Guards against known defects of earlier layered-network trainers."""

import numpy as np

from mlpnets.core.network import Network
from mlpnets.core.types import Example


def test_first_hidden_layer_is_linked_to_the_inputs():
    net = Network(4, 2, 4, 1, bias=False)
    assert net.links_between(0) == 16
    for unit in net.units(1):
        sources = {int(net.links.source[i]) for i in unit.incoming}
        assert sources == {net.links.unit_id(0, pos) for pos in range(4)}


def test_backpropagation_walks_every_hidden_layer_once_from_the_top():
    net = Network(2, 3, 3, 2, seed=9)
    net.load_example(Example([0.2, 0.8], [1.0, 0.0]))
    net.forward()
    net.backpropagate(0.3)
    for layer in net.layers[1:]:
        assert not np.isnan(layer.errors).any()
    assert np.isfinite(net.links.pending).all()
    net.apply_updates()


def test_weights_are_not_zero_initialised():
    net = Network(3, 2, 4, 2)
    for idx in range(len(net.layers) - 1):
        assert np.count_nonzero(net.links.matrix(idx)) == net.links_between(idx)
