import numpy as np
import pytest

from sketchnet.core.activations import Activation
from sketchnet.core.engine import ForwardEngine
from sketchnet.core.errors import ShapeMismatch, SizeMismatch
from sketchnet.core.topology import LayerSpec, TopologyConfig


def _identity_topology(*sizes, has_bias=True):
    return TopologyConfig([LayerSpec(n, has_bias, Activation.IDENTITY) for n in sizes])


def test_all_ones_identity_network():
    engine = ForwardEngine(_identity_topology(4, 3, 2), random_init=False)
    for W in engine.weights:
        W[:] = 1.0
    output = engine.compute_output(np.ones(4))
    assert np.array_equal(engine.pre_activation[1], [4.0, 4.0, 4.0])
    assert np.array_equal(output, [12.0, 12.0])


@pytest.mark.parametrize("sizes", [[3, 1], [5, 4, 2], [6, 5, 4, 3, 2], [1, 7, 7, 1]])
def test_output_has_last_layer_width(sizes):
    engine = ForwardEngine(_identity_topology(*sizes), rng=0)
    output = engine.compute_output(np.linspace(0, 1, sizes[0]))
    assert output.shape == (sizes[-1],)


def test_wrong_input_length_is_rejected():
    engine = ForwardEngine(_identity_topology(4, 2), rng=0)
    with pytest.raises(ShapeMismatch):
        engine.compute_output(np.ones(3))


def test_output_is_a_live_buffer():
    engine = ForwardEngine(_identity_topology(2, 2), rng=0)
    first = engine.compute_output(np.array([1.0, 0.0]))
    snapshot = first.copy()
    second = engine.compute_output(np.array([0.0, 1.0]))
    assert first is second
    assert not np.array_equal(first, snapshot)
    assert engine.layer_nodes(1) is not second


def test_bias_added_only_where_flag_applies():
    topo = TopologyConfig(
        [LayerSpec(2), LayerSpec(2, has_bias=True), LayerSpec(2, has_bias=False)]
    )
    engine = ForwardEngine(topo, random_init=False)
    engine.weights[1][:] = np.eye(2)
    engine.biases[0][:] = [1.0, 2.0]
    engine.biases[1][:] = [10.0, 20.0]
    output = engine.compute_output(np.zeros(2))
    assert np.array_equal(output, [1.0, 2.0])


def test_flatten_layout_is_column_then_bias():
    engine = ForwardEngine(_identity_topology(2, 2), random_init=False)
    engine.weights[0][:] = [[1.0, 2.0], [3.0, 4.0]]
    engine.biases[0][:] = [5.0, 6.0]
    assert np.array_equal(engine.flatten_parameters(), [1.0, 3.0, 5.0, 2.0, 4.0, 6.0])


def test_parameter_round_trip_is_identity():
    topo = _identity_topology(5, 4, 3)
    engine = ForwardEngine(topo, rng=1)
    weights = [w.copy() for w in engine.weights]
    biases = [b.copy() for b in engine.biases]
    flat = engine.flatten_parameters()
    assert flat.shape == (topo.parameter_count(),)
    engine.load_parameters(flat)
    for before, after in zip(weights + biases, engine.weights + engine.biases):
        assert np.array_equal(before, after)


def test_load_parameters_rejects_wrong_length():
    engine = ForwardEngine(_identity_topology(3, 2), rng=0)
    flat = engine.flatten_parameters()
    with pytest.raises(SizeMismatch):
        engine.load_parameters(flat[:-1])
    with pytest.raises(ShapeMismatch):
        engine.load_parameters(np.append(flat, 0.0))
