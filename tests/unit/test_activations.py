import math

import numpy as np
import pytest

from sketchnet.core import activations
from sketchnet.core.activations import Activation
from sketchnet.core.errors import UnsupportedOperation
from sketchnet.training import losses


def test_apply_matches_closed_forms():
    x = np.array([-2.0, 0.0, 3.0])
    assert np.array_equal(activations.apply(Activation.IDENTITY, x), x)
    assert np.allclose(activations.apply(Activation.SIGMOID, x), 1.0 / (1.0 + np.exp(-x)))
    assert np.allclose(activations.apply(Activation.RELU, x), [0.0, 0.0, 3.0])
    assert np.allclose(activations.apply(Activation.LEAKY_RELU, x), [-0.02, 0.0, 3.0])


def test_apply_accepts_config_names():
    assert Activation.parse("none") is Activation.IDENTITY
    assert Activation.parse("Leaky-ReLU") is Activation.LEAKY_RELU
    assert np.isclose(activations.apply("sigmoid", 0.0), 0.5)
    with pytest.raises(ValueError):
        Activation.parse("tanh")


def test_only_sigmoid_has_a_derivative():
    assert np.isclose(activations.derivative(Activation.SIGMOID, 0.0), 0.25)
    x = np.linspace(-3, 3, 7)
    s = activations.sigmoid(x)
    assert np.allclose(activations.derivative("sigmoid", x), s * (1 - s))
    for activation in (Activation.IDENTITY, Activation.RELU, Activation.LEAKY_RELU):
        assert not activations.has_derivative(activation)
        with pytest.raises(UnsupportedOperation):
            activations.derivative(activation, x)


def test_softmax_and_its_derivative():
    z = np.array([0.1, 0.5, -0.3])
    s = activations.softmax(z)
    assert np.isclose(s.sum(), 1.0)
    assert np.allclose(s, np.exp(z) / np.exp(z).sum())

    jac = activations.softmax_jacobian(z)
    for i in range(3):
        for j in range(3):
            assert np.isclose(activations.softmax_derivative(z, i, j), jac[i, j])
    assert np.isclose(activations.softmax_derivative(z, 1, 1), s[1] * (1 - s[1]))


def test_losses():
    assert losses.mean_squared_error([1.0, 2.0], [1.0, 4.0]) == pytest.approx(2.0)
    assert losses.cross_entropy_sum([0.5, 0.5], [1.0, 0.0]) == pytest.approx(math.log(2))
    assert losses.cross_entropy(0.25, 1.0) == pytest.approx(math.log(4))
    assert losses.categorical_cross_entropy(0.5) == pytest.approx(math.log(2))
    assert losses.categorical_cross_entropy_derivative(0.5, 1.0) == pytest.approx(-2.0)
    assert losses.REGISTRY.get("mse")([0.0], [1.0]) == pytest.approx(1.0)
    with pytest.raises(KeyError):
        losses.REGISTRY.get("hinge")
