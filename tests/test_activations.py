import numpy as np
import pytest
from scipy.special import erf

from GradCatalog import GradSlot
from GradCatalog.core.backend.context import promotion_scope
from GradCatalog.amp import promote_precision
from GradCatalog.vjp import activations


def _sigmoid(x):
    return 1.0 / (1.0 + np.exp(-x))


def _gelu(x):
    return 0.5 * x * (1.0 + erf(x / np.sqrt(2.0)))


def _gelu_tanh(x):
    return 0.5 * x * (1.0 + np.tanh(np.sqrt(2.0 / np.pi) * (x + 0.044715 * x ** 3)))


def _hardswish(x):
    return x * np.clip(x + 3.0, 0.0, 6.0) / 6.0


def _grad(rule, **kwargs):
    slot = GradSlot()
    rule(x_grad=slot, **kwargs)
    return slot.value


# (rule, forward, which forward tensors the rule consumes, input range)
UNARY_CASES = [
    (activations.sin_grad, np.sin, ("x",), (-3.0, 3.0)),
    (activations.cos_grad, np.cos, ("x",), (-3.0, 3.0)),
    (activations.tanh_grad, np.tanh, ("out",), (-2.0, 2.0)),
    (activations.exp_grad, np.exp, ("out",), (-2.0, 2.0)),
    (activations.log_grad, np.log, ("x",), (0.5, 3.0)),
    (activations.sqrt_grad, np.sqrt, ("out",), (0.5, 3.0)),
    (activations.erf_grad, erf, ("x",), (-2.0, 2.0)),
    (activations.abs_grad, np.abs, ("x",), (0.1, 2.0)),
    (activations.sigmoid_grad, _sigmoid, ("out",), (-3.0, 3.0)),
    (activations.silu_grad, lambda x: x * _sigmoid(x), ("x", "out"), (-3.0, 3.0)),
    (activations.gelu_grad, _gelu, ("x",), (-3.0, 3.0)),
    (activations.hardswish_grad, _hardswish, ("x",), (-2.5, 2.5)),
]


@pytest.mark.parametrize("rule, forward, needs, bounds", UNARY_CASES, ids=lambda c: getattr(c, "__name__", None))
def test_unary_matches_finite_differences(fd, rng, rule, forward, needs, bounds):
    x = rng.uniform(*bounds, size=(3, 4))
    out_grad = rng.normal(size=(3, 4))
    tensors = {"x": x, "out": forward(x)}
    got = _grad(rule, out_grad=out_grad, **{name: tensors[name] for name in needs})
    np.testing.assert_allclose(got, fd(forward, [x], 0, out_grad), rtol=1e-5, atol=1e-7)
    assert got.shape == x.shape


def test_gelu_tanh_approximation(fd, rng):
    x = rng.uniform(-3.0, 3.0, size=(5,))
    out_grad = rng.normal(size=(5,))
    got = _grad(activations.gelu_grad, x=x, out_grad=out_grad, approximate=True)
    np.testing.assert_allclose(got, fd(_gelu_tanh, [x], 0, out_grad), rtol=1e-5, atol=1e-7)


def test_relu_scenario():
    out = np.array([0.0, 2.0, 0.0, 0.0])  # relu([-1, 2, -3, 0])
    got = _grad(activations.relu_grad, out=out, out_grad=np.ones(4))
    np.testing.assert_allclose(got, [0.0, 1.0, 0.0, 0.0])


def test_leaky_relu_uses_slope_on_negative_side():
    x = np.array([-2.0, 3.0])
    out = np.where(x > 0, x, 0.1 * x)
    got = _grad(activations.leaky_relu_grad, out=out, out_grad=np.array([1.0, 1.0]), negative_slope=0.1)
    np.testing.assert_allclose(got, [0.1, 1.0])


def test_hardswish_regions():
    x = np.array([-4.0, 0.0, 4.0])
    got = _grad(activations.hardswish_grad, x=x, out_grad=np.ones(3))
    np.testing.assert_allclose(got, [0.0, 0.5, 1.0])


def test_floor_gradient_is_zero():
    out_grad = np.ones((2, 2), dtype=np.float32)
    got = _grad(activations.floor_grad, out_grad=out_grad)
    np.testing.assert_array_equal(got, np.zeros((2, 2)))
    assert got.dtype == np.float32


@pytest.mark.parametrize("rule, forward, needs", [
    (activations.exp_grad, np.exp, ("out",)),
    (activations.silu_grad, lambda x: x * _sigmoid(x), ("x", "out")),
    (activations.gelu_grad, _gelu, ("x",)),
])
def test_half_precision_is_promoted_and_cast_back(rule, forward, needs):
    x = np.linspace(-1.0, 1.0, 8).astype(np.float16)
    tensors = {"x": x, "out": forward(x.astype(np.float64)).astype(np.float16)}
    got = _grad(rule, out_grad=np.ones(8, dtype=np.float16), **{name: tensors[name] for name in needs})
    assert got.dtype == np.float16

    reference = _grad(rule, out_grad=np.ones(8), **{name: tensors[name].astype(np.float64) for name in needs})
    np.testing.assert_allclose(got.astype(np.float64), reference, rtol=2e-3, atol=2e-3)


def test_promotion_can_be_disabled():
    seen = []

    @promote_precision(x_grad="x")
    def probe(x, out_grad, x_grad=None):
        seen.append(x.dtype)
        x_grad.value = out_grad

    x = np.ones(2, dtype=np.float16)
    with promotion_scope(False):
        probe(x, x, x_grad=GradSlot())
    probe(x, x, x_grad=GradSlot())
    assert seen == [np.float16, np.float32]
