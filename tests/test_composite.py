import numpy as np
import pytest

from GradCatalog import GradSlot, UnsupportedAttribute
from GradCatalog.vjp import composite


def _grad(rule, *args, **kwargs):
    slot = GradSlot()
    rule(*args, x_grad=slot, **kwargs)
    return slot.value


def _softmax(x, axis):
    e = np.exp(x - x.max(axis=axis, keepdims=True))
    return e / e.sum(axis=axis, keepdims=True)


def test_softmax_scenario():
    got = _grad(composite.softmax_grad, np.array([0.5, 0.5]), np.array([1.0, 0.0]), axis=-1)
    np.testing.assert_allclose(got, [0.25, -0.25])


@pytest.mark.parametrize("axis", [0, 1, -1])
def test_softmax_matches_finite_differences(fd, rng, axis):
    x = rng.normal(size=(3, 4))
    out_grad = rng.normal(size=(3, 4))
    got = _grad(composite.softmax_grad, _softmax(x, axis), out_grad, axis=axis)
    np.testing.assert_allclose(got, fd(lambda a: _softmax(a, axis), [x], 0, out_grad), rtol=1e-5, atol=1e-7)


def test_softmax_of_scalar_is_zero():
    got = _grad(composite.softmax_grad, np.array(1.0), np.array(3.0))
    assert got.shape == ()
    assert got == 0.0


def test_dropout_scenario():
    mask = np.array([1, 0, 1, 0], dtype=np.uint8)
    got = _grad(composite.dropout_grad, mask, np.ones(4), 0.5)
    np.testing.assert_allclose(got, [2.0, 0.0, 2.0, 0.0])


def test_dropout_full_drop_is_zero():
    got = _grad(composite.dropout_grad, np.zeros(3), np.ones(3), 1.0)
    np.testing.assert_array_equal(got, np.zeros(3))
    assert np.all(np.isfinite(got))


def test_dropout_inference_passes_through():
    out_grad = np.ones(3)
    assert _grad(composite.dropout_grad, np.ones(3), out_grad, 0.3, is_test=True) is out_grad


def test_dropout_downgrade_in_infer():
    mask = np.array([1.0, 0.0])
    out_grad = np.array([2.0, 2.0])
    train = _grad(composite.dropout_grad, mask, out_grad, 0.25, mode="downgrade_in_infer")
    infer = _grad(composite.dropout_grad, mask, out_grad, 0.25, is_test=True, mode="downgrade_in_infer")
    np.testing.assert_allclose(train, [2.0, 0.0])
    np.testing.assert_allclose(infer, [1.5, 1.5])


def test_dropout_keeps_gradient_type():
    out_grad = np.ones(4, dtype=np.float16)
    got = _grad(composite.dropout_grad, np.array([1, 1, 0, 0], dtype=np.uint8), out_grad, 0.5)
    assert got.dtype == np.float16


@pytest.mark.parametrize("p", [-0.1, 1.5])
def test_dropout_rejects_invalid_probability(p):
    with pytest.raises(UnsupportedAttribute):
        _grad(composite.dropout_grad, np.ones(2), np.ones(2), p)
