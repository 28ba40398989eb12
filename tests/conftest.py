import numpy as np
import pytest

import GradCatalog.core.backend.backend as backend
from GradCatalog.core.backend.context import promotion_scope


@pytest.fixture(autouse=True)
def cpu_backend():
    backend.use_cpu()
    with promotion_scope(True, "float32"):
        yield


@pytest.fixture
def rng():
    return np.random.default_rng(0)


def numeric_vjp(forward, inputs, index, out_grad, eps=1e-6):
    """
    Central finite-difference estimate of d(sum(forward(*inputs) * out_grad)) / d inputs[index].
    """
    inputs = [np.array(a, dtype=np.float64) for a in inputs]
    target = inputs[index]
    grad = np.zeros_like(target)
    for pos in np.ndindex(target.shape):
        orig = target[pos]
        target[pos] = orig + eps
        plus = np.sum(forward(*inputs) * out_grad)
        target[pos] = orig - eps
        minus = np.sum(forward(*inputs) * out_grad)
        target[pos] = orig
        grad[pos] = (plus - minus) / (2 * eps)
    return grad


@pytest.fixture
def fd():
    return numeric_vjp
