import inspect

import numpy as np
import pytest

from GradCatalog import GradSlot, RULES, grad_slot_names
from GradCatalog.core.tensor import ops
from GradCatalog.vjp import elementwise


class _Opaque:
    """Stands in for a tensor; any use of it fails the test."""

    def __getattr__(self, name):
        raise AssertionError(f"tensor accessed: .{name}")


@pytest.fixture
def forbid_primitives(monkeypatch):
    def forbidden(name):
        def call(*args, **kwargs):
            raise AssertionError(f"primitive {name} called")
        return call

    for name, fn in list(vars(ops).items()):
        if inspect.isfunction(fn) and fn.__module__ == ops.__name__:
            monkeypatch.setattr(ops, name, forbidden(name))


@pytest.mark.parametrize("op", sorted(RULES))
def test_all_null_slots_do_nothing(forbid_primitives, op):
    rule = RULES[op]
    slots = set(grad_slot_names(op))
    kwargs = {}
    for name, param in inspect.signature(rule).parameters.items():
        if name in slots:
            kwargs[name] = None
        elif param.default is inspect.Parameter.empty:
            kwargs[name] = _Opaque()
    assert rule(**kwargs) is None


def test_null_slot_skips_its_branch(monkeypatch):
    calls = []
    real_sum = ops.sum

    def spy(*args, **kwargs):
        calls.append(args[0].shape)
        return real_sum(*args, **kwargs)

    monkeypatch.setattr(ops, "sum", spy)
    x = np.ones((2, 3))
    y = np.ones((3,))
    dx = GradSlot()
    elementwise.add_grad(x, y, np.ones((2, 3)), x_grad=dx, y_grad=None)
    assert calls == []
    assert dx.written


def test_matching_shapes_issue_no_reduction(monkeypatch):
    monkeypatch.setattr(ops, "sum", lambda *a, **k: pytest.fail("unexpected reduction"))
    out_grad = np.ones((2, 3))
    dx, dy = GradSlot(), GradSlot()
    elementwise.add_grad(np.ones((2, 3)), np.ones((2, 3)), out_grad, x_grad=dx, y_grad=dy)
    assert dx.value is out_grad and dy.value is out_grad
