"""
Gradient rules for axis reductions.

A `keepdim=False` reduction drops axes, so the upstream gradient (and, for max
and prod, the forward output) is first reshaped with the removed axes
reinserted as size 1, then broadcast back to the input shape.
"""
from GradCatalog.core.tensor import ops
from GradCatalog.core.tensor.slot import set_output
from GradCatalog.core.tensor.utils import get_unsqueeze_dims, normalize_axes

def _reduced_axes(x, axis, reduce_all):
    rank = x.ndim
    if reduce_all or axis is None:
        return tuple(range(rank))
    return normalize_axes(axis, rank)

def _unreduce(value, x, axis, keepdim, reduce_all):
    """Broadcast a reduction result (or its gradient) back to the shape of `x`."""
    if x.ndim <= 1 or keepdim:
        return ops.expand(value, x.shape)
    axes = _reduced_axes(x, axis, reduce_all)
    restored = get_unsqueeze_dims(value.shape, axes)
    return ops.expand(ops.reshape(value, restored), x.shape)

def sum_grad(x, out_grad, axis=None, keepdim=False, reduce_all=False, x_grad=None):
    """
    Gradient of out = sum(x, axis).

    Args:
        x (ndarray): Forward input.
        out_grad (ndarray): Upstream gradient, shaped like the reduction result.
        axis (int or sequence of int, optional): Reduced axes. None or an empty
            sequence means every axis.
        keepdim (bool): The forward reduction kept reduced axes.
        reduce_all (bool): The forward op reduced every axis.
        x_grad (GradSlot, optional): Destination for dL/dx.
    """
    if x_grad is None:
        return
    set_output(_unreduce(out_grad, x, axis, keepdim, reduce_all), x_grad)

def max_grad(x, out, out_grad, axis=None, keepdim=False, reduce_all=False, x_grad=None):
    """
    Gradient of out = max(x, axis).

    Every element equal to the maximum receives the full upstream gradient:
    ties are not split.
    """
    if x_grad is None:
        return
    zeros = ops.full(x.shape, 0.0, x.dtype)
    out_grad_tmp = _unreduce(out_grad, x, axis, keepdim, reduce_all)
    out_tmp = _unreduce(out, x, axis, keepdim, reduce_all)
    mask = ops.equal(x, out_tmp)
    set_output(ops.where(mask, out_grad_tmp, zeros), x_grad)

def prod_grad(x, out, out_grad, axis=None, keepdim=False, reduce_all=False, x_grad=None):
    """
    Gradient of out = prod(x, axis), computed as dout * out / x.

    Not defined where x is exactly zero (the division yields inf/nan there).
    """
    if x_grad is None:
        return
    out_grad_tmp = _unreduce(out_grad, x, axis, keepdim, reduce_all)
    out_tmp = _unreduce(out, x, axis, keepdim, reduce_all)
    set_output(out_grad_tmp * out_tmp * (1 / x), x_grad)

def cumsum_grad(x, out_grad, axis=-1, flatten=False, exclusive=False, reverse=False, x_grad=None):
    """Gradient of cumsum: the cumulative sum of the upstream gradient in the opposite direction."""
    if x_grad is None:
        return
    grad = ops.cumsum(out_grad, axis, flatten, exclusive, not reverse)
    set_output(ops.reshape(grad, x.shape), x_grad)
