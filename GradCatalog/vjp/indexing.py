"""
Gradient rules for indexing operations.

The gradient of a read (gather) scatters the upstream gradient into zeros
shaped like the source; the gradient of a write (scatter) with respect to its
updates gathers the upstream gradient at the same indices.
"""
from GradCatalog.core.tensor import ops
from GradCatalog.core.tensor.slot import by_pass, set_output
from GradCatalog.core.tensor.utils import normalize_axes

def gather_grad(x, index, out_grad, axis=0, x_grad=None):
    """
    Gradient of gather along `axis`.

    The row scatter only works along axis 0, so the gather axis is moved to the
    front, the gradient is accumulated there (repeated indices add up) and the
    result is transposed back.

    Args:
        x (ndarray): Forward source.
        index (ndarray): 1-D positions along `axis` (a scalar index means the
            forward op dropped that axis).
        out_grad (ndarray): Upstream gradient.
        axis (int): Gather axis.
        x_grad (GradSlot, optional): Destination for dL/dx.
    """
    if x_grad is None:
        return
    rank = x.ndim
    axis = normalize_axes(axis, rank)[0]
    if index.ndim == 0:
        index = ops.reshape(index, [1])
        out_grad = ops.reshape(out_grad, x.shape[:axis] + (1,) + x.shape[axis + 1:])

    zeros = ops.full(x.shape, 0.0, x.dtype)
    perm = [axis] + [i for i in range(rank) if i != axis]
    reverse_perm = [0] * rank
    for i, p in enumerate(perm):
        reverse_perm[p] = i

    tmp_zeros = ops.transpose(zeros, perm)
    tmp_out_grad = ops.transpose(out_grad, perm)
    tmp_grad = ops.scatter(tmp_zeros, index, tmp_out_grad, overwrite=False)
    set_output(ops.transpose(tmp_grad, reverse_perm), x_grad)

def gather_nd_grad(x, index, out_grad, x_grad=None):
    if x_grad is None:
        return
    zeros = ops.full(x.shape, 0.0, x.dtype)
    set_output(ops.scatter_nd_add(zeros, index, out_grad), x_grad)

def scatter_grad(index, updates, out_grad, x_grad=None, updates_grad=None):
    """
    Gradient of scatter (rows of `updates` written into x at `index`).

    x loses the rows it had at `index`, so its gradient is the upstream
    gradient with those rows zeroed. The updates gradient is the upstream
    gradient gathered at `index`.
    """
    if x_grad is not None:
        zeros = ops.full(updates.shape, 0.0, updates.dtype)
        set_output(ops.scatter(out_grad, index, zeros, overwrite=False), x_grad)
    if updates_grad is not None:
        set_output(ops.gather(out_grad, index, axis=0), updates_grad)

def scatter_nd_add_grad(index, out_grad, x_grad=None, updates_grad=None):
    if x_grad is not None:
        by_pass(out_grad, x_grad)
    if updates_grad is not None:
        # dUpdates = dOut[index]
        set_output(ops.gather_nd(out_grad, index), updates_grad)

def topk_grad(x, indices, out_grad, axis=-1, x_grad=None):
    """
    Gradient of top-k: place each upstream value back at the position it was selected from.
    """
    if x_grad is None:
        return
    if x.ndim == 0:
        by_pass(out_grad, x_grad)
        return
    axis = normalize_axes(axis, x.ndim)[0]
    zeros = ops.full(x.shape, 0.0, x.dtype)
    set_output(ops.put_along_axis(zeros, indices, out_grad, axis), x_grad)
