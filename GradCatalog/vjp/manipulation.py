"""
Gradient rules for pure shape transforms.

Each rule applies the geometric inverse of the forward transform to the
upstream gradient. The element type never changes (except for `cast`, whose
inverse is a cast back).
"""
from GradCatalog.core.tensor import ops
from GradCatalog.core.tensor.slot import any_needed, by_pass, set_output
from GradCatalog.core.tensor.utils import normalize_axes, reduce_to_shape
from GradCatalog.exceptions import ShapeMismatch

# ============================================================================
# Identity-like
# ============================================================================

def assign_grad(out_grad, x_grad=None):
    by_pass(out_grad, x_grad)

def cast_grad(x, out_grad, x_grad=None):
    if x_grad is None:
        return
    set_output(ops.cast(out_grad, x.dtype), x_grad)

def reshape_grad(x, out_grad, x_grad=None):
    if x_grad is None:
        return
    set_output(ops.reshape(out_grad, x.shape), x_grad)

# ============================================================================
# Permutations
# ============================================================================

def transpose_grad(out_grad, perm, x_grad=None):
    """
    Gradient of transpose: transpose back with the inverse permutation.

    Args:
        out_grad (ndarray): Upstream gradient.
        perm (sequence of int): Forward permutation (negative entries allowed).
        x_grad (GradSlot, optional): Destination for dL/dx.
    """
    if x_grad is None:
        return
    rank = len(perm)
    if rank != out_grad.ndim:
        raise ShapeMismatch(f"permutation {list(perm)} does not match rank {out_grad.ndim}")
    reverse_perm = [0] * rank
    for i, p in enumerate(perm):
        reverse_perm[p + rank if p < 0 else p] = i
    set_output(ops.transpose(out_grad, reverse_perm), x_grad)

def roll_grad(out_grad, shifts, axis=None, x_grad=None):
    if x_grad is None:
        return
    if isinstance(shifts, int):
        shifts = [shifts]
    set_output(ops.roll(out_grad, [-int(s) for s in shifts], axis), x_grad)

# ============================================================================
# Broadcast-like
# ============================================================================

def expand_grad(x, out_grad, x_grad=None):
    """Sum the expanded gradient back down to the shape of `x`."""
    if x_grad is None:
        return
    set_output(reduce_to_shape(out_grad, x.shape), x_grad)

def tile_grad(x, out_grad, repeat_times, x_grad=None):
    """
    Gradient of tile.

    The tiled axis i of length r*s is viewed as (r, s) with the repeat index
    major; summing every repeat axis folds all copies onto the original.
    Shorter `repeat_times` or a lower-rank `x` are left-padded with 1, as the
    forward op does.
    """
    if x_grad is None:
        return
    rank = out_grad.ndim
    reps = [1] * (rank - len(repeat_times)) + [int(r) for r in repeat_times]
    x_shape = [1] * (rank - x.ndim) + list(x.shape)
    interleaved = []
    for i, (r, s) in enumerate(zip(reps, x_shape)):
        if r * s != out_grad.shape[i]:
            raise ShapeMismatch(
                f"gradient shape {tuple(out_grad.shape)} is not {tuple(x.shape)} tiled by {list(repeat_times)}"
            )
        interleaved.extend([r, s])
    grad = ops.reshape(out_grad, interleaved)
    grad = ops.sum(grad, list(range(0, 2 * rank, 2)), keepdim=False)
    set_output(ops.reshape(grad, x.shape), x_grad)

# ============================================================================
# Crop / pad
# ============================================================================

def slice_grad(x, out_grad, axes, starts, decrease_axis=None, x_grad=None):
    """
    Gradient of slice: zero-pad the upstream gradient back to the input shape.

    Args:
        x (ndarray): Forward input.
        out_grad (ndarray): Upstream gradient.
        axes (sequence of int): Sliced axes.
        starts (sequence of int): Start of each slice (negative counts from the end).
        decrease_axis (sequence of int, optional): Axes the forward op squeezed
            out after slicing (each had extent 1).
        x_grad (GradSlot, optional): Destination for dL/dx.
    """
    if x_grad is None:
        return
    rank = x.ndim
    in_shape = x.shape
    grad = out_grad
    if decrease_axis:
        decreased = set(normalize_axes(decrease_axis, rank))
        dims = iter(out_grad.shape)
        origin_shape = [1 if i in decreased else next(dims) for i in range(rank)]
        grad = ops.reshape(out_grad, origin_shape)

    offsets = [0] * rank
    for axis, start in zip(axes, starts):
        axis = normalize_axes(axis, rank)[0]
        start = int(start)
        if start < 0:
            start += in_shape[axis]
        offsets[axis] = min(max(start, 0), in_shape[axis])

    paddings = []
    for i in range(rank):
        paddings.append(offsets[i])
        paddings.append(in_shape[i] - grad.shape[i] - offsets[i])
    set_output(ops.pad(grad, paddings, 0.0), x_grad)

def pad_grad(x, out_grad, paddings, x_grad=None):
    """
    Gradient of constant pad: crop the padded border off the upstream gradient.

    Args:
        paddings (sequence of int): Flat `[before_0, after_0, ...]` as given to the forward op.
    """
    if x_grad is None:
        return
    rank = x.ndim
    axes = list(range(rank))
    starts = [int(paddings[2 * i]) for i in range(rank)]
    ends = [out_grad.shape[i] - int(paddings[2 * i + 1]) for i in range(rank)]
    set_output(ops.slice(out_grad, axes, starts, ends), x_grad)

# ============================================================================
# Split / concat
# ============================================================================

def split_grad(out_grad, axis=0, x_grad=None):
    """
    Gradient of split: concatenate the per-piece gradients.

    Args:
        out_grad (list of ndarray): One upstream gradient per forward output, in order.
        axis (int): Forward split axis.
    """
    if x_grad is None:
        return
    axis = normalize_axes(axis, out_grad[0].ndim)[0]
    set_output(ops.concat(out_grad, axis), x_grad)

def concat_grad(x, out_grad, axis=0, x_grad=None):
    """
    Gradient of concat: split the upstream gradient into the input extents.

    Args:
        x (list of ndarray): Forward inputs.
        out_grad (ndarray): Upstream gradient.
        axis (int): Forward concat axis.
        x_grad (list of GradSlot or None, optional): One destination per input.
    """
    if not x_grad or not any_needed(x_grad):
        return
    axis = normalize_axes(axis, x[0].ndim)[0]
    sections = [t.shape[axis] for t in x]
    pieces = ops.split(out_grad, sections, axis)
    for piece, slot in zip(pieces, x_grad):
        set_output(piece, slot)
