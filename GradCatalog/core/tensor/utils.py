"""
Shape and broadcast algebra shared by the gradient rules.

Pure functions on shapes (tuples of ints) plus `reduce_to_shape`, the one
place that turns a gradient computed at a broadcast shape back into an
operand's shape.
"""
from GradCatalog.core.tensor import ops
from GradCatalog.exceptions import ShapeMismatch

def normalize_axes(axes, rank):
    """
    Resolve negative axes and sort them.

    Args:
        axes (int, sequence of int, or None): Axes, possibly negative. None or
            an empty sequence means every axis.
        rank (int): Rank of the shape the axes refer to.

    Returns:
        tuple[int, ...]: Ascending, non-negative, de-duplicated axes.
    """
    if axes is None or rank == 0:
        return tuple(range(rank))
    if isinstance(axes, int):
        axes = [axes]
    axes = list(axes)
    if not axes:
        return tuple(range(rank))
    out = set()
    for a in axes:
        a = int(a)
        if a < -rank or a >= rank:
            raise ShapeMismatch(f"axis {a} is out of range for rank {rank}")
        out.add(a + rank if a < 0 else a)
    return tuple(sorted(out))

def broadcast_shape(*shapes):
    """Return the shape produced by broadcasting `shapes` together."""
    rank = max(len(s) for s in shapes)
    result = []
    for i in range(rank):
        size = 1
        for s in shapes:
            j = i - (rank - len(s))
            if j < 0:
                continue
            d = int(s[j])
            if d == 1:
                continue
            if size != 1 and d != size:
                raise ShapeMismatch(f"shapes {[tuple(x) for x in shapes]} are not broadcast-compatible")
            size = d
        result.append(size)
    return tuple(result)

def get_reduce_dims(target, smaller):
    """
    Axes of `target` that must be summed away to recover `smaller`.

    Shapes are right-aligned. An axis is reduced when `smaller` does not have
    it (extra leading axes of `target`) or when the sizes differ and
    `smaller` has size 1 there. Equal sizes are never reduced.

    Args:
        target (sequence of int): The broadcast (larger) shape.
        smaller (sequence of int): A shape that broadcasts to `target`.

    Returns:
        tuple[int, ...]: Ascending reduce axes, indexed in `target`.

    Raises:
        ShapeMismatch: If `smaller` does not broadcast to `target`.
    """
    target = tuple(int(d) for d in target)
    smaller = tuple(int(d) for d in smaller)
    offset = len(target) - len(smaller)
    if offset < 0:
        raise ShapeMismatch(f"shape {smaller} has higher rank than {target}")
    axes = []
    for i, size in enumerate(target):
        if i < offset:
            axes.append(i)
            continue
        other = smaller[i - offset]
        if other == size:
            continue
        if other != 1:
            raise ShapeMismatch(f"shape {smaller} does not broadcast to {target}")
        axes.append(i)
    return tuple(axes)

def get_reduce_dims_from_out(out_shape, in_shape):
    """
    Reduce axes for a gradient whose natural shape is the elementwise result
    shape `out_shape`, so that it can be summed down to `in_shape`.
    """
    return get_reduce_dims(out_shape, in_shape)

def get_unsqueeze_dims(reduced_shape, axes):
    """
    Shape of a `keepdim=False` reduction result with the removed axes put back.

    Args:
        reduced_shape (sequence of int): Shape after the reduction.
        axes (sequence of int): Non-negative axes that were removed, indexed
            in the original (pre-reduction) rank.

    Returns:
        list[int]: `reduced_shape` with a size-1 dimension inserted at every
        axis of `axes`, in ascending order.
    """
    shape = [int(d) for d in reduced_shape]
    for axis in sorted(axes):
        shape.insert(axis, 1)
    return shape

def reduce_to_shape(value, shape):
    """
    Sum a broadcast gradient back down to an operand's exact shape.

    If `value` already has `shape` it is returned as is, so the caller's
    upstream gradient is aliased and no reduction is issued.

    Args:
        value (ndarray): Gradient at the broadcast shape.
        shape (sequence of int): Target operand shape.

    Returns:
        ndarray: Gradient of shape `shape`.
    """
    shape = tuple(int(d) for d in shape)
    if tuple(value.shape) == shape:
        return value
    axes = get_reduce_dims_from_out(value.shape, shape)
    reduced = ops.sum(value, axes, keepdim=False) if axes else value
    if tuple(reduced.shape) != shape:
        reduced = ops.reshape(reduced, shape)
    return reduced
