"""
Tensor primitive surface.

Every gradient rule builds its result exclusively from the functions in this
module plus the array operators (`+`, `-`, `*`, `/`, unary `-`). Each function
looks up `backend.xp` when called, so the same rule runs on NumPy or CuPy
arrays. Inputs are never modified; results are new arrays or read-only views.
"""
import builtins

import GradCatalog.core.backend.backend as backend

# ============================================================================
# Creation / cast operations
# ============================================================================

def full(shape, value, dtype):
    """
    Create an array filled with a constant.

    Args:
        shape (sequence of int): Desired shape.
        value (scalar): Fill value.
        dtype (dtype): Element type.

    Returns:
        ndarray: New array of `shape` filled with `value`.
    """
    return backend.xp.full(tuple(shape), value, dtype=dtype)

def cast(x, dtype):
    """Cast `x` to `dtype` (returns `x` itself when it already has that type)."""
    return x.astype(dtype, copy=False)

def scale(x, scale=1.0, bias=0.0, bias_after_scale=True):
    """
    Affine rescale keeping the element type of `x`.

    Computes `x * scale + bias` or, with `bias_after_scale=False`,
    `(x + bias) * scale`.
    """
    if bias_after_scale:
        out = x * scale + bias
    else:
        out = (x + bias) * scale
    return out.astype(x.dtype, copy=False)

# ============================================================================
# Unary operations
# ============================================================================

def exp(x):
    return backend.xp.exp(x)

def log(x):
    return backend.xp.log(x)

def sin(x):
    return backend.xp.sin(x)

def cos(x):
    return backend.xp.cos(x)

def tanh(x):
    return backend.xp.tanh(x)

def sqrt(x):
    return backend.xp.sqrt(x)

def sign(x):
    return backend.xp.sign(x)

def erf(x):
    """
    Elementwise Gauss error function.

    NumPy has no `erf`, so it comes from SciPy (or `cupyx.scipy` on GPU). The
    result is cast back to the element type of `x`.
    """
    if backend.is_gpu():
        from cupyx.scipy.special import erf as _erf
    else:
        from scipy.special import erf as _erf
    return _erf(x).astype(x.dtype, copy=False)

def elementwise_pow(x, y):
    """Elementwise power with broadcasting: out = x ** y."""
    return backend.xp.power(x, y)

# ============================================================
# Comparison / selection operations
# ============================================================

def equal(x, y):
    return backend.xp.equal(x, y)

def greater_than(x, y):
    return backend.xp.greater(x, y)

def greater_equal(x, y):
    return backend.xp.greater_equal(x, y)

def less_than(x, y):
    return backend.xp.less(x, y)

def less_equal(x, y):
    return backend.xp.less_equal(x, y)

def where(condition, x, y):
    """Select from `x` where `condition` holds, otherwise from `y`."""
    return backend.xp.where(condition, x, y)

# ============================================================
# Reduction operations
# ============================================================

def sum(x, axis=None, dtype=None, keepdim=False):
    """
    Reduction sum over an axis set.

    Args:
        x (ndarray): Input array.
        axis (int or sequence of int, optional): Axes to reduce. None reduces all.
        dtype (dtype, optional): Accumulation/result type. Default: `x.dtype`.
        keepdim (bool): Keep reduced axes as size-1 dimensions.

    Returns:
        ndarray: Reduced array (rank 0 when everything is reduced).
    """
    if axis is not None and not isinstance(axis, int):
        axis = tuple(axis)
    out = backend.xp.sum(x, axis=axis, dtype=dtype or x.dtype, keepdims=keepdim)
    return backend.xp.asarray(out)

def cumsum(x, axis=-1, flatten=False, exclusive=False, reverse=False):
    """
    Cumulative sum along one axis.

    Args:
        x (ndarray): Input array.
        axis (int): Axis to accumulate along (ignored when `flatten`).
        flatten (bool): Accumulate over the flattened array.
        exclusive (bool): Exclude the current element from each partial sum.
        reverse (bool): Accumulate from the end of the axis towards the start.

    Returns:
        ndarray: Partial sums (1-D when `flatten`).
    """
    xp = backend.xp
    if flatten:
        x = x.reshape(-1)
        axis = 0
    if reverse:
        x = xp.flip(x, axis=axis)
    out = xp.cumsum(x, axis=axis, dtype=x.dtype)
    if exclusive:
        out = out - x
    if reverse:
        out = xp.flip(out, axis=axis)
    return out

# ============================================================
# Shape operations
# ============================================================

def reshape(x, shape):
    return backend.xp.reshape(x, tuple(shape))

def transpose(x, perm):
    return backend.xp.transpose(x, tuple(perm))

def expand(x, shape):
    """
    Broadcast `x` to `shape`.

    A -1 entry keeps the (right-aligned) size of `x` at that position.
    """
    shape = list(shape)
    offset = len(shape) - x.ndim
    for i, size in enumerate(shape):
        if size == -1:
            shape[i] = x.shape[i - offset]
    return backend.xp.broadcast_to(x, tuple(shape))

def tile(x, repeat_times):
    return backend.xp.tile(x, tuple(repeat_times))

def slice(x, axes, starts, ends):
    """
    Basic slice of `x`: along each `axes[i]` keep `[starts[i], ends[i])`.

    Negative bounds count from the end and out-of-range bounds are clamped,
    as in Python slicing.
    """
    index = [builtins.slice(None)] * x.ndim
    for axis, start, end in zip(axes, starts, ends):
        index[axis] = builtins.slice(int(start), int(end))
    return x[tuple(index)]

def pad(x, paddings, pad_value=0.0):
    """
    Constant padding.

    Args:
        x (ndarray): Input array.
        paddings (sequence of int): Flat `[before_0, after_0, before_1, after_1, ...]`.
        pad_value (scalar): Fill value.

    Returns:
        ndarray: Padded array.
    """
    pairs = [(int(paddings[2 * i]), int(paddings[2 * i + 1])) for i in range(x.ndim)]
    return backend.xp.pad(x, pairs, mode="constant", constant_values=pad_value)

def roll(x, shifts, axis=None):
    """
    Roll elements along axes; with no axes the flattened array is rolled.
    """
    if isinstance(shifts, int):
        shifts = [shifts]
    if isinstance(axis, int):
        axis = [axis]
    shifts = [int(s) for s in shifts]
    if not axis:
        return backend.xp.roll(x, shifts[0], axis=None)
    return backend.xp.roll(x, tuple(shifts), axis=tuple(axis))

def split(x, sections, axis=0):
    """
    Split `x` into consecutive pieces along `axis`.

    Args:
        x (ndarray): Input array.
        sections (sequence of int): Piece sizes; one entry may be -1 (inferred).
        axis (int): Split axis.

    Returns:
        list[ndarray]: The pieces, in order.
    """
    sections = [int(s) for s in sections]
    if -1 in sections:
        known = builtins.sum(s for s in sections if s != -1)
        sections[sections.index(-1)] = x.shape[axis] - known
    indices = []
    total = 0
    for size in sections[:-1]:
        total += size
        indices.append(total)
    return backend.xp.split(x, indices, axis=axis)

def concat(xs, axis=0):
    return backend.xp.concatenate(list(xs), axis=axis)

# ============================================================
# Indexing & Selection operations
# ============================================================

def _add_at(out, index, values):
    if backend.is_gpu():
        try:
            from cupyx import scatter_add
        except ImportError:
            from cupyx._scatter import scatter_add
        scatter_add(out, index, values)
    else:
        backend.xp.add.at(out, index, values)

def gather(x, index, axis=0):
    """Take whole slices of `x` along `axis` at positions `index` (1-D)."""
    return backend.xp.take(x, index, axis=axis)

def _nd_index(index):
    index = backend.xp.asarray(index)
    return tuple(index[..., i] for i in range(index.shape[-1]))

def gather_nd(x, index):
    """
    Gather by index tree: the last axis of `index` addresses the leading axes of `x`.
    """
    return x[_nd_index(index)]

def scatter(x, index, updates, overwrite=True):
    """
    Write rows of `updates` into a copy of `x` at positions `index` along axis 0.

    Args:
        x (ndarray): Base array.
        index (ndarray): 1-D row indices.
        updates (ndarray): Rows to write, shape `(len(index),) + x.shape[1:]`.
        overwrite (bool): If True, rows are replaced. If False, the addressed
            rows are zeroed first and then every update is accumulated, so
            duplicated indices add up.

    Returns:
        ndarray: New array.
    """
    out = x.copy()
    if overwrite:
        out[index] = updates
    else:
        out[index] = 0
        _add_at(out, index, updates)
    return out

def scatter_nd_add(x, index, updates):
    """Accumulate `updates` into a copy of `x` at the index tree `index`."""
    out = x.copy()
    _add_at(out, _nd_index(index), updates)
    return out

def put_along_axis(x, indices, values, axis):
    """Copy of `x` with `values` written at `indices` along `axis`."""
    out = x.copy()
    backend.xp.put_along_axis(out, indices, values, axis=axis)
    return out
