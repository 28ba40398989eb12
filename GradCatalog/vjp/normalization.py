"""
Gradient rules for layer normalization and instance normalization.

Both rules run under precision promotion: float16/bfloat16 operands are
computed in the wide compute type and each gradient is cast back to the type
of the operand it belongs to.
"""
import math

from GradCatalog.amp import promote_precision
from GradCatalog.core.tensor import ops
from GradCatalog.core.tensor.slot import any_needed, set_output
from GradCatalog.exceptions import ShapeMismatch

@promote_precision(x_grad="x", scale_grad="scale", bias_grad="bias")
def layer_norm_grad(x, scale, bias, mean, variance, out_grad, epsilon=1e-5, begin_norm_axis=1,
                    x_grad=None, scale_grad=None, bias_grad=None):
    """
    Gradient of layer normalization.

    The input is viewed as (batch, normalized) with batch = prod(shape[:begin_norm_axis]).
    With x_hat the whitened input and g = dY * scale:

        dX     = inv_std * (g - mean(g) - x_hat * mean(g * x_hat))
        dScale = sum_batch(dY * x_hat)
        dBias  = sum_batch(dY)

    Args:
        x (ndarray): Forward input.
        scale (ndarray or None): Forward scale operand, None if the op had none.
        bias (ndarray or None): Forward bias operand, None if the op had none.
        mean (ndarray): Saved per-row mean (batch elements).
        variance (ndarray): Saved per-row variance (batch elements).
        out_grad (ndarray): Upstream gradient.
        epsilon (float): Forward epsilon.
        begin_norm_axis (int): First normalized axis.
        x_grad, scale_grad, bias_grad (GradSlot, optional): Destinations. The
            scale/bias slots stay unwritten when the operand is absent.
    """
    if not any_needed(x_grad, scale_grad, bias_grad):
        return
    rank = x.ndim
    if begin_norm_axis < 0:
        begin_norm_axis += rank
    if not 0 <= begin_norm_axis <= rank:
        raise ShapeMismatch(f"begin_norm_axis {begin_norm_axis} is out of range for rank {rank}")
    shape_1 = math.prod(x.shape[:begin_norm_axis])  # front part
    shape_2 = math.prod(x.shape[begin_norm_axis:])  # back part

    need_scale = scale_grad is not None and scale is not None
    need_bias = bias_grad is not None and bias is not None
    if x_grad is None and not need_scale and not need_bias:
        return

    out_grad_cast = ops.reshape(out_grad, [shape_1, shape_2])
    if x_grad is not None or need_scale:
        x_cast = ops.reshape(x, [shape_1, shape_2])
        mean_ = ops.reshape(mean, [shape_1, 1])
        variance_ = ops.reshape(variance, [shape_1, 1])

        x_sub_mean = x_cast - mean_                         # M,N
        inv_var = 1.0 / (variance_ + epsilon)               # M,1
        inv_std = ops.sqrt(inv_var)                         # M,1
        x_hat = x_sub_mean * inv_std

    if x_grad is not None:
        out_grad_scale = out_grad_cast
        if scale is not None:
            out_grad_scale = out_grad_cast * ops.reshape(scale, [1, shape_2])

        dx_end = inv_std * out_grad_scale
        d_mean = ops.sum(dx_end, [1], keepdim=True)                                   # M,1
        d_std = ops.sum(inv_var * x_sub_mean * out_grad_scale, [1], keepdim=True) * x_hat  # M,N

        x_grad_tmp = dx_end - (1.0 / shape_2) * (d_mean + d_std)
        x_grad_tmp = ops.reshape(x_grad_tmp, x.shape)
        set_output(ops.cast(x_grad_tmp, x.dtype), x_grad)

    if need_scale:
        scale_grad_tmp = ops.sum(x_hat * out_grad_cast, [0], keepdim=True)
        set_output(ops.cast(ops.reshape(scale_grad_tmp, scale.shape), scale.dtype), scale_grad)

    if need_bias:
        bias_grad_tmp = ops.sum(out_grad_cast, [0], keepdim=True)
        set_output(ops.cast(ops.reshape(bias_grad_tmp, bias.shape), bias.dtype), bias_grad)

@promote_precision(x_grad="x", scale_grad=("scale", "x"), bias_grad=("scale", "x"))
def instance_norm_grad(x, scale, saved_mean, saved_variance, out_grad,
                       x_grad=None, scale_grad=None, bias_grad=None):
    """
    Gradient of instance normalization over an (N, C, *spatial) input.

    `saved_mean` and `saved_variance` hold one value per (n, c); as saved by
    the forward op, `saved_variance` is the inverse standard deviation. The
    statistics are tiled explicitly across the spatial axes.

    Scale and bias gradients are written whenever requested; without a scale
    operand the scale is taken as ones and the gradients use the type of `x`.
    """
    if not any_needed(x_grad, scale_grad, bias_grad):
        return
    if x.ndim < 3:
        raise ShapeMismatch(f"instance norm expects (N, C, *spatial), got shape {tuple(x.shape)}")
    n, c = x.shape[0], x.shape[1]
    spatial = list(x.shape[2:])
    spatial_axes = list(range(2, x.ndim))
    ones = [1] * len(spatial)
    hw = math.prod(spatial)

    x_hat = None
    std_inv = None
    if scale_grad is not None or x_grad is not None:
        mean = ops.tile(ops.reshape(saved_mean, [n, c] + ones), [1, 1] + spatial)
        std_inv = ops.tile(ops.reshape(saved_variance, [n, c] + ones), [1, 1] + spatial)
        x_hat = (x - mean) * std_inv

    # x_grad = scale * inv_std * (dy - mean_hw(dy) - x_hat * mean_hw(dy * x_hat))
    if x_grad is not None:
        scale_data = scale if scale is not None else ops.full([c], 1.0, x.dtype)
        scale_data = ops.tile(ops.reshape(scale_data, [1, c] + ones), [n, 1] + spatial)
        result = (scale_data * std_inv) * (
            out_grad
            - ops.sum(out_grad, spatial_axes, keepdim=True) / hw
            - x_hat * (ops.sum(out_grad * x_hat, spatial_axes, keepdim=True) / hw)
        )
        set_output(ops.cast(result, x.dtype), x_grad)

    param_dtype = scale.dtype if scale is not None else x.dtype
    # scale_grad = sum_{n, hw}(dy * x_hat)
    if scale_grad is not None:
        set_output(ops.cast(ops.sum(out_grad * x_hat, [0] + spatial_axes), param_dtype), scale_grad)
    # bias_grad = sum_{n, hw}(dy)
    if bias_grad is not None:
        set_output(ops.cast(ops.sum(out_grad, [0] + spatial_axes), param_dtype), bias_grad)
