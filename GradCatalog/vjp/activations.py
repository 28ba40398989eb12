"""
Gradient rules for elementwise unary operations.

Each rule multiplies the upstream gradient by the local derivative, written in
terms of the forward input or the forward output, whichever is cheaper.
"""
import math

from GradCatalog.amp import promote_precision
from GradCatalog.core.tensor import ops
from GradCatalog.core.tensor.slot import set_output

M_2_SQRTPI = 2.0 / math.sqrt(math.pi)
M_SQRT1_2 = 1.0 / math.sqrt(2.0)

# ============================================================================
# Trigonometric / transcendental
# ============================================================================

def sin_grad(x, out_grad, x_grad=None):
    if x_grad is None:
        return
    set_output(ops.cos(x) * out_grad, x_grad)

def cos_grad(x, out_grad, x_grad=None):
    if x_grad is None:
        return
    set_output(-ops.sin(x) * out_grad, x_grad)

def tanh_grad(out, out_grad, x_grad=None):
    """d tanh(x) = 1 - tanh(x)^2, taken from the forward output."""
    if x_grad is None:
        return
    set_output(out_grad * (1 - out * out), x_grad)

@promote_precision(x_grad="out")
def exp_grad(out, out_grad, x_grad=None):
    """
    Gradient of `exp`.

    Args:
        out (ndarray): Forward output exp(x).
        out_grad (ndarray): Upstream gradient.
        x_grad (GradSlot, optional): Destination for dL/dx.

    Notes:
        Narrow float inputs are promoted before the product and the result is
        cast back to the type of `out`.
    """
    if x_grad is None:
        return
    set_output(out_grad * out, x_grad)

def log_grad(x, out_grad, x_grad=None):
    if x_grad is None:
        return
    # dx = dout / x
    set_output(out_grad / x, x_grad)

def sqrt_grad(out, out_grad, x_grad=None):
    if x_grad is None:
        return
    set_output((0.5 / out) * out_grad, x_grad)

def erf_grad(x, out_grad, x_grad=None):
    """d erf(x) = 2/sqrt(pi) * exp(-x^2)."""
    if x_grad is None:
        return
    set_output(out_grad * (M_2_SQRTPI * ops.exp(-(x * x))), x_grad)

def abs_grad(x, out_grad, x_grad=None):
    if x_grad is None:
        return
    set_output(out_grad * ops.sign(x), x_grad)

def floor_grad(out_grad, x_grad=None):
    """Floor is piecewise constant: the gradient is zero everywhere."""
    if x_grad is None:
        return
    set_output(ops.full(out_grad.shape, 0.0, out_grad.dtype), x_grad)

# ============================================================================
# Activations
# ============================================================================

def sigmoid_grad(out, out_grad, x_grad=None):
    if x_grad is None:
        return
    set_output(out_grad * (out * (1 - out)), x_grad)

@promote_precision(x_grad="x")
def silu_grad(x, out, out_grad, x_grad=None):
    """
    Gradient of silu(x) = x * sigmoid(x).

    Uses d silu = sigmoid(x) * (1 + x - out).
    """
    if x_grad is None:
        return
    sigmoid = 1.0 / (1.0 + ops.exp(-x))
    set_output(out_grad * sigmoid * (1.0 + x - out), x_grad)

@promote_precision(x_grad="x")
def gelu_grad(x, out_grad, approximate=False, x_grad=None):
    """
    Gradient of GELU.

    Args:
        x (ndarray): Forward input.
        out_grad (ndarray): Upstream gradient.
        approximate (bool): The forward op used the tanh approximation
            0.5 * x * (1 + tanh(sqrt(2/pi) * (x + 0.044715 * x^3)))
            instead of the exact x * Phi(x).
        x_grad (GradSlot, optional): Destination for dL/dx.
    """
    if x_grad is None:
        return
    if approximate:
        k_beta = math.sqrt(2.0) * M_2_SQRTPI * 0.5
        k_kappa = 0.044715
        x_sq = x * x
        x_cube = x_sq * x
        tanh_inner = ops.tanh(k_beta * (x + k_kappa * x_cube))

        left = ops.scale(x, 0.5)
        right = ops.scale(tanh_inner, 1.0, 1.0)
        left_derivative = ops.scale(right, 0.5)

        tanh_derivative = ops.scale(tanh_inner * tanh_inner, -1.0, 1.0)
        inner_derivative = k_beta * ops.scale(3 * k_kappa * x_sq, 1.0, 1.0)
        right_derivative = left * tanh_derivative * inner_derivative

        set_output(out_grad * (left_derivative + right_derivative), x_grad)
    else:
        k_alpha = M_SQRT1_2
        k_beta = M_2_SQRTPI * M_SQRT1_2 * 0.5
        cdf = ops.scale(ops.scale(ops.erf(k_alpha * x), 1.0, 1.0), 0.5)
        pdf = k_beta * ops.exp(ops.scale(x * x, -0.5))
        set_output(out_grad * (cdf + x * pdf), x_grad)

def relu_grad(out, out_grad, x_grad=None):
    """Pass the gradient where the forward output is positive."""
    if x_grad is None:
        return
    zeros = ops.full(out.shape, 0.0, out.dtype)
    set_output(ops.where(ops.greater_than(out, zeros), out_grad, zeros), x_grad)

def leaky_relu_grad(out, out_grad, negative_slope=0.02, x_grad=None):
    if x_grad is None:
        return
    zeros = ops.full(out.shape, 0.0, out.dtype)
    condition = ops.greater_than(out, zeros)
    set_output(ops.where(condition, out_grad, out_grad * negative_slope), x_grad)

def hardswish_grad(x, out_grad, x_grad=None):
    """
    Gradient of hardswish(x) = x * relu6(x + 3) / 6.

    Zero below -3, x/3 + 0.5 on [-3, 3] and 1 above 3.
    """
    if x_grad is None:
        return
    offset = ops.full(x.shape, 3.0, x.dtype)
    tmp = ops.where(ops.less_equal(x, offset), out_grad * ((x / 3.0) + 0.5), out_grad)
    res = ops.where(ops.less_than(x, ops.full(x.shape, -3.0, x.dtype)),
                    ops.full(x.shape, 0.0, x.dtype),
                    tmp)
    set_output(res, x_grad)
