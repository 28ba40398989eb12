from GradCatalog.core.tensor import ops
from GradCatalog.core.tensor.slot import by_pass, set_output
from GradCatalog.core.tensor.utils import normalize_axes
from GradCatalog.exceptions import UnsupportedAttribute

def softmax_grad(out, out_grad, axis=-1, x_grad=None):
    """
    Gradient of softmax along `axis`.

    dX = out * (dY - sum_axis(dY * out)). A rank-0 upstream gradient has no
    axis to normalize over and yields zeros.

    Args:
        out (ndarray): Forward output (probabilities).
        out_grad (ndarray): Upstream gradient.
        axis (int): Softmax axis, negative values count from the end.
        x_grad (GradSlot, optional): Destination for dL/dx.
    """
    if x_grad is None:
        return
    if out_grad.ndim == 0:
        set_output(out_grad * 0.0, x_grad)
        return
    axis = normalize_axes(axis, out.ndim)[0]
    new_out_grad = out_grad * out
    set_output(new_out_grad - out * ops.sum(new_out_grad, [axis], keepdim=True), x_grad)

def dropout_grad(mask, out_grad, p, is_test=False, mode="upscale_in_train", x_grad=None):
    """
    Gradient of dropout.

    Args:
        mask (ndarray): Keep mask produced by the forward op (1 = kept).
        out_grad (ndarray): Upstream gradient.
        p (float): Drop probability in [0, 1].
        is_test (bool): The forward op ran in inference mode.
        mode (str): "upscale_in_train" rescales kept units by 1/(1-p) during
            training; any other mode ("downgrade_in_infer") scales by (1-p)
            at inference instead.
        x_grad (GradSlot, optional): Destination for dL/dx.

    Raises:
        UnsupportedAttribute: If `p` is outside [0, 1].
    """
    if x_grad is None:
        return
    p = float(p)
    if not 0.0 <= p <= 1.0:
        raise UnsupportedAttribute(f"dropout probability must be in [0, 1], got {p}")
    if is_test:
        if mode == "upscale_in_train":
            by_pass(out_grad, x_grad)
        else:
            set_output(ops.scale(out_grad, 1.0 - p), x_grad)
        return
    if mode == "upscale_in_train":
        if p == 1.0:
            set_output(ops.scale(out_grad, 0.0), x_grad)
        else:
            set_output(ops.scale(out_grad * ops.cast(mask, out_grad.dtype), 1.0 / (1.0 - p)), x_grad)
    else:
        set_output(out_grad * ops.cast(mask, out_grad.dtype), x_grad)
