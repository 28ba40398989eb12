from GradCatalog.vjp.activations import abs_grad, cos_grad, erf_grad, exp_grad, floor_grad, gelu_grad
from GradCatalog.vjp.activations import hardswish_grad, leaky_relu_grad, log_grad, relu_grad, sigmoid_grad
from GradCatalog.vjp.activations import silu_grad, sin_grad, sqrt_grad, tanh_grad
from GradCatalog.vjp.elementwise import add_grad, subtract_grad, multiply_grad, divide_grad
from GradCatalog.vjp.elementwise import elementwise_pow_grad, maximum_grad, minimum_grad
from GradCatalog.vjp.reductions import sum_grad, max_grad, prod_grad, cumsum_grad
from GradCatalog.vjp.manipulation import assign_grad, cast_grad, reshape_grad, transpose_grad, roll_grad
from GradCatalog.vjp.manipulation import expand_grad, tile_grad, slice_grad, pad_grad, split_grad, concat_grad
from GradCatalog.vjp.indexing import gather_grad, gather_nd_grad, scatter_grad, scatter_nd_add_grad, topk_grad
from GradCatalog.vjp.normalization import layer_norm_grad, instance_norm_grad
from GradCatalog.vjp.composite import softmax_grad, dropout_grad

from GradCatalog.vjp.registry import RULES, get_rule, grad_slot_names, vjp

__all__ = [
    "abs_grad", "cos_grad", "erf_grad", "exp_grad", "floor_grad", "gelu_grad",
    "hardswish_grad", "leaky_relu_grad", "log_grad", "relu_grad", "sigmoid_grad",
    "silu_grad", "sin_grad", "sqrt_grad", "tanh_grad",
    "add_grad", "subtract_grad", "multiply_grad", "divide_grad",
    "elementwise_pow_grad", "maximum_grad", "minimum_grad",
    "sum_grad", "max_grad", "prod_grad", "cumsum_grad",
    "assign_grad", "cast_grad", "reshape_grad", "transpose_grad", "roll_grad",
    "expand_grad", "tile_grad", "slice_grad", "pad_grad", "split_grad", "concat_grad",
    "gather_grad", "gather_nd_grad", "scatter_grad", "scatter_nd_add_grad", "topk_grad",
    "layer_norm_grad", "instance_norm_grad",
    "softmax_grad", "dropout_grad",
    "RULES",
    "get_rule",
    "grad_slot_names",
    "vjp"
]
