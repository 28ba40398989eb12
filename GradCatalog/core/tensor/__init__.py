from .slot import GradSlot
from .slot import set_output
from .slot import by_pass
from .slot import any_needed

from .utils import normalize_axes
from .utils import broadcast_shape
from .utils import get_reduce_dims
from .utils import get_reduce_dims_from_out
from .utils import get_unsqueeze_dims
from .utils import reduce_to_shape

from . import ops

__all__ = [
    "GradSlot",
    "set_output",
    "by_pass",
    "any_needed",
    "normalize_axes",
    "broadcast_shape",
    "get_reduce_dims",
    "get_reduce_dims_from_out",
    "get_unsqueeze_dims",
    "reduce_to_shape",
    "ops"
]
