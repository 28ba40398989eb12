from .tensor import ops
from .tensor import GradSlot

from .backend.backend import gpu_available
from .backend.backend import is_gpu
from .backend.backend import device_name
from .backend.backend import get_device
from .backend.backend import use_gpu
from .backend.backend import use_cpu
from .backend.backend import set_promotion
from .backend.backend import is_promotion_enabled
from .backend.backend import set_compute_dtype
from .backend.backend import get_compute_dtype

__all__ = [
    "ops",
    "GradSlot",
    "gpu_available",
    "is_gpu",
    "device_name",
    "get_device",
    "use_gpu",
    "use_cpu",
    "set_promotion",
    "is_promotion_enabled",
    "set_compute_dtype",
    "get_compute_dtype"
]
