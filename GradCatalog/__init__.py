from GradCatalog.exceptions import VJPError
from GradCatalog.exceptions import ShapeMismatch
from GradCatalog.exceptions import UnsupportedAttribute
from GradCatalog.exceptions import UnregisteredOperator

from GradCatalog.core import GradSlot
from GradCatalog.core import ops
from GradCatalog.core import use_cpu
from GradCatalog.core import use_gpu

from GradCatalog.vjp import RULES
from GradCatalog.vjp import get_rule
from GradCatalog.vjp import grad_slot_names
from GradCatalog.vjp import vjp

__all__ = [
    "VJPError",
    "ShapeMismatch",
    "UnsupportedAttribute",
    "UnregisteredOperator",
    "GradSlot",
    "ops",
    "use_cpu",
    "use_gpu",
    "RULES",
    "get_rule",
    "grad_slot_names",
    "vjp"
]
