from GradCatalog.amp.amp import PROMOTION_POLICY
from GradCatalog.amp.amp import promotion_target
from GradCatalog.amp.amp import promote_precision

__all__ = [
    "PROMOTION_POLICY",
    "promotion_target",
    "promote_precision"
]
