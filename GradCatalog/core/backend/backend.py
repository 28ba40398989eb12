"""
Backend runtime selector for GradCatalog.

- Single import point for the array backend (`xp`) used by the primitive surface.
- Toggle CPU (NumPy) / GPU (CuPy).
- Holds the precision-promotion switches read by `GradCatalog.amp`.
- Global-access pattern:
    >>> import GradCatalog.core.backend.backend as backend
    >>> backend.xp.zeros((2, 3))

Gradient rules never read this module directly; they go through
`GradCatalog.core.tensor.ops`, which looks up `backend.xp` on every call so a
switch made here is seen immediately.
"""

from __future__ import annotations

import logging
import numpy as _np
from GradCatalog.backend.config import CONFIG

logger = logging.getLogger(__name__)


# ---------------------------
# Optional GPU backend (CuPy)
# ---------------------------
try:
    import cupy as _cp
    _CUPY_AVAILABLE = True
except Exception:
    _cp = None
    _CUPY_AVAILABLE = False


# ---------------------------
# Public runtime state (globals)
# ---------------------------
xp = _np                       # current array module (NumPy or CuPy)
USING = "cpu"                  # "cpu" | "gpu"

# Precision promotion
PROMOTION_ENABLED = True
COMPUTE_DTYPE = "float32"


# ===========================
# Introspection / utilities
# ===========================
def gpu_available() -> bool:
    """Return True if CuPy is importable."""
    return _CUPY_AVAILABLE


def is_gpu() -> bool:
    """Return True if current backend is GPU (CuPy)."""
    return USING == "gpu"


def device_name() -> str:
    """Human-readable device name."""
    if is_gpu() and _cp is not None:
        try:
            dev_id = _cp.cuda.Device().id
            props = _cp.cuda.runtime.getDeviceProperties(dev_id)
            name = props.get("name", b"GPU").decode(errors="ignore")
            return f"GPU:{dev_id} ({name})"
        except Exception:
            return "GPU (CuPy)"
    return "CPU (NumPy)"


def get_device() -> str:
    """Return current device string: 'cpu' or 'gpu'."""
    return USING


# ===========================
# Backend switching
# ===========================
def use_gpu():
    """
    Switch backend to GPU (CuPy).
    Raises ImportError if CuPy is not available.
    """
    global xp, USING
    if not _CUPY_AVAILABLE:
        raise ImportError("CuPy is not installed. Run `pip install cupy` to use GPU.")
    xp = _cp
    USING = "gpu"
    logger.info("Using %s", device_name())


def use_cpu():
    """Switch backend to CPU (NumPy)."""
    global xp, USING
    xp = _np
    USING = "cpu"
    logger.info("Using %s", device_name())


def _auto_select_device(config=CONFIG):
    device = str(config.get("device", "cpu")).lower()
    if device == "gpu" and _CUPY_AVAILABLE:
        use_gpu()
    else:
        if device == "gpu":
            logger.warning("GPU requested but CuPy is not available, staying on CPU.")
        use_cpu()


# ===========================
# Runtime configuration
# ===========================
def set_promotion(enabled: bool = True):
    """Enable/disable precision promotion of narrow floats inside gradient rules."""
    global PROMOTION_ENABLED
    PROMOTION_ENABLED = bool(enabled)


def is_promotion_enabled() -> bool:
    return PROMOTION_ENABLED


def set_compute_dtype(dtype: str = "float32"):
    """
    Set the wide dtype narrow floats are promoted to.
    """
    global COMPUTE_DTYPE
    if dtype not in ("float32", "float64"):
        raise ValueError("dtype must be 'float32' or 'float64'")
    COMPUTE_DTYPE = dtype


def get_compute_dtype() -> str:
    return COMPUTE_DTYPE


def configure(config: dict):
    """
    Apply a configuration dict (as produced by `load_config`) to the runtime state.

    Raises:
        ValueError: If `compute_dtype` is not "float32" or "float64".
    """
    set_compute_dtype(config.get("compute_dtype", "float32"))
    set_promotion(config.get("promotion", True))
    logging.getLogger("GradCatalog").setLevel(str(config.get("log_level", "WARNING")).upper())
    _auto_select_device(config)


configure(CONFIG)
