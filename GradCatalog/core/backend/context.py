class gpu_scope:
    """
    Run the enclosed gradient rules on CuPy arrays.

    The previously selected device is restored on exit. The scope yields the
    active array module.
    """
    def __enter__(self):
        import GradCatalog.core.backend.backend as backend
        if not backend.gpu_available():
            raise RuntimeError("GPU not available.")
        self.prev_device = backend.get_device()
        backend.use_gpu()
        return backend.xp

    def __exit__(self, exc_type, exc_value, tb):
        import GradCatalog.core.backend.backend as backend
        if backend.is_gpu():
            backend.xp.cuda.Device().synchronize()
        if self.prev_device == "gpu":
            backend.use_gpu()
        else:
            backend.use_cpu()


class promotion_scope:
    """
    Temporarily enable or disable precision promotion inside a block.

    Args:
        enabled (bool): Whether narrow floats are promoted before a rule computes.
        compute_dtype (str, optional): Wide dtype to promote to ("float32" or "float64").
            Default: keep the current one.
    """
    def __init__(self, enabled=True, compute_dtype=None):
        self.enabled = enabled
        self.compute_dtype = compute_dtype

    def __enter__(self):
        import GradCatalog.core.backend.backend as backend
        self.prev_enabled = backend.is_promotion_enabled()
        self.prev_dtype = backend.get_compute_dtype()
        backend.set_promotion(self.enabled)
        if self.compute_dtype is not None:
            backend.set_compute_dtype(self.compute_dtype)
        return backend.is_promotion_enabled()

    def __exit__(self, exc_type, exc_value, tb):
        import GradCatalog.core.backend.backend as backend
        backend.set_promotion(self.prev_enabled)
        backend.set_compute_dtype(self.prev_dtype)
