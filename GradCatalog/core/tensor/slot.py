class GradSlot:
    """
    Nullable destination for one input gradient.

    A rule receives either a GradSlot (the caller wants this gradient) or None
    (it does not). Rules write through `set_output` / `by_pass`; a slot whose
    input did not exist in the forward op (e.g. no scale operand) stays empty.

    Attributes:
        value: The written gradient array, or None while unwritten.
    """
    __slots__ = ("value",)

    def __init__(self):
        self.value = None

    @property
    def written(self) -> bool:
        return self.value is not None

    def __repr__(self):
        if self.value is None:
            return "GradSlot(<empty>)"
        return f"GradSlot(shape={tuple(self.value.shape)}, dtype={self.value.dtype})"


def set_output(value, slot):
    """Store a freshly computed gradient into `slot` (no-op for a null slot)."""
    if slot is not None:
        slot.value = value


def by_pass(value, slot):
    """Forward `value` itself into `slot` without any copy."""
    if slot is not None:
        slot.value = value


def any_needed(*slots) -> bool:
    """
    Return True if at least one slot is requested.

    Accepts single slots or lists of slots (as used by concat).
    """
    for s in slots:
        if isinstance(s, (list, tuple)):
            if any(x is not None for x in s):
                return True
        elif s is not None:
            return True
    return False
