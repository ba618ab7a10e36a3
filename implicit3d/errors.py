"""Exceptions raised by implicit3d."""


class FieldConfigError(ValueError):
    """A field or solver was constructed with malformed parameters."""
