from __future__ import annotations


class MagicRestError(Exception):
    pass


class InvalidFilterError(MagicRestError, ValueError):
    """Raised when a filter value cannot be coerced to its field type.

    The whole read is aborted: no filter is applied and no rows are fetched.
    """

    def __init__(self, fields: list[str] | tuple[str, ...] = ()):
        self.fields = tuple(fields)
        if self.fields:
            message = f'invalid filter value for field(s): {", ".join(self.fields)}'
        else:
            message = "invalid filter value"
        super().__init__(message)
