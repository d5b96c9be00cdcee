"""Exceptions raised across the comparison pipeline."""


class StructuralConsistencyError(ValueError):
    """A series has duplicate, unordered or irregular timestamps."""

    def __init__(self, message: str, series: str = "", offending=None):
        super().__init__(message)
        self.series = series
        self.offending = list(offending) if offending is not None else []


class ReferencePeriodError(ValueError):
    """The standardized index cannot be fitted against the reference period."""


class EmptyReferenceError(ReferencePeriodError):
    """The reference months exist in a series but hold no usable accumulations."""


class MissingInputError(KeyError):
    """A required variable is absent from a series."""

    def __init__(self, variable: str, series: str = ""):
        super().__init__(variable)
        self.variable = variable
        self.series = series

    def __str__(self):
        where = f" in {self.series}" if self.series else ""
        return f"Required variable '{self.variable}' missing{where}"
