class IngredientValidatorError(Exception):
    """Base class for errors raised by this package."""


class InvalidRequestError(IngredientValidatorError, ValueError):
    """The batch itself is malformed: wrong type, empty, or too large."""


class SearchBackendError(IngredientValidatorError):
    """The vocabulary search backend could not answer a query."""


class DeadlineExceeded(IngredientValidatorError):
    """The caller's deadline passed before an item could be looked up."""
