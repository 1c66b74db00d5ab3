class GroceryHubError(Exception):
    """Base error for failures that should be reported back to the user."""

    code = 400

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(GroceryHubError):
    code = 400


class NotFoundError(GroceryHubError):
    code = 404


class PermissionDenied(GroceryHubError):
    code = 403


class InsufficientStock(GroceryHubError):
    code = 400


class InvalidStatusTransition(GroceryHubError):
    code = 400
