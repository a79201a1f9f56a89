class ApiError(Exception):
    status_code = 400
    default_message = "Bad request"

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationFailed(ApiError):
    status_code = 400
    default_message = "Invalid input"

    @classmethod
    def from_form(cls, form, message=None):
        details = {field: [str(error) for error in errors] for field, errors in form.errors.items()}
        return cls(message, details=details)


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class Conflict(ApiError):
    status_code = 409
    default_message = "Conflict"
