# Exceptions raised by the crud actions
#
# The application loglevel determines the level of detail shown to the user.
# If set to debug, too much sensitive info might be shown !
#
# The exceptions are meant to be caught by the framework integration and formatted, for example:
# {
#     "errors": [
#         {
#             "title": "Not Found",
#             "detail": "(debug logging disabled)",
#             "code": 404,
#             "type": "not_found"
#         }
#     ]
# }
#
from http import HTTPStatus
from typing import Any, Dict, Optional
from sqlalchemy.exc import DontWrapMixin
from werkzeug.exceptions import NotFound
import sacrud
from .config import is_debug

HIDDEN_LOG = "(debug logging disabled)"


class CrudError(Exception, DontWrapMixin):
    """
    Base class of the errors raised by the crud actions, the http status code is embedded in the error
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    type = "error"
    title = "Error"
    _crud_error = True

    def __init__(self, message: str = "", status_code: Optional[int] = None, details: Any = None) -> None:
        Exception.__init__(self, message)
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        self.message = message if is_debug() else HIDDEN_LOG

    def to_dict(self) -> Dict[str, Any]:
        """
        :return: json-serializable error document
        """
        error = {"title": self.title, "detail": self.message, "code": self.status_code, "type": self.type}
        if self.details is not None:
            error["details"] = self.details
        return {"errors": [error]}

    @staticmethod
    def is_crud_error(error: Any) -> bool:
        return getattr(error, "_crud_error", False) is True

    @staticmethod
    def unauthorized(message: str = "unauthorized") -> "UnAuthorizedError":
        return UnAuthorizedError(message)

    @staticmethod
    def forbidden(message: str = "forbidden") -> "ForbiddenError":
        return ForbiddenError(message)

    @staticmethod
    def not_found(message: str = "not found") -> "NotFoundError":
        return NotFoundError(message)


class NotFoundError(CrudError, NotFound):
    """
    This exception is raised when no record matches the scoped query
    """

    status_code = HTTPStatus.NOT_FOUND.value
    type = "not_found"
    title = "Not Found"

    def __init__(self, message: str = "", status_code: Optional[int] = None, details: Any = None) -> None:
        NotFound.__init__(self)
        CrudError.__init__(self, message, status_code, details)
        sacrud.log.error("Not found: %s", message)


class UnAuthorizedError(CrudError):
    """
    Available to callers that implement authentication, never raised by the actions themselves
    """

    status_code = HTTPStatus.UNAUTHORIZED.value
    type = "unauthorized"
    title = "Unauthorized"

    def __init__(self, message: str = "", status_code: Optional[int] = None, details: Any = None) -> None:
        CrudError.__init__(self, message, status_code, details)
        sacrud.log.error("UnAuthorizedError: %s", message)


class ForbiddenError(CrudError):
    """
    Available to callers that implement authorization, never raised by the actions themselves
    """

    status_code = HTTPStatus.FORBIDDEN.value
    type = "forbidden"
    title = "Forbidden"

    def __init__(self, message: str = "", status_code: Optional[int] = None, details: Any = None) -> None:
        CrudError.__init__(self, message, status_code, details)
        sacrud.log.error("ForbiddenError: %s", message)


class ConfigurationError(CrudError):
    """
    This exception is raised when an action has been declared with invalid options
    (unknown attribute sources, unknown columns, missing argument bags)
    """

    type = "configuration_error"
    title = "Configuration Error"

    def __init__(self, message: str = "", status_code: Optional[int] = None, details: Any = None) -> None:
        CrudError.__init__(self, message, status_code, details)
        # configuration errors are meant for the developer, keep the message
        self.message = message
        sacrud.log.error("ConfigurationError: %s", message)


class GenericError(CrudError):
    """
    This exception is raised when an error has been detected
    """

    type = "generic_error"
    title = "Generic Error"

    def __init__(self, message: str = "", status_code: Optional[int] = None, details: Any = None) -> None:
        CrudError.__init__(self, message, status_code, details)
        sacrud.log.error("Generic Error: %s", message)


class ValidationError(CrudError):
    """
    This exception is raised when invalid input has been detected (client side input)
    Always send back the message to the client in the response
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    type = "validation_error"
    title = "Validation Error"

    def __init__(self, message: str = "", status_code: Optional[int] = None, details: Any = None) -> None:
        CrudError.__init__(self, message, status_code, details)
        self.message = message
        sacrud.log.warning("ValidationError: %s", message)
