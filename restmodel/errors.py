# Exception Handlers
#
# The application loglevel determines the level of detail shown to the user.
# If set to debug, too much sensitive info might be shown !
#
# The exceptions are rendered by the handler installed in RestModelAPI, for example:
# {
#      "jsonapi": {"version": "1.0"},
#      "errors": [{"status": "404", "title": "NotFoundError", "detail": "...", "message": "..."}]
# }
#
import traceback
from http import HTTPStatus
from typing import Any, Dict, Optional
import restmodel
from .config import is_debug

HIDDEN_LOG = "(debug logging disabled)"


class JsonapiError(Exception):
    """
    Base class of the errors that are rendered as a json:api error document
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    message = ""

    def __init__(self, message: str = "", status_code: Optional[int] = None) -> None:
        Exception.__init__(self, message)
        if status_code is not None:
            self.status_code = status_code

    def __str__(self) -> str:
        return self.message

    def error_object(self) -> Dict[str, Any]:
        """
        :return: json:api error object
        """
        try:
            title = HTTPStatus(self.status_code).phrase
        except ValueError:
            title = "HTTP Error"
        return {
            "status": str(self.status_code),
            "title": title,
            "code": self.__class__.__name__,
            "detail": self.message,
            "message": self.message,
        }


class NotFoundError(JsonapiError):
    """
    This exception is raised when a type, relationship or item was not found
    """

    status_code = HTTPStatus.NOT_FOUND.value
    message = "NotFoundError "

    def __init__(self, message: str = "", status_code: int = HTTPStatus.NOT_FOUND.value) -> None:
        """
        :param message: Message to be returned in the (json) body
        :param status_code: HTTP Status code
        """
        JsonapiError.__init__(self, message, status_code)
        restmodel.log.error("Not found: %s", message)
        if is_debug():
            self.message += message
        else:
            self.message += HIDDEN_LOG


class GenericError(JsonapiError):
    """
    This exception is raised when an unexpected error has been detected
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value  # 500
    message = "Generic Error: "

    def __init__(self, message: Any, status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR.value) -> None:
        JsonapiError.__init__(self, str(message), status_code)
        restmodel.log.error("Generic Error: %s", message)
        if is_debug():
            restmodel.log.debug(traceback.format_exc(120))
            self.message += str(message)
        else:
            self.message += HIDDEN_LOG


class StructuralError(JsonapiError):
    """
    This exception is raised when a schema or a request body is malformed or absent.
    Errors triggered by the client use 400, errors in a model definition use 500
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    message = "Structural Error: "

    def __init__(self, message: str = "", status_code: int = HTTPStatus.BAD_REQUEST.value) -> None:
        JsonapiError.__init__(self, message, status_code)
        if status_code >= HTTPStatus.INTERNAL_SERVER_ERROR.value:
            restmodel.log.error("StructuralError: %s", message)
        else:
            restmodel.log.warning("StructuralError: %s", message)
        self.message += message


class ValidationError(JsonapiError):
    """
    This exception is raised when an attribute value violates the model schema (client side input)
    Always send back the message to the client in the response
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    message = "Validation Error: "

    def __init__(self, message: str = "", property_name: Optional[str] = None, status_code: int = HTTPStatus.BAD_REQUEST.value) -> None:
        JsonapiError.__init__(self, message, status_code)
        self.property = property_name
        self.reason = message
        restmodel.log.warning("ValidationError: %s", message)
        self.message += message

    def error_object(self) -> Dict[str, Any]:
        result = super().error_object()
        if self.property is not None:
            result["source"] = {"pointer": f"/data/attributes/{self.property}"}
            result["meta"] = {"property": self.property}
        return result


class ConflictError(JsonapiError):
    """
    This exception is raised when the type (or id) in the request body doesn't match the url
    """

    status_code = HTTPStatus.CONFLICT.value
    message = "Conflict: "

    def __init__(self, message: str = "", status_code: int = HTTPStatus.CONFLICT.value) -> None:
        JsonapiError.__init__(self, message, status_code)
        restmodel.log.warning("ConflictError: %s", message)
        self.message += message


class AdapterError(JsonapiError):
    """
    This exception is raised by a storage adapter that rejects a call, eg. a malformed type or id.
    The message is passed on to the client unchanged
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    message = "Adapter Error: "

    def __init__(self, message: str = "", status_code: int = HTTPStatus.BAD_REQUEST.value) -> None:
        JsonapiError.__init__(self, message, status_code)
        restmodel.log.error("AdapterError: %s", message)
        self.message += message
