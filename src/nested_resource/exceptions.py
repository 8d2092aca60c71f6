import abc
import typing

import httpx


class NestedResourceException(Exception, metaclass=abc.ABCMeta):
    @property
    def message(self) -> str:
        return super().__str__()

    def __str__(self):
        return self.message


class InvalidDeclarationError(NestedResourceException):
    _message: str

    @property
    def message(self) -> str:
        return self._message

    def __init__(self, message: str):
        super().__init__(message)
        self._message = message


class ResourceTypeNotFoundError(NestedResourceException):
    name: str
    searched: typing.Sequence[str]

    @property
    def message(self) -> str:
        if not self.searched:
            return f'no resource type known as "{self.name}"'
        return f'no resource type known as "{self.name}" (searched {", ".join(self.searched)})'

    def __init__(self, name: str, searched: typing.Sequence[str] = ()):
        super().__init__(name)
        self.name = name
        self.searched = searched


class AssociationNotFoundError(NestedResourceException):
    resource: typing.Type
    attribute: str

    @property
    def message(self) -> str:
        return f'no association named "{self.attribute}" is declared on {self.resource.__name__}'

    def __init__(self, resource: typing.Type, attribute: str):
        super().__init__(attribute)
        self.resource = resource
        self.attribute = attribute


class CyclicAssociationError(NestedResourceException):
    chain: typing.Sequence[typing.Type]

    @property
    def message(self) -> str:
        return "cyclic belongs_to declaration: " + " -> ".join(t.__name__ for t in self.chain)

    def __init__(self, chain: typing.Sequence[typing.Type]):
        super().__init__(chain)
        self.chain = chain


class RemoteError(NestedResourceException):
    """
    Base class of the errors raised when a remote request fails.
    """

    method: str
    url: str
    response: typing.Optional[httpx.Response]

    @property
    def message(self) -> str:
        if self.response is None:
            return f"{self.method} {self.url} failed"
        return (
            f"{self.method} {self.url} failed with {self.response.status_code}"
            f" {self.response.reason_phrase}"
        )

    @property
    def status_code(self) -> typing.Optional[int]:
        return None if self.response is None else self.response.status_code

    def __init__(
        self, method: str, url: str, response: typing.Optional[httpx.Response] = None
    ):
        super().__init__(method, url)
        self.method = method
        self.url = url
        self.response = response


class RemoteTimeoutError(RemoteError):
    @property
    def message(self) -> str:
        return f"{self.method} {self.url} timed out"


class Redirection(RemoteError):
    @property
    def location(self) -> typing.Optional[str]:
        return None if self.response is None else self.response.headers.get("location")

    @property
    def message(self) -> str:
        return f"{super().message} => redirect to {self.location}"


class ClientError(RemoteError):
    pass


class BadRequest(ClientError):
    pass


class UnauthorizedAccess(ClientError):
    pass


class ForbiddenAccess(ClientError):
    pass


class ResourceNotFound(ClientError):
    pass


class MethodNotAllowed(ClientError):
    @property
    def allowed_methods(self) -> typing.Sequence[str]:
        if self.response is None:
            return []
        return [m.strip() for m in self.response.headers.get("allow", "").split(",") if m.strip()]


class ResourceConflict(ClientError):
    pass


class ResourceGone(ClientError):
    pass


class ResourceInvalid(ClientError):
    pass


class ServerError(RemoteError):
    pass


STATUS_ERRORS: typing.Mapping[int, typing.Type[RemoteError]] = {
    400: BadRequest,
    401: UnauthorizedAccess,
    403: ForbiddenAccess,
    404: ResourceNotFound,
    405: MethodNotAllowed,
    409: ResourceConflict,
    410: ResourceGone,
    422: ResourceInvalid,
}


def error_for_status(status_code: int) -> typing.Optional[typing.Type[RemoteError]]:
    if status_code in (301, 302, 303, 307):
        return Redirection
    if 200 <= status_code < 400:
        return None
    if status_code in STATUS_ERRORS:
        return STATUS_ERRORS[status_code]
    if 400 <= status_code < 500:
        return ClientError
    if 500 <= status_code < 600:
        return ServerError
    return RemoteError
