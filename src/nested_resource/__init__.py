from .associations import Association, BelongsTo, HasMany, HasOne  # noqa
from .base import Resource  # noqa
from .exceptions import (  # noqa
    AssociationNotFoundError,
    BadRequest,
    ClientError,
    CyclicAssociationError,
    ForbiddenAccess,
    InvalidDeclarationError,
    MethodNotAllowed,
    NestedResourceException,
    Redirection,
    RemoteError,
    RemoteTimeoutError,
    ResourceConflict,
    ResourceGone,
    ResourceInvalid,
    ResourceNotFound,
    ResourceTypeNotFoundError,
    ServerError,
    UnauthorizedAccess,
)
from .formats import Format, JSONFormat  # noqa
