"""
The ``Meta`` inner class protocol.

.. code-block:: python

   class AvvoResource(Resource):
       class Meta:
           abstract = True
           site = "https://api.avvo.com/"
           prefix = "/api/1/"

   class Address(AvvoResource):
       class Meta:
           associations = [
               BelongsTo("lawyer"),
               BelongsTo("doctor"),
               HasMany("phones"),
           ]

Options not given on a class are taken from the nearest base that gives
them, except for ``abstract``, ``element_name``, ``collection_name`` and
``namespace``, which only apply to the class that declares them.
"""
import dataclasses
import typing
from urllib.parse import urlsplit

import httpx

from .associations import Association
from .exceptions import InvalidDeclarationError
from .formats import Format, JSONFormat
from .registry import qualify
from .utils import (
    UNSPECIFIED,
    UnspecifiedType,
    collection_name_for,
    element_name_for,
    maybe_unspecified,
)

T = typing.TypeVar("T")
MaybeUnspecified = typing.Union[UnspecifiedType, T]


@dataclasses.dataclass
class Meta:
    site: MaybeUnspecified[typing.Optional[str]] = UNSPECIFIED
    prefix: MaybeUnspecified[typing.Optional[str]] = UNSPECIFIED
    format: MaybeUnspecified[Format] = UNSPECIFIED
    headers: MaybeUnspecified[typing.Mapping[str, str]] = UNSPECIFIED
    timeout: MaybeUnspecified[float] = UNSPECIFIED
    transport: MaybeUnspecified[typing.Optional[httpx.BaseTransport]] = UNSPECIFIED
    singleton: MaybeUnspecified[bool] = UNSPECIFIED
    element_name: MaybeUnspecified[str] = UNSPECIFIED
    collection_name: MaybeUnspecified[str] = UNSPECIFIED
    namespace: MaybeUnspecified[str] = UNSPECIFIED
    abstract: bool = False
    associations: typing.Sequence[Association] = ()


def handle_meta(meta: typing.Optional[typing.Type]) -> Meta:
    if meta is None:
        return Meta()
    attrs = {k: v for k, v in vars(meta).items() if not k.startswith("__")}
    known = {field.name for field in dataclasses.fields(Meta)}
    unknown = sorted(set(attrs) - known)
    if unknown:
        raise InvalidDeclarationError(f"unknown Meta option(s): {', '.join(unknown)}")
    associations = attrs.get("associations", ())
    for association in associations:
        if not isinstance(association, Association):
            raise InvalidDeclarationError(
                f"Meta.associations must contain associations, got {association!r}"
            )
    return Meta(**attrs)


@dataclasses.dataclass
class ResourceOptions:
    """
    The effective configuration of a resource type.
    """

    name: str
    namespace: str
    site: typing.Optional[str] = None
    prefix_template: typing.Optional[str] = None
    format: Format = dataclasses.field(default_factory=JSONFormat)
    headers: typing.Mapping[str, str] = dataclasses.field(default_factory=dict)
    timeout: float = 30.0
    transport: typing.Optional[httpx.BaseTransport] = None
    singleton: bool = False
    element_name: str = ""
    explicit_collection_name: typing.Optional[str] = None
    abstract: bool = False

    @property
    def qualified_name(self) -> str:
        return qualify(self.namespace, self.name)

    @property
    def prefix(self) -> str:
        """
        The configured prefix, or the path part of the site followed by ``/``.
        """
        if self.prefix_template is not None:
            return self.prefix_template
        path = urlsplit(self.site).path if self.site else ""
        return path.rstrip("/") + "/"

    @property
    def collection_name(self) -> str:
        if self.explicit_collection_name is not None:
            return self.explicit_collection_name
        if self.singleton:
            return self.element_name
        return collection_name_for(self.element_name)


def resolve_options(
    name: str,
    module: str,
    meta: Meta,
    parent: typing.Optional[ResourceOptions] = None,
) -> ResourceOptions:
    def inherited(option: str, parent_option: str, default: typing.Any) -> typing.Any:
        value = getattr(meta, option)
        if value is not UNSPECIFIED:
            return value
        if parent is not None:
            return getattr(parent, parent_option)
        return default

    return ResourceOptions(
        name=name,
        namespace=maybe_unspecified(meta.namespace, module),
        site=inherited("site", "site", None),
        prefix_template=inherited("prefix", "prefix_template", None),
        format=inherited("format", "format", JSONFormat()),
        headers=inherited("headers", "headers", {}),
        timeout=inherited("timeout", "timeout", 30.0),
        transport=inherited("transport", "transport", None),
        singleton=bool(inherited("singleton", "singleton", False)),
        element_name=maybe_unspecified(meta.element_name, element_name_for(name)),
        explicit_collection_name=maybe_unspecified(meta.collection_name, None),
        abstract=meta.abstract,
    )
