import abc
import typing

from .registry import types
from .utils import assert_not_none, class_name_for

if typing.TYPE_CHECKING:
    from .base import Resource  # noqa: F401


class Association(metaclass=abc.ABCMeta):
    """
    A declared relationship between the resource type that owns it and another
    resource type.

    An association is created unbound, typically inside ``Meta.associations``,
    and bound to its owner when the owning type is created.

    :param str attribute: the name of the association, e.g. ``"lawyer"``.
    :param Optional[str] class_name: the name of the target type, overriding
                                     the one derived from ``attribute``.
    :param options: free-form options kept with the association.
    """

    kind: typing.ClassVar[str]
    singularize: typing.ClassVar[bool] = False
    resolves_eagerly: typing.ClassVar[bool] = False

    owner: typing.Optional[typing.Type["Resource"]] = None
    attribute: str
    class_name: typing.Optional[str]
    options: typing.Mapping[str, typing.Any]

    T = typing.TypeVar("T", bound="Association")

    def bind(self: T, owner: typing.Type["Resource"]) -> T:
        if self.owner is not None and self.owner is not owner:
            return self.clone_for(owner)
        self.owner = owner
        return self

    def clone_for(self: T, owner: typing.Type["Resource"]) -> T:
        clone = type(self)(self.attribute, class_name=self.class_name, **self.options)
        clone.owner = owner
        return clone

    @property
    def target_name(self) -> str:
        if self.class_name is not None:
            return self.class_name
        return class_name_for(self.attribute, singularize=self.singularize)

    @property
    def associated_class(self) -> typing.Type["Resource"]:
        """
        The resource type this association refers to, looked up relative to the
        namespace of the owner.

        :raises ResourceTypeNotFoundError: if no such type is known.
        """
        owner = assert_not_none(self.owner)
        return types.lookup(self.target_name, owner._meta.namespace)

    @abc.abstractmethod
    def resolve(self, record: "Resource") -> typing.Any:
        """
        Fetches the related resource(s) of ``record`` from the remote service.
        """
        ...  # pragma: nocover

    def __repr__(self) -> str:
        owner = "unbound" if self.owner is None else self.owner.__name__
        return f"{type(self).__name__}({self.attribute!r}, owner={owner})"

    def __init__(self, attribute: str, class_name: typing.Optional[str] = None, **options):
        self.attribute = attribute
        self.class_name = class_name
        self.options = options


class BelongsTo(Association):
    """
    Declares that records of the owner are nested under one record of the target type.
    The value of ``<attribute>_id`` becomes part of the owner's URL path.
    """

    kind = "belongs_to"
    resolves_eagerly = True

    @property
    def foreign_key(self) -> str:
        return f"{self.attribute}_id"

    def associated_attributes(self) -> typing.List[str]:
        """
        This association's attribute followed by the belongs_to attributes of its
        target, without duplicates.
        """
        attributes = [self.attribute]
        for association in self.associated_class._associations.belongs_to():
            if association.attribute not in attributes:
                attributes.append(association.attribute)
        return attributes

    def resolve(self, record: "Resource") -> typing.Optional["Resource"]:
        target = self.associated_class
        params = {
            k: v
            for k, v in record.prefix_options.items()
            if k != self.foreign_key and k in target.prefix_parameters()
        }
        id = record.prefix_options.get(self.foreign_key)
        if id is None and not target._meta.singleton:
            return None
        return target.find(id, params=params)


class HasMany(Association):
    """
    Declares that records of the owner have a collection of target records,
    addressed with the owner's identifier as ``<owner>_id``.
    """

    kind = "has_many"
    singularize = True

    def resolve(self, record: "Resource") -> typing.List["Resource"]:
        owner = assert_not_none(self.owner)
        params = dict(record.prefix_options)
        params[f"{owner._meta.element_name}_id"] = record.id
        return self.associated_class.find_all(params=params)


class HasOne(Association):
    """
    Same as :py:class:`HasMany`, but for a single target record.
    """

    kind = "has_one"

    def resolve(self, record: "Resource") -> typing.Optional["Resource"]:
        owner = assert_not_none(self.owner)
        params = dict(record.prefix_options)
        params[f"{owner._meta.element_name}_id"] = record.id
        return self.associated_class.find_one(params=params)
