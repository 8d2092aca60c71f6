"""
:py:mod:`nested_resource.base` module contains :py:class:`Resource`, the base
class of every remote resource type.

Synopsis
--------

.. code-block:: python

   from nested_resource import BelongsTo, HasMany, Resource

   class AvvoResource(Resource):
       class Meta:
           abstract = True
           site = "https://api.avvo.com/"
           prefix = "/api/1/"

   class Lawyer(AvvoResource):
       class Meta:
           associations = [HasMany("addresses")]

   class Address(AvvoResource):
       class Meta:
           associations = [BelongsTo("lawyer"), BelongsTo("doctor")]

   address = Address.find(3, params={"lawyer_id": 2})
   # GET https://api.avvo.com/api/1/lawyers/2/addresses/3.json
   address.get_related("lawyer")
   # GET https://api.avvo.com/api/1/lawyers/2.json

"""
import collections.abc
import logging
import re
import typing

import httpx

from . import formats, paths
from .associations import Association, BelongsTo, HasMany, HasOne
from .connection import Connection
from .declarative import Meta, ResourceOptions, handle_meta, resolve_options
from .deferred import Deferred
from .exceptions import AssociationNotFoundError, ResourceNotFound
from .registry import AssociationRegistry, types

logger = logging.getLogger(__name__)

ID_FROM_LOCATION_RE = re.compile(r"/([^/]*?)(\.\w+)?$")

R = typing.TypeVar("R", bound="Resource")


def find_association(
    resource_type: typing.Type["Resource"], attribute: str
) -> typing.Optional[Association]:
    """
    Finds the association named ``attribute`` declared on ``resource_type``, or a
    belongs_to association of that name declared on one of its parents.
    """
    association = resource_type._associations.get(attribute)
    if association is not None:
        return association
    for parent in paths.parents(resource_type):
        association = find_association(parent, attribute)
        if isinstance(association, BelongsTo):
            return association
    return None


class Resource:
    _meta: typing.ClassVar[ResourceOptions]
    _associations: typing.ClassVar[AssociationRegistry]
    _connection: typing.ClassVar[typing.Optional[Connection]] = None

    attributes: typing.Dict[str, typing.Any]
    prefix_options: typing.Dict[str, typing.Any]
    persisted: bool
    _related: typing.Dict[str, Deferred]

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        meta = handle_meta(cls.__dict__.get("Meta"))
        base = next(b for b in cls.__mro__[1:] if issubclass(b, Resource))
        cls._meta = resolve_options(cls.__name__, cls.__module__, meta, base._meta)
        cls._connection = None
        cls._associations = base._associations.derive(cls)
        for association in meta.associations:
            cls._associations.add(association)
        if not cls._meta.abstract:
            types.register(cls._meta.qualified_name, cls)
            logger.debug("registered resource type %s", cls._meta.qualified_name)

    # declarations

    @classmethod
    def belongs_to(cls, attribute: str, class_name: typing.Optional[str] = None, **options) -> Association:
        return cls._associations.add(BelongsTo(attribute, class_name=class_name, **options))

    @classmethod
    def has_many(cls, attribute: str, class_name: typing.Optional[str] = None, **options) -> Association:
        return cls._associations.add(HasMany(attribute, class_name=class_name, **options))

    @classmethod
    def has_one(cls, attribute: str, class_name: typing.Optional[str] = None, **options) -> Association:
        return cls._associations.add(HasOne(attribute, class_name=class_name, **options))

    @classmethod
    def associations(cls) -> typing.List[Association]:
        return list(cls._associations)

    @classmethod
    def belongs_to_associations(cls) -> typing.List[BelongsTo]:
        return cls._associations.belongs_to()

    # naming and paths

    @classmethod
    def element_name(cls) -> str:
        return cls._meta.element_name

    @classmethod
    def collection_name(cls) -> str:
        return cls._meta.collection_name

    @classmethod
    def is_singleton(cls) -> bool:
        return cls._meta.singleton

    @classmethod
    def prefix_parameters(cls) -> typing.Set[str]:
        return paths.prefix_parameters(cls)

    @classmethod
    def collection_path(
        cls,
        prefix_options: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        query_options: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    ) -> str:
        return paths.collection_path(cls, prefix_options, query_options)

    @classmethod
    def element_path(
        cls,
        id: typing.Any,
        prefix_options: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        query_options: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    ) -> str:
        return paths.element_path(cls, id, prefix_options, query_options)

    # connection

    @classmethod
    def connection(cls) -> Connection:
        connection = cls.__dict__.get("_connection")
        if connection is None:
            connection = Connection(
                site=cls._meta.site or "",
                format=cls._meta.format,
                headers=cls._meta.headers,
                timeout=cls._meta.timeout,
                transport=cls._meta.transport,
            )
            cls._connection = connection
        return connection

    @classmethod
    def close_connection(cls) -> None:
        """
        Closes the HTTP client of this type, if one was opened. The next request opens a new one.
        """
        connection = cls.__dict__.get("_connection")
        if connection is not None:
            connection.close()

    @classmethod
    def _decode(cls, response: httpx.Response) -> typing.Any:
        if not response.content:
            return None
        return formats.remove_root(cls._meta.format.decode(response.text))

    # finders

    @classmethod
    def instantiate_record(
        cls: typing.Type[R],
        data: typing.Optional[typing.Mapping[str, typing.Any]],
        prefix_options: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    ) -> R:
        record = cls(prefix_options=prefix_options, persisted=True)
        return record.load(data or {})

    @classmethod
    def instantiate_collection(
        cls: typing.Type[R],
        data: typing.Any,
        prefix_options: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    ) -> typing.List[R]:
        if data is None:
            return []
        if isinstance(data, collections.abc.Mapping):
            data = [data]
        return [cls.instantiate_record(item, prefix_options) for item in data]

    @classmethod
    def find(
        cls: typing.Type[R],
        id: typing.Any,
        params: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    ) -> typing.Optional[R]:
        """
        Fetches one record by id. ``params`` are split into the identifiers
        that go into the path and the ones that go into the query string.

        :raises ResourceNotFound: if the service answers with 404.
        """
        if id is None:
            return cls.find_one(params=params)
        prefix_options, query_options = paths.split_options(cls, params)
        path = paths.element_path(cls, id, prefix_options, query_options)
        return cls.instantiate_record(cls._decode(cls.connection().get(path)), prefix_options)

    @classmethod
    def find_one(
        cls: typing.Type[R],
        params: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        from_: typing.Optional[str] = None,
    ) -> typing.Optional[R]:
        """
        Fetches a single record from ``from_``, which is either a path or the name of
        a custom collection method. Without ``from_``, a singleton resource is fetched
        from its element path and any other resource from the first element of its collection.
        """
        prefix_options, query_options = paths.split_options(cls, params)
        if from_ is not None:
            path = cls._custom_or_path(from_, params)
        elif cls._meta.singleton:
            path = paths.element_path(cls, None, prefix_options, query_options)
        else:
            records = cls.find_all(params=params)
            return records[0] if records else None
        data = cls._decode(cls.connection().get(path))
        if data is None:
            return None
        return cls.instantiate_record(data, prefix_options)

    @classmethod
    def find_all(
        cls: typing.Type[R],
        params: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        from_: typing.Optional[str] = None,
    ) -> typing.List[R]:
        prefix_options, query_options = paths.split_options(cls, params)
        if from_ is not None:
            path = cls._custom_or_path(from_, params)
        else:
            path = paths.collection_path(cls, prefix_options, query_options)
        return cls.instantiate_collection(cls._decode(cls.connection().get(path)), prefix_options)

    @classmethod
    def find_first(
        cls: typing.Type[R], params: typing.Optional[typing.Mapping[str, typing.Any]] = None
    ) -> typing.Optional[R]:
        records = cls.find_all(params=params)
        return records[0] if records else None

    @classmethod
    def find_last(
        cls: typing.Type[R], params: typing.Optional[typing.Mapping[str, typing.Any]] = None
    ) -> typing.Optional[R]:
        records = cls.find_all(params=params)
        return records[-1] if records else None

    @classmethod
    def exists(
        cls, id: typing.Any, params: typing.Optional[typing.Mapping[str, typing.Any]] = None
    ) -> bool:
        prefix_options, query_options = paths.split_options(cls, params)
        try:
            cls.connection().head(paths.element_path(cls, id, prefix_options, query_options))
        except ResourceNotFound:
            return False
        return True

    @classmethod
    def create(
        cls: typing.Type[R], attributes: typing.Optional[typing.Mapping[str, typing.Any]] = None, **kwargs
    ) -> R:
        record = cls(attributes, **kwargs)
        record.save()
        return record

    @classmethod
    def delete(
        cls, id: typing.Any, params: typing.Optional[typing.Mapping[str, typing.Any]] = None
    ) -> httpx.Response:
        prefix_options, query_options = paths.split_options(cls, params)
        return cls.connection().delete(paths.element_path(cls, id, prefix_options, query_options))

    # custom methods

    @classmethod
    def _custom_or_path(
        cls, from_: str, params: typing.Optional[typing.Mapping[str, typing.Any]]
    ) -> str:
        if from_.startswith("/"):
            return from_ + paths.query_string(paths.split_options(cls, params)[1])
        return paths.custom_method_collection_path(cls, from_, params)

    @classmethod
    def collection_get(cls, method_name: str, **options) -> typing.Any:
        path = paths.custom_method_collection_path(cls, method_name, options)
        return cls._decode(cls.connection().get(path))

    @classmethod
    def collection_post(
        cls,
        method_name: str,
        options: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        body: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    ) -> httpx.Response:
        path = paths.custom_method_collection_path(cls, method_name, options)
        return cls.connection().post(path, cls._meta.format.encode(body or {}))

    @classmethod
    def collection_put(
        cls,
        method_name: str,
        options: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        body: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    ) -> httpx.Response:
        path = paths.custom_method_collection_path(cls, method_name, options)
        return cls.connection().put(path, cls._meta.format.encode(body or {}))

    @classmethod
    def collection_delete(cls, method_name: str, **options) -> httpx.Response:
        path = paths.custom_method_collection_path(cls, method_name, options)
        return cls.connection().delete(path)

    def element_get(self, method_name: str, **options) -> typing.Any:
        path = paths.custom_method_element_path(
            type(self), self.id, method_name, self.prefix_options, options
        )
        return self._decode(self.connection().get(path))

    def element_post(
        self,
        method_name: str,
        options: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        body: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    ) -> httpx.Response:
        """
        POSTs to a custom method of the record, sending the encoded record unless
        ``body`` is given. New records address the method under ``<collection>/new/``.
        """
        cls = type(self)
        if self.is_new():
            path = paths.custom_method_new_element_path(
                cls, method_name, self.prefix_options, options or {}
            )
        else:
            path = paths.custom_method_element_path(
                cls, self.id, method_name, self.prefix_options, options or {}
            )
        payload = self.encode() if body is None else cls._meta.format.encode(body)
        return self.connection().post(path, payload)

    def element_put(
        self,
        method_name: str,
        options: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        body: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    ) -> httpx.Response:
        path = paths.custom_method_element_path(
            type(self), self.id, method_name, self.prefix_options, options or {}
        )
        return self.connection().put(path, type(self)._meta.format.encode(body or {}))

    def element_delete(self, method_name: str, **options) -> httpx.Response:
        path = paths.custom_method_element_path(
            type(self), self.id, method_name, self.prefix_options, options
        )
        return self.connection().delete(path)

    # record state

    @property
    def id(self) -> typing.Any:
        return self.attributes.get("id")

    @id.setter
    def id(self, value: typing.Any) -> None:
        self.attributes["id"] = value

    def is_new(self) -> bool:
        return not self.persisted

    def load(
        self: R, attributes: typing.Mapping[str, typing.Any], remove_root: bool = False
    ) -> R:
        """
        Merges ``attributes`` into the record.

        Identifiers of the belongs_to hierarchy that the service left out, because
        they are implied by the URL, are filled in from the prefix options, and every
        such identifier is kept both as an attribute and as a prefix option.
        """
        if remove_root:
            attributes = formats.remove_root(attributes)
        cls = type(self)
        incoming = {str(k): v for k, v in attributes.items()}

        for name in paths.prefix_template_parameters(cls):
            if name in incoming:
                self.prefix_options[name] = incoming.pop(name)

        for name in paths.belongs_to_with_parents(cls):
            key = f"{name}_id"
            if incoming.get(key) is None and self.prefix_options.get(key) is not None:
                incoming[key] = self.prefix_options[key]
            if incoming.get(key) is not None:
                self.prefix_options[key] = incoming[key]

        self.attributes.update(incoming)
        return self

    def _check_foreign_key(self, attribute: str) -> str:
        if attribute not in paths.belongs_to_with_parents(type(self)):
            raise AssociationNotFoundError(type(self), attribute)
        return f"{attribute}_id"

    def get_foreign_key(self, attribute: str) -> typing.Any:
        """
        Returns the identifier of the parent named ``attribute``, e.g. ``lawyer_id``
        for ``"lawyer"``.
        """
        return self.prefix_options.get(self._check_foreign_key(attribute))

    def set_foreign_key(self, attribute: str, value: typing.Any) -> None:
        key = self._check_foreign_key(attribute)
        self.prefix_options[key] = value
        self.attributes[key] = value
        deferred = self._related.get(attribute)
        if deferred is not None:
            deferred.reset()

    def get_related(self, attribute: str) -> typing.Any:
        """
        Returns the record(s) the association named ``attribute`` refers to.
        The remote fetch happens on first access only; :py:meth:`reload` forgets the result.

        :raises AssociationNotFoundError: if no such association is declared.
        """
        deferred = self._related.get(attribute)
        if deferred is None:
            association = find_association(type(self), attribute)
            if association is None:
                raise AssociationNotFoundError(type(self), attribute)
            deferred = self._related[attribute] = Deferred(association.resolve, self)
        return deferred()

    def to_dict(self) -> typing.Dict[str, typing.Any]:
        """
        The body sent to the service: the attributes, less the identifiers that are
        already part of the path.
        """
        claimed = {
            association.foreign_key
            for association, value in paths.prefix_associations(type(self), self.prefix_options)
            if value is not None
        }
        return {k: v for k, v in self.attributes.items() if k not in claimed}

    def encode(self) -> str:
        cls = type(self)
        return cls._meta.format.encode(self.to_dict(), root=cls._meta.element_name)

    def path(self) -> str:
        """
        The element path of a persisted record, the collection path of a new one.
        """
        cls = type(self)
        if self.is_new():
            return paths.collection_path(cls, self.prefix_options, {})
        return paths.element_path(cls, self.id, self.prefix_options, {})

    # persistence

    def _load_response(self, response: httpx.Response) -> None:
        data = self._decode(response)
        if isinstance(data, collections.abc.Mapping):
            self.load(data)

    def save(self) -> "Resource":
        if self.is_new():
            self._create()
        else:
            self._update()
        return self

    def _create(self) -> None:
        cls = type(self)
        path = paths.collection_path(cls, self.prefix_options, {})
        response = self.connection().post(path, self.encode())
        self._load_response(response)
        if self.id is None:
            location = response.headers.get("location")
            if location:
                match = ID_FROM_LOCATION_RE.search(httpx.URL(location).path)
                if match is not None:
                    self.id = match.group(1)
        self.persisted = True

    def _update(self) -> None:
        cls = type(self)
        path = paths.element_path(cls, self.id, self.prefix_options, {})
        response = self.connection().put(path, self.encode())
        self._load_response(response)

    def destroy(self) -> httpx.Response:
        cls = type(self)
        return self.connection().delete(paths.element_path(cls, self.id, self.prefix_options, {}))

    def reload(self: R) -> R:
        cls = type(self)
        response = self.connection().get(paths.element_path(cls, self.id, self.prefix_options, {}))
        data = self._decode(response)
        if isinstance(data, collections.abc.Mapping):
            self.load(data)
        for deferred in self._related.values():
            deferred.reset()
        return self

    # attribute access

    def __getitem__(self, key: str) -> typing.Any:
        return self.attributes[key]

    def __setitem__(self, key: str, value: typing.Any) -> None:
        cls = type(self)
        # prefix placeholders live in the path only, as in load()
        if key in paths.prefix_template_parameters(cls):
            self.attributes.pop(key, None)
            self.prefix_options[key] = value
            return
        self.attributes[key] = value
        if key in paths.prefix_parameters(cls):
            self.prefix_options[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self.attributes

    def __getattr__(self, name: str) -> typing.Any:
        if not name.startswith("_"):
            attributes = self.__dict__.get("attributes")
            if attributes is not None and name in attributes:
                return attributes[name]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __eq__(self, other: typing.Any) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.id == other.id and self.attributes == other.attributes

    def __hash__(self) -> int:
        return hash((type(self), self.id))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.attributes!r})"

    def __init__(
        self,
        attributes: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        persisted: bool = False,
        prefix_options: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        **kwargs,
    ):
        self.attributes = {}
        self.prefix_options = dict(prefix_options or {})
        self.persisted = persisted
        self._related = {}
        data = dict(attributes or {})
        data.update(kwargs)
        self.load(data)


Resource._meta = resolve_options(Resource.__name__, Resource.__module__, Meta(abstract=True))
Resource._associations = AssociationRegistry(Resource)
