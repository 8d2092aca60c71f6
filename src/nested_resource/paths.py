"""
Derivation of nested REST paths from belongs_to declarations.

A resource type that belongs to others is addressed under its parents::

    Phone   belongs_to Address
    Address belongs_to Lawyer, Doctor

    element_path(Phone, 4, {"lawyer_id": 2, "address_id": 3})
    # "/lawyers/2/addresses/3/phones/4"

When a type declares several belongs_to associations, only one of them is
followed: the first declared one whose target is a singleton or whose
``<attribute>_id`` is known. Missing identifiers are not an error, they yield
a shorter path.
"""
import re
import typing
from urllib.parse import quote

import httpx

from .exceptions import CyclicAssociationError
from .registry import generation
from .utils import is_blank

if typing.TYPE_CHECKING:
    from .associations import BelongsTo  # noqa: F401
    from .base import Resource  # noqa: F401

ResourceType = typing.Type["Resource"]
Options = typing.Mapping[str, typing.Any]
PrefixAssociation = typing.Tuple["BelongsTo", typing.Optional[typing.Any]]

PREFIX_PARAMETER_RE = re.compile(r":(\w+)")

_belongs_to_with_parents_cache: typing.Dict[ResourceType, typing.Tuple[int, typing.List[str]]] = {}


def _escape(value: typing.Any) -> str:
    return quote(str(value), safe="")


def parents(resource_type: ResourceType) -> typing.List[ResourceType]:
    """
    The target types of the belongs_to associations of ``resource_type``, in declaration order.
    """
    return [
        association.associated_class
        for association in resource_type._associations.belongs_to()
    ]


def _belongs_to_with_parents(
    resource_type: ResourceType, chain: typing.Tuple[ResourceType, ...]
) -> typing.List[str]:
    if resource_type in chain:
        raise CyclicAssociationError(chain + (resource_type,))
    chain = chain + (resource_type,)
    names: typing.List[str] = []
    for association in resource_type._associations.belongs_to():
        for name in association.associated_attributes():
            if name not in names:
                names.append(name)
    for parent in parents(resource_type):
        for name in _belongs_to_with_parents(parent, chain):
            if name not in names:
                names.append(name)
    return names


def belongs_to_with_parents(resource_type: ResourceType) -> typing.List[str]:
    """
    Every belongs_to attribute name whose ``<name>_id`` identifies a record of
    ``resource_type``, including the ones declared on its ancestors.
    A phone under an address under a lawyer yields ``["address", "lawyer"]``.
    """
    cached = _belongs_to_with_parents_cache.get(resource_type)
    current = generation()
    if cached is not None and cached[0] == current:
        return list(cached[1])
    names = _belongs_to_with_parents(resource_type, ())
    _belongs_to_with_parents_cache[resource_type] = (current, names)
    return list(names)


def prefix_template_parameters(resource_type: ResourceType) -> typing.List[str]:
    return PREFIX_PARAMETER_RE.findall(resource_type._meta.prefix)


def prefix_parameters(resource_type: ResourceType) -> typing.Set[str]:
    """
    The option names that go into the path rather than into the query string.
    """
    names = set(prefix_template_parameters(resource_type))
    names.update(f"{name}_id" for name in belongs_to_with_parents(resource_type))
    return names


def split_options(
    resource_type: ResourceType, options: typing.Optional[Options] = None
) -> typing.Tuple[typing.Dict[str, typing.Any], typing.Dict[str, typing.Any]]:
    """
    Splits ``options`` into ``(prefix_options, query_options)``.
    """
    names = prefix_parameters(resource_type)
    prefix_options: typing.Dict[str, typing.Any] = {}
    query_options: typing.Dict[str, typing.Any] = {}
    for key, value in (options or {}).items():
        if key in names:
            prefix_options[key] = value
        else:
            query_options[key] = value
    return prefix_options, query_options


def _prefix_associations(
    resource_type: ResourceType,
    options: typing.Dict[str, typing.Any],
    chain: typing.Tuple[ResourceType, ...],
) -> typing.List[PrefixAssociation]:
    if resource_type in chain:
        raise CyclicAssociationError(chain + (resource_type,))
    chain = chain + (resource_type,)

    parent_chain: typing.List[PrefixAssociation] = []
    for parent in parents(resource_type):
        parent_chain = _prefix_associations(parent, options, chain)
        if parent_chain:
            break

    selected: typing.Optional[PrefixAssociation] = None
    for association in resource_type._associations.belongs_to():
        if association.associated_class._meta.singleton:
            selected = (association, None)
            break
        if not is_blank(options.get(association.foreign_key)):
            selected = (association, options.pop(association.foreign_key))
            break

    if selected is None:
        return parent_chain
    return parent_chain + [selected]


def prefix_associations(
    resource_type: ResourceType, options: typing.Optional[Options] = None
) -> typing.List[PrefixAssociation]:
    """
    Selects the belongs_to associations that make up the path of ``resource_type``,
    outermost first, paired with the identifier each one claimed from ``options``
    (:py:const:`None` for singleton targets). ``options`` is not modified.

    :raises ResourceTypeNotFoundError: if the target of a consulted association is unknown.
    :raises CyclicAssociationError: if the belongs_to declarations form a cycle.
    """
    return _prefix_associations(resource_type, dict(options or {}), ())


def association_prefix(resource_type: ResourceType, options: typing.Optional[Options] = None) -> str:
    """
    ``"lawyers/2/"`` for an address with ``{"lawyer_id": 2}``, or ``""`` if nothing applies.
    """
    segments = []
    for association, value in prefix_associations(resource_type, options):
        collection_name = association.associated_class._meta.collection_name
        if value is None:
            segments.append(collection_name)
        else:
            segments.append(f"{collection_name}/{_escape(value)}")
    if not segments:
        return ""
    return "/".join(segments) + "/"


def prefix(resource_type: ResourceType, prefix_options: typing.Optional[Options] = None) -> str:
    """
    The configured prefix with ``:name`` placeholders substituted.
    """
    prefix_options = prefix_options or {}

    def substitute(match: "re.Match") -> str:
        value = prefix_options.get(match.group(1))
        return "" if value is None else _escape(value)

    return PREFIX_PARAMETER_RE.sub(substitute, resource_type._meta.prefix)


def format_extension(resource_type: ResourceType) -> str:
    extension = resource_type._meta.format.extension
    return f".{extension}" if extension else ""


def query_string(query_options: typing.Optional[Options] = None) -> str:
    if not query_options:
        return ""
    return "?" + str(httpx.QueryParams(dict(query_options)))


def _normalize(
    resource_type: ResourceType,
    prefix_options: typing.Optional[Options],
    query_options: typing.Optional[Options],
) -> typing.Tuple[Options, typing.Optional[Options]]:
    if query_options is None:
        return split_options(resource_type, prefix_options)
    return prefix_options or {}, query_options


def _base_path(resource_type: ResourceType, prefix_options: Options) -> str:
    return (
        prefix(resource_type, prefix_options)
        + association_prefix(resource_type, prefix_options)
        + resource_type._meta.collection_name
    )


def collection_path(
    resource_type: ResourceType,
    prefix_options: typing.Optional[Options] = None,
    query_options: typing.Optional[Options] = None,
) -> str:
    """
    If ``query_options`` is omitted, ``prefix_options`` is split into both.
    """
    prefix_options, query_options = _normalize(resource_type, prefix_options, query_options)
    return (
        _base_path(resource_type, prefix_options)
        + format_extension(resource_type)
        + query_string(query_options)
    )


def _id_segment(resource_type: ResourceType, id: typing.Any) -> str:
    # singleton resources are addressed without an id
    if is_blank(id) and resource_type._meta.singleton:
        return ""
    return "/" + ("" if id is None else _escape(id))


def element_path(
    resource_type: ResourceType,
    id: typing.Any,
    prefix_options: typing.Optional[Options] = None,
    query_options: typing.Optional[Options] = None,
) -> str:
    prefix_options, query_options = _normalize(resource_type, prefix_options, query_options)
    return (
        _base_path(resource_type, prefix_options)
        + _id_segment(resource_type, id)
        + format_extension(resource_type)
        + query_string(query_options)
    )


def new_element_path(
    resource_type: ResourceType, prefix_options: typing.Optional[Options] = None
) -> str:
    return (
        _base_path(resource_type, prefix_options or {}) + "/new" + format_extension(resource_type)
    )


def custom_method_new_element_path(
    resource_type: ResourceType,
    method_name: str,
    prefix_options: typing.Optional[Options] = None,
    query_options: typing.Optional[Options] = None,
) -> str:
    """
    ``"lawyers/2/addresses/new/preview"`` for a custom method called on a new address.
    """
    prefix_options, query_options = _normalize(resource_type, prefix_options, query_options)
    return (
        _base_path(resource_type, prefix_options)
        + f"/new/{method_name}"
        + format_extension(resource_type)
        + query_string(query_options)
    )


def custom_method_collection_path(
    resource_type: ResourceType, method_name: str, options: typing.Optional[Options] = None
) -> str:
    prefix_options, query_options = split_options(resource_type, options)
    return (
        _base_path(resource_type, prefix_options)
        + f"/{method_name}"
        + format_extension(resource_type)
        + query_string(query_options)
    )


def custom_method_element_path(
    resource_type: ResourceType,
    id: typing.Any,
    method_name: str,
    prefix_options: typing.Optional[Options] = None,
    query_options: typing.Optional[Options] = None,
) -> str:
    prefix_options, query_options = _normalize(resource_type, prefix_options, query_options)
    return (
        _base_path(resource_type, prefix_options)
        + _id_segment(resource_type, id)
        + f"/{method_name}"
        + format_extension(resource_type)
        + query_string(query_options)
    )
