"""
Registries that back association declarations.

* :py:class:`TypeRegistry` maps qualified names to resource types and implements
  the relative lookup that turns an association attribute such as ``lawyer``
  into the ``Lawyer`` resource type closest to the declaring type.
* :py:class:`AssociationRegistry` holds the ordered associations declared on
  one resource type.
"""
import logging
import typing

from .exceptions import ResourceTypeNotFoundError

if typing.TYPE_CHECKING:
    from .associations import Association, BelongsTo  # noqa: F401

logger = logging.getLogger(__name__)

_generation = 0


def generation() -> int:
    """
    Returns a counter that changes whenever a type is registered or an association
    is declared, so that computations derived from the association graph can be memoized.
    """
    return _generation


def _bump_generation() -> None:
    global _generation
    _generation += 1


def namespace_chain(namespace: str) -> typing.List[str]:
    """
    ``"a.b.c"`` -> ``["a.b.c", "a.b", "a", ""]``
    """
    chain = []
    components = namespace.split(".") if namespace else []
    while components:
        chain.append(".".join(components))
        components.pop()
    chain.append("")
    return chain


def qualify(namespace: str, name: str) -> str:
    return f"{namespace}.{name}" if namespace else name


class TypeRegistry:
    _types: typing.Dict[str, typing.Type]

    def register(self, qualified_name: str, type_: typing.Type) -> None:
        if qualified_name in self._types and self._types[qualified_name] is not type_:
            logger.debug("replacing resource type %s", qualified_name)
        self._types[qualified_name] = type_
        _bump_generation()

    def unregister(self, qualified_name: str) -> None:
        self._types.pop(qualified_name, None)
        _bump_generation()

    def candidates(self, name: str, namespace: str) -> typing.List[str]:
        """
        Returns the qualified names tried, in order, when looking up ``name``
        relative to ``namespace``.
        """
        candidates: typing.List[str] = []
        if "." in name:
            candidates.append(name)
        for ns in namespace_chain(namespace):
            candidate = qualify(ns, name)
            if candidate not in candidates:
                candidates.append(candidate)
        return candidates

    def lookup(self, name: str, namespace: str = "") -> typing.Type:
        """
        Finds the resource type named ``name``, searching ``namespace`` first,
        then each enclosing namespace, then the global namespace.

        :param str name: a class name, optionally dotted.
        :param str namespace: the namespace of the type the lookup is relative to.
        :raises ResourceTypeNotFoundError: if no candidate is registered.
        """
        candidates = self.candidates(name, namespace)
        for candidate in candidates:
            type_ = self._types.get(candidate)
            if type_ is not None:
                return type_
        raise ResourceTypeNotFoundError(name, candidates)

    def __contains__(self, qualified_name: str) -> bool:
        return qualified_name in self._types

    def __init__(self):
        self._types = {}


types = TypeRegistry()


class AssociationRegistry:
    """
    The ordered associations declared on a single resource type.
    Declaration order is significant: the first eligible belongs_to association wins
    during prefix resolution.
    """

    owner: typing.Type
    _associations: typing.List["Association"]

    def add(self, association: "Association") -> "Association":
        """
        Binds the association to the owner and appends it. An association declared
        again for the same attribute replaces the earlier one in place.
        """
        association = association.bind(self.owner)
        for i, existing in enumerate(self._associations):
            if existing.attribute == association.attribute:
                self._associations[i] = association
                break
        else:
            self._associations.append(association)
        _bump_generation()
        return association

    def get(self, attribute: str) -> typing.Optional["Association"]:
        for association in self._associations:
            if association.attribute == attribute:
                return association
        return None

    def belongs_to(self) -> typing.List["BelongsTo"]:
        from .associations import BelongsTo

        return [a for a in self._associations if isinstance(a, BelongsTo)]

    def derive(self, subtype: typing.Type) -> "AssociationRegistry":
        """
        Creates the registry of a subtype by re-creating every association bound to
        ``subtype``. Associations that resolve their target eagerly and cannot find it
        from the subtype are left out; the subtype may declare them again with an
        explicit class name.
        """
        derived = AssociationRegistry(subtype)
        for association in self._associations:
            clone = association.clone_for(subtype)
            if clone.resolves_eagerly:
                try:
                    clone.associated_class
                except ResourceTypeNotFoundError as e:
                    logger.debug(
                        "dropping %s %s on %s: %s",
                        clone.kind,
                        clone.attribute,
                        subtype.__name__,
                        e.message,
                    )
                    continue
            derived._associations.append(clone)
        _bump_generation()
        return derived

    def __iter__(self) -> typing.Iterator["Association"]:
        return iter(self._associations)

    def __len__(self) -> int:
        return len(self._associations)

    def __contains__(self, attribute: str) -> bool:
        return self.get(attribute) is not None

    def __init__(self, owner: typing.Type, associations: typing.Iterable["Association"] = ()):
        self.owner = owner
        self._associations = []
        for association in associations:
            self.add(association)
