"""
Naming conventions used to derive resource names from class names and
association attributes.
"""
import inflection


def element_name_for(class_name: str) -> str:
    """
    ``"LawyerPost"`` -> ``"lawyer_post"``
    """
    return inflection.underscore(class_name)


def collection_name_for(element_name: str) -> str:
    return inflection.pluralize(element_name)


def class_name_for(attribute: str, singularize: bool = False) -> str:
    """
    Derives the conventional class name an association attribute refers to.

    ``"lawyer"`` -> ``"Lawyer"``, and ``"phones"`` -> ``"Phone"`` when
    ``singularize`` is set.
    """
    if singularize:
        attribute = inflection.singularize(attribute)
    return inflection.camelize(attribute)
