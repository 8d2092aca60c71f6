import pytest

from ..utils import class_name_for, collection_name_for, element_name_for, is_blank


@pytest.mark.parametrize(
    ("class_name", "element_name", "collection_name"),
    [
        ("Lawyer", "lawyer", "lawyers"),
        ("Address", "address", "addresses"),
        ("LawyerPost", "lawyer_post", "lawyer_posts"),
        ("Person", "person", "people"),
    ],
)
def test_names(class_name, element_name, collection_name):
    assert element_name_for(class_name) == element_name
    assert collection_name_for(element_name) == collection_name
    assert class_name_for(element_name) == class_name
    assert class_name_for(collection_name, singularize=True) == class_name


def test_is_blank():
    assert is_blank(None)
    assert is_blank("")
    assert is_blank("  ")
    assert not is_blank(0)
    assert not is_blank("1")
