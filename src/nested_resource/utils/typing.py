import typing

T = typing.TypeVar("T")


def assert_not_none(value: typing.Optional[T]) -> T:
    assert value is not None
    return value


def is_blank(value: typing.Any) -> bool:
    """
    Returns :py:const:`True` for ``None``, empty strings and whitespace-only strings.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False
