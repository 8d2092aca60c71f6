from .typing import assert_not_none, is_blank  # noqa
from .types import UNSPECIFIED, UnspecifiedType, maybe_unspecified  # noqa
from .naming import class_name_for, collection_name_for, element_name_for  # noqa
