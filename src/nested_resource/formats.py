"""
:py:mod:`nested_resource.formats` module contains the body codecs a resource
uses to talk to the remote service.

Synopsis
--------

.. code-block:: python

   from nested_resource.formats import JSONFormat

   fmt = JSONFormat()
   fmt.encode({"street": "21st Ave NE"}, root="address")
   # '{"address": {"street": "21st Ave NE"}}'
   fmt.extension
   # 'json'

"""
import abc
import base64
import collections.abc
import datetime
import decimal
import json
import typing

JSONValue = typing.Union[bool, int, float, str, typing.Sequence, typing.Mapping, None]


class Format(metaclass=abc.ABCMeta):
    @property
    @abc.abstractmethod
    def extension(self) -> typing.Optional[str]:
        """
        Returns the extension appended to every path, without the leading dot,
        or :py:const:`None` if paths carry no extension.
        """
        ...  # pragma: nocover

    @property
    @abc.abstractmethod
    def mime_type(self) -> str:
        ...  # pragma: nocover

    @abc.abstractmethod
    def encode(self, data: typing.Mapping[str, typing.Any], root: typing.Optional[str] = None) -> str:
        """
        Encodes the attributes of a record into a request body.

        :param Mapping data: the attributes to encode.
        :param Optional[str] root: the element name to wrap the attributes in, if the format uses one.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def decode(self, text: str) -> JSONValue:
        ...  # pragma: nocover


def remove_root(data: JSONValue) -> JSONValue:
    """
    Strips a single-key root wrapper, such as ``{"address": {...}}``, from a mapping,
    and from each element of a sequence.
    """
    if isinstance(data, collections.abc.Mapping):
        if len(data) == 1:
            value = next(iter(data.values()))
            if isinstance(value, (collections.abc.Mapping, list)):
                return value
        return data
    elif isinstance(data, list):
        return [remove_root(item) for item in data]
    return data


class JSONFormat(Format):
    _extension: typing.Optional[str]
    include_root: bool
    render_decimal_as_str: bool = True

    @property
    def extension(self) -> typing.Optional[str]:
        return self._extension

    @property
    def mime_type(self) -> str:
        return "application/json"

    def _render_datetime(self, value: datetime.datetime) -> str:
        if value.tzinfo is None:
            raise ValueError(f"naive datetime {value}")
        return value.astimezone(datetime.timezone.utc).isoformat()

    def _render_date(self, value: datetime.date) -> str:
        return value.isoformat()

    def _render_decimal(self, value: decimal.Decimal) -> typing.Union[str, float]:
        return str(value) if self.render_decimal_as_str else float(value)

    def _render_bytes(self, value: bytes) -> str:
        return base64.b64encode(value).decode("ascii")

    _supported_types: typing.ClassVar[typing.Dict[type, typing.Callable]] = {
        datetime.datetime: _render_datetime,
        datetime.date: _render_date,
        decimal.Decimal: _render_decimal,
        bytes: _render_bytes,
    }

    def _default(self, value: typing.Any) -> typing.Any:
        # fast pass
        r = self._supported_types.get(type(value))
        if r is not None:
            return r(self, value)

        for type_, r in self._supported_types.items():
            if isinstance(value, type_):
                return r(self, value)

        raise TypeError(f"unsupported type {value!r}")

    def encode(self, data: typing.Mapping[str, typing.Any], root: typing.Optional[str] = None) -> str:
        body: typing.Mapping[str, typing.Any] = data
        if self.include_root and root is not None:
            body = {root: data}
        return json.dumps(body, default=self._default)

    def decode(self, text: str) -> JSONValue:
        if not text or not text.strip():
            return None
        return json.loads(text)

    def __init__(self, extension: typing.Optional[str] = "json", include_root: bool = True):
        self._extension = extension or None
        self.include_root = include_root

    def __repr__(self) -> str:
        return f"{type(self).__name__}(extension={self._extension!r}, include_root={self.include_root!r})"
