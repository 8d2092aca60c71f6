"""
HTTP connection shared by the records of a resource type.

Paths handed to a :py:class:`Connection` are complete: prefix, association
prefix, extension and query string are computed by :py:mod:`nested_resource.paths`.
"""
import logging
import typing

import httpx

from .exceptions import RemoteTimeoutError, error_for_status
from .formats import Format

logger = logging.getLogger(__name__)


class Connection:
    """
    Synchronous HTTP client for a remote REST service.

    .. code-block:: python

       connection = Connection("https://api.avvo.com/", format=JSONFormat())
       response = connection.get("/api/1/lawyers/2/addresses/3.json")
    """

    site: str
    format: Format
    headers: typing.Mapping[str, str]
    timeout: float
    transport: typing.Optional[httpx.BaseTransport]
    _client: typing.Optional[httpx.Client] = None

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                headers=dict(self.headers),
                timeout=self.timeout,
                transport=self.transport,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def url_for(self, path: str) -> str:
        """
        Resolves a path against the site. Absolute paths replace the path part of the site.
        """
        if not self.site:
            return path
        return str(httpx.URL(self.site).join(path))

    def _build_headers(self, method: str) -> typing.Dict[str, str]:
        headers = {"Accept": self.format.mime_type}
        if method in ("POST", "PUT", "PATCH"):
            headers["Content-Type"] = self.format.mime_type
        return headers

    def request(
        self, method: str, path: str, body: typing.Optional[str] = None
    ) -> httpx.Response:
        """
        Issues a request and returns the response.

        :raises RemoteTimeoutError: if the request times out.
        :raises RemoteError: a subclass of it if the response status is not a success.
        """
        client = self._get_client()
        url = self.url_for(path)
        logger.debug("%s %s", method, url)
        try:
            response = client.request(
                method, url, content=body, headers=self._build_headers(method)
            )
        except httpx.TimeoutException as e:
            raise RemoteTimeoutError(method, url) from e
        logger.debug("%s %s => %d", method, url, response.status_code)
        return self.handle_response(method, url, response)

    def handle_response(self, method: str, url: str, response: httpx.Response) -> httpx.Response:
        error_class = error_for_status(response.status_code)
        if error_class is not None:
            raise error_class(method, url, response)
        return response

    def get(self, path: str) -> httpx.Response:
        return self.request("GET", path)

    def head(self, path: str) -> httpx.Response:
        return self.request("HEAD", path)

    def delete(self, path: str) -> httpx.Response:
        return self.request("DELETE", path)

    def post(self, path: str, body: typing.Optional[str] = None) -> httpx.Response:
        return self.request("POST", path, body)

    def put(self, path: str, body: typing.Optional[str] = None) -> httpx.Response:
        return self.request("PUT", path, body)

    def patch(self, path: str, body: typing.Optional[str] = None) -> httpx.Response:
        return self.request("PATCH", path, body)

    def __init__(
        self,
        site: str,
        format: Format,
        headers: typing.Optional[typing.Mapping[str, str]] = None,
        timeout: float = 30.0,
        transport: typing.Optional[httpx.BaseTransport] = None,
    ):
        self.site = site
        self.format = format
        self.headers = {} if headers is None else headers
        self.timeout = timeout
        self.transport = transport
