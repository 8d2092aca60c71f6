import httpx
import pytest

from ..connection import Connection
from ..formats import JSONFormat


def make_connection(handler, **kwargs) -> Connection:
    return Connection(
        "https://api.avvo.com/1",
        format=JSONFormat(),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestConnection:
    def test_url_for(self):
        target = Connection("https://api.avvo.com/api/1/", format=JSONFormat())
        assert target.url_for("/api/1/lawyers.json") == "https://api.avvo.com/api/1/lawyers.json"
        assert target.url_for("lawyers.json") == "https://api.avvo.com/api/1/lawyers.json"
        assert Connection("", format=JSONFormat()).url_for("lawyers") == "lawyers"

    def test_headers(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        target = make_connection(handler, headers={"X-Api-Key": "secret"})
        target.get("/lawyers.json")
        target.post("/lawyers.json", "{}")
        assert requests[0].headers["accept"] == "application/json"
        assert requests[0].headers["x-api-key"] == "secret"
        assert "content-type" not in requests[0].headers
        assert requests[1].headers["content-type"] == "application/json"
        assert requests[1].content == b"{}"

    @pytest.mark.parametrize(
        ("status_code", "error"),
        [
            (400, "BadRequest"),
            (401, "UnauthorizedAccess"),
            (403, "ForbiddenAccess"),
            (404, "ResourceNotFound"),
            (405, "MethodNotAllowed"),
            (409, "ResourceConflict"),
            (410, "ResourceGone"),
            (418, "ClientError"),
            (422, "ResourceInvalid"),
            (500, "ServerError"),
            (503, "ServerError"),
            (301, "Redirection"),
            (302, "Redirection"),
        ],
    )
    def test_errors(self, status_code, error):
        from .. import exceptions

        target = make_connection(lambda request: httpx.Response(status_code))
        with pytest.raises(getattr(exceptions, error)) as e:
            target.get("/lawyers/1.json")
        assert type(e.value) is getattr(exceptions, error)
        assert e.value.status_code == status_code
        assert e.value.method == "GET"
        assert e.value.url == "https://api.avvo.com/lawyers/1.json"

    def test_success(self):
        for status_code in (200, 201, 204, 304):
            target = make_connection(lambda request: httpx.Response(status_code))
            assert target.get("/lawyers.json").status_code == status_code

    def test_redirection_location(self):
        from ..exceptions import Redirection

        target = make_connection(
            lambda request: httpx.Response(302, headers={"Location": "https://example.com/"})
        )
        with pytest.raises(Redirection) as e:
            target.get("/lawyers.json")
        assert e.value.location == "https://example.com/"

    def test_method_not_allowed(self):
        from ..exceptions import MethodNotAllowed

        target = make_connection(lambda request: httpx.Response(405, headers={"Allow": "GET, PUT"}))
        with pytest.raises(MethodNotAllowed) as e:
            target.delete("/lawyers/1.json")
        assert e.value.allowed_methods == ["GET", "PUT"]

    def test_timeout(self):
        from ..exceptions import RemoteTimeoutError

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        target = make_connection(handler)
        with pytest.raises(RemoteTimeoutError) as e:
            target.get("/lawyers.json")
        assert e.value.status_code is None
        assert "timed out" in str(e.value)

    def test_close(self):
        target = make_connection(lambda request: httpx.Response(200))
        target.get("/lawyers.json")
        target.close()
        target.close()
        assert target.get("/lawyers.json").status_code == 200
