"""Tests for the Odoo JSON-RPC client."""
import httpx
import pytest
from tenacity import wait_none

from core.exceptions import ConfigurationError, OdooAPIError, SessionExpiredError, ValidationError
from integrations.odoo_client import OdooClient, request_id
from models.odoo import DataQueryParams
from helpers import RecordingTransport, rpc_result


def _client(handler, **kwargs):
    recorder = RecordingTransport(handler)
    client = OdooClient(session_id=kwargs.pop("session_id", "sess-123"),
                        base_url="https://odoo.test/", mock=False,
                        transport=recorder.transport, **kwargs)
    return client, recorder


class TestEnvelope:
    def test_request_id_has_nine_digits(self):
        for _ in range(20):
            assert 100_000_000 <= request_id() <= 999_999_999

    def test_search_read_payload(self):
        client, rec = _client(rpc_result({"records": [], "length": 0}))
        client.search_read("res.partner", ["name"], [["active", "=", True]], limit=5)

        request = rec.requests[0]
        assert request.url == "https://odoo.test/web/dataset/search_read"
        assert request.headers["cookie"] == "session_id=sess-123"
        payload = rec.payloads[0]
        assert payload["jsonrpc"] == "2.0"
        assert payload["method"] == "call"
        assert isinstance(payload["id"], int)
        params = payload["params"]
        assert params["model"] == "res.partner"
        assert params["domain"] == [["active", "=", True]]
        assert params["limit"] == 5
        assert params["offset"] == 0
        assert params["context"]["bin_size"] is True

    def test_session_info(self):
        client, rec = _client(rpc_result({"uid": 2, "username": "admin", "db": "prod"}))
        info = client.session_info()
        assert info["username"] == "admin"
        request = rec.requests[0]
        assert request.method == "POST"
        assert request.url == "https://odoo.test/web/session/get_session_info"
        assert request.headers["cookie"] == "session_id=sess-123"
        payload = rec.payloads[0]
        assert payload["jsonrpc"] == "2.0"
        assert payload["method"] == "call"
        assert payload["params"] == {}

    def test_session_info_empty_result(self):
        client, _ = _client(rpc_result(None))
        assert client.session_info() == {}

    def test_call_kw_payload(self):
        client, rec = _client(rpc_result([]))
        client.call_kw("res.groups", "search_read", [[["id", "in", [1]]]], {"fields": ["name"]})
        assert rec.requests[0].url.path == "/web/dataset/call_kw"
        assert rec.payloads[0]["params"] == {
            "model": "res.groups",
            "method": "search_read",
            "args": [[["id", "in", [1]]]],
            "kwargs": {"fields": ["name"]},
        }


class TestOperations:
    def test_search_faculty(self):
        client, rec = _client(rpc_result({"records": [
            {"id": 101, "name": "Ayesha Khan", "department_id": [7, "CS"],
             "campus_id": False, "res_group_id": [1, 2]},
        ], "length": 1}))
        result = client.search_faculty("khan", limit=3)
        assert [f.name for f in result] == ["Ayesha Khan"]
        assert result[0].department_name == "CS"
        params = rec.payloads[0]["params"]
        assert params["model"] == "obe.core.faculty"
        assert params["domain"] == [["name", "ilike", "khan"]]
        assert params["limit"] == 3
        assert "res_group_id" in params["fields"]

    def test_blank_faculty_query_sends_nothing(self):
        client, rec = _client(rpc_result({"records": []}))
        assert client.search_faculty("   ") == []
        assert rec.requests == []

    def test_group_permissions(self):
        client, rec = _client(rpc_result([
            {"id": 9, "model_id": [55, "res.partner"], "perm_read": True,
             "perm_write": True, "perm_create": False, "perm_unlink": False},
        ]))
        rows = client.get_group_permissions("12")
        assert rows[0].model_name == "res.partner"
        params = rec.payloads[0]["params"]
        assert params["model"] == "ir.model.access"
        assert params["args"] == [[["group_id", "=", 12]]]
        assert params["kwargs"]["limit"] == 1000
        assert params["kwargs"]["fields"] == [
            "model_id", "perm_read", "perm_write", "perm_create", "perm_unlink"]

    def test_group_names(self):
        client, _ = _client(rpc_result([
            {"id": 1, "name": "Internal User", "full_name": "User types / Internal User"},
            {"id": 2, "name": "Portal", "full_name": False},
        ]))
        assert client.group_names([1, 2]) == {1: "User types / Internal User", 2: "Portal"}

    def test_group_names_without_ids(self):
        client, rec = _client(rpc_result([]))
        assert client.group_names([]) == {}
        assert rec.requests == []

    def test_model_fields_sorted(self):
        client, rec = _client(rpc_result({
            "name": {"string": "Name", "type": "char", "required": True, "readonly": False},
            "country_id": {"string": "Country", "type": "many2one", "required": False,
                           "readonly": False, "relation": "res.country"},
        }))
        fields = client.get_model_fields("res.partner")
        assert [f.name for f in fields] == ["country_id", "name"]
        assert fields[0].relation == "res.country"
        params = rec.payloads[0]["params"]
        assert params["method"] == "fields_get"
        assert params["kwargs"] == {"attributes": ["string", "type", "required", "readonly", "relation"]}

    def test_data_query_with_filter(self):
        client, rec = _client(rpc_result({"records": [{"id": 3, "name": "Sara"}], "length": 1}))
        result = client.data_query(DataQueryParams.model_validate({
            "model": "obe.core.faculty", "fields": ["name"],
            "filterField": "login", "filterValue": "sara", "limit": 7,
        }))
        assert result.length == 1
        assert result.records == [{"id": 3, "name": "Sara"}]
        params = rec.payloads[0]["params"]
        assert params["domain"] == [["login", "=", "sara"]]
        assert params["limit"] == 7

    def test_data_query_ignores_empty_filter_value(self):
        client, rec = _client(rpc_result({"records": [], "length": 0}))
        client.data_query(DataQueryParams(model="res.partner", fields=["name"],
                                          filter_field="name", filter_value=""))
        assert rec.payloads[0]["params"]["domain"] == []
        assert rec.payloads[0]["params"]["limit"] == 100

    @pytest.mark.parametrize("params", [
        DataQueryParams(fields=["name"]),
        DataQueryParams(model="res.partner"),
    ])
    def test_data_query_requires_model_and_fields(self, params):
        client, rec = _client(rpc_result({}))
        with pytest.raises(ValidationError):
            client.data_query(params)
        assert rec.requests == []


class TestErrors:
    def test_missing_session(self):
        client, rec = _client(rpc_result([]), session_id=None)
        with pytest.raises(SessionExpiredError, match="Session ID not configured"):
            client.get_group_permissions(1)
        assert rec.requests == []

    def test_missing_url(self):
        client = OdooClient(session_id="s", base_url="", mock=False)
        with pytest.raises(ConfigurationError):
            client.get_group_permissions(1)

    @pytest.mark.parametrize("status", [401, 403])
    def test_rejected_session(self, status):
        client, _ = _client(lambda r: httpx.Response(status, text="Forbidden"))
        with pytest.raises(SessionExpiredError) as exc:
            client.get_group_permissions(1)
        assert exc.value.status_code == 401

    def test_http_error_keeps_status_and_body(self):
        client, _ = _client(lambda r: httpx.Response(502, text="Bad gateway"))
        with pytest.raises(OdooAPIError) as exc:
            client.get_group_permissions(1)
        assert exc.value.status_code == 502
        assert exc.value.details == "Bad gateway"

    def test_rpc_error(self):
        error = {"code": 200, "message": "Odoo Server Error",
                 "data": {"name": "odoo.exceptions.AccessError", "message": "Denied"}}
        client, _ = _client(lambda r: httpx.Response(200, json={"jsonrpc": "2.0", "error": error}))
        with pytest.raises(OdooAPIError) as exc:
            client.get_model_fields("res.partner")
        assert exc.value.status_code == 500
        assert exc.value.details == error

    def test_rpc_session_expired(self):
        error = {"code": 100, "message": "Odoo Session Expired",
                 "data": {"name": "odoo.http.SessionExpiredException"}}
        client, _ = _client(lambda r: httpx.Response(200, json={"jsonrpc": "2.0", "error": error}))
        with pytest.raises(SessionExpiredError, match="Session Expired"):
            client.search_faculty("khan")

    def test_non_json_response(self):
        client, _ = _client(lambda r: httpx.Response(200, text="<html>Odoo Login</html>"))
        with pytest.raises(OdooAPIError) as exc:
            client.search_faculty("khan")
        assert exc.value.status_code == 502

    @pytest.mark.parametrize("body", [[1, 2], "ok", 7])
    def test_json_body_that_is_not_an_object(self, body):
        client, _ = _client(lambda r: httpx.Response(200, json=body))
        with pytest.raises(OdooAPIError) as exc:
            client.get_group_permissions(1)
        assert exc.value.status_code == 502


class TestRetry:
    @pytest.fixture(autouse=True)
    def no_wait(self, monkeypatch):
        monkeypatch.setattr(OdooClient._post.retry, "wait", wait_none())

    def test_transport_errors_are_retried(self):
        def handler(request):
            if len(rec.requests) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return rpc_result([])(request)

        client, rec = _client(handler)
        assert client.get_group_permissions(1) == []
        assert len(rec.requests) == 3

    def test_gives_up_after_three_attempts(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client, rec = _client(handler)
        with pytest.raises(OdooAPIError) as exc:
            client.get_group_permissions(1)
        assert exc.value.status_code == 502
        assert isinstance(exc.value.__cause__, httpx.TransportError)
        assert len(rec.requests) == 3

    def test_http_errors_are_not_retried(self):
        client, rec = _client(lambda r: httpx.Response(500, text="Internal Server Error"))
        with pytest.raises(OdooAPIError) as exc:
            client.get_group_permissions(1)
        assert exc.value.status_code == 500
        assert len(rec.requests) == 1

    def test_rpc_errors_are_not_retried(self):
        error = {"code": 200, "message": "Odoo Server Error", "data": {"name": "odoo.exceptions.UserError"}}
        client, rec = _client(lambda r: httpx.Response(200, json={"jsonrpc": "2.0", "error": error}))
        with pytest.raises(OdooAPIError):
            client.get_group_permissions(1)
        assert len(rec.requests) == 1


class TestMockMode:
    def test_mock_is_the_default(self):
        client = OdooClient()
        assert client.mock is True
        assert [f.name for f in client.search_faculty("a")][:1] == ["Ayesha Khan"]

    def test_mock_permissions_and_fields(self):
        client = OdooClient(mock=True)
        assert len(client.get_group_permissions(3)) == 8
        assert client.get_group_permissions(99) == []
        assert client.group_names([2]) == {2: "OBE / Instructor"}
        assert "create_uid" in [f.name for f in client.get_model_fields("res.partner")]

    def test_mock_query(self):
        result = OdooClient(mock=True).data_query(DataQueryParams(
            model="obe.core.faculty", fields=["name", "login"],
            filter_field="login", filter_value="sara.malik"))
        assert result.records == [{"name": "Sara Malik", "login": "sara.malik"}]
