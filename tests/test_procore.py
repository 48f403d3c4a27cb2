from urllib.parse import parse_qsl, urlsplit

import pytest
import requests
import responses

from accidentlogs.models import AccidentLog
from accidentlogs.procore import (
    API_BASE,
    TOKEN_URL,
    ProcoreClient,
    ProcoreError,
    ProcoreSettings,
    UpstreamResponse,
)

AUTH = "Bearer token"
SETTINGS = ProcoreSettings(
    client_id="client-id", client_secret="secret", project_id="77", company_id="5"
)
LOGS_URL = f"{API_BASE}/projects/77/accident_logs"


@pytest.fixture
def rsps():
    with responses.RequestsMock() as mock:
        yield mock


@pytest.fixture
def client():
    return ProcoreClient(SETTINGS)


def test_settings_from_env():
    env = {
        "PROCORE_CLIENT_ID": "client-id",
        "PROCORE_CLIENT_SECRET": "secret",
        "PROCORE_PROJECT_ID": "77",
        "PROCORE_COMPANY_ID": "5",
    }
    assert ProcoreSettings.from_env(env) == SETTINGS


def test_settings_from_env_missing_are_empty():
    assert ProcoreSettings.from_env({}) == ProcoreSettings()


def test_exchange_code_success(rsps, client):
    rsps.add(
        responses.POST,
        TOKEN_URL,
        json={"access_token": "token", "token_type": "bearer",
              "expires_in": 3600, "refresh_token": "token"},
    )
    result = client.exchange_code("abc")
    assert result == {"access_token": "token", "token_type": "bearer", "expires_in": 3600}
    request = rsps.calls[0].request
    form = dict(parse_qsl(request.body))
    assert form["grant_type"] == "authorization_code"
    assert form["code"] == "abc"
    assert form["client_secret"] == "secret"
    assert form["redirect_uri"] == "urn:ietf:wg:oauth:2.0:oob"
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"


def test_exchange_code_requires_code(client):
    with pytest.raises(ValueError, match="Authorization code is required"):
        client.exchange_code("")


def test_exchange_code_upstream_error_keeps_status_and_body(rsps, client):
    rsps.add(responses.POST, TOKEN_URL, body="invalid_grant", status=401)
    with pytest.raises(ProcoreError) as info:
        client.exchange_code("abc")
    assert info.value.status == 401
    assert info.value.message == "invalid_grant"


def test_exchange_code_bad_json(rsps, client):
    rsps.add(responses.POST, TOKEN_URL, body="not json")
    with pytest.raises(ProcoreError, match="Failed to parse token response"):
        client.exchange_code("abc")


def test_exchange_code_transport_failure(rsps, client):
    rsps.add(responses.POST, TOKEN_URL, body=requests.ConnectionError("down"))
    with pytest.raises(ProcoreError, match="Failed to get token from Procore") as info:
        client.exchange_code("abc")
    assert info.value.status == 500


def test_list_logs_passes_response_through(rsps, client):
    rsps.add(responses.GET, LOGS_URL, body=b"[1]", status=203, content_type="text/plain")
    result = client.list_logs(AUTH)
    assert result == UpstreamResponse(status=203, content_type="text/plain", body=b"[1]")
    headers = rsps.calls[0].request.headers
    assert headers["Authorization"] == AUTH
    assert headers["Procore-Company-Id"] == "5"


def test_get_log_uses_id(rsps, client):
    rsps.add(responses.GET, f"{LOGS_URL}/12", json={"id": 12})
    result = client.get_log(AUTH, "12")
    assert result.status == 200
    assert result.body == b'{"id": 12}'


def test_get_log_requires_id(client):
    with pytest.raises(ValueError, match="Log ID is required"):
        client.get_log(AUTH, "")


def test_transport_error_becomes_procore_error(rsps, client):
    rsps.add(responses.GET, LOGS_URL, body=requests.ConnectionError("down"))
    with pytest.raises(ProcoreError, match="down"):
        client.list_logs(AUTH)


def test_list_logs_between_sends_dates(rsps, client):
    rsps.add(responses.GET, LOGS_URL, json=[{"id": 1}, {"id": 2}])
    logs = client.list_logs_between(AUTH, "2024-01-01", "2024-01-31")
    assert logs == [{"id": 1}, {"id": 2}]
    query = dict(parse_qsl(urlsplit(rsps.calls[0].request.url).query))
    assert query == {"start_date": "2024-01-01", "end_date": "2024-01-31"}


def test_list_logs_between_without_dates_has_no_query(rsps, client):
    rsps.add(responses.GET, LOGS_URL, json=[])
    assert client.list_logs_between(AUTH) == []
    assert urlsplit(rsps.calls[0].request.url).query == ""


def test_list_logs_between_null_is_empty(rsps, client):
    rsps.add(responses.GET, LOGS_URL, body="null")
    assert client.list_logs_between(AUTH, "", "") == []


@pytest.mark.parametrize("body", ["oops", '{"id": 1}', "[1, 2]"])
def test_list_logs_between_bad_payload(rsps, client, body):
    rsps.add(responses.GET, LOGS_URL, body=body)
    with pytest.raises(ProcoreError, match="Failed to parse response"):
        client.list_logs_between(AUTH)


def test_list_logs_between_requires_settings():
    client = ProcoreClient(ProcoreSettings(project_id="77"))
    with pytest.raises(ProcoreError, match="Missing required environment variables"):
        client.list_logs_between(AUTH)


def test_create_log_sends_form(rsps, client):
    rsps.add(responses.POST, LOGS_URL, json={"id": 9}, status=201)
    log = AccidentLog(comments="fell", time_hour=8, severity="High")
    result = client.create_log(AUTH, log)
    assert result.status == 201
    request = rsps.calls[0].request
    assert dict(parse_qsl(request.body, keep_blank_values=True)) == log.create_form()
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"


def test_update_log_sends_only_set_fields(rsps, client):
    rsps.add(responses.PUT, f"{LOGS_URL}/9", json={"id": 9})
    log = AccidentLog(location="Gate B")
    result = client.update_log(AUTH, "9", log)
    assert result.status == 200
    assert dict(parse_qsl(rsps.calls[0].request.body)) == {"accident_log[location]": "Gate B"}


def test_update_log_requires_id(client):
    with pytest.raises(ValueError, match="Log ID is required"):
        client.update_log(AUTH, "", AccidentLog())


def test_delete_log(rsps, client):
    rsps.add(responses.DELETE, f"{LOGS_URL}/9", body=b"", status=204)
    result = client.delete_log(AUTH, "9")
    assert result.status == 204
    assert result.body == b""
    assert rsps.calls[0].request.headers["Authorization"] == AUTH