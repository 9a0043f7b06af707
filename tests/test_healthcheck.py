import json
from unittest.mock import MagicMock, patch

import healthcheck


def _connection(status, body):
    conn = MagicMock()
    conn.getresponse.return_value.status = status
    conn.getresponse.return_value.read.return_value = body
    return conn


@patch("healthcheck.http.client.HTTPConnection")
def test_healthy_service(mock_connection):
    mock_connection.return_value = _connection(200, json.dumps({"code": 0, "data": {"status": "ok"}}).encode())

    assert healthcheck.check("localhost", 8000, "/api/v1/health") is True
    mock_connection.return_value.request.assert_called_once_with("GET", "/api/v1/health")
    mock_connection.return_value.close.assert_called_once()


@patch("healthcheck.http.client.HTTPConnection")
def test_error_status_is_unhealthy(mock_connection):
    mock_connection.return_value = _connection(503, b"")

    assert healthcheck.check("localhost", 8000, "/api/v1/health") is False


@patch("healthcheck.http.client.HTTPConnection")
def test_unexpected_body_is_unhealthy(mock_connection):
    mock_connection.return_value = _connection(200, b"<html>proxy page</html>")

    assert healthcheck.check("localhost", 8000, "/api/v1/health") is False


@patch("healthcheck.http.client.HTTPConnection")
def test_connection_refused_is_unhealthy(mock_connection):
    mock_connection.return_value.request.side_effect = ConnectionRefusedError("refused")

    assert healthcheck.check("localhost", 8000, "/api/v1/health") is False


@patch("healthcheck.check", return_value=True)
def test_main_reads_port_and_path_from_environment(mock_check, monkeypatch):
    monkeypatch.setenv("PORT", "9100")
    monkeypatch.setenv("HEALTHCHECK_PATH", "/healthz")

    assert healthcheck.main() == 0
    mock_check.assert_called_once_with("localhost", 9100, "/healthz")
