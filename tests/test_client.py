"""Tests for the Shelly Cloud API client."""

import json
from unittest.mock import Mock, patch

import pytest
import requests

from shelly import __version__
from shelly.client import (
    APIException,
    ConflictException,
    ConnectionFailedException,
    GemVersionException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from shelly.client.api import Client


def make_response(status_code=200, body=None, headers=None):
    """Build a real requests.Response with a JSON body."""
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(body).encode() if body is not None else b""
    response.headers.update({"Content-Type": "application/json"})
    response.headers.update(headers or {})
    response.encoding = "utf-8"
    return response


class TestClient:
    """Test request building and response handling."""

    @pytest.fixture
    def client(self):
        return Client("bob@example.com", "secret", api_url="https://api.example.com/apiv2/")

    def test_init_strips_trailing_slash(self, client):
        """Test API url is normalized."""
        assert client.api_url == "https://api.example.com/apiv2"

    def test_default_headers(self, client):
        """Test client sends JSON and version headers."""
        assert client.session.headers["Accept"] == "application/json"
        assert client.session.headers["shelly-version"] == __version__
        assert client.session.headers["User-Agent"] == f"shelly/{__version__}"

    def test_auth_without_credentials(self):
        """Test anonymous client sends no basic auth."""
        assert Client(api_url="https://api.example.com").auth is None

    def test_authenticate_sets_auth(self):
        """Test credentials can be set after creation."""
        client = Client(api_url="https://api.example.com")
        client.authenticate("ann@example.com", "pass")
        assert client.auth == ("ann@example.com", "pass")

    def test_get_returns_decoded_json(self, client):
        """Test successful GET returns parsed body."""
        with patch.object(requests.Session, "request", return_value=make_response(200, {"state": "running"})) as req:
            result = client.app("foo-staging")

        assert result == {"state": "running"}
        req.assert_called_once_with(
            "GET",
            "https://api.example.com/apiv2/apps/foo-staging",
            auth=("bob@example.com", "secret"),
            params=None,
            json=None,
            timeout=client.timeout,
        )

    def test_post_sends_json_payload(self, client):
        """Test POST wraps attributes in the expected payload."""
        with patch.object(requests.Session, "request", return_value=make_response(201, {"git_url": "x"})) as req:
            client.create_app({"code_name": "foo"})

        args, kwargs = req.call_args
        assert args == ("POST", "https://api.example.com/apiv2/apps")
        assert kwargs["json"] == {"app": {"code_name": "foo"}}

    def test_empty_body_decodes_to_dict(self, client):
        """Test 204 responses decode to an empty dict."""
        with patch.object(requests.Session, "request", return_value=make_response(204)):
            assert client.delete_app("foo") == {}

    def test_query_params_skip_empty_values(self, client):
        """Test None options are not sent."""
        with patch.object(requests.Session, "request", return_value=make_response(200, [])) as req:
            client.application_logs("foo", {"limit": 10, "from": None})

        assert req.call_args.kwargs["params"] == {"limit": 10}

    def test_config_path_is_quoted(self, client):
        """Test user supplied paths are URL-quoted."""
        with patch.object(requests.Session, "request", return_value=make_response(200, {})) as req:
            client.app_config("foo", "config/app.yml")

        assert req.call_args.args[1] == "https://api.example.com/apiv2/apps/foo/configs/config%2Fapp.yml"

    def test_collaboration_email_is_quoted(self, client):
        """Test emails in paths are URL-quoted."""
        with patch.object(requests.Session, "request", return_value=make_response(204)) as req:
            client.delete_collaboration("foo", "a+b@example.com")

        assert req.call_args.args[1].endswith("/collaborations/a%2Bb%40example.com")

    @pytest.mark.parametrize("status,exception", [
        (401, UnauthorizedException),
        (404, NotFoundException),
        (409, ConflictException),
        (412, GemVersionException),
        (422, ValidationException),
        (500, APIException),
    ])
    def test_error_status_mapping(self, client, status, exception):
        """Test non-2xx statuses raise the mapped exception."""
        response = make_response(status, {"message": "boom"}, {"X-Request-Id": "req-1"})
        with patch.object(requests.Session, "request", return_value=response):
            with pytest.raises(exception) as info:
                client.apps()

        assert info.value.status_code == status
        assert info.value.request_id == "req-1"
        assert info.value.message == "boom"

    def test_not_found_exposes_resource(self, client):
        """Test 404 payload resource is readable."""
        response = make_response(404, {"resource": "cloud", "id": "foo"})
        with patch.object(requests.Session, "request", return_value=response):
            with pytest.raises(NotFoundException) as info:
                client.app("foo")

        assert info.value.resource == "cloud"
        assert info.value.id == "foo"

    def test_conflict_item_access(self, client):
        """Test conflict state is readable with item access."""
        response = make_response(409, {"state": "running"})
        with patch.object(requests.Session, "request", return_value=response):
            with pytest.raises(ConflictException) as info:
                client.start_cloud("foo")

        assert info.value["state"] == "running"
        assert info.value["missing"] is None

    def test_validation_errors(self, client):
        """Test validation errors become readable messages."""
        response = make_response(422, {"errors": [["code_name", "has already been taken"]]})
        with patch.object(requests.Session, "request", return_value=response):
            with pytest.raises(ValidationException) as info:
                client.create_app({"code_name": "foo"})

        assert list(info.value.each_error()) == ["Code name has already been taken"]

    def test_non_json_error_body(self, client):
        """Test HTML error pages still raise with the text as message."""
        response = requests.Response()
        response.status_code = 502
        response._content = b"<html>Bad Gateway</html>"
        with patch.object(requests.Session, "request", return_value=response):
            with pytest.raises(APIException) as info:
                client.apps()

        assert info.value.message == "<html>Bad Gateway</html>"

    def test_connection_error(self, client):
        """Test network failures raise ConnectionFailedException."""
        with patch.object(requests.Session, "request", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(ConnectionFailedException, match="Unable to connect"):
                client.apps()

    def test_start_cloud_uses_put(self, client):
        """Test start maps to PUT /apps/<code>/start."""
        with patch.object(requests.Session, "request",
                          return_value=make_response(200, {"deployment": {"id": "d1"}})) as req:
            assert client.start_cloud("foo") == {"deployment": {"id": "d1"}}

        assert req.call_args.args == ("PUT", "https://api.example.com/apiv2/apps/foo/start")


class TestStreaming:
    """Test streaming endpoints."""

    @pytest.fixture
    def client(self):
        return Client("bob@example.com", "secret", api_url="https://api.example.com")

    def test_application_logs_tail(self, client):
        """Test tail follows the returned url and yields lines."""
        stream = make_response(200)
        stream.iter_lines = Mock(return_value=iter(["line one", "", "line two"]))
        responses = [make_response(200, {"url": "https://logs.example.com/tail/abc"}), stream]

        lines = []
        with patch.object(requests.Session, "request", side_effect=responses) as req:
            client.application_logs_tail("foo", lines.append)

        assert lines == ["line one", "line two"]
        second = req.call_args_list[1]
        assert second.args == ("GET", "https://logs.example.com/tail/abc")
        assert second.kwargs["stream"] is True

    def test_download_file_writes_chunks(self, client, tmp_path):
        """Test downloads are written to disk with progress."""
        response = make_response(200)
        response.iter_content = Mock(return_value=iter([b"abc", b"", b"de"]))
        destination = tmp_path / "backup.tar.gz"
        progress = []

        with patch.object(requests.Session, "request", return_value=response):
            client.download_file("https://api.example.com/file", str(destination), progress.append)

        assert destination.read_bytes() == b"abcde"
        assert progress == [3, 2]

    def test_download_file_error(self, client, tmp_path):
        """Test failed download raises before creating the file."""
        destination = tmp_path / "backup.tar.gz"
        with patch.object(requests.Session, "request",
                          return_value=make_response(404, {"resource": "database_backup"})):
            with pytest.raises(NotFoundException):
                client.download_file("https://api.example.com/file", str(destination))

        assert not destination.exists()

    def test_download_application_logs_attributes(self, client):
        """Test archive size is read from the headers endpoint."""
        sizes = make_response(200, headers={"Content-Length": "2048"})
        responses = [make_response(200, {"url": "https://logs.example.com/a", "filename": "a.log.gz"}), sizes]

        with patch.object(requests.Session, "request", side_effect=responses) as req:
            attributes = client.download_application_logs_attributes("foo", {"date": "2013-05-01"})

        assert attributes["size"] == 2048
        assert req.call_args_list[0].kwargs["params"] == {"date": "2013-05-01"}
        assert req.call_args_list[1].args == ("GET", "https://logs.example.com/a/headers")
