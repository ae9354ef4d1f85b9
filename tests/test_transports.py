"""
test_transports.py - Tests for image loading, upload encoding and response mapping
"""

import json

import pytest

from loto_client.scanner.base import (
    RecognitionTransport,
    filename_from_handle,
    guess_mime_type,
)
from loto_client.scanner.errors import PermissionDenied, TransportFailure
from loto_client.scanner.transports import (
    FileTransport,
    UrlTransport,
    available_transports,
    create_transport,
    register_transport,
)


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("ticket.png", "image/png"),
        ("TICKET.PNG", "image/png"),
        ("ticket.jpg", "image/jpeg"),
        ("ticket.jpeg", "image/jpeg"),
        ("ticket", "image/jpeg"),
        ("photo.heic", "image/jpeg"),
    ],
)
def test_guess_mime_type(filename, expected):
    assert guess_mime_type(filename) == expected


def test_filename_from_handle():
    assert filename_from_handle("/tmp/photos/ve-so.png") == "ve-so.png"
    assert filename_from_handle("/images/") == "images"
    assert filename_from_handle("") == "ticket.jpg"


class TestFileTransport:
    def test_missing_file_is_permission_denied(self, tmp_path):
        transport = FileTransport(base_url="http://recognition.test")
        with pytest.raises(PermissionDenied):
            transport.check_access(str(tmp_path / "nope.jpg"))

    def test_directory_is_permission_denied(self, tmp_path):
        transport = FileTransport(base_url="http://recognition.test")
        with pytest.raises(PermissionDenied):
            transport.check_access(str(tmp_path))

    @pytest.mark.asyncio
    async def test_load_image_reads_bytes_and_mime(self, tmp_path):
        path = tmp_path / "ticket.png"
        path.write_bytes(b"\x89PNG fake")
        transport = FileTransport(base_url="http://recognition.test")

        image = await transport.load_image(str(path))

        assert image.data == b"\x89PNG fake"
        assert image.filename == "ticket.png"
        assert image.mime_type == "image/png"

    @pytest.mark.asyncio
    async def test_unreachable_service_is_transport_failure(self, tmp_path):
        path = tmp_path / "ticket.jpg"
        path.write_bytes(b"jpeg")
        # Nothing listens on the discard port
        transport = FileTransport(base_url="http://127.0.0.1:9")

        with pytest.raises(TransportFailure):
            await transport.scan(str(path))


class TestUrlTransport:
    def test_accepts_http_urls(self):
        transport = UrlTransport(base_url="http://recognition.test")
        transport.check_access("https://cdn.example.com/ticket.jpg")
        transport.check_access("http://cdn.example.com/ticket.jpg")

    @pytest.mark.parametrize("handle", ["file:///tmp/t.jpg", "/tmp/t.jpg", "content://media/1"])
    def test_other_schemes_are_permission_denied(self, handle):
        transport = UrlTransport(base_url="http://recognition.test")
        with pytest.raises(PermissionDenied):
            transport.check_access(handle)


class TestResponseParsing:
    def test_success_body(self):
        body = json.dumps({"status": "ok", "blocks": [{"row1": [1], "row2": [], "row3": []}]}).encode()
        result = RecognitionTransport._parse_response(200, body)
        assert result.blocks[0].row1 == [1]

    def test_error_body_message_is_surfaced(self):
        body = json.dumps({"error": "image file is required"}).encode()
        with pytest.raises(TransportFailure, match="image file is required"):
            RecognitionTransport._parse_response(400, body)

    def test_non_json_error_falls_back(self):
        with pytest.raises(TransportFailure, match="Scan failed"):
            RecognitionTransport._parse_response(502, b"<html>Bad Gateway</html>")

    def test_malformed_success_body(self):
        with pytest.raises(TransportFailure, match="Malformed"):
            RecognitionTransport._parse_response(200, b"{not json")

    def test_success_body_missing_status(self):
        with pytest.raises(TransportFailure):
            RecognitionTransport._parse_response(200, b'{"blocks": []}')


class TestFactory:
    def test_builtin_transports(self):
        assert {"file", "url"} <= set(available_transports())

    def test_create_by_name(self):
        transport = create_transport("url", base_url="http://svc:8080/", api_prefix="/api/v1")
        assert isinstance(transport, UrlTransport)
        assert transport.scan_url == "http://svc:8080/api/v1/scan-ticket"
        assert transport.health_url == "http://svc:8080/health"

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown transport"):
            create_transport("carrier-pigeon")

    def test_register_rejects_non_transport(self):
        with pytest.raises(TypeError):
            register_transport("bogus", dict)

    def test_register_custom(self):
        class DataTransport(FileTransport):
            name = "data"

        register_transport("data", DataTransport)
        assert isinstance(create_transport("data"), DataTransport)
