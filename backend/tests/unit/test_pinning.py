"""
Unit tests for the pinning clients.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from apps.storage.pinning import (
    MockPinningClient,
    PinataClient,
    PinningServiceError,
    gateway_url,
    get_pinning_client,
)


@pytest.fixture
def pinata_settings(settings):
    settings.PINNING_PROVIDER = "pinata"
    settings.PINATA_API_URL = "https://api.pinata.cloud"
    settings.PINATA_JWT = "jwt-token"
    settings.PINATA_API_KEY = ""
    settings.PINATA_SECRET_API_KEY = ""
    settings.PINATA_GATEWAY = "gateway.pinata.cloud"
    settings.PINATA_TIMEOUT_SECONDS = 5
    return settings


def _response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


class TestPinataClient:

    def test_pin_file_posts_metadata_and_options(self, pinata_settings):
        payload = {"IpfsHash": "bafkreiabc", "PinSize": 11, "Timestamp": "2025-03-14T10:30:00Z"}
        with patch("apps.storage.pinning.requests.post", return_value=_response(payload)) as mock_post:
            result = PinataClient().pin_file(b"hello world", "report.pdf", {"type": "test_result"})

        assert result.ipfs_hash == "bafkreiabc"
        assert result.size == 11

        args, kwargs = mock_post.call_args
        assert args[0] == "https://api.pinata.cloud/pinning/pinFileToIPFS"
        assert kwargs["headers"] == {"Authorization": "Bearer jwt-token"}
        assert kwargs["timeout"] == 5
        assert json.loads(kwargs["data"]["pinataMetadata"]) == {
            "name": "report.pdf",
            "keyvalues": {"type": "test_result"},
        }
        assert json.loads(kwargs["data"]["pinataOptions"]) == {"cidVersion": 1, "wrapWithDirectory": False}
        assert kwargs["files"]["file"] == ("report.pdf", b"hello world")

    def test_api_key_headers_without_jwt(self, pinata_settings):
        pinata_settings.PINATA_JWT = ""
        pinata_settings.PINATA_API_KEY = "key"
        pinata_settings.PINATA_SECRET_API_KEY = "secret"
        payload = {"IpfsHash": "bafk", "PinSize": 1}
        with patch("apps.storage.pinning.requests.post", return_value=_response(payload)) as mock_post:
            PinataClient().pin_file(b"x", "x.txt")

        assert mock_post.call_args.kwargs["headers"] == {
            "pinata_api_key": "key",
            "pinata_secret_api_key": "secret",
        }

    def test_http_error_raises_pinning_error(self, pinata_settings):
        with patch("apps.storage.pinning.requests.post", return_value=_response({}, status_code=401)):
            with pytest.raises(PinningServiceError) as exc_info:
                PinataClient().pin_file(b"x", "x.txt")
        assert exc_info.value.http_status == 502

    def test_connection_error_raises_pinning_error(self, pinata_settings):
        with patch("apps.storage.pinning.requests.post", side_effect=requests.ConnectionError("down")):
            with pytest.raises(PinningServiceError):
                PinataClient().pin_file(b"x", "x.txt")

    def test_unpin_sends_delete(self, pinata_settings):
        with patch("apps.storage.pinning.requests.delete", return_value=_response({})) as mock_delete:
            PinataClient().unpin("bafkreiabc")
        assert mock_delete.call_args.args[0] == "https://api.pinata.cloud/pinning/unpin/bafkreiabc"


class TestMockPinningClient:

    def test_hash_is_content_derived(self):
        client = MockPinningClient()
        first = client.pin_file(b"same bytes", "a.pdf")
        second = client.pin_file(b"same bytes", "b.pdf")
        other = client.pin_file(b"other bytes", "a.pdf")

        assert first.ipfs_hash.startswith("ipfs_")
        assert first.ipfs_hash == second.ipfs_hash
        assert first.ipfs_hash != other.ipfs_hash

    def test_unpin_forgets_file(self):
        client = MockPinningClient()
        result = client.pin_file(b"bytes", "a.pdf")
        client.unpin(result.ipfs_hash)
        assert result.ipfs_hash not in client.pinned


class TestFactory:

    def test_pinata_with_credentials(self, pinata_settings):
        assert isinstance(get_pinning_client(), PinataClient)

    def test_pinata_without_credentials_falls_back(self, pinata_settings):
        pinata_settings.PINATA_JWT = ""
        assert isinstance(get_pinning_client(), MockPinningClient)

    def test_unknown_provider_falls_back(self, settings):
        settings.PINNING_PROVIDER = "dropbox"
        assert isinstance(get_pinning_client(), MockPinningClient)

    def test_gateway_url(self, pinata_settings):
        assert gateway_url("bafk") == "https://gateway.pinata.cloud/ipfs/bafk"
