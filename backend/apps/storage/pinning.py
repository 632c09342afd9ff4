"""
File pinning service.
Supports Pinata (IPFS) and a content-hashing mock for development.
"""

import hashlib
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import requests
import structlog
from django.conf import settings
from django.utils import timezone
from prometheus_client import Counter, Histogram

from apps.core.exceptions import RemoteServiceError

logger = structlog.get_logger(__name__)

PIN_REQUESTS_TOTAL = Counter(
    "pin_requests_total",
    "File pinning requests",
    ["operation", "status"],  # operation: pin/unpin, status: success/error
)
PIN_UPLOAD_DURATION = Histogram(
    "pin_upload_duration_seconds",
    "Time spent uploading a file to the pinning service",
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)


class PinningServiceError(RemoteServiceError):
    code = "PINNING_SERVICE_ERROR"
    message = "File pinning service failed"


@dataclass
class PinResult:
    """Standard response from any pinning provider."""
    ipfs_hash: str
    size: int
    timestamp: str


def gateway_url(ipfs_hash: str) -> str:
    """Public retrieval URL for a pinned file."""
    return f"https://{settings.PINATA_GATEWAY}/ipfs/{ipfs_hash}"


class BasePinningClient(ABC):
    """Abstract base class for pinning clients."""

    @abstractmethod
    def pin_file(self, content: bytes, filename: str, metadata: Optional[dict] = None) -> PinResult:
        """Upload a file and return its content hash."""

    @abstractmethod
    def unpin(self, ipfs_hash: str) -> None:
        """Stop pinning a previously uploaded file."""


class PinataClient(BasePinningClient):
    """Pinata HTTP API implementation."""

    def __init__(self):
        self.api_url = settings.PINATA_API_URL.rstrip("/")
        self.jwt = settings.PINATA_JWT
        self.api_key = settings.PINATA_API_KEY
        self.secret_api_key = settings.PINATA_SECRET_API_KEY
        self.timeout = settings.PINATA_TIMEOUT_SECONDS

    def _auth_headers(self) -> dict:
        # JWT wins when both credential styles are configured
        if self.jwt:
            return {"Authorization": f"Bearer {self.jwt}"}
        return {
            "pinata_api_key": self.api_key,
            "pinata_secret_api_key": self.secret_api_key,
        }

    def pin_file(self, content: bytes, filename: str, metadata: Optional[dict] = None) -> PinResult:
        url = f"{self.api_url}/pinning/pinFileToIPFS"
        data = {
            "pinataMetadata": json.dumps({"name": filename, "keyvalues": metadata or {}}),
            "pinataOptions": json.dumps({"cidVersion": 1, "wrapWithDirectory": False}),
        }

        with PIN_UPLOAD_DURATION.time():
            try:
                response = requests.post(
                    url,
                    files={"file": (filename, content)},
                    data=data,
                    headers=self._auth_headers(),
                    timeout=self.timeout,
                )
                response.raise_for_status()
                payload = response.json()
            except (requests.RequestException, ValueError) as exc:
                PIN_REQUESTS_TOTAL.labels(operation="pin", status="error").inc()
                logger.error("pin_upload_failed", filename=filename, error=str(exc))
                raise PinningServiceError(detail=f"Upload of '{filename}' failed")

        PIN_REQUESTS_TOTAL.labels(operation="pin", status="success").inc()
        logger.info("pin_upload_succeeded", ipfs_hash=payload["IpfsHash"], size=payload.get("PinSize"))
        return PinResult(
            ipfs_hash=payload["IpfsHash"],
            size=payload.get("PinSize", len(content)),
            timestamp=payload.get("Timestamp", timezone.now().isoformat()),
        )

    def unpin(self, ipfs_hash: str) -> None:
        url = f"{self.api_url}/pinning/unpin/{ipfs_hash}"
        try:
            response = requests.delete(url, headers=self._auth_headers(), timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            PIN_REQUESTS_TOTAL.labels(operation="unpin", status="error").inc()
            logger.error("unpin_failed", ipfs_hash=ipfs_hash, error=str(exc))
            raise PinningServiceError(detail=f"Unpin of '{ipfs_hash}' failed")

        PIN_REQUESTS_TOTAL.labels(operation="unpin", status="success").inc()
        logger.info("unpin_succeeded", ipfs_hash=ipfs_hash)


class MockPinningClient(BasePinningClient):
    """Mock pinning client for development and tests."""

    def __init__(self):
        self.pinned = {}

    def pin_file(self, content: bytes, filename: str, metadata: Optional[dict] = None) -> PinResult:
        ipfs_hash = "ipfs_" + hashlib.sha256(content).hexdigest()[:13]
        self.pinned[ipfs_hash] = filename
        PIN_REQUESTS_TOTAL.labels(operation="pin", status="success").inc()
        logger.info("mock_pin_upload", ipfs_hash=ipfs_hash, size=len(content))
        return PinResult(
            ipfs_hash=ipfs_hash,
            size=len(content),
            timestamp=timezone.now().isoformat(),
        )

    def unpin(self, ipfs_hash: str) -> None:
        self.pinned.pop(ipfs_hash, None)
        logger.info("mock_unpin", ipfs_hash=ipfs_hash)


def get_pinning_client() -> BasePinningClient:
    """Factory function to get the configured pinning client."""
    provider = settings.PINNING_PROVIDER.lower()

    if provider == "pinata":
        if not settings.PINATA_JWT and not (settings.PINATA_API_KEY and settings.PINATA_SECRET_API_KEY):
            logger.warning("pinata_credentials_missing", fallback="mock")
            return MockPinningClient()
        return PinataClient()

    elif provider == "mock":
        return MockPinningClient()

    else:
        logger.warning("unknown_pinning_provider", provider=provider, fallback="mock")
        return MockPinningClient()
