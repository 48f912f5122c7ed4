"""
Client for the remote ocr-translate function.

The remote side performs recognition and translation in one request. Every
failure (network, non-2xx status, unreadable payload) is reported as a
RemoteTransportError carrying the status code and response body when
available.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from core.errors import NotAuthenticatedError, RemoteTransportError

logger = logging.getLogger(__name__)


@dataclass
class RemotePayload:
    """Response of the remote function; any field may be empty."""
    ocr_text: str = ""
    translated: str = ""
    romaji: Optional[str] = None

    @classmethod
    def from_json(cls, data: Optional[dict]) -> "RemotePayload":
        data = data or {}
        romaji = data.get('romaji')
        return cls(
            ocr_text=str(data.get('ocrText') or '').strip(),
            translated=str(data.get('translated') or '').strip(),
            romaji=str(romaji) if romaji else None
        )


class RemoteRecognitionClient:
    """Async HTTP client for the remote recognition + translation call."""

    def __init__(
        self,
        url: str,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize remote client.

        Args:
            url: Full URL of the ocr-translate function
            timeout: Request timeout in seconds
            client: Pre-built httpx.AsyncClient (optional, for custom transports)
        """
        self.url = url
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def recognize(self, image_data_url: str, access_token: Optional[str]) -> RemotePayload:
        """
        Send a cropped image to the remote function.

        Args:
            image_data_url: ``data:image/png;base64,...`` crop
            access_token: Bearer token of the signed-in caller

        Returns:
            RemotePayload parsed from the response

        Raises:
            NotAuthenticatedError: If no access token is available
            RemoteTransportError: On any transport or protocol failure
        """
        if not access_token:
            raise NotAuthenticatedError(
                "Remote invoke aborted: no authenticated session token available."
            )

        try:
            response = await self.client.post(
                self.url,
                json={"imageDataUrl": image_data_url},
                headers={"Authorization": f"Bearer {access_token}"}
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            body = e.response.text.strip()
            raise RemoteTransportError(
                f"[ocr-translate] invoke failed: status={e.response.status_code}",
                status_code=e.response.status_code,
                body=body
            ) from e
        except httpx.HTTPError as e:
            raise RemoteTransportError(f"[ocr-translate] invoke failed: {e}") from e
        except ValueError as e:
            raise RemoteTransportError(
                f"[ocr-translate] invalid JSON response: {e}",
                status_code=response.status_code,
                body=response.text.strip()
            ) from e

        if not isinstance(data, dict):
            raise RemoteTransportError(
                "[ocr-translate] unexpected response payload",
                status_code=response.status_code,
                body=response.text.strip()
            )

        return RemotePayload.from_json(data)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
