"""HTTP client for the report upload service.

Provides an async uploader that delivers a written report and its
attachments to remote storage.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from runledger_core.errors import UploadError
from runledger_core.types.attachment import Attachment

from runledger_report.models import (
    UploadFinishRequest,
    UploadResult,
    UploadSession,
    UploadStartRequest,
)

logger = logging.getLogger(__name__)


class HttpReportUploader:
    """Async uploader for the report upload service.

    Example:
        >>> uploader = HttpReportUploader("https://reports.example.com", token)
        >>> await uploader.upload(report.to_dict(), attachments)
    """

    def __init__(
        self,
        endpoint: str,
        token: str,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the uploader.

        Args:
            endpoint: Base URL of the upload service.
            token: Access token sent as a bearer credential.
            timeout: Request timeout in seconds.
            client: Optional httpx client (for testing).
        """
        self._endpoint = endpoint.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._client = client
        self.last_result: UploadResult | None = None

    @property
    def endpoint(self) -> str:
        """Base URL of the upload service."""
        return self._endpoint

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    async def upload(self, report: dict[str, Any], attachments: list[Attachment]) -> None:
        """Upload a report document and its attachments.

        Args:
            report: The serialized report document.
            attachments: Attachments referenced by the document.

        Raises:
            UploadError: If the service rejects any step of the upload.
        """
        if self._client is not None:
            await self._upload(self._client, report, attachments)
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            await self._upload(client, report, attachments)

    async def _upload(
        self,
        client: httpx.AsyncClient,
        report: dict[str, Any],
        attachments: list[Attachment],
    ) -> None:
        try:
            session = await self._start(client, attachments)

            body = json.dumps(report).encode("utf-8")
            response = await client.put(
                session.report_url, content=body, headers={"Content-Type": "application/json"}
            )
            response.raise_for_status()

            await asyncio.gather(
                *(
                    self._put_attachment(client, session.attachment_urls[a.id], a)
                    for a in attachments
                    if a.id in session.attachment_urls
                )
            )

            response = await client.post(
                f"{self._endpoint}/api/upload/finish",
                json=UploadFinishRequest(upload_token=session.upload_token).model_dump(),
                headers=self._headers(),
            )
            response.raise_for_status()
            self.last_result = UploadResult.model_validate(response.json())
        except httpx.HTTPError as exc:
            raise UploadError(f"Upload to {self._endpoint} failed: {exc}") from exc
        except (ValidationError, ValueError) as exc:
            raise UploadError(f"Unexpected response from {self._endpoint}: {exc}") from exc
        except OSError as exc:
            raise UploadError(f"Cannot read attachment for upload: {exc}") from exc

        logger.info("Report uploaded: %s", self.last_result.url or self.last_result.report_id)

    async def _start(self, client: httpx.AsyncClient, attachments: list[Attachment]) -> UploadSession:
        request = UploadStartRequest(attachment_ids=[a.id for a in attachments])
        response = await client.post(
            f"{self._endpoint}/api/upload/start",
            json=request.model_dump(),
            headers=self._headers(),
        )
        response.raise_for_status()
        return UploadSession.model_validate(response.json())

    async def _put_attachment(
        self, client: httpx.AsyncClient, url: str, attachment: Attachment
    ) -> None:
        data = await asyncio.to_thread(attachment.read_bytes)
        response = await client.put(
            url, content=data, headers={"Content-Type": attachment.content_type}
        )
        response.raise_for_status()
        logger.debug("Uploaded attachment %s (%d bytes)", attachment.id, len(data))
