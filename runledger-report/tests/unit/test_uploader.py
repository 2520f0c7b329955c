"""Unit tests for the HTTP report uploader."""

import json
from typing import Any, Callable

import httpx
import pytest

from runledger_core.errors import UploadError
from runledger_core.types.attachment import Attachment
from runledger_core.types.common import AttachmentId

from runledger_report.uploader import HttpReportUploader

ENDPOINT = "https://reports.example.com"


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> httpx.AsyncClient:
    """Create an httpx client backed by a mock transport."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class UploadService:
    """In-memory upload service recording every request."""

    def __init__(self, known_ids: tuple[str, ...] = ()) -> None:
        self.requests: list[httpx.Request] = []
        self.known_ids = known_ids

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/upload/start":
            ids = json.loads(request.content)["attachment_ids"]
            return httpx.Response(
                200,
                json={
                    "upload_token": "tok-1",
                    "report_url": "https://storage.example.com/report",
                    "attachment_urls": {
                        i: f"https://storage.example.com/a/{i}"
                        for i in ids
                        if i not in self.known_ids
                    },
                },
            )
        if path == "/api/upload/finish":
            return httpx.Response(200, json={"report_id": "r-1", "url": f"{ENDPOINT}/r/r-1"})
        return httpx.Response(200)


@pytest.fixture
def attachments() -> list[Attachment]:
    """Create two inline attachments."""
    return [
        Attachment(id=AttachmentId("aaa"), content_type="text/plain", body=b"log"),
        Attachment(id=AttachmentId("bbb"), content_type="image/png", body=b"png"),
    ]


class TestHttpReportUploader:
    """Tests for HttpReportUploader."""

    @pytest.mark.asyncio
    async def test_handshake(self, attachments: list[Attachment]) -> None:
        """Verify start, report upload, attachment uploads and finish."""
        service = UploadService()
        async with make_client(service) as client:
            uploader = HttpReportUploader(ENDPOINT, "secret", client=client)
            await uploader.upload({"version": 1}, attachments)

        methods = [(r.method, r.url.path) for r in service.requests]
        assert methods[0] == ("POST", "/api/upload/start")
        assert methods[1] == ("PUT", "/report")
        assert sorted(methods[2:4]) == [("PUT", "/a/aaa"), ("PUT", "/a/bbb")]
        assert methods[4] == ("POST", "/api/upload/finish")

        start, report = service.requests[0], service.requests[1]
        assert start.headers["Authorization"] == "Bearer secret"
        assert json.loads(start.content) == {"attachment_ids": ["aaa", "bbb"]}
        assert json.loads(report.content) == {"version": 1}
        assert json.loads(service.requests[4].content) == {"upload_token": "tok-1"}
        assert uploader.last_result is not None
        assert uploader.last_result.report_id == "r-1"

    @pytest.mark.asyncio
    async def test_known_attachments_skipped(self, attachments: list[Attachment]) -> None:
        """Verify attachments the service already stores are not re-sent."""
        service = UploadService(known_ids=("aaa",))
        async with make_client(service) as client:
            await HttpReportUploader(ENDPOINT, "secret", client=client).upload({}, attachments)

        paths = [r.url.path for r in service.requests]
        assert "/a/aaa" not in paths
        assert "/a/bbb" in paths

    @pytest.mark.asyncio
    async def test_rejected_token(self, attachments: list[Attachment]) -> None:
        """Verify an HTTP error becomes an UploadError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "bad token"})

        async with make_client(handler) as client:
            uploader = HttpReportUploader(ENDPOINT, "wrong", client=client)
            with pytest.raises(UploadError, match="failed"):
                await uploader.upload({}, attachments)

    @pytest.mark.asyncio
    async def test_malformed_session(self, attachments: list[Attachment]) -> None:
        """Verify an unexpected start response becomes an UploadError."""

        def handler(request: httpx.Request) -> httpx.Response:
            body: Any = {"unexpected": True}
            return httpx.Response(200, json=body)

        async with make_client(handler) as client:
            uploader = HttpReportUploader(ENDPOINT, "secret", client=client)
            with pytest.raises(UploadError, match="Unexpected response"):
                await uploader.upload({}, attachments)

    def test_endpoint_normalized(self) -> None:
        """Verify a trailing slash is dropped from the endpoint."""
        assert HttpReportUploader(f"{ENDPOINT}/", "t").endpoint == ENDPOINT
