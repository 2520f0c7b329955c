"""Pydantic models for the report upload service.

An upload is a three-step handshake: start (announce the attachment ids and
receive signed URLs), transfer (PUT the report and each attachment), finish
(commit the upload).
"""

from __future__ import annotations

from pydantic import BaseModel


class UploadStartRequest(BaseModel):
    """Request to open an upload session.

    Attributes:
        attachment_ids: Content ids of every attachment to be uploaded.
    """

    attachment_ids: list[str]


class UploadSession(BaseModel):
    """An open upload session.

    Attributes:
        upload_token: Token identifying the session in the finish request.
        report_url: URL the report document is PUT to.
        attachment_urls: URL per attachment id. Ids the service already
            stores are absent and are not transferred again.
    """

    upload_token: str
    report_url: str
    attachment_urls: dict[str, str] = {}


class UploadFinishRequest(BaseModel):
    """Request to commit an upload session.

    Attributes:
        upload_token: Token of the session to commit.
    """

    upload_token: str


class UploadResult(BaseModel):
    """Response to a committed upload.

    Attributes:
        report_id: Identifier the service assigned to the report.
        url: Where the uploaded report can be viewed, if the service says.
    """

    report_id: str
    url: str | None = None
