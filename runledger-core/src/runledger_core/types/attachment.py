"""Stored attachment blobs.

An Attachment is the single stored copy of one distinct piece of content.
Its id is the content identity (a hex digest of the bytes), so two attempts
that attach identical bytes share one Attachment.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from runledger_core.types.common import AttachmentId


@dataclass(frozen=True)
class Attachment:
    """A content-addressed attachment blob.

    Exactly one of ``path`` and ``body`` is set.

    Attributes:
        id: Content identity.
        content_type: MIME type of the content.
        path: File holding the content, for file-backed attachments.
        body: The content itself, for inline attachments.
    """

    id: AttachmentId
    content_type: str
    path: Path | None = None
    body: bytes | None = None

    def __post_init__(self) -> None:
        """Validate that exactly one content source is set."""
        if (self.path is None) == (self.body is None):
            raise ValueError("Attachment requires exactly one of path or body")

    def read_bytes(self) -> bytes:
        """Return the attachment content.

        Returns:
            The inline body, or the file content for file-backed attachments.

        Raises:
            OSError: If the backing file cannot be read.
            ValueError: If neither a body nor a path is set.
        """
        if self.body is not None:
            return self.body
        if self.path is None:
            raise ValueError(f"Attachment {self.id} has no content source")
        return self.path.read_bytes()
