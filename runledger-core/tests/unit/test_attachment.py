"""Tests for attachment blobs."""

from pathlib import Path

import pytest

from runledger_core.types.attachment import Attachment
from runledger_core.types.common import AttachmentId


class TestAttachment:
    """Tests for Attachment."""

    def test_requires_one_source(self) -> None:
        """Verify exactly one of path and body must be set."""
        with pytest.raises(ValueError):
            Attachment(id=AttachmentId("a"), content_type="text/plain")
        with pytest.raises(ValueError):
            Attachment(
                id=AttachmentId("a"),
                content_type="text/plain",
                path=Path("x"),
                body=b"x",
            )

    def test_read_inline(self) -> None:
        """Verify inline content is returned as-is."""
        attachment = Attachment(id=AttachmentId("a"), content_type="text/plain", body=b"hi")
        assert attachment.read_bytes() == b"hi"

    def test_read_file(self, tmp_path: Path) -> None:
        """Verify file-backed content is read from disk."""
        path = tmp_path / "shot.png"
        path.write_bytes(b"\x89PNG")
        attachment = Attachment(id=AttachmentId("a"), content_type="image/png", path=path)
        assert attachment.read_bytes() == b"\x89PNG"

    def test_read_without_source(self) -> None:
        """Verify reading an attachment stripped of its source raises ValueError."""
        attachment = Attachment(id=AttachmentId("a"), content_type="text/plain", body=b"hi")
        object.__setattr__(attachment, "body", None)
        with pytest.raises(ValueError, match="no content source"):
            attachment.read_bytes()
