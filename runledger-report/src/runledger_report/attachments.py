"""Content-addressed attachment storage.

The store turns raw attachment references (a file path or an inline body)
into content-addressed Attachment blobs. The id of a blob is the SHA-1 hex
digest of its bytes, so identical content attached by any number of
attempts is stored once.

A path that does not exist when the run is processed is not an error: the
reference is dropped and the path is recorded as inaccessible. All
references of one attempt are resolved concurrently, and one missing file
never affects its siblings.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
from pathlib import Path
from typing import Sequence

from runledger_core.errors import AttachmentError
from runledger_core.types.attachment import Attachment
from runledger_core.types.common import AttachmentId
from runledger_core.types.live import LiveAttachment
from runledger_core.types.report import AttachmentRef

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def content_id(data: bytes) -> AttachmentId:
    """Return the content identity of ``data``."""
    return AttachmentId(hashlib.sha1(data).hexdigest())


def file_content_id(path: Path) -> AttachmentId:
    """Return the content identity of a file, reading it in chunks.

    Raises:
        AttachmentError: If the file cannot be read.
    """
    digest = hashlib.sha1()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as exc:
        raise AttachmentError(f"Cannot read attachment {path}: {exc}") from exc
    return AttachmentId(digest.hexdigest())


class AttachmentStore:
    """Deduplicating store of attachment blobs for one run.

    The id-to-blob map is the only state shared between concurrent
    resolutions. Insertion keeps the first blob stored under an id, so
    adding the same content again returns the existing entry.
    """

    def __init__(self) -> None:
        self._attachments: dict[AttachmentId, Attachment] = {}
        self._inaccessible: list[str] = []

    def __len__(self) -> int:
        return len(self._attachments)

    def __contains__(self, attachment_id: object) -> bool:
        return attachment_id in self._attachments

    @property
    def attachments(self) -> list[Attachment]:
        """Distinct stored blobs, in first-insertion order."""
        return list(self._attachments.values())

    @property
    def inaccessible_paths(self) -> list[str]:
        """Paths that could not be read, in the order they were found."""
        return list(self._inaccessible)

    async def add(self, ref: LiveAttachment) -> Attachment | None:
        """Resolve one reference into a stored blob.

        Args:
            ref: A path-based or inline attachment reference.

        Returns:
            The stored blob, or None if the path was inaccessible or the
            reference carried no content.
        """
        if ref.path is not None:
            path = Path(ref.path)
            if not await asyncio.to_thread(os.path.isfile, path):
                self._inaccessible.append(str(path))
                return None
            try:
                attachment_id = await asyncio.to_thread(file_content_id, path)
            except AttachmentError as exc:
                logger.debug("%s", exc)
                self._inaccessible.append(str(path))
                return None
            attachment = Attachment(id=attachment_id, content_type=ref.content_type, path=path)
        elif ref.body is not None:
            body = ref.body.encode("utf-8") if isinstance(ref.body, str) else bytes(ref.body)
            attachment = Attachment(id=content_id(body), content_type=ref.content_type, body=body)
        else:
            logger.debug("Attachment %r has neither path nor body", ref.name)
            return None

        return self._attachments.setdefault(attachment.id, attachment)

    async def resolve(self, refs: Sequence[LiveAttachment]) -> tuple[AttachmentRef, ...]:
        """Resolve all references of one attempt concurrently.

        Args:
            refs: The attempt's attachment references, in input order.

        Returns:
            References to stored blobs, in input order, with inaccessible
            and empty references dropped.
        """
        stored = await asyncio.gather(*(self.add(ref) for ref in refs))
        return tuple(
            AttachmentRef(id=attachment.id, name=ref.name, content_type=ref.content_type)
            for ref, attachment in zip(refs, stored)
            if attachment is not None
        )
