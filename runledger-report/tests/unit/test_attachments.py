"""Unit tests for the attachment store."""

import asyncio
import hashlib
from pathlib import Path

import pytest

from runledger_core.types.live import LiveAttachment

from runledger_report.attachments import AttachmentStore, content_id, file_content_id


class TestContentId:
    """Tests for content identity."""

    def test_sha1_hex(self) -> None:
        """Verify the id is the SHA-1 hex digest of the bytes."""
        assert content_id(b"hello") == hashlib.sha1(b"hello").hexdigest()

    def test_file_matches_bytes(self, tmp_path: Path) -> None:
        """Verify a file and identical bytes share an id."""
        path = tmp_path / "data.bin"
        path.write_bytes(b"\x00" * 3_000_000)
        assert file_content_id(path) == content_id(b"\x00" * 3_000_000)


class TestAttachmentStore:
    """Tests for AttachmentStore."""

    @pytest.mark.asyncio
    async def test_identical_inline_content_stored_once(self) -> None:
        """Verify byte-identical bodies dedupe to one stored blob."""
        store = AttachmentStore()
        first = await store.add(LiveAttachment("log", "text/plain", body=b"same"))
        second = await store.add(LiveAttachment("copy", "text/plain", body=b"same"))
        assert first is not None and second is not None
        assert first.id == second.id
        assert len(store) == 1
        assert first.id in store

    @pytest.mark.asyncio
    async def test_text_body_encoded(self) -> None:
        """Verify string bodies are stored as UTF-8."""
        store = AttachmentStore()
        stored = await store.add(LiveAttachment("note", "text/plain", body="héllo"))
        assert stored is not None
        assert stored.read_bytes() == "héllo".encode("utf-8")
        assert stored.id == content_id("héllo".encode("utf-8"))

    @pytest.mark.asyncio
    async def test_file_and_inline_share_identity(self, tmp_path: Path) -> None:
        """Verify a file and an inline body with the same bytes dedupe."""
        path = tmp_path / "shot.png"
        path.write_bytes(b"\x89PNG data")
        store = AttachmentStore()
        from_file = await store.add(LiveAttachment("shot", "image/png", path=path))
        inline = await store.add(LiveAttachment("shot", "image/png", body=b"\x89PNG data"))
        assert from_file is inline
        assert from_file is not None and from_file.path == path
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_missing_path_recorded(self, tmp_path: Path) -> None:
        """Verify a missing file is dropped and recorded as inaccessible."""
        missing = tmp_path / "gone.png"
        store = AttachmentStore()
        assert await store.add(LiveAttachment("shot", "image/png", path=missing)) is None
        assert store.inaccessible_paths == [str(missing)]
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_empty_reference_dropped(self) -> None:
        """Verify a reference without content is dropped silently."""
        store = AttachmentStore()
        assert await store.add(LiveAttachment("empty", "text/plain")) is None
        assert store.inaccessible_paths == []

    @pytest.mark.asyncio
    async def test_concurrent_identical_inserts(self) -> None:
        """Verify concurrent inserts of one content leave one entry."""
        store = AttachmentStore()
        refs = [LiveAttachment(f"n{i}", "text/plain", body=b"dup") for i in range(10)]
        stored = await asyncio.gather(*(store.add(ref) for ref in refs))
        assert len({a.id for a in stored if a is not None}) == 1
        assert len(store) == 1


class TestResolve:
    """Tests for AttachmentStore.resolve."""

    @pytest.mark.asyncio
    async def test_order_preserved_around_missing(self, tmp_path: Path) -> None:
        """Verify input order is kept and a missing file only drops itself."""
        present = tmp_path / "trace.zip"
        present.write_bytes(b"zip")
        refs = [
            LiveAttachment("first", "text/plain", body=b"1"),
            LiveAttachment("missing", "image/png", path=tmp_path / "nope.png"),
            LiveAttachment("trace", "application/zip", path=present),
            LiveAttachment("last", "text/plain", body=b"2"),
        ]
        store = AttachmentStore()
        resolved = await store.resolve(refs)
        assert [r.name for r in resolved] == ["first", "trace", "last"]
        assert resolved[1].content_type == "application/zip"
        assert store.inaccessible_paths == [str(tmp_path / "nope.png")]

    @pytest.mark.asyncio
    async def test_empty(self) -> None:
        """Verify an attempt without attachments resolves to nothing."""
        assert await AttachmentStore().resolve([]) == ()
