"""Tests for the in-memory document store."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from promptlab.documents.models import FileType
from promptlab.documents.store import (
    MAX_TEXT_CONTENT_CHARS,
    DocumentValidationError,
    determine_file_type,
    mime_type_from_extension,
)


class TestFileTypes:
    @pytest.mark.parametrize(
        "filename, mime, expected",
        [
            ("notes.txt", None, FileType.TEXT),
            ("data.json", "application/json", FileType.TEXT),
            ("paper.pdf", None, FileType.PDF),
            ("letter.docx", None, FileType.DOCUMENT),
            ("photo.JPG", None, FileType.IMAGE),
            ("blob.bin", "image/png", FileType.IMAGE),
            ("talk.mp3", None, FileType.AUDIO),
            ("clip.mkv", None, FileType.VIDEO),
        ],
    )
    def test_determine_file_type(self, filename, mime, expected):
        assert determine_file_type(mime, filename) is expected

    def test_mime_from_extension(self):
        assert mime_type_from_extension("a.md") == "text/markdown"
        assert mime_type_from_extension("noext") == "application/octet-stream"


class TestSaveDocument:
    @pytest.mark.asyncio
    async def test_text_upload_is_stored_with_original(self, document_store):
        doc = await document_store.save_document("notes.txt", b"hello world")

        assert doc.content == "hello world"
        assert doc.file_type is FileType.TEXT
        assert doc.mime_type == "text/plain"
        assert doc.size == 11
        assert Path(doc.original_path).read_bytes() == b"hello world"
        assert document_store.get_document(doc.id) == doc
        assert len(document_store) == 1

    @pytest.mark.asyncio
    async def test_json_is_pretty_printed(self, document_store):
        doc = await document_store.save_document("data.json", b'{"a": [1, 2]}')
        assert doc.content == json.dumps({"a": [1, 2]}, indent=2)

    @pytest.mark.asyncio
    async def test_invalid_json_is_rejected(self, document_store):
        with pytest.raises(DocumentValidationError, match="Could not process file"):
            await document_store.save_document("data.json", b"{not json")

    @pytest.mark.asyncio
    async def test_pdf_gets_placeholder_content(self, document_store):
        doc = await document_store.save_document("paper.pdf", b"%PDF-1.4 binary")

        assert doc.content.startswith("[PDF Document: paper.pdf]")
        assert "File ready for AI processing." in doc.content
        assert doc.mime_type == "application/pdf"

    @pytest.mark.asyncio
    async def test_unsupported_extension_is_rejected(self, document_store):
        with pytest.raises(DocumentValidationError, match="Invalid file type"):
            await document_store.save_document("program.exe", b"MZ")
        assert len(document_store) == 0

    @pytest.mark.asyncio
    async def test_empty_content_is_rejected(self, document_store):
        with pytest.raises(DocumentValidationError, match="empty"):
            await document_store.save_document("blank.txt", b"   \n  ")

    @pytest.mark.asyncio
    async def test_oversized_text_is_rejected(self, document_store):
        with pytest.raises(DocumentValidationError, match="too large"):
            await document_store.save_document("big.txt", b"a" * (MAX_TEXT_CONTENT_CHARS + 1))

    @pytest.mark.asyncio
    async def test_directory_components_are_stripped(self, document_store, tmp_path):
        doc = await document_store.save_document("../../evil.txt", b"payload")

        assert doc.filename == "evil.txt"
        assert Path(doc.original_path).parent == tmp_path / "uploads"

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, document_store):
        first = await document_store.save_document("a.txt", b"same")
        second = await document_store.save_document("a.txt", b"same")
        assert first.id != second.id


class TestReadsAndDeletes:
    @pytest.mark.asyncio
    async def test_listing_is_newest_first(self, document_store):
        older = await document_store.save_document("old.txt", b"one")
        newer = await document_store.save_document("new.txt", b"two")

        assert [d.id for d in document_store.get_all_documents()] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_delete_removes_document_and_file(self, document_store):
        doc = await document_store.save_document("gone.txt", b"bye")

        assert document_store.delete_document(doc.id) is True
        assert document_store.get_document(doc.id) is None
        assert not Path(doc.original_path).exists()
        assert document_store.delete_document(doc.id) is False

    @pytest.mark.asyncio
    async def test_search_ranks_matching_documents(self, document_store):
        await document_store.save_document("cats.txt", b"cats purr")
        dogs = await document_store.save_document("dogs.txt", b"dogs bark and dogs run")

        hits = document_store.search_documents("dogs")

        assert hits[0].document.id == dogs.id
        assert all(h.relevance_score > 0 for h in hits)

    def test_search_on_empty_store(self, document_store):
        assert document_store.search_documents("anything") == []

    @pytest.mark.asyncio
    async def test_file_for_ai(self, document_store):
        doc = await document_store.save_document("pic.png", b"\x89PNG", "image/png")

        attachment = document_store.get_file_for_ai(doc.id)

        assert attachment.path == doc.original_path
        assert attachment.mime_type == "image/png"

        Path(doc.original_path).unlink()
        assert document_store.get_file_for_ai(doc.id) is None
        assert document_store.get_file_for_ai("missing") is None
