import pytest

from docsearch_server.core.errors import (
    DocumentNotFoundError,
    IndexWriteError,
    ProjectNotFoundError,
    UnsupportedContentError,
)
from docsearch_server.documents.service import DocumentService
from docsearch_server.extraction import TextExtractor
from docsearch_server.search.lifecycle import IndexLifecycleTracker

from conftest import FakeIndexEngine, make_document, make_project


def service_for(store, engine):
    extractor = TextExtractor(supported_types=["pdf", "doc", "docx", "txt"], max_file_size=1024)
    return DocumentService(store, IndexLifecycleTracker(store, engine), extractor=extractor)


async def test_store_document_normalizes_and_indexes(store, engine, workspace):
    data = b"  Laravel\x00 is   a\r\n\r\n\r\nframework  "

    doc = await service_for(store, engine).store_document(
        workspace, "laravel_intro-notes.txt", data
    )

    assert doc.title == "Laravel Intro Notes"
    assert doc.content == "Laravel is a framework"
    assert doc.file_type == "txt"
    assert doc.file_size == len(data)
    assert doc.original_filename == "laravel_intro-notes.txt"
    assert doc.is_indexed
    assert (workspace.id, doc.id) in engine.entries


async def test_store_document_uses_given_title(store, engine, workspace):
    doc = await service_for(store, engine).store_document(
        workspace, "a.txt", b"content", title="  Custom  "
    )
    assert doc.title == "Custom"


async def test_store_document_rejects_unsupported_type(store, engine, workspace):
    with pytest.raises(UnsupportedContentError):
        await service_for(store, engine).store_document(workspace, "image.png", b"\x89PNG")

    assert store.documents == {}


def test_check_upload_rejects_oversize_before_body_is_read():
    extractor = TextExtractor(supported_types=["txt"], max_file_size=1024)
    service = DocumentService(None, None, extractor=extractor)

    assert service.check_upload("notes.txt", 1024) == "txt"
    with pytest.raises(UnsupportedContentError):
        service.check_upload("notes.txt", 1025)


async def test_store_document_assigns_project_in_same_workspace(store, engine, workspace):
    await store.add_project(make_project(3))

    doc = await service_for(store, engine).store_document(
        workspace, "a.txt", b"hello world", project_id=3
    )

    assert doc.project_id == 3


@pytest.mark.parametrize("project_workspace_id", [None, 2])
async def test_store_document_rejects_project_outside_workspace(
    store, engine, workspace, project_workspace_id
):
    if project_workspace_id is not None:
        await store.add_project(make_project(555, workspace_id=project_workspace_id))

    with pytest.raises(ProjectNotFoundError):
        await service_for(store, engine).store_document(
            workspace, "a.txt", b"hello world", project_id=555
        )

    assert store.documents == {}
    assert engine.index_calls == []


async def test_store_document_keeps_record_when_indexing_fails(store, workspace):
    engine = FakeIndexEngine(failing_ids={1})

    doc = await service_for(store, engine).store_document(workspace, "notes.txt", b"text")

    assert doc.id in store.documents
    assert not doc.is_indexed


async def test_update_content_reindexes_indexed_document(store, engine, workspace):
    service = service_for(store, engine)
    doc = await service.store_document(workspace, "notes.txt", b"old words")

    updated = await service.update_document(workspace, doc.id, content="new   words")

    assert updated.content == "new words"
    assert updated.is_indexed
    assert engine.removed == [doc.id]
    assert engine.entries[(workspace.id, doc.id)]["content"] == "new words"


async def test_update_does_not_index_unindexed_document(store, engine, workspace):
    doc = await store.add_document(make_document(1, content="draft"))

    await service_for(store, engine).update_document(workspace, 1, content="final")

    assert doc.content == "final"
    assert not doc.is_indexed
    assert engine.index_calls == []


async def test_update_reindex_failure_leaves_document_unindexed(store, workspace):
    engine = FakeIndexEngine()
    service = service_for(store, engine)
    doc = await service.store_document(workspace, "notes.txt", b"old words")
    engine.failing_ids.add(doc.id)

    with pytest.raises(IndexWriteError):
        await service.update_document(workspace, doc.id, title="Renamed")

    assert not doc.is_indexed
    assert (workspace.id, doc.id) not in engine.entries


async def test_delete_document_removes_index_entry(store, engine, workspace):
    service = service_for(store, engine)
    doc = await service.store_document(workspace, "notes.txt", b"words")

    await service.delete_document(workspace, doc.id)

    assert store.documents == {}
    assert engine.entries == {}


async def test_missing_document_raises_not_found(store, engine, workspace):
    await store.add_document(make_document(5, workspace_id=2))

    with pytest.raises(DocumentNotFoundError):
        await service_for(store, engine).get(workspace, 5)
