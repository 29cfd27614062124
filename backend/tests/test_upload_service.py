import os
import time
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from charlieverse.models.events import FilesUploaded
from charlieverse.services.upload_service import IncomingFile, UploadService, file_category
from charlieverse.tools.exceptions import PathValidationError, UpstreamUnavailable, ValidationFailure


@pytest.fixture
def bus():
    return AsyncMock()


@pytest.fixture
def service(tmp_path, bus):
    return UploadService(tmp_path / "uploads", bus, max_files=5, max_size=1024)


def _file(name="brief.pdf", content_type="application/pdf", data=b"%PDF-1.4 content"):
    return IncomingFile(filename=name, content_type=content_type, data=data)


def _stored(service):
    if not service.upload_dir.exists():
        return []
    return list(service.upload_dir.iterdir())


@pytest.mark.asyncio
async def test_store_writes_files_and_publishes(service, bus, user_principal):
    stored = await service.store(
        user_principal,
        [_file(), _file("logo.png", "image/png", b"\x89PNG")],
        project_id="7",
        description="Assets",
    )

    assert [meta.category for meta in stored] == ["pdf", "image"]
    assert all(meta.uploaded_by == user_principal.user_id for meta in stored)
    assert stored[0].original_name == "brief.pdf"
    assert stored[0].filename.startswith("brief-")
    assert stored[0].filename.endswith(".pdf")
    assert (service.upload_dir / stored[0].filename).read_bytes() == b"%PDF-1.4 content"

    event = bus.publish.await_args.args[0]
    assert isinstance(event, FilesUploaded)
    assert event.file_count == 2
    assert event.project_id == "7"


@pytest.mark.asyncio
async def test_failed_write_removes_files_already_written(service, bus, user_principal):
    real_write = Path.write_bytes
    calls = []

    def flaky_write(path, data):
        calls.append(path)
        if len(calls) == 2:
            raise OSError(28, "No space left on device")
        return real_write(path, data)

    with patch.object(Path, "write_bytes", flaky_write):
        with pytest.raises(UpstreamUnavailable):
            await service.store(
                user_principal,
                [_file("a.txt", "text/plain", b"one"), _file("b.txt", "text/plain", b"two")],
            )

    assert len(calls) == 2
    assert _stored(service) == []
    bus.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_too_many_files_rejected(service, bus, user_principal):
    with pytest.raises(ValidationFailure):
        await service.store(user_principal, [_file(f"f{i}.pdf") for i in range(6)])
    assert _stored(service) == []
    bus.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_disallowed_mime_type_rejected(service, user_principal):
    with pytest.raises(ValidationFailure):
        await service.store(user_principal, [_file("run.exe", "application/x-msdownload")])
    assert _stored(service) == []


@pytest.mark.asyncio
async def test_empty_file_rejected(service, user_principal):
    with pytest.raises(ValidationFailure) as excinfo:
        await service.store(user_principal, [_file(data=b"")])
    assert "empty" in excinfo.value.message


@pytest.mark.asyncio
async def test_oversized_file_rejected(service, user_principal):
    with pytest.raises(ValidationFailure):
        await service.store(user_principal, [_file(data=b"x" * 1025)])


@pytest.mark.asyncio
async def test_one_bad_file_means_nothing_is_written(service, user_principal):
    with pytest.raises(ValidationFailure):
        await service.store(user_principal, [_file(), _file("bad.bin", "application/octet-stream")])
    assert _stored(service) == []


@pytest.mark.asyncio
async def test_no_files_rejected(service, user_principal):
    with pytest.raises(ValidationFailure):
        await service.store(user_principal, [])


@pytest.mark.asyncio
async def test_resolve_and_info_are_confined_to_upload_dir(service, user_principal, tmp_path):
    (tmp_path / "secret.txt").write_text("top secret")
    stored = await service.store(user_principal, [_file("notes.txt", "text/plain", b"hello")])
    name = stored[0].filename

    assert service.resolve_file(name).read_bytes() == b"hello"
    info = await service.file_info(name)
    assert info.exists is True
    assert info.size == 5

    with pytest.raises(PathValidationError):
        service.resolve_file("../secret.txt")
    with pytest.raises(PathValidationError):
        service.resolve_file("missing.txt")
    assert (await service.file_info("../secret.txt")).exists is False
    assert (await service.file_info("missing.txt")).exists is False


@pytest.mark.asyncio
async def test_cleanup_old_files(service, user_principal):
    stored = await service.store(
        user_principal, [_file("old.txt", "text/plain", b"old"), _file("new.txt", "text/plain", b"new")]
    )
    old_path = service.upload_dir / stored[0].filename
    two_days_ago = time.time() - 48 * 3600
    os.utime(old_path, (two_days_ago, two_days_ago))

    deleted = await service.cleanup_old_files(24)

    assert deleted == 1
    assert not old_path.exists()
    assert (service.upload_dir / stored[1].filename).exists()


@pytest.mark.asyncio
async def test_cleanup_without_directory(tmp_path, bus):
    service = UploadService(tmp_path / "never-created", bus)
    assert await service.cleanup_old_files(1) == 0


def test_file_category():
    assert file_category("image/webp") == "image"
    assert file_category("application/pdf") == "pdf"
    assert file_category("application/msword") == "document"
    assert file_category("application/x-zip-compressed") == "archive"
    assert file_category("text/plain") == "other"
