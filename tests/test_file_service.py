"""
DevCamper API — File Service Unit Tests
========================================

What:  Tests for bootcamp photo validation and storage.
How:   Each test gets its own FileService rooted in a temporary directory.

Test Strategy:
    ✅ Only image/* content types are accepted
    ✅ Size limit boundary (MAX_FILE_UPLOAD)
    ✅ Stored name is photo_<bootcamp id><ext>, whatever the client called it
    ✅ Write failures surface as FileStorageError (500)
"""

import uuid
from unittest.mock import MagicMock, patch

import pytest

from devcamper.config import settings
from devcamper.exceptions import FileStorageError, ValidationError
from devcamper.services.file_service import FileService


@pytest.fixture
def service(tmp_path):
    return FileService(upload_root=str(tmp_path / "uploads"))


class TestFileValidation:
    def test_image_content_types_pass(self, service):
        service.validate("image/jpeg", 1000)
        service.validate("image/png", 1000)

    def test_non_image_rejected(self, service):
        with pytest.raises(ValidationError, match="Please upload an image file"):
            service.validate("application/pdf", 1000)

    def test_missing_content_type_rejected(self, service):
        with pytest.raises(ValidationError, match="Please upload an image file"):
            service.validate(None, 1000)

    def test_size_at_limit_passes(self, service):
        service.validate("image/jpeg", settings.max_file_upload)

    def test_size_over_limit_rejected(self, service):
        with pytest.raises(ValidationError, match="less than") as exc_info:
            service.validate("image/jpeg", settings.max_file_upload + 1)
        assert exc_info.value.context["actual_bytes"] == settings.max_file_upload + 1


class TestPhotoNaming:
    def test_name_uses_bootcamp_id_and_extension(self):
        bootcamp_id = uuid.uuid4()
        assert FileService.photo_name(bootcamp_id, "My Photo.JPG") == f"photo_{bootcamp_id}.jpg"

    def test_path_components_are_discarded(self):
        bootcamp_id = uuid.uuid4()
        assert FileService.photo_name(bootcamp_id, "../../etc/passwd.png") == f"photo_{bootcamp_id}.png"

    def test_no_extension(self):
        bootcamp_id = uuid.uuid4()
        assert FileService.photo_name(bootcamp_id, None) == f"photo_{bootcamp_id}"


class TestStorage:
    @pytest.mark.asyncio
    async def test_validate_and_store_writes_file(self, service, sample_image_bytes):
        bootcamp_id = uuid.uuid4()

        name = await service.validate_and_store(bootcamp_id, "cover.jpg", "image/jpeg", sample_image_bytes)

        assert name == f"photo_{bootcamp_id}.jpg"
        assert (service.upload_root / name).read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_upload_replaces_previous_photo(self, service):
        bootcamp_id = uuid.uuid4()
        await service.store_photo(bootcamp_id, "a.png", b"first")
        name = await service.store_photo(bootcamp_id, "b.png", b"second")

        assert (service.upload_root / name).read_bytes() == b"second"

    @pytest.mark.asyncio
    async def test_invalid_upload_writes_nothing(self, service):
        with pytest.raises(ValidationError):
            await service.validate_and_store(uuid.uuid4(), "notes.txt", "text/plain", b"hello")
        assert list(service.upload_root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_write_failure_is_file_storage_error(self, service, sample_image_bytes):
        with patch("aiofiles.open", new_callable=MagicMock) as mock_open:
            mock_open.side_effect = OSError("disk full")
            with pytest.raises(FileStorageError) as exc_info:
                await service.store_photo(uuid.uuid4(), "cover.jpg", sample_image_bytes)
        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Problem with file upload"
