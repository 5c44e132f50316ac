"""
Flock Backend — Image Service Unit Tests
==========================================

What:  Data URI decoding, validation limits, addressing and the
       upload/destroy lifecycle against a temporary storage root.

Test Strategy:
    ✅ Accepted and rejected data URIs
    ✅ Size limits (empty, over MAX_IMAGE_SIZE)
    ✅ Sniffed content type must be an image
    ✅ Path traversal is refused
    ✅ Upload writes a date-organized file; destroy removes it and ignores
       URLs it did not issue
    ❌ Real libmagic detection is patched out (host library not guaranteed)
"""

import base64
from unittest.mock import MagicMock, patch

import pytest

from app.config import settings
from app.exceptions import ImageStorageError, ValidationError
from app.services.image_service import ImageService


class TestDataUriDecoding:

    def setup_method(self):
        self.service = ImageService()

    def test_png_data_uri(self, png_data_uri, png_bytes):
        mime, content = self.service.decode_data_uri(png_data_uri)
        assert mime == "image/png"
        assert content == png_bytes

    def test_not_a_data_uri(self):
        with pytest.raises(ValidationError, match="data URI"):
            self.service.decode_data_uri("https://example.com/cat.png")

    def test_unsupported_declared_type(self):
        payload = base64.b64encode(b"%PDF-1.4").decode()
        with pytest.raises(ValidationError, match="not supported"):
            self.service.decode_data_uri(f"data:application/pdf;base64,{payload}")

    def test_bad_base64(self):
        with pytest.raises(ValidationError, match="base64"):
            self.service.decode_data_uri("data:image/png;base64,***")


class TestImageValidation:

    def setup_method(self):
        self.service = ImageService()

    def test_size_within_limit(self):
        self.service.validate_size(b"x" * 1000)

    def test_size_over_limit(self):
        with pytest.raises(ValidationError, match="too large"):
            self.service.validate_size(b"x" * (settings.max_image_size + 1))

    def test_empty_image(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(b"")

    def test_sniffed_type_must_be_image(self):
        with patch.object(self.service, "detect_mime_type", return_value="application/x-dosexec"):
            with pytest.raises(ValidationError, match="not a supported image"):
                self.service.validate_mime_type(b"MZ\x90\x00")

    def test_detection_failure_is_storage_error(self, png_bytes):
        broken = MagicMock()
        broken.from_buffer.side_effect = RuntimeError("no libmagic")
        with patch.dict("sys.modules", {"magic": broken}):
            with pytest.raises(ImageStorageError):
                self.service.detect_mime_type(png_bytes)


class TestAddressing:

    def setup_method(self):
        self.service = ImageService()

    def test_url_round_trip(self):
        url = self.service.url_for("2024/01/15/abc.png")
        assert url == "/api/files/2024/01/15/abc.png"
        assert self.service.asset_id_from_url(url) == "2024/01/15/abc.png"

    def test_absolute_url_accepted(self):
        assert (
            self.service.asset_id_from_url("http://cdn.test/api/files/2024/01/15/abc.png?v=2")
            == "2024/01/15/abc.png"
        )

    def test_foreign_url_ignored(self):
        assert self.service.asset_id_from_url("https://elsewhere.test/cat.png") is None
        assert self.service.asset_id_from_url("") is None

    def test_path_traversal_refused(self):
        with pytest.raises(ValidationError, match="Invalid file path"):
            self.service.resolve_path("../../etc/passwd")


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_upload_then_destroy(self, temp_storage, png_data_uri, png_bytes):
        service = ImageService(storage_root=temp_storage)
        with patch.object(service, "detect_mime_type", return_value="image/png"):
            url = await service.upload(png_data_uri)

        asset_id = service.asset_id_from_url(url)
        assert asset_id.count("/") == 3  # YYYY/MM/DD/<uuid>.png
        assert asset_id.endswith(".png")

        path = service.resolve_path(asset_id)
        assert path.read_bytes() == png_bytes

        await service.destroy(url)
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_destroy_missing_file_is_quiet(self, temp_storage):
        service = ImageService(storage_root=temp_storage)
        await service.destroy("/api/files/2024/01/15/gone.png")

    @pytest.mark.asyncio
    async def test_destroy_foreign_url_is_quiet(self, temp_storage):
        service = ImageService(storage_root=temp_storage)
        await service.destroy("https://res.cloudinary.com/demo/image/upload/sample.jpg")
