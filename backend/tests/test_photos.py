"""
Photo normalization tests.

Verifies:
- MIME sniffing from magic bytes and from base64 prefixes
- Data URIs pass through untouched (trimmed)
- Base64 payloads are never re-encoded, only stripped of whitespace
- Upload decoding accepts data URIs and bare base64, rejects garbage
"""

import base64

import pytest

from pharmacy.services.photos import decode_photo_upload, normalize_photo
from pharmacy.validation import ValidationError

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 8
GIF = b"GIF89a" + b"\x00" * 8
WEBP = b"RIFF\x24\x00\x00\x00WEBPVP8 "


class TestNormalizeBytes:

    @pytest.mark.parametrize(
        "data,mime",
        [
            (PNG, "image/png"),
            (JPEG, "image/jpeg"),
            (GIF, "image/gif"),
            (WEBP, "image/webp"),
            (b"\x00\x01\x02\x03\x04\x05\x06\x07\x08", "image/jpeg"),
        ],
    )
    def test_sniffs_magic_bytes(self, data, mime):
        expected = f"data:{mime};base64,{base64.b64encode(data).decode()}"
        assert normalize_photo(data) == expected

    def test_short_buffer_defaults_to_jpeg(self):
        assert normalize_photo(b"\x89PNG").startswith("data:image/jpeg;base64,")

    def test_memoryview_is_accepted(self):
        assert normalize_photo(memoryview(PNG)).startswith("data:image/png;base64,")

    def test_empty_bytes_is_none(self):
        assert normalize_photo(b"") is None


class TestNormalizeStrings:

    def test_none_is_none(self):
        assert normalize_photo(None) is None

    def test_data_uri_returned_trimmed(self):
        uri = "data:image/png;base64,iVBORw0KGgoAAAA"
        assert normalize_photo(f"  {uri}\n") == uri

    @pytest.mark.parametrize(
        "payload,mime",
        [
            ("/9j/4AAQSkZJRg", "image/jpeg"),
            ("iVBORw0KGgoAAAANSUhEUg", "image/png"),
            ("R0lGODlhAQABAIAAAP", "image/gif"),
            ("UklGRiQAAABXRUJQ", "image/webp"),
            ("AAAABBBB", "image/jpeg"),
        ],
    )
    def test_base64_prefix_sniffing(self, payload, mime):
        assert normalize_photo(payload) == f"data:{mime};base64,{payload}"

    def test_whitespace_stripped_not_reencoded(self):
        assert normalize_photo("iVBOR w0KG\ngo AAAA") == "data:image/png;base64,iVBORw0KGgoAAAA"


class TestDecodeUpload:

    def test_data_uri(self):
        uri = "data:image/png;base64," + base64.b64encode(PNG).decode()
        assert decode_photo_upload(uri) == PNG

    def test_bare_base64(self):
        assert decode_photo_upload(base64.b64encode(JPEG).decode()) == JPEG

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_clears(self, value):
        assert decode_photo_upload(value) is None

    @pytest.mark.parametrize("value", ["not base64!!", "data:image/png,rawtext", 42])
    def test_invalid_rejected(self, value):
        with pytest.raises(ValidationError):
            decode_photo_upload(value)
