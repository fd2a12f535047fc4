"""Tests for the multipart size guard."""

import io

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.files.uploadhandler import StopUpload, TemporaryFileUploadHandler
from django.http.multipartparser import MultiPartParser
from django.test.client import BOUNDARY, MULTIPART_CONTENT, encode_multipart

from videos.uploads import MaxBytesUploadHandler, declared_length


class FakeRequest:
    def __init__(self, meta):
        self.META = meta


class TestMaxBytesUploadHandler:
    def test_passes_chunks_under_limit(self):
        guard = MaxBytesUploadHandler(max_bytes=8)
        assert guard.receive_data_chunk(b"abcd", 0) == b"abcd"
        assert guard.receive_data_chunk(b"efgh", 4) == b"efgh"
        assert not guard.exceeded

    def test_stops_past_limit(self):
        guard = MaxBytesUploadHandler(max_bytes=8)
        guard.receive_data_chunk(b"abcd", 0)
        with pytest.raises(StopUpload) as exc:
            guard.receive_data_chunk(b"efghi", 4)
        assert exc.value.connection_reset
        assert guard.exceeded

    def test_parse_aborts_before_body_is_spooled(self):
        payload = b"\x00" * (1 << 20)
        body = encode_multipart(BOUNDARY, {"video": SimpleUploadedFile("big.mp4", payload, content_type="video/mp4")})
        guard = MaxBytesUploadHandler(max_bytes=1024)
        meta = {"CONTENT_TYPE": MULTIPART_CONTENT, "CONTENT_LENGTH": str(len(body))}

        _, files = MultiPartParser(meta, io.BytesIO(body), [guard, TemporaryFileUploadHandler()]).parse()

        assert guard.exceeded
        assert "video" not in files
        assert guard.received < len(payload)


class TestDeclaredLength:
    @pytest.mark.parametrize(
        "meta,expected",
        [({"CONTENT_LENGTH": "42"}, 42), ({"CONTENT_LENGTH": ""}, None), ({}, None), ({"CONTENT_LENGTH": "lots"}, None)],
    )
    def test_parsing(self, meta, expected):
        assert declared_length(FakeRequest(meta)) == expected
