# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for request body encoding."""

import io
from dataclasses import dataclass

import pytest

from chainreq.client.body import encode_file, encode_form, encode_json, is_stream, to_body
from chainreq.kernel.exceptions import SerializationException


@dataclass
class Point:
    x: int
    y: int


class TestToBody:
    def test_bytes_and_str_are_raw(self):
        assert to_body(b"raw") == b"raw"
        assert to_body(bytearray(b"raw")) == b"raw"
        assert to_body("héllo") == "héllo".encode()

    def test_binary_stream_kept(self):
        stream = io.BytesIO(b"data")
        assert to_body(stream) is stream
        assert is_stream(stream)

    def test_text_stream_is_read(self):
        assert to_body(io.StringIO("text")) == b"text"

    def test_other_values_become_json(self):
        assert to_body({"k": "v"}) == b'{"k":"v"}'
        assert to_body([1, 2]) == b"[1,2]"
        assert to_body(Point(1, 2)) == b'{"x":1,"y":2}'


class TestEncodeJson:
    def test_non_ascii_kept(self):
        assert encode_json({"name": "zoë"}) == '{"name":"zoë"}'.encode()

    def test_unserializable(self):
        with pytest.raises(SerializationException, match="object"):
            encode_json(object())


class TestMultipart:
    def test_form_fields(self):
        body, content_type = encode_form({"a": "1", "b": "two"})
        assert content_type.startswith("multipart/form-data; boundary=")
        assert b'name="a"' in body
        assert b"two" in body
        assert b"filename" not in body

    def test_file_with_params(self):
        body, content_type = encode_file("a.bin", io.BytesIO(b"\x00\x01"), "upload", {"note": "n"})
        assert content_type.startswith("multipart/form-data")
        assert b'name="upload"; filename="a.bin"' in body
        assert b"\x00\x01" in body
        assert b'name="note"' in body

    def test_missing_file_sends_empty_part(self):
        body, _ = encode_file("empty.txt", None, "file")
        assert b'filename="empty.txt"' in body
