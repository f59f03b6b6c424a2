"""Tests for data URL helpers."""

import base64

import pytest

from wallgen.services.errors import ClassifiedError, FailureKind
from wallgen.services.media import GeneratedMedia, decode_reference, split_data_url


def test_split_standard_data_url():
    assert split_data_url("data:image/jpeg;base64,QUJD") == ("image/jpeg", "QUJD")


def test_split_bare_base64_defaults_to_png():
    assert split_data_url("QUJD") == ("image/png", "QUJD")


def test_split_loose_prefix():
    assert split_data_url("data:image/webp;charset=x,QUJD") == ("image/webp", "QUJD")


def test_decode_reference():
    blob = decode_reference("data:image/png;base64," + base64.b64encode(b"pixels").decode())
    assert blob.mime_type == "image/png"
    assert blob.data == b"pixels"


def test_decode_reference_rejects_garbage():
    with pytest.raises(ClassifiedError) as exc_info:
        decode_reference("data:image/png;base64,abc")
    assert exc_info.value.kind is FailureKind.FATAL


def test_to_data_url():
    media = GeneratedMedia(kind="image", data=b"pixels", mime_type="image/png")
    assert media.to_data_url() == "data:image/png;base64,cGl4ZWxz"
