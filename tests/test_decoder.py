"""
Payload Decoder Tests
=====================

Classification of binary frames, structured events, generic base64
payloads and control traffic.
"""

import base64
import json
import os
from datetime import datetime, timezone

import pytest

from pixel_socket.errors import DecodeError
from pixel_socket.models import ControlResult, DecodedImage
from pixel_socket.stream.decoder import PayloadDecoder, decode_base64, split_data_url


FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.fixture
def decoder():
    return PayloadDecoder(clock=lambda: FIXED_NOW)


class TestBinaryFrames:
    """Binary frames are delivered whole."""

    def test_png_frame(self, decoder, png_bytes):
        result = decoder.decode(png_bytes)

        assert isinstance(result, DecodedImage)
        assert result.data == png_bytes
        assert result.metadata.format == "png"
        assert result.metadata.mime_type == "image/png"
        assert result.metadata.timestamp == FIXED_NOW

    def test_jpeg_frame_from_bytearray(self, decoder, jpeg_bytes):
        result = decoder.decode(bytearray(jpeg_bytes))

        assert result.data == jpeg_bytes
        assert result.metadata.format == "jpeg"

    def test_unrecognized_frame_is_still_delivered(self, decoder):
        payload = os.urandom(8).replace(b"\x89", b"\x00").replace(b"\xff", b"\x00")
        payload = b"\x00" + payload

        result = decoder.decode(payload)

        assert isinstance(result, DecodedImage)
        assert result.data == payload
        assert len(result.data) == len(payload)
        assert result.metadata.format is None
        assert result.metadata.mime_type is None

    def test_empty_frame_is_delivered(self, decoder):
        result = decoder.decode(b"")

        assert isinstance(result, DecodedImage)
        assert result.data == b""
        assert result.metadata.format is None


class TestStructuredEvent:
    """The image-generated envelope."""

    def test_scenario_message(self, decoder, sample_image_generated_text):
        result = decoder.decode(sample_image_generated_text)

        assert isinstance(result, DecodedImage)
        assert result.data == base64.b64decode("iVBORw0KGgo=")
        assert result.metadata.mime_type == "image/png"
        assert result.metadata.filename == "a.png"
        assert result.metadata.format == "png"

    def test_provenance_fields_in_extra(self, decoder, sample_image_generated_text):
        metadata = decoder.decode(sample_image_generated_text).metadata

        assert metadata.extra["mode"] == "push"
        assert metadata.extra["prompt_id"] == "p1"
        assert metadata.extra["image_idx"] == 0
        assert metadata.extra["image_length"] == 1
        assert metadata.extra["image_type"] == "output"
        assert metadata.extra["subfolder"] == ""

    def test_timestamp_is_epoch_milliseconds(self, decoder, sample_image_generated_text):
        metadata = decoder.decode(sample_image_generated_text).metadata

        assert metadata.timestamp == datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)

    def test_missing_timestamp_uses_receive_time(self, decoder, sample_image_generated):
        del sample_image_generated["data"]["timestamp"]

        metadata = decoder.decode(json.dumps(sample_image_generated)).metadata

        assert metadata.timestamp == FIXED_NOW

    def test_params_mapping(self, decoder, sample_image_generated):
        sample_image_generated["data"]["params"] = {
            "positivePrompt": "a lighthouse at dusk",
            "negativePrompt": "blurry",
            "seed": 1234567890,
            "width": 512,
            "height": 768,
            "workflowName": "sdxl-base",
            "sampler": "euler",
        }

        metadata = decoder.decode(json.dumps(sample_image_generated)).metadata

        assert metadata.params.positive_prompt == "a lighthouse at dusk"
        assert metadata.params.negative_prompt == "blurry"
        assert metadata.params.seed == "1234567890"
        assert metadata.params.workflow_name == "sdxl-base"
        assert metadata.params.model_extra["sampler"] == "euler"
        assert metadata.width == 512
        assert metadata.height == 768

    def test_declared_mime_type_wins_over_signature(self, decoder, sample_image_generated, jpeg_bytes):
        sample_image_generated["data"]["base64Data"] = base64.b64encode(jpeg_bytes).decode()

        result = decoder.decode(json.dumps(sample_image_generated))

        assert result.data == jpeg_bytes
        assert result.metadata.mime_type == "image/png"
        assert result.metadata.format == "png"

    def test_base64_round_trip(self, decoder, sample_image_generated):
        original = bytes(range(256)) * 3
        sample_image_generated["data"]["base64Data"] = base64.b64encode(original).decode()

        result = decoder.decode(json.dumps(sample_image_generated))

        assert result.data == original

    def test_missing_base64_is_corrupt(self, decoder, sample_image_generated):
        del sample_image_generated["data"]["base64Data"]

        with pytest.raises(DecodeError):
            decoder.decode(json.dumps(sample_image_generated))

    def test_non_object_data_is_corrupt(self, decoder):
        with pytest.raises(DecodeError):
            decoder.decode(json.dumps({"type": "image-generated", "data": "nope"}))

    def test_missing_image_info_is_corrupt(self, decoder, sample_image_generated):
        del sample_image_generated["data"]["imageInfo"]

        with pytest.raises(DecodeError):
            decoder.decode(json.dumps(sample_image_generated))

    @pytest.mark.parametrize("bad", ["iVBORw0KGgo", "iVBOR*0KGgo=", "====", "ü"])
    def test_malformed_base64(self, decoder, sample_image_generated, bad):
        sample_image_generated["data"]["base64Data"] = bad

        with pytest.raises(DecodeError):
            decoder.decode(json.dumps(sample_image_generated))


class TestGenericPayload:
    """base64Data-bearing messages without the structured envelope."""

    def test_sniffs_format(self, decoder, make_generic_message, png_bytes):
        result = decoder.decode(make_generic_message(png_bytes))

        assert result.data == png_bytes
        assert result.metadata.format == "png"
        assert result.metadata.mime_type == "image/png"

    def test_populates_present_fields(self, decoder, make_generic_message, jpeg_bytes):
        message = make_generic_message(
            jpeg_bytes,
            filename="shot.jpg",
            width=640,
            height=480,
            timestamp=2000,
            camera="north",
        )

        metadata = decoder.decode(message).metadata

        assert metadata.filename == "shot.jpg"
        assert metadata.width == 640
        assert metadata.height == 480
        assert metadata.timestamp == datetime(1970, 1, 1, 0, 0, 2, tzinfo=timezone.utc)
        assert metadata.extra == {"camera": "north"}
        assert metadata.params is None

    def test_declared_mime_type_is_used(self, decoder, make_generic_message, png_bytes):
        metadata = decoder.decode(
            make_generic_message(png_bytes, mimeType="image/webp")
        ).metadata

        assert metadata.mime_type == "image/webp"
        assert metadata.format == "webp"

    def test_nested_under_data(self, decoder, png_bytes):
        message = json.dumps({
            "type": "preview",
            "data": {"base64Data": base64.b64encode(png_bytes).decode()},
        })

        result = decoder.decode(message)

        assert isinstance(result, DecodedImage)
        assert result.data == png_bytes

    def test_data_url(self, decoder, jpeg_bytes):
        encoded = base64.b64encode(jpeg_bytes).decode()
        message = json.dumps({"base64Data": f"data:image/jpeg;base64,{encoded}"})

        metadata = decoder.decode(message).metadata

        assert metadata.mime_type == "image/jpeg"
        assert metadata.format == "jpeg"

    def test_unrecognized_bytes_have_no_format(self, decoder, make_generic_message):
        metadata = decoder.decode(make_generic_message(b"\x00\x01\x02")).metadata

        assert metadata.format is None
        assert metadata.mime_type is None

    def test_non_string_base64_is_rejected(self, decoder):
        with pytest.raises(DecodeError):
            decoder.decode(json.dumps({"base64Data": 42}))

    def test_empty_base64_is_rejected(self, decoder):
        with pytest.raises(DecodeError):
            decoder.decode(json.dumps({"base64Data": ""}))


class TestControlAndErrors:
    """Non-image traffic and malformed text."""

    def test_ack_is_control(self, decoder):
        result = decoder.decode(json.dumps({"type": "ack", "id": 7}))

        assert isinstance(result, ControlResult)
        assert result.message_type == "ack"
        assert result.payload == {"type": "ack", "id": 7}

    @pytest.mark.parametrize("text", ['"ping"', "[1, 2]", "42", "null", "{}"])
    def test_other_json_is_control(self, decoder, text):
        result = decoder.decode(text)

        assert isinstance(result, ControlResult)
        assert result.message_type is None

    @pytest.mark.parametrize("text", ["{not json", "", "{\"type\": "])
    def test_malformed_json(self, decoder, text):
        with pytest.raises(DecodeError):
            decoder.decode(text)

    def test_unsupported_message_type(self, decoder):
        with pytest.raises(DecodeError):
            decoder.decode(12345)


class TestHelpers:
    """decode_base64 and split_data_url."""

    def test_decode_base64_strips_whitespace(self):
        assert decode_base64("  aGVsbG8=\n") == b"hello"

    def test_decode_base64_rejects_non_string(self):
        with pytest.raises(DecodeError):
            decode_base64(b"aGVsbG8=")

    def test_split_plain_string(self):
        assert split_data_url("aGVsbG8=") == (None, "aGVsbG8=")

    def test_split_non_base64_data_url(self):
        with pytest.raises(DecodeError):
            split_data_url("data:text/plain,hello")
