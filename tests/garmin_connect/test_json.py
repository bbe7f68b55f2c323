"""Unit tests for the JSON decoding helpers in garmin_connect/_json.py."""

from typing import Any, Optional

import pytest
from pydantic import BaseModel, ValidationError

from garmin_connect import UnexpectedResponseError, extract_embedded_json
from garmin_connect._json import _adapter, decode_body, empty_value


class Point(BaseModel):
    x: int


class TestEmptyValue:
    """Tests for the value an empty body decodes to."""

    @pytest.mark.parametrize(
        "type_, expected",
        [
            (list, []),
            (list[int], []),
            (dict, {}),
            (dict[str, Any], {}),
            (str, ""),
            (int, 0),
            (float, 0.0),
            (bool, False),
        ],
    )
    def test_builtin_types(self, type_, expected) -> None:
        assert empty_value(type_) == expected

    def test_model_is_none(self) -> None:
        assert empty_value(Point) is None

    def test_optional_is_none(self) -> None:
        assert empty_value(Optional[Point]) is None


class TestDecodeBody:
    def test_empty_body(self) -> None:
        assert decode_body(b"", Point) is None
        assert decode_body(b"", list[Point]) == []

    def test_decodes_model(self) -> None:
        assert decode_body(b'{"x":1}', Point) == Point(x=1)

    def test_decodes_dict(self) -> None:
        assert decode_body(b'{"a":1}', dict[str, int]) == {"a": 1}

    def test_validation_error_propagates(self) -> None:
        with pytest.raises(ValidationError):
            decode_body(b"not json", Point)


class TestExtractEmbeddedJson:
    """Tests for pulling window.<key> assignments out of HTML."""

    def test_escaped_quotes(self) -> None:
        html = 'window.DATA = {\\"x\\":1};'
        assert extract_embedded_json(html, "DATA") == {"x": 1}

    def test_into_model(self) -> None:
        html = (
            "<html><head><script>\n"
            'window.VIEWER_SOCIAL_PROFILE = {\\"x\\":42};\n'
            "</script></head></html>"
        )
        assert extract_embedded_json(html, "VIEWER_SOCIAL_PROFILE", Point) == Point(x=42)

    def test_plain_quotes(self) -> None:
        assert extract_embedded_json('window.DATA = {"x": 1};', "DATA", Point) == Point(x=1)

    def test_picks_requested_key(self) -> None:
        html = 'window.OTHER = {"x": 2};\nwindow.DATA = {"x": 3};'
        assert extract_embedded_json(html, "DATA", Point) == Point(x=3)

    def test_key_is_matched_literally(self) -> None:
        """Regex characters in the key do not widen the match."""
        with pytest.raises(UnexpectedResponseError):
            extract_embedded_json('window.DATAX = {"x": 1};', "DATA.")

    def test_missing_pattern(self) -> None:
        with pytest.raises(UnexpectedResponseError) as exc_info:
            extract_embedded_json("<html></html>", "DATA")
        assert exc_info.value.key == "DATA"

    def test_null_payload(self) -> None:
        with pytest.raises(UnexpectedResponseError):
            extract_embedded_json("window.DATA = null;", "DATA", Optional[Point])

    def test_null_payload_default_type(self) -> None:
        """A null payload is reported as missing data, not a validation error."""
        with pytest.raises(UnexpectedResponseError) as exc_info:
            extract_embedded_json("window.DATA = null;", "DATA")
        assert exc_info.value.key == "DATA"

    def test_null_payload_into_model(self) -> None:
        with pytest.raises(UnexpectedResponseError):
            extract_embedded_json("window.DATA = null;", "DATA", Point)

    def test_invalid_payload_propagates(self) -> None:
        with pytest.raises(ValidationError):
            extract_embedded_json("window.DATA = {broken;", "DATA", Point)

    def test_non_object_payload_still_invalid(self) -> None:
        with pytest.raises(ValidationError):
            extract_embedded_json("window.DATA = [1, 2];", "DATA")


class TestAdapterCache:
    """Tests for reuse of pydantic adapters across decodes."""

    def test_same_type_reuses_adapter(self) -> None:
        assert _adapter(list[Point]) is _adapter(list[Point])

    def test_repeated_decodes_build_one_adapter(self) -> None:
        _adapter.cache_clear()

        decode_body(b'{"x":1}', Point)
        decode_body(b'{"x":2}', Point)

        info = _adapter.cache_info()
        assert info.misses == 1
        assert info.hits == 1
