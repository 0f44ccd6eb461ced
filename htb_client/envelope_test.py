"""Unit tests for response classification."""

import json

import httpx
import pytest
from pydantic import BaseModel

from .envelope import NO_POPULATED_RESULT, Envelope, SlotError, decode_json, decode_model, parse
from .errors import (
    STATUS_UNMARSHAL_ERROR,
    DecodeError,
    ErrorKind,
    ForbiddenError,
    RequestFailedError,
    ServerError,
    UnknownAPIError,
)


def _response(status_code=200, json_body=None, content=None, headers=None):
    request = httpx.Request("GET", "https://labs.hackthebox.com/api/v4/test")
    if json_body is not None:
        return httpx.Response(status_code, json=json_body, headers=headers, request=request)
    return httpx.Response(status_code, content=content or b"", headers=headers, request=request)


class Profile(BaseModel):
    id: int
    name: str


def describe_parse():
    def it_returns_the_success_payload_and_meta():
        response = _response(200, {"id": 1}, headers={"CF-Ray": "abc123-AMS"})

        payload, meta = parse(response, decode_json)

        assert payload == {"id": 1}
        assert meta.status_code == 200
        assert meta.cf_ray == "abc123-AMS"
        assert json.loads(meta.raw) == {"id": 1}

    def it_fails_on_a_non_success_slot_despite_http_200():
        def decode(response):
            return Envelope(slot=403, payload={"message": "Access denied"})

        with pytest.raises(ForbiddenError) as exc_info:
            parse(_response(200, {"message": "Access denied"}), decode)

        err = exc_info.value
        assert err.kind == ErrorKind.FORBIDDEN
        assert err.status_code == 200
        assert err.message == "Access denied"
        assert isinstance(err.__cause__, SlotError)
        assert err.meta.status_code == 200

    def it_uses_the_status_message_when_the_slot_has_none():
        with pytest.raises(ServerError) as exc_info:
            parse(_response(503, {"error": "down"}), decode_json)

        assert exc_info.value.message == "Server error"
        assert exc_info.value.status_code == 503

    def it_reports_no_populated_result():
        with pytest.raises(UnknownAPIError) as exc_info:
            parse(_response(200, content=b"<html>maintenance</html>"), decode_json)

        assert exc_info.value.message == NO_POPULATED_RESULT
        assert exc_info.value.raw == b"<html>maintenance</html>"

    def it_classifies_decoder_failures_as_decode_errors():
        response = _response(
            200, content=b"{broken", headers={"content-type": "application/json"}
        )

        with pytest.raises(DecodeError) as exc_info:
            parse(response, decode_json)

        err = exc_info.value
        assert err.status_code == STATUS_UNMARSHAL_ERROR
        assert err.message == "Failed to parse response JSON"
        assert err.raw == b"{broken"

    def it_classifies_validation_failures_as_decode_errors():
        with pytest.raises(DecodeError):
            parse(_response(200, {"id": "not-a-number"}), decode_model(Profile))

    def it_reports_a_missing_response_as_request_failure():
        cause = httpx.ConnectError("connection refused")

        with pytest.raises(RequestFailedError) as exc_info:
            parse(None, decode_json, error=cause)

        err = exc_info.value
        assert err.status_code == -1
        assert err.message == "Request failed"
        assert err.__cause__ is cause
        assert err.meta.raw == b""

    def it_reports_an_undecodable_body_as_decode_error():
        cause = httpx.DecodingError("Error -3 while decompressing data")

        with pytest.raises(DecodeError) as exc_info:
            parse(None, decode_json, error=cause)

        assert exc_info.value.status_code == STATUS_UNMARSHAL_ERROR
        assert exc_info.value.__cause__ is cause

    def it_reports_other_http_errors_as_request_failures():
        cause = httpx.TooManyRedirects("Exceeded maximum allowed redirects.")

        with pytest.raises(RequestFailedError) as exc_info:
            parse(None, decode_json, error=cause)

        assert exc_info.value.status_code == -1

    def it_reports_a_decoder_returning_nothing():
        with pytest.raises(RequestFailedError) as exc_info:
            parse(_response(200, {"id": 1}), lambda response: None)

        assert exc_info.value.status_code == 200


def describe_decode_model():
    def it_validates_the_success_slot():
        envelope = decode_model(Profile)(_response(200, {"id": 7, "name": "Lame"}))

        assert envelope.slot == 200
        assert envelope.payload == Profile(id=7, name="Lame")

    def it_leaves_other_slots_untouched():
        envelope = decode_model(Profile)(_response(404, {"message": "missing"}))

        assert envelope.slot == 404
        assert envelope.payload == {"message": "missing"}
