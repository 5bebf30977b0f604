"""Tests for result envelopes and their serialization."""

import json
import logging

import httpx
import pytest

from weather_agent.errors import PaymentRejectedError, SerializationError, TransportError
from weather_agent.results import (
    FALLBACK_TEXT,
    build_failure_result,
    build_success_result,
    get_header_value,
    read_response_data,
    serialize_result,
    to_text,
)

BASE_URL = "http://localhost:4021"
PATH = "/weather"
REQUEST = {"tool": "get-weather", "city": "Beijing", "date": None}


class TestGetHeaderValue:
    """Tests for get_header_value."""

    @pytest.mark.parametrize("name", [
        "payment-response",
        "PAYMENT-RESPONSE",
        "Payment-Response",
    ])
    def test_case_insensitive_mapping(self, name):
        assert get_header_value({name: "receipt"}, "payment-response") == "receipt"

    def test_httpx_headers(self):
        headers = httpx.Headers({"X-PAYMENT-RESPONSE": "receipt"})

        assert get_header_value(headers, "x-payment-response") == "receipt"

    def test_list_value_returns_first_string(self):
        assert get_header_value({"payment-response": ["a", "b"]}, "payment-response") == "a"

    @pytest.mark.parametrize("value", [[], [1, 2], 42, None])
    def test_non_string_values(self, value):
        assert get_header_value({"payment-response": value}, "payment-response") is None

    def test_missing_header(self):
        assert get_header_value({"content-type": "application/json"}, "payment-response") is None
        assert get_header_value(None, "payment-response") is None


class TestReadResponseData:
    """Tests for read_response_data."""

    def test_json_body(self):
        assert read_response_data(httpx.Response(200, json={"temp": 21})) == {"temp": 21}

    def test_text_body(self):
        assert read_response_data(httpx.Response(500, text="Internal Server Error")) == "Internal Server Error"

    def test_empty_body(self):
        assert read_response_data(httpx.Response(204)) == ""

    @pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity"])
    def test_non_standard_constants_keep_raw_text(self, token):
        body = f'{{"temp": {token}}}'

        assert read_response_data(httpx.Response(200, text=body)) == body


class TestBuildSuccessResult:
    """Tests for build_success_result."""

    def test_envelope_shape(self):
        response = httpx.Response(
            200,
            headers={"PAYMENT-RESPONSE": "v2-receipt", "X-Payment-Response": "v1-receipt"},
            json={"temp": 21},
        )

        envelope = build_success_result(BASE_URL, PATH, REQUEST, response)

        assert envelope == {
            "ok": True,
            "source": {"url": BASE_URL, "path": PATH},
            "request": REQUEST,
            "upstream": {
                "status": 200,
                "payment_response_header": "v2-receipt",
                "x_payment_response_header": "v1-receipt",
                "data": {"temp": 21},
            },
        }

    def test_error_status_is_still_ok(self):
        response = httpx.Response(503, text="Service Unavailable")

        envelope = build_success_result(BASE_URL, PATH, REQUEST, response)

        assert envelope["ok"] is True
        assert envelope["upstream"]["status"] == 503
        assert envelope["upstream"]["data"] == "Service Unavailable"

    def test_request_is_copied(self):
        request = dict(REQUEST)
        envelope = build_success_result(BASE_URL, PATH, request, httpx.Response(200, json={}))
        request["city"] = "Paris"

        assert envelope["request"]["city"] == "Beijing"


class TestBuildFailureResult:
    """Tests for build_failure_result."""

    def test_error_with_response(self):
        response = httpx.Response(
            402,
            headers={"X-PAYMENT-RESPONSE": "rejected"},
            json={"error": "insufficient_funds"},
        )
        error = PaymentRejectedError("rejected", response=response)

        envelope = build_failure_result(BASE_URL, PATH, REQUEST, error)

        assert envelope["ok"] is False
        assert envelope["upstream"] == {
            "status": 402,
            "payment_response_header": None,
            "x_payment_response_header": "rejected",
            "data": {"error": "insufficient_funds"},
        }

    def test_error_without_response(self):
        envelope = build_failure_result(BASE_URL, PATH, REQUEST, TransportError("timeout of 15000ms exceeded"))

        assert envelope["ok"] is False
        assert envelope["upstream"] == {
            "status": None,
            "payment_response_header": None,
            "x_payment_response_header": None,
            "data": {"message": "timeout of 15000ms exceeded"},
        }

    def test_unexpected_exception(self):
        envelope = build_failure_result(BASE_URL, PATH, REQUEST, RuntimeError("boom"))

        assert envelope["upstream"]["status"] is None
        assert envelope["upstream"]["data"] == {"message": "boom"}


class TestSerialization:
    """Tests for serialize_result and to_text."""

    def test_two_space_indent(self):
        text = to_text({"ok": True, "upstream": {"data": "☀"}})

        assert text == json.dumps({"ok": True, "upstream": {"data": "☀"}}, indent=2, ensure_ascii=False)
        assert json.loads(text) == {"ok": True, "upstream": {"data": "☀"}}

    def test_cyclic_payload_raises_serialization_error(self):
        envelope: dict = {"ok": True}
        envelope["self"] = envelope

        with pytest.raises(SerializationError):
            serialize_result(envelope)

    def test_cyclic_payload_falls_back(self, caplog):
        envelope: dict = {"ok": True}
        envelope["self"] = envelope

        with caplog.at_level(logging.WARNING, logger="weather_agent.results"):
            text = to_text(envelope)

        assert text == FALLBACK_TEXT
        assert json.loads(text) == {"error": "Failed to serialize response"}
        assert "Failed to serialize response" in caplog.text

    def test_unserializable_value_falls_back(self):
        assert to_text({"ok": True, "data": object()}) == FALLBACK_TEXT

    def test_nan_value_falls_back(self):
        assert to_text({"ok": True, "data": {"temp": float("nan")}}) == FALLBACK_TEXT

    def test_nan_value_raises_serialization_error(self):
        with pytest.raises(SerializationError):
            serialize_result({"ok": True, "data": float("inf")})
