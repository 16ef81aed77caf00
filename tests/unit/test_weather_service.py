"""Unit tests for the upstream weather client."""

import asyncio
import time

import httpx
import pytest

from weather_proxy.config import Settings
from weather_proxy.exceptions import ConfigurationError
from weather_proxy.models.outcome import OutcomeKind
from weather_proxy.services.weather_service import WeatherService


class TestOutboundRequest:
    """Tests for how the upstream request is built."""

    @pytest.mark.asyncio
    async def test_request_parameters_and_headers(self, make_weather_service, london_payload):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=london_payload)

        service = make_weather_service(handler)
        await service.fetch_current("St. John's")
        await service.close()

        request = seen[0]
        assert request.method == "GET"
        assert request.url.host == "api.weatherapi.com"
        assert request.url.path == "/v1/current.json"
        assert request.url.params["key"] == "test-weather-key"
        assert request.url.params["q"] == "St. John's"
        assert request.url.params["aqi"] == "no"
        assert request.headers["User-Agent"] == "Weather-Terminal/1.0"

    @pytest.mark.asyncio
    async def test_single_attempt_per_call(self, make_weather_service):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        service = make_weather_service(handler)
        result = await service.fetch_current("London")

        assert result.kind == OutcomeKind.UPSTREAM_ERROR
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self, make_weather_service, json_upstream):
        settings = Settings(weather_api_key="", static_dir="/nonexistent")
        service = make_weather_service(json_upstream, settings=settings)

        with pytest.raises(ConfigurationError) as exc_info:
            await service.fetch_current("London")

        assert exc_info.value.setting == "weather_api_key"

    @pytest.mark.asyncio
    async def test_blank_location_is_invalid_input(self, make_weather_service, json_upstream):
        service = make_weather_service(json_upstream)

        result = await service.fetch_current("   ")

        assert result.kind == OutcomeKind.INVALID_INPUT


class TestClassification:
    """Tests for mapping upstream results onto outcomes."""

    @pytest.mark.asyncio
    async def test_success_builds_snapshot(self, make_weather_service, json_upstream):
        service = make_weather_service(json_upstream)

        result = await service.fetch_current("London")

        assert result.kind == OutcomeKind.SUCCESS
        assert result.success is True
        assert result.snapshot.location.name == "London"
        assert result.snapshot.current.temp_c == 14.2
        assert result.snapshot.current.condition.text == "Partly cloudy"

    @pytest.mark.asyncio
    async def test_connection_failure_is_unavailable(self, make_weather_service):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        result = await make_weather_service(handler).fetch_current("London")

        assert result.kind == OutcomeKind.UPSTREAM_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_transport_timeout_is_timeout(self, make_weather_service):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = await make_weather_service(handler).fetch_current("London")

        assert result.kind == OutcomeKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_deadline_cancels_slow_upstream(self, make_weather_service, london_payload):
        cancelled = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return httpx.Response(200, json=london_payload)

        settings = Settings(
            weather_api_key="test-weather-key",
            weather_api_timeout=0.1,
            static_dir="/nonexistent",
        )
        service = make_weather_service(handler, settings=settings)

        start = time.perf_counter()
        result = await service.fetch_current("London")
        elapsed = time.perf_counter() - start

        assert result.kind == OutcomeKind.TIMEOUT
        assert elapsed < 1.0
        assert cancelled.is_set()
        await service.close()

    @pytest.mark.asyncio
    async def test_bad_request_status_is_not_found(self, make_weather_service):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={"error": {"code": 1006, "message": "No matching location found."}},
            )

        result = await make_weather_service(handler).fetch_current("zzzzinvalid123")

        assert result.kind == OutcomeKind.NOT_FOUND

    @pytest.mark.parametrize("status_code", [401, 403, 404, 429, 500, 502])
    @pytest.mark.asyncio
    async def test_other_error_status_is_upstream_error(
        self, make_weather_service, status_code
    ):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, text="nope")

        result = await make_weather_service(handler).fetch_current("London")

        assert result.kind == OutcomeKind.UPSTREAM_ERROR
        assert result.status_code == status_code

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self, make_weather_service):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        result = await make_weather_service(handler).fetch_current("London")

        assert result.kind == OutcomeKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_non_object_json_is_malformed(self, make_weather_service):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["London"])

        result = await make_weather_service(handler).fetch_current("London")

        assert result.kind == OutcomeKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_undecodable_body_is_malformed(self, make_weather_service):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"Content-Encoding": "gzip"},
                stream=httpx.ByteStream(b"not gzip at all"),
            )

        result = await make_weather_service(handler).fetch_current("London")

        assert result.kind == OutcomeKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_empty_embedded_error_object_is_not_found(
        self, make_weather_service, london_payload
    ):
        london_payload["error"] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=london_payload)

        result = await make_weather_service(handler).fetch_current("London")

        assert result.kind == OutcomeKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_embedded_error_with_ok_status_is_not_found(self, make_weather_service):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"error": {"code": 1006, "message": "No matching location found."}},
            )

        result = await make_weather_service(handler).fetch_current("zzzzinvalid123")

        assert result.kind == OutcomeKind.NOT_FOUND
        assert result.reason == "No matching location found."

    @pytest.mark.parametrize("missing", ["location", "current"])
    @pytest.mark.asyncio
    async def test_missing_section_is_malformed(
        self, make_weather_service, london_payload, missing
    ):
        del london_payload[missing]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=london_payload)

        result = await make_weather_service(handler).fetch_current("London")

        assert result.kind == OutcomeKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_wrongly_typed_field_is_malformed(
        self, make_weather_service, london_payload
    ):
        london_payload["current"]["temp_c"] = "very warm"

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=london_payload)

        result = await make_weather_service(handler).fetch_current("London")

        assert result.kind == OutcomeKind.MALFORMED_RESPONSE


class TestSmokeTest:
    """Tests for the /test diagnostic call."""

    @pytest.mark.asyncio
    async def test_reports_status_and_preview(self, make_weather_service):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="x" * 500)

        report = await make_weather_service(handler).smoke_test()

        assert seen[0].url.params["q"] == "London"
        assert report["status"] == "success"
        assert report["httpStatus"] == 200
        assert report["hasApiKey"] is True
        assert report["apiKeyLength"] == len("test-weather-key")
        assert report["responseLength"] == 500
        assert len(report["responsePreview"]) == 200

    @pytest.mark.asyncio
    async def test_reports_upstream_error_status(self, make_weather_service):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"code": 2006}})

        report = await make_weather_service(handler).smoke_test()

        assert report["status"] == "error"
        assert report["httpStatus"] == 401

    @pytest.mark.asyncio
    async def test_without_api_key(self, make_weather_service, json_upstream):
        settings = Settings(weather_api_key="", static_dir="/nonexistent")

        report = await make_weather_service(json_upstream, settings=settings).smoke_test()

        assert report == {
            "status": "error",
            "message": "API key not configured",
            "hasApiKey": False,
        }

    @pytest.mark.asyncio
    async def test_transport_failure(self, make_weather_service):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Name or service not known", request=request)

        report = await make_weather_service(handler).smoke_test()

        assert report["status"] == "error"
        assert report["hasApiKey"] is True
        assert "ConnectError" in report["message"]


class TestClientLifecycle:
    """Tests for HTTP client reuse and shutdown."""

    @pytest.mark.asyncio
    async def test_close_releases_client(self, make_weather_service, json_upstream):
        service = make_weather_service(json_upstream)
        await service.fetch_current("London")
        client = service._client

        await service.close()

        assert client.is_closed
        assert service._client is None

    @pytest.mark.asyncio
    async def test_client_reused_between_calls(self, make_weather_service, json_upstream):
        service = make_weather_service(json_upstream)
        await service.fetch_current("London")
        first = service._client
        await service.fetch_current("Paris")

        assert service._client is first
        await service.close()

    @pytest.mark.asyncio
    async def test_default_settings_are_loaded(self):
        service = WeatherService()
        assert service.settings.weather_api_key == "test-weather-key"
        assert service.settings.weather_api_timeout == 10.0
