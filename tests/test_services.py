"""Tests for the widget data sources (httpx MockTransport)."""
import httpx
import pytest

from clippy.services import (
    CurrencyService,
    ServiceError,
    WeatherService,
    weather_code_to_description,
)

CBR_PAYLOAD = {
    "Valute": {
        "USD": {"CharCode": "USD", "Nominal": 1, "Value": 92.5},
        "EUR": {"CharCode": "EUR", "Nominal": 1, "Value": 100.25},
        "CNY": {"CharCode": "CNY", "Nominal": 10, "Value": 127.0},
    }
}


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def weather_handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "geocoding-api.open-meteo.com":
        assert request.url.params["name"] == "Москва"
        return httpx.Response(200, json={"results": [{"latitude": 55.75, "longitude": 37.62, "name": "Москва"}]})
    return httpx.Response(200, json={
        "current": {"temperature_2m": -3.4, "relative_humidity_2m": 81, "weather_code": 71}
    })


class TestWeatherService:
    """Tests for WeatherService."""

    @pytest.mark.parametrize("code,description", [
        (0, "Ясно"),
        (2, "Облачно"),
        (3, "Пасмурно"),
        (48, "Туман"),
        (63, "Дождь"),
        (75, "Снег"),
        (95, "Гроза"),
        (42, "Неизвестно"),
    ])
    def test_weather_codes(self, code, description):
        assert weather_code_to_description(code) == description

    @pytest.mark.asyncio
    async def test_get_weather(self):
        service = WeatherService(client=mock_client(weather_handler))

        weather = await service.get_weather("Москва")

        assert weather.city == "Москва"
        assert weather.temperature == -3
        assert weather.humidity == 81
        assert weather.description == "Снег"
        await service.close()

    @pytest.mark.asyncio
    async def test_format_weather_info(self):
        service = WeatherService(client=mock_client(weather_handler))
        text = await service.format_weather_info("Москва")
        assert "Москва" in text
        assert "-3°C" in text

    @pytest.mark.asyncio
    async def test_unknown_city(self):
        service = WeatherService(client=mock_client(lambda r: httpx.Response(200, json={"results": []})))
        with pytest.raises(ServiceError):
            await service.get_weather("Нигде")

    @pytest.mark.asyncio
    async def test_http_error_is_service_error(self):
        service = WeatherService(client=mock_client(lambda r: httpx.Response(500)))
        with pytest.raises(ServiceError):
            await service.get_weather("Москва")


class TestCurrencyService:
    """Tests for CurrencyService."""

    @pytest.mark.asyncio
    async def test_rates_divide_by_nominal(self):
        service = CurrencyService(client=mock_client(lambda r: httpx.Response(200, json=CBR_PAYLOAD)))

        rates = await service.get_rates(("USD", "CNY"))

        assert [r.currency for r in rates] == ["USD", "CNY"]
        assert rates[0].rate == pytest.approx(92.5)
        assert rates[1].rate == pytest.approx(12.7)
        await service.close()

    @pytest.mark.asyncio
    async def test_unknown_code_is_skipped(self):
        service = CurrencyService(client=mock_client(lambda r: httpx.Response(200, json=CBR_PAYLOAD)))
        rates = await service.get_rates(("USD", "XYZ"))
        assert [r.currency for r in rates] == ["USD"]

    @pytest.mark.asyncio
    async def test_format_rates_info(self):
        service = CurrencyService(client=mock_client(lambda r: httpx.Response(200, json=CBR_PAYLOAD)))
        text = await service.format_rates_info(("EUR",))
        assert text.splitlines()[1] == "• EUR = 100.25 ₽"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(503),
        httpx.Response(200, json={"no": "valute"}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"Valute": [1, 2]}),
        httpx.Response(200, json={"Valute": {"USD": {"CharCode": "USD", "Nominal": 1}}}),
        httpx.Response(200, json={"Valute": {"USD": {"Nominal": 1, "Value": "n/a"}}}),
    ])
    async def test_bad_feed_is_service_error(self, response):
        service = CurrencyService(client=mock_client(lambda r: response))
        with pytest.raises(ServiceError):
            await service.get_rates()
