# Services Module - data sources for the widgets panel
from .weather import ServiceError, WeatherInfo, WeatherService, weather_code_to_description
from .currency import CurrencyService, ExchangeRate

__all__ = [
    "ServiceError",
    "WeatherInfo",
    "WeatherService",
    "weather_code_to_description",
    "CurrencyService",
    "ExchangeRate",
]
