"""Exchange rates to the rouble from the Central Bank of Russia daily feed."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .weather import ServiceError

logger = logging.getLogger(__name__)

CBR_DAILY_URL = "https://www.cbr-xml-daily.ru/daily_json.js"


@dataclass
class ExchangeRate:
    currency: str
    rate: float  # roubles per one unit


class CurrencyService:
    """Fetches RUB exchange rates for a set of currency codes."""

    def __init__(
        self,
        url: str = CBR_DAILY_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def get_rates(self, codes: tuple[str, ...] = ("USD", "EUR", "CNY")) -> list[ExchangeRate]:
        """
        Rates for `codes`, in the same order. Unknown codes are skipped.

        Raises:
            ServiceError: HTTP failure or malformed payload
        """
        try:
            response = await self._client.get(self.url)
            response.raise_for_status()
            valutes = response.json()["Valute"]
        except httpx.HTTPError as e:
            raise ServiceError(f"Currency request failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise ServiceError(f"Unexpected currency payload: {e!r}") from e
        if not isinstance(valutes, dict):
            raise ServiceError(f"Unexpected currency payload: Valute is {type(valutes).__name__}")

        rates = []
        for code in codes:
            entry = valutes.get(code)
            if not entry:
                logger.warning(f"Currency {code} not present in feed")
                continue
            try:
                nominal = float(entry.get("Nominal") or 1)
                rate = float(entry["Value"]) / nominal
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise ServiceError(f"Unexpected currency entry for {code}: {e!r}") from e
            rates.append(ExchangeRate(currency=code, rate=rate))
        return rates

    async def format_rates_info(self, codes: tuple[str, ...] = ("USD", "EUR", "CNY")) -> str:
        rates = await self.get_rates(codes)
        lines = ["Курсы валют к рублю:"]
        lines.extend(f"• {r.currency} = {r.rate:.2f} ₽" for r in rates)
        return "\n".join(lines)

    async def close(self) -> None:
        await self._client.aclose()
