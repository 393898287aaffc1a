"""
Weather Service
===============

Current conditions and a short forecast for apiary locations, from the
WorldWeatherOnline ``weather.ashx`` API.

Features:
- Current conditions with wind converted to m/s and a 16-point compass direction
- Daily forecast for up to 5 days
- Responses cached per rounded coordinate
- Deterministic sample data when no API key is configured or the API fails
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import requests
from dateutil import parser as date_parser

from app.domain.exceptions import NotFoundError, ValidationError
from app.utils.cache import TTLCache
from app.utils.time import MONTH_ABBR, format_month_day
from infrastructure.database.repositories.apiaries import ApiaryRepository

logger = logging.getLogger(__name__)

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)
WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
SAMPLE_CONDITIONS = ("Clear", "Clouds", "Rain", "Snow", "Mist")
MAX_FORECAST_DAYS = 5
SOURCE_LIVE = "live"
SOURCE_SAMPLE = "sample"


def wind_direction(degrees: float) -> str:
    """16-point compass name for a bearing in degrees."""
    return COMPASS_POINTS[round(float(degrees) / 22.5) % 16]


def kmh_to_ms(speed_kmh: float) -> float:
    return round(float(speed_kmh) / 3.6, 1)


@dataclass
class CurrentWeather:
    """Current conditions at a location."""
    condition: str
    temperature: float
    tempMin: float
    tempMax: float
    humidity: float
    pressure: float
    windSpeed: float
    windDirection: str
    sunrise: str
    sunset: str
    feelsLike: float
    icon: str
    source: str = SOURCE_LIVE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ForecastDay:
    """One day of the forecast."""
    date: str
    day: str
    condition: str
    tempMin: float
    tempMax: float
    icon: str
    source: str = SOURCE_LIVE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class WeatherService:
    """
    Weather lookups by coordinate.

    Without an API key every lookup returns sample data flagged
    ``"source": "sample"``; live responses are flagged ``"live"``.
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.worldweatheronline.com/premium/v1/weather.ashx",
        timeout: float = 10.0,
        cache: Optional[TTLCache] = None,
        apiary_repo: Optional[ApiaryRepository] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.cache = cache or TTLCache(enabled=True, ttl_seconds=600, maxsize=256)
        self.apiary_repo = apiary_repo
        logger.info("WeatherService initialized (%s)", "live" if api_key else "sample data only")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_current(self, latitude: Any, longitude: Any) -> Dict[str, Any]:
        lat, lon = self._coordinates(latitude, longitude)
        key = ("current", round(lat, 2), round(lon, 2))
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        current = None
        if self.api_key:
            data = self._fetch(lat, lon, num_of_days=1)
            if data is not None:
                current = self._parse_current(data)
        if current is None:
            return self._sample_current(lat).to_dict()

        result = current.to_dict()
        self.cache.set(key, result)
        return result

    def get_forecast(self, latitude: Any, longitude: Any, days: Any = MAX_FORECAST_DAYS) -> List[Dict[str, Any]]:
        lat, lon = self._coordinates(latitude, longitude)
        try:
            days = max(1, min(int(days), MAX_FORECAST_DAYS))
        except (TypeError, ValueError) as exc:
            raise ValidationError("days must be an integer") from exc

        key = ("forecast", round(lat, 2), round(lon, 2), days)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        forecast = None
        if self.api_key:
            data = self._fetch(lat, lon, num_of_days=days)
            if data is not None:
                forecast = self._parse_forecast(data)
        if not forecast:
            return [item.to_dict() for item in self._sample_forecast(lat, days)]

        result = [item.to_dict() for item in forecast[:days]]
        self.cache.set(key, result)
        return result

    def get_for_apiary(self, user_id: int, apiary_id: int, days: Any = MAX_FORECAST_DAYS) -> Dict[str, Any]:
        """Current weather and forecast at an apiary's stored coordinates."""
        apiary = self.apiary_repo.get(apiary_id, user_id) if self.apiary_repo else None
        if not apiary:
            raise NotFoundError(f"Apiary {apiary_id} not found")
        if apiary.get("latitude") is None or apiary.get("longitude") is None:
            raise ValidationError("Apiary has no coordinates")
        return {
            "apiary_id": apiary_id,
            "current": self.get_current(apiary["latitude"], apiary["longitude"]),
            "forecast": self.get_forecast(apiary["latitude"], apiary["longitude"], days),
        }

    # ------------------------------------------------------------------
    # Live data
    # ------------------------------------------------------------------

    def _fetch(self, latitude: float, longitude: float, *, num_of_days: int) -> Optional[Dict[str, Any]]:
        params = {
            "key": self.api_key,
            "q": f"{latitude},{longitude}",
            "format": "json",
            "num_of_days": num_of_days,
            "tp": 24,
            "fx": "yes",
            "cc": "yes",
            "mca": "no",
        }
        try:
            response = requests.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Weather API request failed: %s", e)
            return None

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict) or data.get("error"):
            logger.error("Weather API returned an unexpected payload: %s", (data or {}).get("error"))
            return None
        return data

    def _parse_current(self, data: Dict[str, Any]) -> Optional[CurrentWeather]:
        try:
            current = data["current_condition"][0]
            today = data["weather"][0]
            astronomy = today.get("astronomy", [{}])[0]
            if current.get("winddirDegree") is not None:
                direction = wind_direction(current["winddirDegree"])
            else:
                direction = current.get("winddir16Point", "")
            return CurrentWeather(
                condition=current["weatherDesc"][0]["value"],
                temperature=float(current["temp_C"]),
                tempMin=float(today["mintempC"]),
                tempMax=float(today["maxtempC"]),
                humidity=float(current["humidity"]),
                pressure=float(current["pressure"]),
                windSpeed=kmh_to_ms(current["windspeedKmph"]),
                windDirection=direction,
                sunrise=astronomy.get("sunrise", ""),
                sunset=astronomy.get("sunset", ""),
                feelsLike=float(current.get("FeelsLikeC") or current["temp_C"]),
                icon=str(current.get("weatherCode", "")),
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("Unparseable current weather payload: %s", e)
            return None

    def _parse_forecast(self, data: Dict[str, Any]) -> List[ForecastDay]:
        forecast = []
        for day in data.get("weather") or []:
            try:
                day_date = date_parser.parse(day["date"]).date()
                hourly = day["hourly"][0]
                forecast.append(
                    ForecastDay(
                        date=format_month_day(day_date),
                        day=WEEKDAYS[day_date.weekday()],
                        condition=hourly["weatherDesc"][0]["value"],
                        tempMin=float(day["mintempC"]),
                        tempMax=float(day["maxtempC"]),
                        icon=str(hourly.get("weatherCode", "")),
                    )
                )
            except (KeyError, IndexError, TypeError, ValueError) as e:
                logger.warning("Skipping unparseable forecast day %s: %s", day.get("date") if isinstance(day, dict) else day, e)
        return forecast

    # ------------------------------------------------------------------
    # Sample data
    # ------------------------------------------------------------------

    @staticmethod
    def _base_temperature(latitude: float, month: int) -> float:
        """Seasonal base temperature for temperate northern latitudes."""
        if 6 <= month <= 9:
            base = 25.0
        elif month in (12, 1, 2):
            base = 5.0
        else:
            base = 15.0
        return base + (latitude - 40) * -0.5

    def _sample_current(self, latitude: float, today: Optional[date] = None) -> CurrentWeather:
        today = today or date.today()
        temp = round(self._base_temperature(latitude, today.month), 1)
        condition = SAMPLE_CONDITIONS[today.toordinal() % len(SAMPLE_CONDITIONS)]
        return CurrentWeather(
            condition=condition,
            temperature=temp,
            tempMin=round(temp - 3, 1),
            tempMax=round(temp + 3, 1),
            humidity=65.0,
            pressure=1013.0,
            windSpeed=3.5,
            windDirection=wind_direction(today.toordinal() * 22.5),
            sunrise="06:15 AM",
            sunset="07:20 PM",
            feelsLike=temp,
            icon=condition.lower(),
            source=SOURCE_SAMPLE,
        )

    def _sample_forecast(self, latitude: float, days: int, today: Optional[date] = None) -> List[ForecastDay]:
        today = today or date.today()
        forecast = []
        for offset in range(1, days + 1):
            day_date = today + timedelta(days=offset)
            temp = self._base_temperature(latitude, day_date.month)
            condition = SAMPLE_CONDITIONS[day_date.toordinal() % len(SAMPLE_CONDITIONS)]
            forecast.append(
                ForecastDay(
                    date=f"{MONTH_ABBR[day_date.month - 1]} {day_date.day:02d}",
                    day=WEEKDAYS[day_date.weekday()],
                    condition=condition,
                    tempMin=round(temp - 3, 1),
                    tempMax=round(temp + 3, 1),
                    icon=condition.lower(),
                    source=SOURCE_SAMPLE,
                )
            )
        return forecast

    @staticmethod
    def _coordinates(latitude: Any, longitude: Any) -> tuple[float, float]:
        try:
            lat, lon = float(latitude), float(longitude)
        except (TypeError, ValueError) as exc:
            raise ValidationError("lat and lon must be numbers") from exc
        if not -90 <= lat <= 90 or not -180 <= lon <= 180:
            raise ValidationError("lat/lon out of range")
        return lat, lon
