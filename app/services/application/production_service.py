"""Harvest records, per-apiary production summaries and forecasts.

Every write to a record recomputes the yearly and monthly ``ProductionSummary``
rows of the apiary, year and month it touched, so summary reads never scan the
raw records.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from app.domain.exceptions import NotFoundError, ServiceError, ValidationError
from app.utils.time import MONTH_ABBR, coerce_date_string, format_day_month_year, shift_month
from infrastructure.database.ops.production import PRODUCTION_COLUMNS
from infrastructure.database.repositories.apiaries import ApiaryRepository
from infrastructure.database.repositories.hives import HiveRepository
from infrastructure.database.repositories.metrics import MetricsRepository
from infrastructure.database.repositories.production import ProductionRepository

logger = logging.getLogger(__name__)

PRODUCTION_TYPES = ("honey", "wax", "pollen", "propolis", "royal_jelly")
FORECAST_PAST_MONTHS = 3
FORECAST_FUTURE_MONTHS = 3
# Non-empty months averaged for the projection
FORECAST_WINDOW = 3
NO_HARVESTS = "No harvests"


def change_percent(current: float, previous: float) -> Optional[float]:
    """Relative change in percent, ``None`` when there is nothing to compare with."""
    if not previous:
        return None
    return round((current - previous) / previous * 100, 1)


def _month_start(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}-01"


class ProductionService:
    """Production records scoped to apiaries the session user owns."""

    def __init__(
        self,
        production_repo: ProductionRepository,
        apiary_repo: ApiaryRepository,
        hive_repo: HiveRepository,
        metrics_repo: MetricsRepository,
    ):
        self.production_repo = production_repo
        self.apiary_repo = apiary_repo
        self.hive_repo = hive_repo
        self.metrics_repo = metrics_repo

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def list_records(
        self,
        user_id: int,
        *,
        apiary_id: Optional[int] = None,
        hive_id: Optional[str] = None,
        year: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        return self.production_repo.list_records(user_id, apiary_id=apiary_id, hive_id=hive_id, year=year)

    def get_record(self, user_id: int, record_id: int) -> Dict[str, Any]:
        record = self.production_repo.get(record_id, user_id)
        if not record:
            raise NotFoundError(f"Production record {record_id} not found")
        return record

    def add_record(self, user_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        fields = self._normalise(user_id, payload)
        for key in ("hive_id", "apiary_id", "date", "amount"):
            if fields.get(key) is None:
                raise ValidationError(f"{key} is required")
        fields.setdefault("type", "honey")

        record_id = self.production_repo.create(user_id, fields)
        if record_id is None:
            raise ServiceError("Failed to add production record")
        self._refresh_summaries(fields["apiary_id"], fields["date"])
        logger.info("User %s added %.1f of %s for apiary %s", user_id, fields["amount"], fields["type"], fields["apiary_id"])
        return self.get_record(user_id, record_id)

    def update_record(self, user_id: int, record_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        existing = self.get_record(user_id, record_id)
        fields = self._normalise(user_id, payload, existing=existing)
        if "date" in fields and fields["date"] is None:
            raise ValidationError("date cannot be empty")
        if not self.production_repo.update(record_id, fields):
            raise ServiceError("Failed to update production record")

        touched = {(existing["apiary_id"], existing["date"])}
        touched.add((fields.get("apiary_id", existing["apiary_id"]), fields.get("date", existing["date"])))
        for apiary_id, record_date in touched:
            self._refresh_summaries(apiary_id, record_date)
        return self.get_record(user_id, record_id)

    def delete_record(self, user_id: int, record_id: int) -> bool:
        existing = self.get_record(user_id, record_id)
        if not self.production_repo.delete(record_id):
            raise ServiceError("Failed to delete production record")
        self._refresh_summaries(existing["apiary_id"], existing["date"])
        return True

    def _normalise(
        self,
        user_id: int,
        payload: Dict[str, Any],
        existing: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        fields = {key: value for key, value in payload.items() if key in PRODUCTION_COLUMNS}

        if "hive_id" in fields and not fields["hive_id"] and existing is not None:
            raise ValidationError("hive_id cannot be empty")
        if fields.get("hive_id"):
            hive = self.hive_repo.get(fields["hive_id"], user_id)
            if not hive:
                raise NotFoundError(f"Hive {fields['hive_id']} not found")
            # A hive's records follow the hive's apiary unless one is given
            if fields.get("apiary_id") is None and hive.get("apiary_id") is not None:
                fields["apiary_id"] = hive["apiary_id"]
        if fields.get("apiary_id") is not None:
            fields["apiary_id"] = int(fields["apiary_id"])
            if not self.apiary_repo.get(fields["apiary_id"], user_id):
                raise NotFoundError(f"Apiary {fields['apiary_id']} not found")
        elif "apiary_id" in fields and existing is not None:
            raise ValidationError("apiary_id cannot be empty")

        if "date" in fields:
            fields["date"] = coerce_date_string(fields["date"])
        if "amount" in fields:
            try:
                fields["amount"] = float(fields["amount"])
            except (TypeError, ValueError) as exc:
                raise ValidationError("amount must be a number") from exc
            if fields["amount"] < 0:
                raise ValidationError("amount cannot be negative")
        if "type" in fields and fields["type"] not in PRODUCTION_TYPES:
            raise ValidationError(f"Invalid production type: {fields['type']}")
        return fields

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def _refresh_summaries(self, apiary_id: int, record_date: str) -> None:
        """Recompute the yearly and monthly summary rows for one apiary/date."""
        year, month = int(record_date[:4]), int(record_date[5:7])

        total = self.production_repo.total(apiary_id, year)
        previous = self.production_repo.total(apiary_id, year - 1)
        hive_count = len(self.hive_repo.hive_ids_by_apiary([apiary_id]).get(apiary_id, []))
        average = round(total / hive_count, 2) if hive_count else None
        self.production_repo.save_summary(apiary_id, year, None, total, change_percent(total, previous), average)

        month_total = self.production_repo.total(apiary_id, year, month)
        prev_year, prev_month = shift_month(year, month, -1)
        month_previous = self.production_repo.total(apiary_id, prev_year, prev_month)
        self.production_repo.save_summary(apiary_id, year, month, month_total, change_percent(month_total, month_previous))
        logger.debug("Refreshed production summaries for apiary %s (%s-%02d)", apiary_id, year, month)

    def get_yearly(self, user_id: int, apiary_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """``[{year, total_production}]`` ascending, summed over the user's apiaries."""
        totals: Dict[int, float] = {}
        for row in self.production_repo.summaries(user_id, apiary_id=apiary_id):
            totals[row["year"]] = totals.get(row["year"], 0.0) + float(row["total_production"] or 0)
        return [{"year": year, "total_production": round(total, 2)} for year, total in sorted(totals.items())]

    def get_monthly(self, user_id: int, year: Optional[int] = None, apiary_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Twelve ``{month, total_production}`` entries for ``year``; missing months are zero."""
        year = year or date.today().year
        totals = [0.0] * 12
        for row in self.production_repo.summaries(user_id, apiary_id=apiary_id, year=year, monthly=True):
            totals[row["month"] - 1] += float(row["total_production"] or 0)
        return [
            {"month": MONTH_ABBR[index], "total_production": round(total, 2)} for index, total in enumerate(totals)
        ]

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def get_all_production_data(self, user_id: int, year: Optional[int] = None) -> List[Dict[str, Any]]:
        """Per-apiary production for ``year`` with per-hive harvest and weight details."""
        year = year or date.today().year
        by_hive = {row["hive_id"]: float(row["total"] or 0) for row in self.production_repo.by_hive(user_id, year)}
        last_harvests = self.production_repo.last_harvests(user_id)

        result = []
        for apiary in self.apiary_repo.list_all(user_id):
            total = self.production_repo.total(apiary["id"], year)
            previous = self.production_repo.total(apiary["id"], year - 1)
            hives = []
            for hive in self.hive_repo.list_for_user(user_id, apiary["id"]):
                total_weight, weight_change = self._weight_trend(hive["hive_id"])
                last_harvest = last_harvests.get(hive["hive_id"])
                hives.append(
                    {
                        "id": hive["hive_id"],
                        "name": hive["name"],
                        "production": round(by_hive.get(hive["hive_id"], 0.0), 2),
                        "lastHarvest": format_day_month_year(last_harvest) if last_harvest else NO_HARVESTS,
                        "totalWeight": total_weight,
                        "weightChange": weight_change,
                    }
                )
            result.append(
                {
                    "id": apiary["id"],
                    "name": apiary["name"],
                    "location": apiary["location"],
                    "totalProduction": round(total, 2),
                    "changePercent": change_percent(total, previous),
                    "hives": hives,
                }
            )
        return result

    def _weight_trend(self, hive_id: str) -> Tuple[Optional[float], Optional[float]]:
        """Latest weight and its change from the reading before, from the two newest readings."""
        readings = self.metrics_repo.recent(hive_id, 2)
        if not readings or readings[0].get("weight_value") is None:
            return None, None
        latest = float(readings[0]["weight_value"])
        if len(readings) < 2 or readings[1].get("weight_value") is None:
            return latest, None
        return latest, round(latest - float(readings[1]["weight_value"]), 1)

    def _monthly_window(
        self,
        user_id: int,
        first: Tuple[int, int],
        months: int,
        apiary_id: Optional[int] = None,
    ) -> List[Tuple[int, int, float]]:
        end = shift_month(first[0], first[1], months)
        totals = self.production_repo.monthly_totals(user_id, _month_start(*first), _month_start(*end), apiary_id)
        window = []
        for offset in range(months):
            year, month = shift_month(first[0], first[1], offset)
            window.append((year, month, totals.get(f"{year:04d}-{month:02d}", 0.0)))
        return window

    def get_time_series(self, user_id: int, months: int = 12, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Monthly totals for the trailing ``months`` including the current month."""
        today = today or date.today()
        months = max(1, min(int(months), 60))
        first = shift_month(today.year, today.month, -(months - 1))
        return [
            {"date": _month_start(year, month), "month": MONTH_ABBR[month - 1], "value": round(total, 2)}
            for year, month, total in self._monthly_window(user_id, first, months)
        ]

    def get_forecast(
        self,
        user_id: int,
        apiary_id: Optional[int] = None,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """The current month and the two before it with actuals, then three projected months.

        The projection is the mean of the last ``FORECAST_WINDOW`` months with any
        production in the trailing year (current month included); months with
        actuals carry the same projection so the two can be compared.
        """
        today = today or date.today()
        if apiary_id is not None and not self.apiary_repo.get(apiary_id, user_id):
            raise NotFoundError(f"Apiary {apiary_id} not found")
        history = self._monthly_window(user_id, shift_month(today.year, today.month, -11), 12, apiary_id)
        non_empty = [total for _, _, total in history if total > 0][-FORECAST_WINDOW:]
        projected = round(sum(non_empty) / len(non_empty), 1) if non_empty else 0.0

        forecast = []
        for year, month, total in history[-FORECAST_PAST_MONTHS:]:
            forecast.append({"month": MONTH_ABBR[month - 1], "projected": projected, "actual": round(total, 1)})
        for offset in range(1, FORECAST_FUTURE_MONTHS + 1):
            year, month = shift_month(today.year, today.month, offset)
            forecast.append({"month": MONTH_ABBR[month - 1], "projected": projected, "actual": 0.0})
        return forecast

    def get_summary(self, user_id: int, today: Optional[date] = None) -> Dict[str, Any]:
        """Totals for this week, month and year plus the year's top hive and apiary."""
        today = today or date.today()
        tomorrow = (today + timedelta(days=1)).isoformat()
        week_start = (today - timedelta(days=today.weekday())).isoformat()

        year_total = self.production_repo.total_between(user_id, f"{today.year:04d}-01-01", tomorrow)
        previous_year = self.production_repo.total_between(
            user_id, f"{today.year - 1:04d}-01-01", f"{today.year:04d}-01-01"
        )
        hive_count = self.hive_repo.count(user_id)

        top_hive = None
        hive_totals = self.production_repo.by_hive(user_id, today.year)
        if hive_totals:
            top_hive = {"name": hive_totals[0]["hive_name"], "production": round(float(hive_totals[0]["total"]), 2)}

        top_apiary = None
        for apiary in self.apiary_repo.list_all(user_id):
            total = self.production_repo.total(apiary["id"], today.year)
            if total > 0 and (top_apiary is None or total > top_apiary["production"]):
                top_apiary = {"name": apiary["name"], "production": round(total, 2)}

        return {
            "weekProduction": round(self.production_repo.total_between(user_id, week_start, tomorrow), 2),
            "monthProduction": round(
                self.production_repo.total_between(user_id, _month_start(today.year, today.month), tomorrow), 2
            ),
            "totalProduction": round(year_total, 2),
            "changePercent": change_percent(year_total, previous_year),
            "avgProduction": round(year_total / hive_count, 2) if hive_count else None,
            "recordCount": self.production_repo.count(user_id),
            "topHive": top_hive,
            "topApiary": top_apiary,
        }
