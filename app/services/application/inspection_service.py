"""Hive inspection records and their structured findings."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from app.domain.exceptions import NotFoundError, ServiceError, ValidationError
from app.utils.time import coerce_date_string
from infrastructure.database.ops.inspections import FINDING_COLUMNS, INSPECTION_COLUMNS
from infrastructure.database.pagination import PaginatedResponse, PaginationParams
from infrastructure.database.repositories.apiaries import ApiaryRepository
from infrastructure.database.repositories.hives import HiveRepository
from infrastructure.database.repositories.inspections import InspectionRepository

logger = logging.getLogger(__name__)

STATUS_SCHEDULED = "scheduled"
STATUS_COMPLETED = "completed"
INSPECTION_STATUSES = (STATUS_SCHEDULED, STATUS_COMPLETED)

BOOLEAN_FIELDS = (
    "queen_seen",
    "eggs_seen",
    "larvae_seen",
    "queen_cells_seen",
    "disease_signs",
    "varroa_check",
    "added_supers",
    "removed_supers",
    "feed_added",
    "medications_added",
)

DEFAULT_FINDINGS: Dict[str, Any] = {
    "queen_sighted": False,
    "brood_pattern": 1,
    "honey_stores": 3,
    "population_strength": 5,
    "temperament": 3,
    "diseases_sighted": None,
    "varroa_count": None,
    "notes": None,
}

# Inclusive score ranges for findings
FINDING_RANGES = {
    "brood_pattern": (1, 5),
    "honey_stores": (1, 5),
    "population_strength": (1, 10),
    "temperament": (1, 5),
}


class InspectionService:
    """CRUD over inspections of hives the session user owns."""

    def __init__(
        self,
        inspection_repo: InspectionRepository,
        hive_repo: HiveRepository,
        apiary_repo: ApiaryRepository,
    ):
        self.inspection_repo = inspection_repo
        self.hive_repo = hive_repo
        self.apiary_repo = apiary_repo

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_inspections(self, user_id: int, page: Any = 1, page_size: Any = 10) -> Dict[str, Any]:
        """Page of inspections, newest inspection date first."""
        params = PaginationParams.from_request(page, page_size)
        rows = self.inspection_repo.list_page(user_id, params)
        return PaginatedResponse(
            items=[self._public(row) for row in rows],
            count=self.inspection_repo.count(user_id),
            page=params.page,
            page_size=params.page_size,
        ).to_dict()

    def list_for_hive(self, user_id: int, hive_id: str) -> List[Dict[str, Any]]:
        if not self.hive_repo.get(hive_id, user_id):
            raise NotFoundError(f"Hive {hive_id} not found")
        return [self._public(row) for row in self.inspection_repo.list_filtered(user_id, hive_id=hive_id)]

    def list_for_apiary(self, user_id: int, apiary_id: int) -> List[Dict[str, Any]]:
        if not self.apiary_repo.get(apiary_id, user_id):
            raise NotFoundError(f"Apiary {apiary_id} not found")
        return [self._public(row) for row in self.inspection_repo.list_filtered(user_id, apiary_id=apiary_id)]

    def list_upcoming(self, user_id: int, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Scheduled inspections dated today or later, soonest first."""
        start = (today or date.today()).isoformat()
        rows = self.inspection_repo.list_filtered(user_id, status=STATUS_SCHEDULED, from_date=start)
        return [self._public(row) for row in rows]

    def get_inspection(self, user_id: int, inspection_id: int) -> Dict[str, Any]:
        row = self.inspection_repo.get(inspection_id, user_id)
        if not row:
            raise NotFoundError(f"Inspection {inspection_id} not found")
        inspection = self._public(row)
        inspection["findings"] = self.get_findings(user_id, inspection_id, _checked=True)
        return inspection

    def get_findings(self, user_id: int, inspection_id: int, *, _checked: bool = False) -> Optional[Dict[str, Any]]:
        if not _checked and not self.inspection_repo.get(inspection_id, user_id):
            raise NotFoundError(f"Inspection {inspection_id} not found")
        findings = self.inspection_repo.get_findings(inspection_id)
        if findings is None:
            return None
        findings = dict(findings)
        findings["queen_sighted"] = bool(findings.get("queen_sighted"))
        return findings

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_inspection(
        self,
        user_id: int,
        payload: Dict[str, Any],
        findings: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        hive_id = (payload.get("hive_id") or "").strip()
        if not hive_id:
            raise ValidationError("hive_id is required")
        if not self.hive_repo.get(hive_id, user_id):
            raise NotFoundError(f"Hive {hive_id} not found")

        fields = self._normalise(payload)
        fields["hive_id"] = hive_id
        if not fields.get("inspection_date"):
            raise ValidationError("inspection_date is required")
        fields.setdefault("status", STATUS_COMPLETED)
        for key in BOOLEAN_FIELDS:
            fields.setdefault(key, False)

        inspection_id = self.inspection_repo.create(
            user_id,
            fields,
            self._normalise_findings(findings, with_defaults=True) if findings is not None else None,
        )
        if inspection_id is None:
            raise ServiceError("Failed to create inspection")
        logger.info("User %s recorded inspection %s for hive %s", user_id, inspection_id, hive_id)
        return self.get_inspection(user_id, inspection_id)

    def update_inspection(
        self,
        user_id: int,
        inspection_id: int,
        payload: Dict[str, Any],
        findings: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not self.inspection_repo.get(inspection_id, user_id):
            raise NotFoundError(f"Inspection {inspection_id} not found")
        fields = self._normalise(payload)
        if "hive_id" in fields:
            fields["hive_id"] = (fields["hive_id"] or "").strip()
            if not self.hive_repo.get(fields["hive_id"], user_id):
                raise NotFoundError(f"Hive {fields['hive_id']} not found")
        if "inspection_date" in fields and not fields["inspection_date"]:
            raise ValidationError("inspection_date cannot be empty")

        has_findings_row = self.inspection_repo.get_findings(inspection_id) is not None
        normalised_findings = (
            self._normalise_findings(findings, with_defaults=not has_findings_row) if findings is not None else None
        )
        if not self.inspection_repo.update(inspection_id, user_id, fields, normalised_findings):
            raise ServiceError("Failed to update inspection")
        return self.get_inspection(user_id, inspection_id)

    def delete_inspection(self, user_id: int, inspection_id: int) -> bool:
        if not self.inspection_repo.delete(inspection_id, user_id):
            raise NotFoundError(f"Inspection {inspection_id} not found")
        logger.info("User %s deleted inspection %s", user_id, inspection_id)
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _normalise(payload: Dict[str, Any]) -> Dict[str, Any]:
        fields = {key: value for key, value in payload.items() if key in INSPECTION_COLUMNS}
        if "inspection_date" in fields:
            fields["inspection_date"] = coerce_date_string(fields["inspection_date"])
        if "status" in fields and fields["status"] not in INSPECTION_STATUSES:
            raise ValidationError(f"Invalid inspection status: {fields['status']}")
        if "images" in fields and fields["images"] is not None and not isinstance(fields["images"], list):
            raise ValidationError("images must be a list")
        for key in BOOLEAN_FIELDS:
            if key in fields:
                fields[key] = bool(fields[key])
        return fields

    @staticmethod
    def _normalise_findings(findings: Dict[str, Any], *, with_defaults: bool) -> Dict[str, Any]:
        values = dict(DEFAULT_FINDINGS) if with_defaults else {}
        values.update({key: value for key, value in findings.items() if key in FINDING_COLUMNS})
        for key, (low, high) in FINDING_RANGES.items():
            if values.get(key) is None:
                continue
            score = int(values[key])
            if not low <= score <= high:
                raise ValidationError(f"{key} must be between {low} and {high}")
            values[key] = score
        if "queen_sighted" in values:
            values["queen_sighted"] = bool(values["queen_sighted"])
        return values

    @staticmethod
    def _public(row: Dict[str, Any]) -> Dict[str, Any]:
        item = dict(row)
        for key in BOOLEAN_FIELDS:
            if key in item and item[key] is not None:
                item[key] = bool(item[key])
        return item
