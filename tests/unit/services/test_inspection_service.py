from __future__ import annotations

from datetime import date

import pytest

from app.domain.exceptions import NotFoundError, ValidationError


@pytest.fixture()
def hive(seed):
    user_id = seed.create_user()
    apiary_id = seed.create_apiary(user_id, "Hillside")
    seed.create_hive("HIVE-1", user_id, name="Queenie", apiary_id=apiary_id)
    return user_id, apiary_id


def test_create_with_default_findings(inspection_service, hive):
    user_id, _ = hive
    inspection = inspection_service.create_inspection(
        user_id,
        {"hive_id": "HIVE-1", "inspection_date": "2026-05-03T09:30:00Z", "queen_seen": 1, "images": ["a.jpg"]},
        findings={"brood_pattern": 4},
    )

    assert inspection["inspection_date"] == "2026-05-03"
    assert inspection["status"] == "completed"
    assert inspection["queen_seen"] is True
    assert inspection["eggs_seen"] is False
    assert inspection["images"] == ["a.jpg"]
    assert inspection["hive_name"] == "Queenie"
    assert inspection["apiary_name"] == "Hillside"
    findings = inspection["findings"]
    assert findings["brood_pattern"] == 4
    assert findings["honey_stores"] == 3
    assert findings["population_strength"] == 5
    assert findings["queen_sighted"] is False


def test_create_without_findings(inspection_service, hive):
    user_id, _ = hive
    inspection = inspection_service.create_inspection(user_id, {"hive_id": "HIVE-1", "inspection_date": "2026-05-03"})
    assert inspection["findings"] is None
    assert inspection["images"] == []


def test_create_validation(inspection_service, hive, seed):
    user_id, _ = hive
    with pytest.raises(ValidationError):
        inspection_service.create_inspection(user_id, {"inspection_date": "2026-05-03"})
    with pytest.raises(ValidationError):
        inspection_service.create_inspection(user_id, {"hive_id": "HIVE-1"})
    with pytest.raises(ValidationError):
        inspection_service.create_inspection(
            user_id, {"hive_id": "HIVE-1", "inspection_date": "2026-05-03", "status": "cancelled"}
        )
    with pytest.raises(ValidationError, match="population_strength"):
        inspection_service.create_inspection(
            user_id,
            {"hive_id": "HIVE-1", "inspection_date": "2026-05-03"},
            findings={"population_strength": 11},
        )

    stranger = seed.create_user("stranger")
    with pytest.raises(NotFoundError):
        inspection_service.create_inspection(stranger, {"hive_id": "HIVE-1", "inspection_date": "2026-05-03"})


def test_update_merges_findings(inspection_service, hive):
    user_id, _ = hive
    created = inspection_service.create_inspection(
        user_id,
        {"hive_id": "HIVE-1", "inspection_date": "2026-05-03"},
        findings={"temperament": 2, "notes": "Calm"},
    )

    updated = inspection_service.update_inspection(
        user_id, created["id"], {"notes": "Added a super", "added_supers": True}, findings={"temperament": 4}
    )
    assert updated["notes"] == "Added a super"
    assert updated["added_supers"] is True
    assert updated["findings"]["temperament"] == 4
    assert updated["findings"]["notes"] == "Calm"

    with pytest.raises(ValidationError):
        inspection_service.update_inspection(user_id, created["id"], {"inspection_date": ""})


def test_listing_views(inspection_service, hive, seed):
    user_id, apiary_id = hive
    for day, status in (("2026-05-01", "completed"), ("2026-06-10", "scheduled"), ("2026-06-03", "scheduled")):
        inspection_service.create_inspection(
            user_id, {"hive_id": "HIVE-1", "inspection_date": day, "status": status}
        )

    page = inspection_service.list_inspections(user_id, page=1, page_size=2)
    assert page["count"] == 3
    assert page["totalPages"] == 2
    assert [i["inspection_date"] for i in page["data"]] == ["2026-06-10", "2026-06-03"]

    upcoming = inspection_service.list_upcoming(user_id, today=date(2026, 6, 1))
    assert [i["inspection_date"] for i in upcoming] == ["2026-06-03", "2026-06-10"]

    assert len(inspection_service.list_for_hive(user_id, "HIVE-1")) == 3
    assert len(inspection_service.list_for_apiary(user_id, apiary_id)) == 3
    with pytest.raises(NotFoundError):
        inspection_service.list_for_apiary(user_id, apiary_id + 100)


def test_delete_removes_inspection_and_findings(inspection_service, inspection_repo, hive, seed):
    user_id, _ = hive
    created = inspection_service.create_inspection(
        user_id, {"hive_id": "HIVE-1", "inspection_date": "2026-05-03"}, findings={}
    )
    stranger = seed.create_user("stranger")
    with pytest.raises(NotFoundError):
        inspection_service.delete_inspection(stranger, created["id"])

    assert inspection_service.delete_inspection(user_id, created["id"]) is True
    assert inspection_repo.get_findings(created["id"]) is None
    with pytest.raises(NotFoundError):
        inspection_service.get_inspection(user_id, created["id"])
