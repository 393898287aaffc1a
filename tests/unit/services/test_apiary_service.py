from __future__ import annotations

import pytest

from app.domain.exceptions import NotFoundError, ValidationError


def test_create_apiary_requires_name_and_location(apiary_service, seed):
    user_id = seed.create_user()
    with pytest.raises(ValidationError):
        apiary_service.create_apiary(user_id, {"name": " ", "location": "Meadow"})
    with pytest.raises(ValidationError):
        apiary_service.create_apiary(user_id, {"name": "Hillside", "location": ""})
    with pytest.raises(ValidationError):
        apiary_service.create_apiary(None, {"name": "Hillside", "location": "Meadow"})


def test_new_apiary_has_empty_stats(apiary_service, seed):
    user_id = seed.create_user()
    apiary = apiary_service.create_apiary(user_id, {"name": " Hillside ", "location": "Meadow", "latitude": -1.28})

    assert apiary["name"] == "Hillside"
    assert apiary["latitude"] == -1.28
    assert apiary["hiveCount"] == 0
    assert apiary["avgTemperature"] is None
    assert apiary["avgWeight"] is None


def test_averages_skip_nulls_and_round(apiary_service, seed):
    user_id = seed.create_user()
    apiary_id = seed.create_apiary(user_id)
    seed.create_hive("HIVE-1", user_id, apiary_id=apiary_id)
    seed.create_hive("HIVE-2", user_id, apiary_id=apiary_id)
    seed.insert_reading("HIVE-1", temp_value=34.0, hum_value=50.0)
    seed.insert_reading("HIVE-2", temp_value=35.25, hum_value=None, weight_value=20.06)

    apiary = apiary_service.get_apiary(user_id, apiary_id)
    assert apiary["hiveCount"] == 2
    assert apiary["avgTemperature"] == 34.6
    assert apiary["avgHumidity"] == 50
    assert apiary["avgSound"] is None
    assert apiary["avgWeight"] == 20.1


def test_pagination_clamps_and_counts(apiary_service, seed):
    user_id = seed.create_user()
    for index in range(12):
        seed.create_apiary(user_id, f"Apiary {index:02d}")

    page = apiary_service.list_apiaries(user_id, page=2, page_size=5)
    assert page["count"] == 12
    assert page["page"] == 2
    assert page["pageSize"] == 5
    assert page["totalPages"] == 3
    assert [a["name"] for a in page["data"]] == [f"Apiary {i:02d}" for i in range(5, 10)]

    clamped = apiary_service.list_apiaries(user_id, page=0, page_size=500)
    assert clamped["page"] == 1
    assert clamped["pageSize"] == 50
    assert len(clamped["data"]) == 12

    garbage = apiary_service.list_apiaries(user_id, page="abc", page_size=None)
    assert garbage["page"] == 1
    assert garbage["pageSize"] == 10


def test_apiaries_are_scoped_to_their_owner(apiary_service, seed):
    owner = seed.create_user("owner")
    other = seed.create_user("other")
    apiary_id = seed.create_apiary(owner)

    assert apiary_service.list_all(other) == []
    with pytest.raises(NotFoundError):
        apiary_service.get_apiary(other, apiary_id)
    with pytest.raises(NotFoundError):
        apiary_service.update_apiary(other, apiary_id, {"name": "Mine now"})
    with pytest.raises(NotFoundError):
        apiary_service.delete_apiary(other, apiary_id)


def test_update_rejects_blank_fields(apiary_service, seed):
    user_id = seed.create_user()
    apiary_id = seed.create_apiary(user_id)
    with pytest.raises(ValidationError):
        apiary_service.update_apiary(user_id, apiary_id, {"location": "  "})
    assert apiary_service.update_apiary(user_id, apiary_id, {"notes": "Near the river"})["notes"] == "Near the river"


def test_delete_apiary_detaches_hives(apiary_service, hive_repo, seed):
    user_id = seed.create_user()
    apiary_id = seed.create_apiary(user_id)
    seed.create_hive("HIVE-1", user_id, apiary_id=apiary_id)

    assert apiary_service.delete_apiary(user_id, apiary_id) is True
    hive = hive_repo.get("HIVE-1", user_id)
    assert hive is not None
    assert hive["apiary_id"] is None
