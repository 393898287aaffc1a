from __future__ import annotations

import json
import os

import pytest

from app.domain.exceptions import ConflictError, NotFoundError, ValidationError
from app.services.application.settings_service import human_size


def test_human_size():
    assert human_size(512) == "512 B"
    assert human_size(2048) == "2.0 KB"
    assert human_size(5 * 1024 * 1024) == "5.0 MB"


class TestSections:
    def test_sections_are_created_with_defaults(self, settings_service, seed):
        user_id = seed.create_user()

        preferences = settings_service.get_section(user_id, "preferences")
        assert preferences["theme"] == "system"
        assert preferences["high_contrast"] is False
        assert "user_id" not in preferences

        thresholds = settings_service.get_section(user_id, "alert_thresholds")
        assert thresholds["temperature_min"] == 32
        assert thresholds["weight_max"] == 25

    def test_unknown_section(self, settings_service, seed):
        user_id = seed.create_user()
        with pytest.raises(NotFoundError):
            settings_service.get_section(user_id, "billing")
        with pytest.raises(NotFoundError):
            settings_service.update_section(user_id, "billing", {})

    def test_update_ignores_unknown_columns(self, settings_service, seed):
        user_id = seed.create_user()
        updated = settings_service.update_section(
            user_id, "notifications", {"sms_enabled": True, "user_id": 999, "carrier_pigeon": True}
        )
        assert updated["sms_enabled"] is True
        assert "carrier_pigeon" not in updated

    def test_validation(self, settings_service, seed):
        user_id = seed.create_user()
        with pytest.raises(ValidationError):
            settings_service.update_section(user_id, "profile", {"experience_level": "queen"})
        with pytest.raises(ValidationError):
            settings_service.update_section(user_id, "sharing", {"default_sharing_permission": "owner"})
        # 37 is above the stored default maximum of 36
        with pytest.raises(ValidationError, match="temperature"):
            settings_service.update_section(user_id, "alert_thresholds", {"temperature_min": 37})

        ok = settings_service.update_section(user_id, "alert_thresholds", {"temperature_min": 37, "temperature_max": 39})
        assert (ok["temperature_min"], ok["temperature_max"]) == (37, 39)

    def test_get_all_uses_export_keys(self, settings_service, seed):
        user_id = seed.create_user()
        assert set(settings_service.get_all(user_id)) == {
            "profile",
            "preferences",
            "notifications",
            "alertThresholds",
            "sharingPreferences",
        }


class TestSharing:
    def test_share_update_and_remove(self, settings_service, seed):
        owner = seed.create_user("owner")
        seed.create_user("friend")
        apiary_id = seed.create_apiary(owner, "Hillside")

        share = settings_service.share_apiary(owner, apiary_id, "friend", "edit")
        assert share["apiary_name"] == "Hillside"
        assert share["shared_with_username"] == "friend"
        assert share["permission"] == "edit"

        with pytest.raises(ConflictError):
            settings_service.share_apiary(owner, apiary_id, "friend")

        assert settings_service.update_share_permission(owner, share["id"], "admin") is True
        assert settings_service.list_shared_apiaries(owner)[0]["permission"] == "admin"

        assert settings_service.remove_share(owner, share["id"]) is True
        assert settings_service.list_shared_apiaries(owner) == []
        with pytest.raises(NotFoundError):
            settings_service.remove_share(owner, share["id"])

    def test_share_validation(self, settings_service, seed):
        owner = seed.create_user("owner")
        other = seed.create_user("other")
        apiary_id = seed.create_apiary(owner)

        with pytest.raises(ValidationError):
            settings_service.share_apiary(owner, apiary_id, "other", "owner")
        with pytest.raises(NotFoundError):
            settings_service.share_apiary(owner, apiary_id, "nobody")
        with pytest.raises(ValidationError):
            settings_service.share_apiary(owner, apiary_id, "owner")
        with pytest.raises(NotFoundError):
            settings_service.share_apiary(other, apiary_id, "owner")


class TestExportImport:
    def test_export_contains_user_data(self, settings_service, seed):
        user_id = seed.create_user()
        apiary_id = seed.create_apiary(user_id)
        seed.create_hive("HIVE-1", user_id, apiary_id=apiary_id)

        export = settings_service.export_user_data(user_id)
        assert export["version"] == "1.0"
        assert [a["id"] for a in export["apiaries"]] == [apiary_id]
        assert [h["hive_id"] for h in export["hives"]] == ["HIVE-1"]
        assert export["inspections"] == []
        assert export["harvests"] == []
        json.dumps(export, default=str)

    def test_import_restores_settings(self, settings_service, seed, mock_audit_logger):
        source = seed.create_user("source")
        target = seed.create_user("target")
        settings_service.update_section(source, "preferences", {"theme": "dark"})
        settings_service.update_section(source, "profile", {"first_name": "Wanjiru"})
        export = settings_service.export_user_data(source)

        result = settings_service.import_user_data(target, export)
        assert "preferences" in result["imported"]
        assert settings_service.get_section(target, "preferences")["theme"] == "dark"
        assert settings_service.get_section(target, "profile")["first_name"] == "Wanjiru"
        mock_audit_logger.log_event.assert_called()

    def test_import_requires_version_and_profile(self, settings_service, seed):
        user_id = seed.create_user()
        with pytest.raises(ValidationError):
            settings_service.import_user_data(user_id, {"profile": {"first_name": "x"}})
        with pytest.raises(ValidationError):
            settings_service.import_user_data(user_id, {"version": "1.0"})
        with pytest.raises(ValidationError):
            settings_service.import_user_data(user_id, ["not", "a", "dict"])


class TestBackups:
    def test_backup_writes_file_and_history(self, settings_service, seed):
        user_id = seed.create_user()
        seed.create_apiary(user_id)

        backup = settings_service.create_backup(user_id)
        assert os.path.exists(backup["file_path"])
        with open(backup["file_path"], encoding="utf-8") as handle:
            assert json.load(handle)["version"] == "1.0"

        history = settings_service.get_backup_history(user_id)
        assert [b["id"] for b in history] == [backup["id"]]
        assert history[0]["size"] == backup["size"]

    def test_database_stats(self, settings_service, seed):
        user_id = seed.create_user()
        apiary_id = seed.create_apiary(user_id)
        seed.create_hive("HIVE-1", user_id, apiary_id=apiary_id)
        seed.create_hive("HIVE-2", user_id, apiary_id=apiary_id)

        stats = settings_service.get_database_stats(user_id)
        assert stats["apiariesCount"] == 1
        assert stats["hivesCount"] == 2
        assert stats["inspectionsCount"] == 0
        assert stats["storageBytes"] > 0
        assert stats["storageUsed"].endswith("KB") or stats["storageUsed"].endswith("B")
