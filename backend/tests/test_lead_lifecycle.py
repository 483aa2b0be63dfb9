"""
Status transitions and field handling for leads (pure functions).
"""
from services import lead_lifecycle
from services.application_types import APPLICATION_TYPES, get_fields, list_application_types


class TestTransition:

    def test_any_status_may_follow_any_other(self):
        entry = lead_lifecycle.transition("PAID", "PENDING", None, "USR-1")
        assert entry["from_status"] == "PAID"
        assert entry["to_status"] == "PENDING"
        assert entry["notes"] == ""
        assert entry["changed_by"] == "USR-1"
        assert entry["timestamp"]

    def test_same_status_produces_no_entry(self):
        assert lead_lifecycle.transition("VERIFIED", "VERIFIED", "again", "USR-1") is None

    def test_missing_target_produces_no_entry(self):
        assert lead_lifecycle.transition("VERIFIED", None, None, "USR-1") is None

    def test_note_is_kept(self):
        entry = lead_lifecycle.transition("PENDING", "VERIFIED", "docs checked", "USR-1")
        assert entry["notes"] == "docs checked"


class TestFields:

    def test_falsy_values_dropped_and_order_kept(self):
        fields = lead_lifecycle.build_fields({"city": "Fresno", "zip": "", "state": "CA", "x": None})
        assert fields == [
            {"key": "city", "value": "Fresno"},
            {"key": "state", "value": "CA"},
        ]

    def test_empty_map(self):
        assert lead_lifecycle.build_fields(None) == []
        assert lead_lifecycle.build_fields({}) == []

    def test_attribute_updates_only_truthy(self):
        updates = lead_lifecycle.attribute_updates({
            "first_name": "Ann",
            "last_name": "",
            "email": None,
            "phone": "555-0100",
            "status": "PAID",
        })
        assert updates == {"first_name": "Ann", "phone": "555-0100"}


class TestApplicationTypes:

    def test_catalog_covers_all_types(self):
        assert list_application_types() == [
            "CA Wildfire", "Hair Relaxer", "Depo Provera", "Ride Share", "Roundup",
            "PFAS", "NEC", "Lung Cancer", "Paraquat", "LDS", "Talcum",
        ]

    def test_field_types_are_known(self):
        for fields in APPLICATION_TYPES.values():
            for field in fields:
                assert field["type"] in ("text", "date", "radio", "checkbox")
                assert field["key"] and field["label"]

    def test_unknown_type_has_no_fields(self):
        assert get_fields("Unknown") == []
        assert get_fields(None) == []

    def test_get_fields_returns_copies(self):
        fields = get_fields("PFAS")
        fields[0]["label"] = "changed"
        assert APPLICATION_TYPES["PFAS"][0]["label"] == "Diagnosis (Kidney / Testicular / etc.)"
