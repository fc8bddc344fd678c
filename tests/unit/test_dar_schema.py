"""
DAR schema validation: required structure, strict types, error wording.
"""
import copy

import pytest

from shared.dar.fallback import build_fallback_dar, local_mode_dar, skeleton_dar
from shared.dar.schema import is_valid_dar, validate_dar


class TestRequiredProperties:
    """Missing properties are reported against the object that should hold them."""

    def test_valid_document_passes(self, valid_dar):
        assert validate_dar(valid_dar) == []
        assert is_valid_dar(valid_dar)

    @pytest.mark.parametrize("field", ["client_name", "date_time", "language", "DAR", "adls", "observations", "follow_up"])
    def test_required_top_level_fields(self, valid_dar, field):
        del valid_dar[field]
        assert validate_dar(valid_dar) == [f"(root) must have required property '{field}'"]

    def test_dar_narrative_requires_all_three_parts(self, valid_dar):
        del valid_dar["DAR"]["Response"]
        assert validate_dar(valid_dar) == ["/DAR must have required property 'Response'"]

    def test_nutrition_requires_meal_and_intake(self, valid_dar):
        del valid_dar["adls"]["nutrition"]["intake"]
        assert validate_dar(valid_dar) == ["/adls/nutrition must have required property 'intake'"]

    def test_medication_requires_name(self, valid_dar):
        valid_dar["observations"]["medications"] = [{"dose": "5mg"}]
        assert validate_dar(valid_dar) == ["/observations/medications/0 must have required property 'name'"]

    def test_every_problem_is_reported(self, valid_dar):
        """Errors are collected, not stopped at the first one."""
        del valid_dar["adls"]
        valid_dar["DAR"]["Data"] = 5

        errors = validate_dar(valid_dar)

        assert sorted(errors) == ["(root) must have required property 'adls'", "/DAR/Data must be string"]


class TestStrictTypes:
    """Values are never coerced and null is not a substitute for absent."""

    def test_strings_are_not_coerced(self, valid_dar):
        valid_dar["client_name"] = 42
        assert validate_dar(valid_dar) == ["/client_name must be string"]

    def test_object_and_array_types(self, valid_dar):
        valid_dar["follow_up"] = "call the nurse"
        valid_dar["observations"]["medications"] = {"name": "Tylenol"}
        assert sorted(validate_dar(valid_dar)) == ["/follow_up must be object", "/observations/medications must be array"]

    def test_pain_scale_accepts_number_or_string(self, valid_dar):
        valid_dar["observations"]["pain"]["scale_0_10"] = "3"
        assert is_valid_dar(valid_dar)
        valid_dar["observations"]["pain"]["scale_0_10"] = 3.5
        assert is_valid_dar(valid_dar)
        valid_dar["observations"]["pain"]["scale_0_10"] = [3]
        assert validate_dar(valid_dar) == ["/observations/pain/scale_0_10 must be number,string"]

    def test_notify_flag_accepts_boolean_or_string(self, valid_dar):
        valid_dar["follow_up"]["notify_supervisor_RN"] = "yes"
        assert is_valid_dar(valid_dar)
        valid_dar["follow_up"]["notify_supervisor_RN"] = 1
        assert validate_dar(valid_dar) == ["/follow_up/notify_supervisor_RN must be boolean,string"]

    def test_optional_properties_may_be_absent(self, valid_dar):
        valid_dar.pop("psw_id", None)
        valid_dar.pop("errors_or_gaps", None)
        del valid_dar["adls"]["mobility"]
        valid_dar["observations"] = {}
        assert is_valid_dar(valid_dar)

    def test_null_optional_properties_are_rejected(self, valid_dar):
        valid_dar["psw_id"] = None
        valid_dar["adls"]["mobility"] = None
        valid_dar["observations"]["pain"]["scale_0_10"] = None
        valid_dar["errors_or_gaps"] = None

        errors = validate_dar(valid_dar)

        assert sorted(errors) == [
            "/adls/mobility must be string",
            "/errors_or_gaps must be array",
            "/observations/pain/scale_0_10 must be number,string",
            "/psw_id must be string",
        ]

    def test_errors_or_gaps_must_be_strings(self, valid_dar):
        valid_dar["errors_or_gaps"] = ["ok", 5]
        assert validate_dar(valid_dar) == ["/errors_or_gaps/1 must be string"]

    def test_non_object_reports_root_error(self):
        assert validate_dar(["not", "a", "dict"]) == ["(root) must be object"]


class TestSchemaContract:
    """Behaviour other modules rely on."""

    def test_unknown_keys_are_allowed(self, valid_dar):
        valid_dar["extra_notes"] = "anything"
        valid_dar["DAR"]["Summary"] = "extra"
        assert is_valid_dar(valid_dar)

    def test_validation_does_not_modify_document(self, valid_dar):
        before = copy.deepcopy(valid_dar)
        validate_dar(valid_dar)
        assert valid_dar == before

    def test_generated_documents_satisfy_schema(self, shift_data):
        assert is_valid_dar(build_fallback_dar(shift_data))
        assert is_valid_dar(skeleton_dar())
        assert is_valid_dar(local_mode_dar(shift_data))
