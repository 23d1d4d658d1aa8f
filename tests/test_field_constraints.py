"""Tests for field constraint validation."""

from datetime import date, datetime

import pytest

from tinycms.metadata.loader import FieldDefinition, SelectOption
from tinycms.validation import FieldConstraintValidator, ValidationError, validate_data


def _messages(fields, candidate):
    return validate_data(fields, candidate).messages


# =============================================================================
# Required and defaults
# =============================================================================


class TestRequired:
    def test_missing_required_field(self):
        fields = [FieldDefinition(name="title", type="text", required=True)]
        assert _messages(fields, {}) == ["title: Field is required"]

    def test_none_counts_as_missing(self):
        fields = [FieldDefinition(name="title", type="text", required=True)]
        assert _messages(fields, {"title": None}) == ["title: Field is required"]

    def test_whitespace_string_counts_as_missing(self):
        fields = [FieldDefinition(name="title", type="text", required=True)]
        assert _messages(fields, {"title": "   "}) == ["title: Field is required"]

    def test_two_missing_fields_give_two_errors(self):
        fields = [
            FieldDefinition(name="title", type="text", required=True),
            FieldDefinition(name="body", type="richtext", required=True),
        ]
        result = validate_data(fields, {})
        assert not result.valid
        assert len(result.errors) == 2
        assert [e.field for e in result.errors] == ["title", "body"]

    def test_optional_missing_field_passes(self):
        fields = [FieldDefinition(name="subtitle", type="text")]
        result = validate_data(fields, {})
        assert result.valid
        assert "subtitle" not in result.data

    def test_optional_empty_string_skips_constraints(self):
        fields = [FieldDefinition(name="contact", type="email")]
        assert validate_data(fields, {"contact": ""}).valid

    def test_empty_list_counts_as_missing_for_required_multiple(self):
        fields = [
            FieldDefinition(name="tags", type="select", options=("a",), multiple=True, required=True)
        ]
        assert _messages(fields, {"tags": []}) == ["tags: Field is required"]


class TestDefaults:
    def test_default_substituted_for_absent_field(self):
        fields = [FieldDefinition(name="status", type="select", options=("draft", "live"), default_value="draft")]
        result = validate_data(fields, {})
        assert result.valid
        assert result.data["status"] == "draft"

    def test_default_satisfies_required(self):
        fields = [FieldDefinition(name="published", type="checkbox", required=True, default_value=False)]
        result = validate_data(fields, {"published": None})
        assert result.valid
        assert result.data["published"] is False

    def test_provided_value_wins_over_default(self):
        fields = [FieldDefinition(name="views", type="number", default_value=0)]
        assert validate_data(fields, {"views": 5}).data["views"] == 5

    def test_default_is_validated(self):
        fields = [FieldDefinition(name="views", type="number", min=1, default_value=0)]
        assert _messages(fields, {}) == ["views: Minimum value is 1"]

    def test_input_not_mutated(self):
        fields = [FieldDefinition(name="views", type="number", default_value=0)]
        candidate = {}
        validate_data(fields, candidate)
        assert candidate == {}


# =============================================================================
# Kind constraints
# =============================================================================


class TestText:
    def test_non_string_rejected(self):
        fields = [FieldDefinition(name="title", type="text")]
        assert _messages(fields, {"title": 42}) == ["title: Expected string"]

    def test_min_length(self):
        fields = [FieldDefinition(name="title", type="text", min_length=3)]
        assert _messages(fields, {"title": "ab"}) == ["title: Minimum length is 3"]

    def test_max_length(self):
        fields = [FieldDefinition(name="title", type="text", max_length=5)]
        assert _messages(fields, {"title": "too long"}) == ["title: Maximum length is 5"]

    def test_length_within_bounds(self):
        fields = [FieldDefinition(name="title", type="text", min_length=1, max_length=5)]
        assert validate_data(fields, {"title": "ok"}).valid


class TestEmail:
    def test_valid_email(self):
        fields = [FieldDefinition(name="email", type="email")]
        assert validate_data(fields, {"email": "a.person@example.com"}).valid

    def test_invalid_email(self):
        fields = [FieldDefinition(name="email", type="email")]
        assert _messages(fields, {"email": "not-an-email"}) == ["email: Invalid email address"]

    def test_email_length_checked_too(self):
        fields = [FieldDefinition(name="email", type="email", max_length=5)]
        assert _messages(fields, {"email": "bad-address"}) == [
            "email: Invalid email address",
            "email: Maximum length is 5",
        ]


class TestNumber:
    def test_bool_is_not_a_number(self):
        fields = [FieldDefinition(name="views", type="number")]
        assert _messages(fields, {"views": True}) == ["views: Expected number"]

    def test_numeric_string_rejected(self):
        fields = [FieldDefinition(name="views", type="number")]
        assert _messages(fields, {"views": "12"}) == ["views: Expected number"]

    def test_bounds(self):
        fields = [FieldDefinition(name="rating", type="number", min=1, max=5)]
        assert _messages(fields, {"rating": 0}) == ["rating: Minimum value is 1"]
        assert _messages(fields, {"rating": 6}) == ["rating: Maximum value is 5"]
        assert validate_data(fields, {"rating": 4.5}).valid


class TestCheckbox:
    def test_accepts_bool(self):
        fields = [FieldDefinition(name="published", type="checkbox")]
        assert validate_data(fields, {"published": False}).valid

    def test_rejects_int(self):
        fields = [FieldDefinition(name="published", type="checkbox")]
        assert _messages(fields, {"published": 1}) == ["published: Expected boolean"]


class TestDate:
    @pytest.mark.parametrize(
        "value",
        ["2024-05-01", "2024-05-01T10:30:00Z", "2024-05-01T10:30:00.123+02:00", date(2024, 5, 1), datetime(2024, 5, 1, 10)],
    )
    def test_valid_dates(self, value):
        fields = [FieldDefinition(name="publishedAt", type="date")]
        assert validate_data(fields, {"publishedAt": value}).valid

    @pytest.mark.parametrize("value", ["yesterday", "2024-13-01", "01/05/2024", 20240501])
    def test_invalid_dates(self, value):
        fields = [FieldDefinition(name="publishedAt", type="date")]
        result = validate_data(fields, {"publishedAt": value})
        assert not result.valid
        assert result.errors[0].code == "INVALID_DATE"


class TestSelect:
    def test_valid_option(self):
        fields = [FieldDefinition(name="status", type="select", options=("draft", "live"))]
        assert validate_data(fields, {"status": "live"}).valid

    def test_invalid_option_lists_choices(self):
        fields = [FieldDefinition(name="status", type="select", options=("draft", "live"))]
        assert _messages(fields, {"status": "archived"}) == [
            "status: Invalid option 'archived'. Expected one of: draft, live"
        ]

    def test_label_value_options(self):
        fields = [
            FieldDefinition(
                name="status",
                type="select",
                options=({"label": "Draft", "value": "draft"}, SelectOption(value="live", label="Live")),
            )
        ]
        assert validate_data(fields, {"status": "draft"}).valid

    def test_multiple_requires_list(self):
        fields = [FieldDefinition(name="tags", type="select", options=("a", "b"), multiple=True)]
        assert _messages(fields, {"tags": "a"}) == ["tags: Expected array"]

    def test_multiple_reports_item_index(self):
        fields = [FieldDefinition(name="tags", type="select", options=("a", "b"), multiple=True)]
        assert _messages(fields, {"tags": ["a", "c", "b", "d"]}) == [
            "tags.1: Invalid option 'c'. Expected one of: a, b",
            "tags.3: Invalid option 'd'. Expected one of: a, b",
        ]


class TestRelation:
    def test_string_and_int_ids(self):
        fields = [FieldDefinition(name="author", type="relation", relation_to="users")]
        assert validate_data(fields, {"author": "u1"}).valid
        assert validate_data(fields, {"author": 7}).valid

    def test_object_rejected(self):
        fields = [FieldDefinition(name="author", type="relation", relation_to="users")]
        assert _messages(fields, {"author": {"id": "u1"}}) == ["author: Expected a document id"]

    def test_multiple_relation(self):
        fields = [FieldDefinition(name="categories", type="relation", relation_to="categories", multiple=True)]
        assert validate_data(fields, {"categories": ["c1", "c2"]}).valid
        assert _messages(fields, {"categories": ["c1", None]}) == [
            "categories.1: Expected a document id"
        ]


# =============================================================================
# Whole-document behaviour
# =============================================================================


class TestValidateData:
    def test_unknown_keys_pass_through(self):
        fields = [FieldDefinition(name="title", type="text")]
        result = validate_data(fields, {"title": "x", "extra": [1, 2], "id": "abc"})
        assert result.valid
        assert result.data == {"title": "x", "extra": [1, 2], "id": "abc"}

    def test_errors_accumulate_across_fields(self):
        fields = [
            FieldDefinition(name="title", type="text", min_length=5),
            FieldDefinition(name="views", type="number"),
            FieldDefinition(name="email", type="email", required=True),
        ]
        result = validate_data(fields, {"title": "abc", "views": "many"})
        assert result.messages == [
            "title: Minimum length is 5",
            "views: Expected number",
            "email: Field is required",
        ]

    def test_structured_errors(self):
        fields = [FieldDefinition(name="title", type="text", required=True)]
        error = validate_data(fields, {}).errors[0]
        assert error == ValidationError(field="title", message="Field is required", code="REQUIRED")
        assert str(error) == "title: Field is required"
        assert error.to_dict()["code"] == "REQUIRED"

    def test_single_field_validator(self):
        validator = FieldConstraintValidator(FieldDefinition(name="n", type="number", max=1))
        data = {}
        assert validator.validate({"n": 2}, data)[0].code == "MAX_VALUE"
