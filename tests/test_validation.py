"""
Tests for request models and validation error formatting.
"""
import pytest
from pydantic import ValidationError

from task_api.database import UNSET
from task_api.models import TaskCreate, TaskUpdate
from task_api.validation import to_error_items


class TestTaskCreate:
    def test_defaults(self):
        body = TaskCreate(name="x")
        assert body.info == ""
        assert body.isDone is False

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            TaskCreate(name="")

    def test_null_optional_fields_fall_back_to_defaults(self):
        body = TaskCreate.model_validate({"name": "x", "info": None, "isDone": None})
        assert body.info == ""
        assert body.isDone is False


class TestIdBounds:
    def test_update_id_over_64_bits_rejected(self):
        with pytest.raises(ValidationError):
            TaskUpdate.model_validate({"id": 2 ** 63})

    def test_update_id_at_64_bit_limit_accepted(self):
        assert TaskUpdate.model_validate({"id": 2 ** 63 - 1}).id == 2 ** 63 - 1


class TestTaskUpdate:
    def test_to_patch_marks_absent_fields_unset(self):
        patch = TaskUpdate.model_validate({"id": 3, "info": "new"}).to_patch()
        assert patch.name is UNSET
        assert patch.isDone is UNSET
        assert patch.changes() == {"info": "new"}

    def test_to_patch_keeps_falsy_values(self):
        patch = TaskUpdate.model_validate(
            {"id": 3, "name": "n", "info": "", "isDone": False}
        ).to_patch()
        assert patch.changes() == {"name": "n", "info": "", "isDone": False}

    def test_explicit_null_rejected(self):
        with pytest.raises(ValidationError):
            TaskUpdate.model_validate({"id": 1, "isDone": None})

    def test_id_required(self):
        with pytest.raises(ValidationError):
            TaskUpdate.model_validate({"name": "x"})


class TestToErrorItems:
    def test_missing_field_has_no_value(self):
        items = to_error_items([
            {"type": "missing", "loc": ("body", "name"), "msg": "Field required",
             "input": {"info": "x"}},
        ])
        assert len(items) == 1
        assert items[0].path == "name"
        assert items[0].location == "body"
        assert items[0].value is None

    def test_rejected_value_is_reported(self):
        items = to_error_items([
            {"type": "int_parsing", "loc": ("path", "id"),
             "msg": "Input should be a valid integer", "input": "abc"},
        ])
        assert items[0].location == "path"
        assert items[0].value == "abc"

    def test_nested_path_is_dotted(self):
        items = to_error_items([
            {"type": "string_type", "loc": ("body", "meta", 0), "msg": "bad", "input": 1},
        ])
        assert items[0].path == "meta.0"
