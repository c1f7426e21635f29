"""Unit tests for catalog entities: Activity, Module, ModuleSequence, ContentSchema."""

import pytest
from pydantic import ValidationError

from cybertrain.kernel.models.module import Activity, ContentSchema, Module, ModuleSequence


class TestActivity:
    """Tests for Activity validation and availability."""

    def test_valid_activity(self):
        assert Activity(title="Read the case file").validate().is_valid is True

    def test_collects_every_error(self):
        activity = Activity(
            id="a1",
            title=" ",
            passing_score=1.5,
            max_attempts=0,
            points=-5,
            time_limit=0,
            prerequisites=["a1"],
        )
        result = activity.validate()
        assert result.is_valid is False
        assert result.errors == [
            "Activity title is required",
            "Passing score must be between 0 and 1",
            "Maximum attempts must be at least 1",
            "Points cannot be negative",
            "Time limit must be positive",
            "Activity cannot be its own prerequisite",
        ]

    def test_is_available(self):
        activity = Activity(title="x", prerequisites=["a", "b"])
        assert activity.is_available(["a"]) is False
        assert activity.is_available(["a", "b", "c"]) is True


class TestModule:
    """Tests for Module operations."""

    def test_activities_kept_sorted(self):
        module = Module(
            title="m",
            activities=[Activity(id="second", title="2", order=2), Activity(id="first", title="1", order=1)],
        )
        assert [a.id for a in module.activities] == ["first", "second"]
        module.add_activity(Activity(id="zeroth", title="0", order=0))
        assert [a.id for a in module.activities] == ["zeroth", "first", "second"]

    def test_remove_and_get_activity(self):
        module = Module(title="m", activities=[Activity(id="a", title="a"), Activity(id="b", title="b")])
        module.remove_activity("a")
        assert module.get_activity("a") is None
        assert module.get_activity("b").id == "b"

    def test_total_points_and_available_activities(self):
        module = Module(
            title="m",
            activities=[
                Activity(id="a", title="a", points=10),
                Activity(id="b", title="b", points=15, prerequisites=["a"]),
            ],
        )
        assert module.get_total_points() == 25
        assert [a.id for a in module.get_available_activities([])] == ["a"]
        assert [a.id for a in module.get_available_activities(["a"])] == ["a", "b"]

    def test_validate_reports_module_and_activity_errors(self):
        module = Module(
            id="m1",
            title="",
            description="",
            prerequisites=["m1"],
            min_passing_score=2,
        )
        errors = module.validate().errors
        assert "Module title is required" in errors
        assert "Module description is required" in errors
        assert "Module must have at least one activity" in errors
        assert "Minimum passing score must be between 0 and 1" in errors
        assert "Module cannot be its own prerequisite" in errors

    def test_activity_errors_are_prefixed(self):
        module = Module(title="m", description="d", activities=[Activity(title="")])
        assert module.validate().errors == ["Activity 1: Activity title is required"]

    def test_updated_returns_validated_copy(self):
        module = Module(id="m", title="old", description="d")
        changed = module.updated({"title": "new"})
        assert changed.title == "new"
        assert module.title == "old"
        assert changed.id == "m"
        assert changed.updated_at >= module.updated_at

    def test_updated_rejects_unknown_and_immutable_fields(self):
        module = Module(title="m")
        with pytest.raises(ValueError):
            module.updated({"colour": "red"})
        with pytest.raises(ValueError):
            module.updated({"id": "other"})

    def test_updated_rejects_bad_types(self):
        with pytest.raises(ValidationError):
            Module(title="m").updated({"order": "first"})

    def test_to_json(self):
        data = Module(id="m", title="m", activities=[Activity(id="a", title="a")]).to_json()
        assert data["id"] == "m"
        assert data["activities"][0]["id"] == "a"
        assert data["difficulty"] == "beginner"
        assert isinstance(data["created_at"], str)


class TestModuleSequence:
    """Tests for sequences."""

    def test_estimated_duration_is_derived(self):
        sequence = ModuleSequence(
            title="Financial fraud track",
            modules=[Module(id="b", order=2, estimated_duration=30), Module(id="a", order=1, estimated_duration=45)],
        )
        assert sequence.estimated_duration == 75
        assert [m.id for m in sequence.modules] == ["a", "b"]
        sequence.add_module(Module(id="c", order=3, estimated_duration=15))
        assert sequence.estimated_duration == 90

    def test_next_available_module(self):
        sequence = ModuleSequence(
            modules=[Module(id="a", order=1), Module(id="b", order=2, prerequisites=["a"])]
        )
        assert sequence.get_next_available_module([]).id == "a"
        assert sequence.get_next_available_module(["a"]).id == "b"
        assert sequence.get_next_available_module(["a", "b"]) is None


class TestContentSchema:
    """Tests for schema immutability."""

    def test_frozen_except_active_toggle(self):
        schema = ContentSchema(id="quiz", name="Quiz")
        with pytest.raises(ValidationError):
            schema.name = "changed"
        inactive = schema.with_active(False)
        assert inactive.is_active is False
        assert schema.is_active is True
