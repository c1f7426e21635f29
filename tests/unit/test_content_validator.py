"""Unit tests for ContentSchemaValidator and the per-type semantic checks."""

import pytest

from cybertrain.engines.modules.content_validator import ContentCheck, ContentSchemaValidator
from cybertrain.kernel.models.content import QuizContent
from cybertrain.kernel.models.module import ActivityType, ContentSchema


@pytest.fixture
def validator() -> ContentSchemaValidator:
    return ContentSchemaValidator()


def question(**overrides):
    data = {
        "id": "q1",
        "question": "Who owns the wallet?",
        "type": "multiple_choice",
        "options": ["Suspect", "Victim"],
        "correctAnswer": "Suspect",
        "explanation": "Exchange KYC records name the suspect.",
    }
    data.update(overrides)
    return data


class TestSchemaRegistry:
    """Tests for default schemas and registry operations."""

    def test_default_schema_per_activity_type(self, validator):
        ids = {schema.id for schema in validator.get_schemas()}
        assert ids == {t.value for t in ActivityType}

    def test_default_schema_rules_use_authoring_names(self, validator):
        rules = validator.get_schema("quiz").rules
        assert "passingScore" in rules["properties"]

    def test_unknown_schema(self, validator):
        result = validator.validate_content({}, "nope")
        assert result.is_valid is False
        assert result.errors == ["Schema 'nope' not found"]

    def test_inactive_schema(self, validator, quiz_content):
        assert validator.set_schema_active("quiz", False) is True
        result = validator.validate_content(quiz_content(), "quiz")
        assert result.errors == ["Schema 'quiz' is not active"]
        assert validator.set_schema_active("quiz", True) is True
        assert validator.validate_content(quiz_content(), "quiz").is_valid is True

    def test_set_active_on_unknown_schema(self, validator):
        assert validator.set_schema_active("nope", False) is False

    def test_validator_without_defaults(self):
        assert ContentSchemaValidator(register_defaults=False).get_schemas() == []

    def test_validate_multiple_keeps_order(self, validator, quiz_content):
        results = validator.validate_multiple([(quiz_content(), "quiz"), ({}, "missing")])
        assert [r.schema_id for r in results] == ["quiz", "missing"]
        assert [r.is_valid for r in results] == [True, False]


class TestCustomValidators:
    """Tests for schemas driven only by registered validators."""

    @pytest.fixture
    def evidence(self, validator):
        validator.register_schema(ContentSchema(id="evidence", name="Evidence", activity_type="generic"))
        return validator

    def test_schema_without_model_accepts_anything(self, evidence):
        assert evidence.validate_content({"anything": 1}, "evidence").is_valid is True

    def test_validator_dict_outcome(self, evidence):
        evidence.register_validator(
            "evidence",
            lambda content, schema: {"errors": [] if "hash" in content else ["Evidence must carry a hash"],
                                     "warnings": ["Chain of custody not recorded"]},
        )
        result = evidence.validate_content({}, "evidence")
        assert result.errors == ["Evidence must carry a hash"]
        assert result.warnings == ["Chain of custody not recorded"]

    def test_validator_returning_none_is_ignored(self, evidence):
        evidence.register_validator("evidence", lambda content, schema: None)
        assert evidence.validate_content({}, "evidence").is_valid is True

    def test_raising_validator_becomes_error(self, evidence):
        def broken(content, schema):
            raise KeyError("hash")

        evidence.register_validator("evidence", broken)
        result = evidence.validate_content({}, "evidence")
        assert result.is_valid is False
        assert result.errors[0].startswith("Custom validator error:")

    @pytest.mark.parametrize("outcome", [True, "looks fine", ["ok"]])
    def test_malformed_result_becomes_error(self, validator, quiz_content, outcome):
        validator.register_validator("quiz", lambda content, schema: outcome)
        result = validator.validate_content(quiz_content(), "quiz")
        assert result.is_valid is False
        assert result.errors == ["Custom validator returned invalid result"]

    def test_later_validators_still_run_after_malformed_result(self, evidence):
        evidence.register_validator("evidence", lambda content, schema: 42)
        evidence.register_validator("evidence", lambda content, schema: {"warnings": ["No examiner signature"]})
        result = evidence.validate_content({}, "evidence")
        assert result.errors == ["Custom validator returned invalid result"]
        assert result.warnings == ["No examiner signature"]

    def test_validators_run_after_builtin_checks(self, validator, quiz_content):
        validator.register_validator("quiz", lambda content, schema: ContentCheck(warnings=["Reviewed by legal?"]))
        result = validator.validate_content(quiz_content(), "quiz")
        assert result.is_valid is True
        assert result.warnings == ["Reviewed by legal?"]


class TestQuizContent:
    """Tests for quiz structure and semantics."""

    def test_valid_quiz(self, validator, quiz_content):
        result = validator.validate_content(quiz_content(), "quiz")
        assert result.is_valid is True
        assert result.warnings == []
        assert result.schema_version == "1.0.0"
        assert isinstance(result.parsed, QuizContent)
        assert "parsed" not in result.model_dump()

    def test_snake_case_keys_accepted(self, validator):
        snake = question()
        snake["correct_answer"] = snake.pop("correctAnswer")
        content = {"questions": [snake], "passing_score": 0.5}
        assert validator.validate_content(content, "quiz").is_valid is True

    def test_missing_questions(self, validator):
        result = validator.validate_content({"passingScore": 0.7}, "quiz")
        assert result.is_valid is False
        assert any(error.startswith("questions:") for error in result.errors)

    def test_passing_score_out_of_range(self, validator):
        result = validator.validate_content({"questions": [question()], "passingScore": 1.5}, "quiz")
        assert any(error.startswith("passingScore:") for error in result.errors)

    def test_multiple_choice_rules(self, validator):
        content = {"questions": [question(options=["Only"], correctAnswer=None)], "passingScore": 0.7}
        result = validator.validate_content(content, "quiz")
        assert result.errors == [
            "Question 1: Multiple choice question must have a correct answer",
            "Question 1: Multiple choice question must have at least 2 options",
        ]

    def test_options_only_checked_for_multiple_choice(self, validator):
        content = {
            "questions": [question(type="text_input", options=[], correctAnswer="4111")],
            "passingScore": 0.7,
        }
        assert validator.validate_content(content, "quiz").is_valid is True

    def test_drag_drop_needs_answer_list(self, validator):
        content = {"questions": [question(type="drag_drop", correctAnswer="a")], "passingScore": 0.7}
        result = validator.validate_content(content, "quiz")
        assert result.errors == ["Question 1: Drag-drop question must have array of correct answers"]

    def test_missing_explanation_is_warning(self, validator):
        content = {"questions": [question(explanation=None)], "passingScore": 0.7}
        result = validator.validate_content(content, "quiz")
        assert result.is_valid is True
        assert result.warnings == ["Question 1: Consider adding an explanation for better learning"]


class TestSimulationContent:
    """Tests for simulation interaction graphs."""

    def test_dangling_and_unreachable_interactions(self, validator):
        content = {
            "type": "dialog",
            "scenario": {"title": "Romance scam call", "description": "Victim calls the hotline"},
            "interactions": [
                {"id": "i1", "type": "prompt", "prompt": "Greet the caller", "nextInteractionId": "i2"},
                {
                    "id": "i2",
                    "type": "choice",
                    "prompt": "Ask about the transfer",
                    "options": [{"text": "Ask amount", "nextInteractionId": "ghost"}],
                },
                {"id": "i3", "type": "prompt", "prompt": "Close the call"},
            ],
        }
        result = validator.validate_content(content, "simulation")
        assert result.errors == ["Interaction 2: References non-existent interaction 'ghost'"]
        assert result.warnings == ["Interaction 'i3' may be unreachable"]

    def test_option_links_make_interactions_reachable(self, validator):
        content = {
            "type": "decision",
            "scenario": {"title": "Seizure", "description": "Decide what to image first"},
            "interactions": [
                {"id": "i1", "type": "choice", "prompt": "Pick", "options": [{"nextInteractionId": "i2"}]},
                {"id": "i2", "type": "prompt", "prompt": "Done"},
            ],
        }
        result = validator.validate_content(content, "simulation")
        assert result.is_valid is True
        assert result.warnings == []


class TestReadingContent:
    """Tests for reading sections and time estimates."""

    def test_reading_checks(self, validator):
        content = {
            "content": {
                "sections": [
                    {"id": "s1", "title": "Phishing kits", "content": "word " * 450},
                    {"id": "s2", "title": "Recorded call", "content": "Listen", "type": "video", "duration": 2},
                ],
                "estimatedReadingTime": 20,
            }
        }
        result = validator.validate_content(content, "reading")
        assert result.errors == ["Section 2: video section must have a mediaUrl"]
        assert result.warnings == [
            "Section 1: Consider adding estimated reading time (3 minutes)",
            "Estimated reading time (20 min) differs significantly from calculated time (5 min)",
        ]

    def test_estimate_within_tolerance(self, validator):
        content = {
            "content": {
                "sections": [{"id": "s1", "title": "Intro", "content": "Short text", "duration": 4}],
                "estimatedReadingTime": 8,
            }
        }
        result = validator.validate_content(content, "reading")
        assert result.is_valid is True
        assert result.warnings == []


class TestInteractiveContent:
    """Tests for interactive component configuration."""

    def test_required_config_and_interactions(self, validator):
        content = {
            "components": [
                {"id": "c1", "type": "map", "config": {}},
                {"id": "c2", "type": "timeline", "config": {"events": [1]}, "interactions": ["drag"]},
            ]
        }
        result = validator.validate_content(content, "interactive")
        assert result.errors == ["Component 1: Map component must have mapData configuration"]
        assert result.warnings == ["Component 1: Consider adding interactions for better engagement"]

    def test_unknown_component_type(self, validator):
        result = validator.validate_content({"components": [{"id": "c1", "type": "radar"}]}, "interactive")
        assert result.is_valid is False


class TestDragDropContent:
    """Tests for categorisation references."""

    def test_category_references(self, validator):
        content = {
            "categories": [{"id": "c1", "name": "Phishing"}, {"id": "c2", "name": "Smishing"}],
            "items": [
                {"id": "t1", "text": "Fake bank email", "category": "c1"},
                {"id": "t2", "text": "Parcel SMS", "category": "ghost"},
            ],
        }
        result = validator.validate_content(content, "dragdrop")
        assert result.errors == ["Item 2: References non-existent category 'ghost'"]
        assert result.warnings == ["Category 'c2' has no items"]

    def test_needs_two_categories(self, validator):
        content = {"categories": [{"id": "c1", "name": "Only"}], "items": [{"id": "t1", "text": "x", "category": "c1"}]}
        assert validator.validate_content(content, "dragdrop").is_valid is False


class TestRoleplayContent:
    """Tests for dialog trees."""

    def test_dialog_tree_references(self, validator):
        content = {
            "title": "Interview a money mule",
            "dialogTree": {
                "startNodeId": "n1",
                "nodes": [
                    {
                        "id": "n1",
                        "speaker": "suspect",
                        "text": "I just moved money for a friend.",
                        "options": [
                            {"text": "Which friend?", "nextNodeId": "n2"},
                            {"text": "Show me the app", "nextNodeId": "ghost"},
                        ],
                    },
                    {"id": "n2", "speaker": "suspect", "text": "Someone online."},
                    {"id": "n3", "speaker": "suspect", "text": "Never reached."},
                ],
            },
        }
        result = validator.validate_content(content, "roleplay")
        assert result.errors == ["Node 1: References non-existent node 'ghost'"]
        assert result.warnings == ["Node 'n3' may be unreachable"]

    def test_missing_start_node(self, validator):
        content = {
            "title": "Broken",
            "dialogTree": {"startNodeId": "zz", "nodes": [{"id": "n1", "speaker": "a", "text": "hi"}]},
        }
        result = validator.validate_content(content, "roleplay")
        assert result.errors == ["Dialog tree start node 'zz' does not exist"]
        assert result.warnings == ["Node 'n1' may be unreachable"]
