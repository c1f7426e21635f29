"""
Content schema validator.

Activity content is checked in two passes:
1. structural - parse into the pydantic model bound to the schema
   (errors carry the field path);
2. semantic - per activity type rules that a schema cannot express
   (dangling references, unreachable nodes, missing media, etc.).

Custom validators registered per schema ID run last and may add errors or
warnings. A raising custom validator, or one returning something that is not
a ContentCheck or a mapping of its fields, is recorded as an error, never
propagated.
"""

import math
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Type

from pydantic import BaseModel, Field, ValidationError

from cybertrain.kernel.models.content import (
    CONTENT_MODELS,
    DragDropContent,
    InteractiveContent,
    QuizContent,
    ReadingContent,
    RoleplayContent,
    SimulationContent,
)
from cybertrain.kernel.models.module import ActivityType, ContentSchema
from cybertrain.logging_config import get_logger

logger = get_logger(__name__)

WORDS_PER_MINUTE = 200
READING_TIME_TOLERANCE_MINUTES = 5
MEDIA_SECTION_TYPES = ("video", "audio", "image")

# Interactive component type -> config key it cannot work without
REQUIRED_COMPONENT_CONFIG: Dict[str, Tuple[str, str]] = {
    "map": ("mapData", "Map component must have mapData configuration"),
    "form_builder": ("fields", "Form builder component must have fields configuration"),
    "timeline": ("events", "Timeline component must have events configuration"),
}

_DESCRIPTIONS: Dict[ActivityType, str] = {
    ActivityType.QUIZ: "Schema for quiz activities",
    ActivityType.SIMULATION: "Schema for simulation activities",
    ActivityType.READING: "Schema for reading activities",
    ActivityType.INTERACTIVE: "Schema for interactive activities",
    ActivityType.DRAGDROP: "Schema for drag and drop categorisation activities",
    ActivityType.ROLEPLAY: "Schema for roleplay dialog activities",
}


class ContentCheck(BaseModel):
    """Errors and warnings from one semantic pass or custom validator."""

    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ContentValidationResult(ContentCheck):
    is_valid: bool
    schema_id: str
    schema_version: Optional[str] = None
    # Parsed content model when the structural pass succeeded
    parsed: Optional[BaseModel] = Field(default=None, exclude=True)


ContentValidator = Callable[[Mapping[str, Any], ContentSchema], Any]


def format_validation_errors(exc: ValidationError) -> List[str]:
    """Flatten a pydantic ValidationError into "path: message" strings."""
    messages = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{path}: {error['msg']}" if path else error["msg"])
    return messages


def _reachable(start: Optional[str], edges: Mapping[str, Iterable[str]]) -> Set[str]:
    seen: Set[str] = set()
    stack = [start] if start is not None else []
    while stack:
        node = stack.pop()
        if node in seen or node not in edges:
            continue
        seen.add(node)
        stack.extend(edges[node])
    return seen


def _option_targets(options: Iterable[Any]) -> List[str]:
    targets = []
    for option in options:
        if isinstance(option, Mapping):
            target = option.get("nextInteractionId", option.get("next_interaction_id"))
            if target:
                targets.append(target)
    return targets


# ----------------------------------------------------------------------
# Semantic checks, one per activity type
# ----------------------------------------------------------------------

def check_quiz(content: QuizContent) -> ContentCheck:
    check = ContentCheck()
    for n, question in enumerate(content.questions, start=1):
        if question.type == "multiple_choice":
            if question.correct_answer is None or question.correct_answer == "":
                check.errors.append(f"Question {n}: Multiple choice question must have a correct answer")
            if len(question.options) < 2:
                check.errors.append(f"Question {n}: Multiple choice question must have at least 2 options")
        elif question.type == "drag_drop" and not isinstance(question.correct_answer, list):
            check.errors.append(f"Question {n}: Drag-drop question must have array of correct answers")
        if not question.explanation:
            check.warnings.append(f"Question {n}: Consider adding an explanation for better learning")
    return check


def check_simulation(content: SimulationContent) -> ContentCheck:
    check = ContentCheck()
    ids = {interaction.id for interaction in content.interactions}
    edges: Dict[str, List[str]] = {}

    for n, interaction in enumerate(content.interactions, start=1):
        targets = _option_targets(interaction.options)
        if interaction.next_interaction_id:
            targets.insert(0, interaction.next_interaction_id)
        for target in targets:
            if target not in ids:
                check.errors.append(f"Interaction {n}: References non-existent interaction '{target}'")
        edges[interaction.id] = [t for t in targets if t in ids]

    reached = _reachable(content.interactions[0].id, edges)
    for interaction in content.interactions:
        if interaction.id not in reached:
            check.warnings.append(f"Interaction '{interaction.id}' may be unreachable")
    return check


def check_reading(content: ReadingContent) -> ContentCheck:
    check = ContentCheck()
    body = content.content
    calculated = 0.0

    for n, section in enumerate(body.sections, start=1):
        if section.type == "text":
            minutes = math.ceil(len(section.content.split()) / WORDS_PER_MINUTE)
            if section.duration is None:
                check.warnings.append(
                    f"Section {n}: Consider adding estimated reading time ({minutes} minutes)"
                )
            calculated += section.duration if section.duration is not None else minutes
        else:
            if section.type in MEDIA_SECTION_TYPES and not section.media_url:
                check.errors.append(f"Section {n}: {section.type} section must have a mediaUrl")
            calculated += section.duration or 0

    estimated = body.estimated_reading_time
    if estimated is not None and abs(estimated - calculated) > READING_TIME_TOLERANCE_MINUTES:
        check.warnings.append(
            f"Estimated reading time ({estimated:g} min) differs significantly "
            f"from calculated time ({calculated:g} min)"
        )
    return check


def check_interactive(content: InteractiveContent) -> ContentCheck:
    check = ContentCheck()
    for n, component in enumerate(content.components, start=1):
        required = REQUIRED_COMPONENT_CONFIG.get(component.type)
        if required is not None and not component.config.get(required[0]):
            check.errors.append(f"Component {n}: {required[1]}")
        if not component.interactions:
            check.warnings.append(f"Component {n}: Consider adding interactions for better engagement")
    return check


def check_dragdrop(content: DragDropContent) -> ContentCheck:
    check = ContentCheck()
    category_ids = {category.id for category in content.categories}
    used: Set[str] = set()
    for n, item in enumerate(content.items, start=1):
        if item.category not in category_ids:
            check.errors.append(f"Item {n}: References non-existent category '{item.category}'")
        used.add(item.category)
    for category in content.categories:
        if category.id not in used:
            check.warnings.append(f"Category '{category.id}' has no items")
    return check


def check_roleplay(content: RoleplayContent) -> ContentCheck:
    check = ContentCheck()
    tree = content.dialog_tree
    ids = {node.id for node in tree.nodes}
    if tree.start_node_id not in ids:
        check.errors.append(f"Dialog tree start node '{tree.start_node_id}' does not exist")

    edges: Dict[str, List[str]] = {}
    for n, node in enumerate(tree.nodes, start=1):
        targets = [o.next_node_id for o in node.options if o.next_node_id]
        for target in targets:
            if target not in ids:
                check.errors.append(f"Node {n}: References non-existent node '{target}'")
        edges[node.id] = [t for t in targets if t in ids]

    reached = _reachable(tree.start_node_id, edges)
    for node in tree.nodes:
        if node.id not in reached:
            check.warnings.append(f"Node '{node.id}' may be unreachable")
    return check


SEMANTIC_CHECKS: Dict[Type[BaseModel], Callable[[Any], ContentCheck]] = {
    QuizContent: check_quiz,
    SimulationContent: check_simulation,
    ReadingContent: check_reading,
    InteractiveContent: check_interactive,
    DragDropContent: check_dragdrop,
    RoleplayContent: check_roleplay,
}


class ContentSchemaValidator:
    """Registry of content schemas with structural, semantic and custom checks."""

    def __init__(self, register_defaults: bool = True):
        self._schemas: Dict[str, ContentSchema] = {}
        self._models: Dict[str, Type[BaseModel]] = {}
        self._validators: Dict[str, List[ContentValidator]] = {}
        if register_defaults:
            self._register_default_schemas()

    def _register_default_schemas(self) -> None:
        for activity_type, model in CONTENT_MODELS.items():
            schema = ContentSchema(
                id=activity_type.value,
                name=f"{activity_type.value.capitalize()} Content",
                version="1.0.0",
                activity_type=activity_type.value,
                description=_DESCRIPTIONS[activity_type],
                rules=model.model_json_schema(by_alias=True),
            )
            self.register_schema(schema, model)

    def register_schema(self, schema: ContentSchema, model: Optional[Type[BaseModel]] = None) -> None:
        """
        Register (or replace) a schema.

        model defaults to the built-in content model for schema.activity_type;
        schemas with neither only run custom validators.
        """
        self._schemas[schema.id] = schema
        if model is None:
            try:
                model = CONTENT_MODELS.get(ActivityType(schema.activity_type))
            except ValueError:
                model = None
        if model is not None:
            self._models[schema.id] = model
        else:
            self._models.pop(schema.id, None)
        logger.debug("Content schema registered", extra={"schema_id": schema.id})

    def register_validator(self, schema_id: str, validator: ContentValidator) -> None:
        self._validators.setdefault(schema_id, []).append(validator)

    def set_schema_active(self, schema_id: str, is_active: bool) -> bool:
        schema = self._schemas.get(schema_id)
        if schema is None:
            return False
        self._schemas[schema_id] = schema.with_active(is_active)
        return True

    def get_schemas(self) -> List[ContentSchema]:
        return list(self._schemas.values())

    def get_schema(self, schema_id: str) -> Optional[ContentSchema]:
        return self._schemas.get(schema_id)

    def validate_content(self, content: Mapping[str, Any], schema_id: str) -> ContentValidationResult:
        schema = self._schemas.get(schema_id)
        if schema is None:
            return ContentValidationResult(
                is_valid=False, schema_id=schema_id, errors=[f"Schema '{schema_id}' not found"]
            )
        if not schema.is_active:
            return ContentValidationResult(
                is_valid=False,
                schema_id=schema_id,
                schema_version=schema.version,
                errors=[f"Schema '{schema_id}' is not active"],
            )

        errors: List[str] = []
        warnings: List[str] = []
        parsed: Optional[BaseModel] = None

        model = self._models.get(schema_id)
        if model is not None:
            try:
                parsed = model.model_validate(content)
            except ValidationError as e:
                errors.extend(format_validation_errors(e))
            else:
                semantic = SEMANTIC_CHECKS.get(model)
                if semantic is not None:
                    check = semantic(parsed)
                    errors.extend(check.errors)
                    warnings.extend(check.warnings)

        for validator in self._validators.get(schema_id, []):
            try:
                outcome = validator(content, schema)
            except Exception as e:
                logger.exception("Custom content validator failed", extra={"schema_id": schema_id})
                errors.append(f"Custom validator error: {e}")
                continue
            if outcome is None:
                continue
            try:
                check = outcome if isinstance(outcome, ContentCheck) else ContentCheck.model_validate(outcome)
            except ValidationError:
                logger.warning(
                    "Custom content validator returned invalid result",
                    extra={"schema_id": schema_id, "result_type": type(outcome).__name__},
                )
                errors.append("Custom validator returned invalid result")
                continue
            errors.extend(check.errors)
            warnings.extend(check.warnings)

        return ContentValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            schema_id=schema_id,
            schema_version=schema.version,
            parsed=parsed,
        )

    def validate_multiple(
        self, contents: Iterable[Tuple[Mapping[str, Any], str]]
    ) -> List[ContentValidationResult]:
        """Validate (content, schema_id) pairs in order."""
        return [self.validate_content(content, schema_id) for content, schema_id in contents]
