"""
Activity content payloads, one model per activity type.

Activity.content is stored as authored (a plain dict); it is parsed into the
model matching Activity.type before it is accepted into the catalog.
Authored content uses camelCase keys, so both spellings are accepted.
"""

from typing import Any, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cybertrain.kernel.models.module import ActivityType


class ContentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


# Quiz

class QuizQuestion(ContentModel):
    id: str
    question: str = Field(min_length=1)
    type: Literal["multiple_choice", "true_false", "text_input", "drag_drop"]
    options: List[Any] = Field(default_factory=list)
    correct_answer: Optional[Union[str, int, float, List[Any]]] = None
    points: Optional[float] = Field(default=None, ge=0)
    explanation: Optional[str] = None


class QuizContent(ContentModel):
    questions: List[QuizQuestion] = Field(min_length=1)
    passing_score: float = Field(ge=0, le=1)
    time_limit: Optional[float] = Field(default=None, ge=0)
    allow_retries: Optional[bool] = None
    max_attempts: Optional[int] = Field(default=None, ge=1)


# Simulation

class SimulationScenario(ContentModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    context: Optional[str] = None
    characters: List[Any] = Field(default_factory=list)


class SimulationInteraction(ContentModel):
    id: str
    type: str
    prompt: str = Field(min_length=1)
    options: List[Any] = Field(default_factory=list)
    correct_response: Any = None
    time_limit: Optional[float] = Field(default=None, ge=0)
    points: Optional[float] = Field(default=None, ge=0)
    next_interaction_id: Optional[str] = None


class SimulationContent(ContentModel):
    type: Literal["dialog", "form", "decision", "timer", "interactive"]
    scenario: SimulationScenario
    interactions: List[SimulationInteraction] = Field(min_length=1)
    assets: List[Any] = Field(default_factory=list)
    outcomes: List[Any] = Field(default_factory=list)


# Reading

class ReadingSection(ContentModel):
    id: str
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    type: Literal["text", "video", "audio", "image", "interactive"] = "text"
    media_url: Optional[str] = None
    duration: Optional[float] = Field(default=None, ge=0)  # minutes


class ReadingBody(ContentModel):
    sections: List[ReadingSection] = Field(min_length=1)
    estimated_reading_time: Optional[float] = Field(default=None, ge=0)  # minutes
    knowledge_check: Optional[Dict[str, Any]] = None


class ReadingContent(ContentModel):
    content: ReadingBody


# Interactive

class InteractiveComponent(ContentModel):
    id: str
    type: Literal["map", "timeline", "diagram", "calculator", "form_builder"]
    config: Dict[str, Any] = Field(default_factory=dict)
    interactions: List[Any] = Field(default_factory=list)
    validation: Optional[Dict[str, Any]] = None


class InteractiveContent(ContentModel):
    components: List[InteractiveComponent] = Field(min_length=1)
    layout: Optional[Literal["single", "tabbed", "stepped"]] = None
    navigation: Optional[Dict[str, Any]] = None


# Drag and drop categorisation

class DragDropCategory(ContentModel):
    id: str
    name: str = Field(min_length=1)


class DragDropItem(ContentModel):
    id: str
    text: str = Field(min_length=1)
    category: str  # id of the correct category


class DragDropContent(ContentModel):
    instructions: Optional[str] = None
    categories: List[DragDropCategory] = Field(min_length=2)
    items: List[DragDropItem] = Field(min_length=1)


# Roleplay dialog tree

class DialogOption(ContentModel):
    text: str = Field(min_length=1)
    next_node_id: Optional[str] = None
    points: Optional[float] = None
    feedback: Optional[str] = None


class DialogNode(ContentModel):
    id: str
    speaker: str
    text: str = Field(min_length=1)
    options: List[DialogOption] = Field(default_factory=list)


class DialogTree(ContentModel):
    start_node_id: str
    nodes: List[DialogNode] = Field(min_length=1)


class RoleplayContent(ContentModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    dialog_tree: DialogTree


ActivityContent = Union[
    QuizContent,
    SimulationContent,
    ReadingContent,
    InteractiveContent,
    DragDropContent,
    RoleplayContent,
]

CONTENT_MODELS: Dict[ActivityType, Type[ContentModel]] = {
    ActivityType.QUIZ: QuizContent,
    ActivityType.SIMULATION: SimulationContent,
    ActivityType.READING: ReadingContent,
    ActivityType.INTERACTIVE: InteractiveContent,
    ActivityType.DRAGDROP: DragDropContent,
    ActivityType.ROLEPLAY: RoleplayContent,
}
