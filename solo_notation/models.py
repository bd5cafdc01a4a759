"""Core domain models.

Every parser stage and the indexer operate on these types.
Pydantic is used for validation and serialisation at every data boundary;
the HTTP layer returns them as-is.

Line numbers are zero-based indices into the document the element or
mention was read from (a linked session document for linked sessions).
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

ElementType = Literal[
    "action",
    "oracle_question",
    "mechanics_roll",
    "oracle_result",
    "consequence",
    "table_lookup",
    "generator",
    "meta_note",
    "text",
]

EntityKind = Literal[
    "npc",
    "location",
    "thread",
    "pc",
    "clock",
    "track",
    "timer",
    "event",
    "reference",
]

ReferenceType = Literal["npc", "location"]

ChangeKind = Literal["created", "modified", "deleted", "renamed"]


# ---------------------------------------------------------------------------
# Notation elements (one per classified line)
# ---------------------------------------------------------------------------

class _Element(BaseModel):
    model_config = ConfigDict(frozen=True)

    line_number: int


class Action(_Element):
    type: Literal["action"] = "action"
    content: str


class OracleQuestion(_Element):
    type: Literal["oracle_question"] = "oracle_question"
    question: str


class MechanicsRoll(_Element):
    type: Literal["mechanics_roll"] = "mechanics_roll"
    roll: str
    outcome: str
    success: bool | None = None  # None when the outcome says neither


class OracleResult(_Element):
    type: Literal["oracle_result"] = "oracle_result"
    answer: str
    roll: str | None = None


class Consequence(_Element):
    type: Literal["consequence"] = "consequence"
    description: str


class TableLookup(_Element):
    type: Literal["table_lookup"] = "table_lookup"
    roll: str
    result: str


class Generator(_Element):
    type: Literal["generator"] = "generator"
    system: str
    result: str


class MetaNote(_Element):
    type: Literal["meta_note"] = "meta_note"
    category: str
    content: str


class TextLine(_Element):
    type: Literal["text"] = "text"
    content: str


NotationElement = Annotated[
    Union[
        Action,
        OracleQuestion,
        MechanicsRoll,
        OracleResult,
        Consequence,
        TableLookup,
        Generator,
        MetaNote,
        TextLine,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------

class Location(BaseModel):
    """Where a tag occurrence lives: enough to open the file and place a cursor."""

    model_config = ConfigDict(frozen=True)

    file: str
    line_number: int
    session: str  # "Session 3"
    scene: str  # "S2a"


class Scene(BaseModel):
    id: str
    context: str | None = None
    elements: list[NotationElement] = Field(default_factory=list)
    start_line: int
    end_line: int


class Session(BaseModel):
    number: int
    metadata: dict[str, str] = Field(default_factory=dict)
    scenes: list[Scene] = Field(default_factory=list)
    start_line: int
    end_line: int
    linked_file: str | None = None  # set when the body lives in another document

    @computed_field
    @property
    def label(self) -> str:
        return f"Session {self.number}"

    @computed_field
    @property
    def date(self) -> str | None:
        return self.metadata.get("Date")

    @computed_field
    @property
    def duration(self) -> str | None:
        return self.metadata.get("Duration")

    @computed_field
    @property
    def recap(self) -> str | None:
        return self.metadata.get("Recap")

    @computed_field
    @property
    def goals(self) -> str | None:
        return self.metadata.get("Goals")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

class EntityMention(BaseModel):
    """One tag occurrence, before merging.

    Only the fields relevant to `kind` are filled: tags for npc/location/pc,
    state for thread, current/total for clock/track/event, value for timer,
    ref_type for reference.
    """

    model_config = ConfigDict(frozen=True)

    kind: EntityKind
    key: str
    name: str
    location: Location
    tags: tuple[str, ...] = ()
    state: str | None = None
    current: int | None = None
    total: int | None = None
    value: int | None = None
    ref_type: ReferenceType | None = None


class TaggedEntity(BaseModel):
    """NPC, location or player character."""

    id: str
    name: str
    tags: list[str] = Field(default_factory=list)
    first_mention: Location
    mentions: list[Location] = Field(default_factory=list)


class Thread(BaseModel):
    id: str
    name: str
    state: str
    first_mention: Location
    mentions: list[Location] = Field(default_factory=list)


class ProgressEntity(BaseModel):
    """Clock, track or event: a fill-up counter."""

    id: str
    name: str
    current: int
    total: int
    locations: list[Location] = Field(default_factory=list)


class Timer(BaseModel):
    id: str
    name: str
    value: int
    locations: list[Location] = Field(default_factory=list)


class Reference(BaseModel):
    id: str
    name: str
    type: ReferenceType
    first_mention: Location
    mentions: list[Location] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Campaign
# ---------------------------------------------------------------------------

class Campaign(BaseModel):
    """One parsed campaign document. Rebuilt from scratch on every parse."""

    file: str
    title: str = "Untitled Campaign"
    front_matter: dict = Field(default_factory=dict)
    sessions: list[Session] = Field(default_factory=list)
    npcs: dict[str, TaggedEntity] = Field(default_factory=dict)
    locations: dict[str, TaggedEntity] = Field(default_factory=dict)
    threads: dict[str, Thread] = Field(default_factory=dict)
    clocks: dict[str, ProgressEntity] = Field(default_factory=dict)
    tracks: dict[str, ProgressEntity] = Field(default_factory=dict)
    timers: dict[str, Timer] = Field(default_factory=dict)
    events: dict[str, ProgressEntity] = Field(default_factory=dict)
    player_characters: dict[str, TaggedEntity] = Field(default_factory=dict)
    references: dict[str, Reference] = Field(default_factory=dict)

    @property
    def linked_files(self) -> list[str]:
        return [s.linked_file for s in self.sessions if s.linked_file]


class CampaignStats(BaseModel):
    sessions: int = 0
    scenes: int = 0
    npcs: int = 0
    locations: int = 0
    active_threads: int = 0
    progress_elements: int = 0
    table_lookups: int = 0
    generators: int = 0
    meta_notes: int = 0


class ChangeEvent(BaseModel):
    """A file-change notification from the host application."""

    kind: ChangeKind
    path: str
    old_path: str | None = None
