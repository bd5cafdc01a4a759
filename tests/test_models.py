"""Tests for solo_notation.models."""

import pytest
from pydantic import ValidationError

from solo_notation.models import (
    Action,
    Campaign,
    ChangeEvent,
    Location,
    MechanicsRoll,
    Scene,
    Session,
    TextLine,
)


class TestElements:
    def test_discriminated_union_from_dict(self) -> None:
        scene = Scene.model_validate({
            "id": "S1",
            "start_line": 3,
            "end_line": 9,
            "elements": [
                {"type": "action", "line_number": 4, "content": "I run"},
                {"type": "mechanics_roll", "line_number": 5, "roll": "2d10", "outcome": "Miss", "success": False},
                {"type": "text", "line_number": 6, "content": "Rain."},
            ],
        })
        assert [type(e) for e in scene.elements] == [Action, MechanicsRoll, TextLine]

    def test_unknown_element_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Scene.model_validate({
                "id": "S1", "start_line": 0, "end_line": 0,
                "elements": [{"type": "dialogue", "line_number": 0, "content": "x"}],
            })

    def test_elements_are_immutable(self) -> None:
        action = Action(line_number=1, content="I run")
        with pytest.raises(ValidationError):
            action.content = "I walk"

    def test_success_defaults_to_unknown(self) -> None:
        roll = MechanicsRoll(line_number=0, roll="2d6", outcome="7")
        assert roll.success is None

    def test_serialise_roundtrip(self) -> None:
        scene = Scene(id="T2-S5", context="Meanwhile", start_line=1, end_line=4,
                      elements=[Action(line_number=2, content="I wait")])
        assert Scene.model_validate(scene.model_dump()) == scene


class TestSession:
    def test_metadata_properties(self) -> None:
        session = Session(
            number=3, start_line=0, end_line=10,
            metadata={"Date": "2025-03-01", "Duration": "2h", "Recap": "Fled.", "Goals": "Hide"},
        )
        assert session.label == "Session 3"
        assert session.date == "2025-03-01"
        assert session.duration == "2h"
        assert session.recap == "Fled."
        assert session.goals == "Hide"

    def test_metadata_missing(self) -> None:
        session = Session(number=1, start_line=0, end_line=0)
        assert session.date is None
        assert session.linked_file is None

    def test_metadata_fields_are_serialised(self) -> None:
        session = Session(number=2, start_line=0, end_line=0, metadata={"Date": "2025-03-01"})
        dumped = session.model_dump()
        assert dumped["label"] == "Session 2"
        assert dumped["date"] == "2025-03-01"
        assert dumped["duration"] is None
        assert Session.model_validate(dumped) == session


class TestCampaign:
    def test_defaults(self) -> None:
        campaign = Campaign(file="Camp.md")
        assert campaign.title == "Untitled Campaign"
        assert campaign.sessions == []
        assert campaign.npcs == {}
        assert campaign.references == {}

    def test_linked_files(self) -> None:
        campaign = Campaign(file="Camp.md", sessions=[
            Session(number=1, start_line=4, end_line=4, linked_file="Session 1.md"),
            Session(number=2, start_line=6, end_line=20),
        ])
        assert campaign.linked_files == ["Session 1.md"]


def test_location_is_hashable() -> None:
    loc = Location(file="Camp.md", line_number=3, session="Session 1", scene="S1")
    assert loc in {loc}


def test_change_event_kind_validated() -> None:
    with pytest.raises(ValidationError):
        ChangeEvent(kind="moved", path="a.md")
    event = ChangeEvent(kind="renamed", path="b.md", old_path="a.md")
    assert event.old_path == "a.md"
