"""Tests for the entity merge fold."""

from solo_notation.models import Location, MetaNote, Scene, Session, TextLine
from solo_notation.parser import apply_tag_diff, collect_mentions, merge_mentions, scan_mentions


def _loc(line: int) -> Location:
    return Location(file="Camp.md", line_number=line, session="Session 1", scene="S1")


def _merge(*texts: str) -> dict:
    mentions = []
    for line, text in enumerate(texts):
        mentions.extend(scan_mentions(text, _loc(line)))
    return merge_mentions(mentions)


# ── apply_tag_diff ─────────────────────────────────────────


def test_apply_tag_diff_adds_once():
    assert apply_tag_diff(["a"], ("a", "b", "b")) == ["a", "b"]


def test_apply_tag_diff_removes():
    assert apply_tag_diff(["friendly", "armed"], ("-friendly",)) == ["armed"]


def test_apply_tag_diff_replaces_keyed_tag():
    assert apply_tag_diff(["mood=angry", "armed"], ("mood=calm",)) == ["armed", "mood=calm"]


def test_apply_tag_diff_does_not_mutate_input():
    existing = ["a"]
    apply_tag_diff(existing, ("-a",))
    assert existing == ["a"]


# ── merge_mentions ─────────────────────────────────────────


def test_single_mention_keeps_tag_order():
    merged = _merge("[N:Grim|scarred|friendly]")
    grim = merged["npcs"]["npc:grim"]
    assert grim.tags == ["scarred", "friendly"]
    assert len(grim.mentions) == 1
    assert grim.first_mention == _loc(0)


def test_repeated_identical_mention():
    merged = _merge("[N:Grim|friendly]", "[N:Grim|friendly]")
    grim = merged["npcs"]["npc:grim"]
    assert grim.tags == ["friendly"]
    assert len(grim.mentions) == 2


def test_tag_removal():
    merged = _merge("[N:Jonah|friendly]", "[N:Jonah|-friendly|captured]")
    assert merged["npcs"]["npc:jonah"].tags == ["captured"]


def test_duplicate_tags_in_first_mention():
    merged = _merge("[N:Grim|a|a|-b]")
    assert merged["npcs"]["npc:grim"].tags == ["a"]


def test_name_and_first_mention_come_from_first_occurrence():
    merged = _merge("[L:Old Mill|burned]", "[L:old mill]")
    mill = merged["locations"]["location:old mill"]
    assert mill.name == "Old Mill"
    assert mill.first_mention == _loc(0)
    assert mill.mentions == [_loc(0), _loc(1)]
    assert mill.tags == ["burned"]


def test_thread_state_last_write_wins():
    merged = _merge("[Thread:X|Open]", "[Thread:X|Closed]")
    thread = merged["threads"]["thread:x"]
    assert thread.state == "Closed"
    assert len(thread.mentions) == 2


def test_clock_overwrites():
    merged = _merge("[Clock:Ritual 3/6]", "[Clock:Ritual|4/6]")
    clock = merged["clocks"]["clock:ritual"]
    assert (clock.current, clock.total) == (4, 6)
    assert len(clock.locations) == 2


def test_track_and_event_kept_apart_from_clocks():
    merged = _merge("[Track:Ritual 1/4] [E:Ritual 2/8] [Clock:Ritual 3/6]")
    assert merged["tracks"]["track:ritual"].total == 4
    assert merged["events"]["event:ritual"].total == 8
    assert merged["clocks"]["clock:ritual"].total == 6


def test_timer_overwrites():
    merged = _merge("[Timer:Dawn 3]", "[Timer:Dawn 2]")
    timer = merged["timers"]["timer:dawn"]
    assert timer.value == 2
    assert len(timer.locations) == 2


def test_reference_only_entity():
    merged = _merge("[#N:Shadow]")
    shadow = merged["npcs"]["npc:shadow"]
    assert shadow.tags == []
    assert len(shadow.mentions) == 1
    ref = merged["references"]["npc:shadow"]
    assert ref.id == "shadow"
    assert ref.type == "npc"


def test_reference_adds_mention_without_changing_tags():
    merged = _merge("[N:Grim|friendly]", "[#N:Grim]", "[#N:Grim]")
    grim = merged["npcs"]["npc:grim"]
    assert grim.tags == ["friendly"]
    assert len(grim.mentions) == 3
    assert len(merged["references"]["npc:grim"].mentions) == 2


def test_location_reference():
    merged = _merge("[#L:The Keep]")
    assert "location:the keep" in merged["locations"]
    assert merged["references"]["location:the keep"].type == "location"


def test_player_characters():
    merged = _merge("[PC:Ayla|wounded]", "[PC:Ayla|-wounded|rested]")
    assert merged["player_characters"]["pc:ayla"].tags == ["rested"]


def test_merge_nothing():
    merged = merge_mentions([])
    assert all(group == {} for group in merged.values())


# ── collect_mentions ───────────────────────────────────────


def test_collect_mentions_skips_meta_notes():
    scene = Scene(
        id="S2",
        elements=[
            MetaNote(line_number=5, category="note", content="[N:Ghost|rules]"),
            TextLine(line_number=6, content="[N:Grim]"),
        ],
        start_line=4,
        end_line=7,
    )
    session = Session(number=2, scenes=[scene], start_line=3, end_line=7)
    mentions = collect_mentions([session], "Camp.md")
    assert [m.key for m in mentions] == ["npc:grim"]
    assert mentions[0].location == Location(
        file="Camp.md", line_number=6, session="Session 2", scene="S2"
    )


def test_collect_mentions_uses_linked_file():
    scene = Scene(id="S1", elements=[TextLine(line_number=2, content="[L:Dock]")], start_line=1, end_line=3)
    session = Session(number=1, scenes=[scene], start_line=9, end_line=9, linked_file="Session 1.md")
    mentions = collect_mentions([session], "Camp.md")
    assert mentions[0].location.file == "Session 1.md"
    assert mentions[0].location.line_number == 2
