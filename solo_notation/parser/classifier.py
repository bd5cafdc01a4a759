"""Line classification: one notation line → one typed element.

Recognition order (first match wins):
  action            ▶ text  |  > text
  oracle_question   ? text
  mechanics_roll    d: 2d10 => Strong hit  |  🎲2<4  |  🎲5>3 F
  oracle_result     ⤷ (d6=4) Yes  |  -> Yes, but... (d6=4)
  consequence       ⇒ text  |  => text
  table_lookup      tbl: 1d100 => 45: An altar  |  📖 1d100 → An altar
  generator         gen: Names 2d6 => Shadowfen  |  📚 Names 2d6 → Shadowfen
  meta_note         (note: remember the supplies)
  text              anything else

Malformed lines never raise; they fall through to a text line.
"""

from __future__ import annotations

import re

from solo_notation.models import (
    Action,
    Consequence,
    Generator,
    MechanicsRoll,
    MetaNote,
    NotationElement,
    OracleQuestion,
    OracleResult,
    TableLookup,
    TextLine,
)

_ARROW = r"(?:=>|⇒|->|→)"

_ACTION = re.compile(r"^(?:▶|>)\s*(.*)$")
_QUESTION = re.compile(r"^\?\s*(.*)$")
_ROLL = re.compile(rf"^d:\s*(.*?)\s*{_ARROW}\s*(.*)$")
_DICE_PREFIX = re.compile(r"^🎲\s*(.*)$")
_DICE_ARROW = re.compile(rf"^(.*?)\s*{_ARROW}\s*(.*)$")
_DICE_COMPARE = re.compile(r"^(?P<roll>[^<>]+?)\s*(?P<cmp>[<>])\s*(?P<target>[^\s<>]+)(?:\s+(?P<flag>[SF]))?$")
_RESULT = re.compile(r"^(?:⤷|->)\s*(.*)$")
_LEADING_ROLL = re.compile(r"^\(([^)]*)\)\s*(.*)$")
_TRAILING_ROLL = re.compile(r"^(.*?)\s*\(((?:\d*d\d+|d%)[^)]*)\)$", re.IGNORECASE)
_CONSEQUENCE = re.compile(r"^(?:⇒|=>)\s*(.*)$")
_TABLE = re.compile(rf"^(?:tbl:|📖)\s*(.*?)\s*{_ARROW}\s*(.*)$")
_GENERATOR = re.compile(rf"^(?:gen:|📚)\s*(.*)\s*{_ARROW}\s*(.*)$")
_META = re.compile(r"^\(\s*([A-Za-z][\w-]*)\s*:\s*(.*?)\s*\)$")

_EXPLICIT_FLAG = re.compile(r"(?:^|\s)([SF])$")
_STRONG_HIT = re.compile(r"\bstrong hit\b")
_WEAK_HIT = re.compile(r"\bweak hit\b")
_FAILURE = re.compile(r"\b(?:fail\w*|miss(?:es|ed)?|unsuccessful)\b")
_SUCCESS = re.compile(r"\bsuccess\w*\b")

# Emoji presentation selector that some editors append to ▶ and friends
_VARIATION_SELECTOR = "\ufe0f"


def determine_success(outcome: str) -> bool | None:
    """Infer success from a roll outcome.

    A trailing explicit ``S``/``F`` wins; otherwise a keyword scan. Returns
    None when neither success nor failure can be read from the text.
    """
    flag = _EXPLICIT_FLAG.search(outcome.strip())
    if flag:
        return flag.group(1) == "S"

    text = outcome.lower()
    if _STRONG_HIT.search(text):
        return True
    if _WEAK_HIT.search(text) or _FAILURE.search(text):
        return False
    if _SUCCESS.search(text):
        return True
    return None


def _parse_dice_line(body: str, line_number: int) -> MechanicsRoll:
    arrow = _DICE_ARROW.match(body)
    if arrow:
        roll, outcome = arrow.group(1).strip(), arrow.group(2).strip()
        return MechanicsRoll(
            line_number=line_number, roll=roll, outcome=outcome,
            success=determine_success(outcome),
        )

    compare = _DICE_COMPARE.match(body)
    if compare:
        roll = f"{compare.group('roll').strip()}{compare.group('cmp')}{compare.group('target')}"
        flag = compare.group("flag")
        if flag:
            success = flag == "S"
        else:
            success = compare.group("cmp") == ">"
        outcome = "Success" if success else "Failure"
        return MechanicsRoll(line_number=line_number, roll=roll, outcome=outcome, success=success)

    # Bare "🎲 2d6: 8" style line; only an explicit trailing flag decides
    flag = _EXPLICIT_FLAG.search(body)
    success = (flag.group(1) == "S") if flag else None
    return MechanicsRoll(line_number=line_number, roll=body, outcome="", success=success)


def _parse_oracle_result(body: str, line_number: int) -> OracleResult:
    leading = _LEADING_ROLL.match(body)
    if leading:
        return OracleResult(
            line_number=line_number,
            roll=leading.group(1).strip(),
            answer=leading.group(2).strip(),
        )
    trailing = _TRAILING_ROLL.match(body)
    if trailing and trailing.group(1).strip():
        return OracleResult(
            line_number=line_number,
            roll=trailing.group(2).strip(),
            answer=trailing.group(1).strip(),
        )
    return OracleResult(line_number=line_number, answer=body)


def classify_line(line: str, line_number: int) -> NotationElement | None:
    """Classify one line. Returns None for blank lines."""
    stripped = line.strip().replace(_VARIATION_SELECTOR, "")
    if not stripped:
        return None

    m = _ACTION.match(stripped)
    if m:
        return Action(line_number=line_number, content=m.group(1).strip())

    m = _QUESTION.match(stripped)
    if m:
        return OracleQuestion(line_number=line_number, question=m.group(1).strip())

    m = _ROLL.match(stripped)
    if m:
        outcome = m.group(2).strip()
        return MechanicsRoll(
            line_number=line_number,
            roll=m.group(1).strip(),
            outcome=outcome,
            success=determine_success(outcome),
        )

    m = _DICE_PREFIX.match(stripped)
    if m:
        return _parse_dice_line(m.group(1).strip(), line_number)

    m = _RESULT.match(stripped)
    if m:
        return _parse_oracle_result(m.group(1).strip(), line_number)

    m = _CONSEQUENCE.match(stripped)
    if m:
        return Consequence(line_number=line_number, description=m.group(1).strip())

    m = _TABLE.match(stripped)
    if m:
        return TableLookup(
            line_number=line_number, roll=m.group(1).strip(), result=m.group(2).strip()
        )

    m = _GENERATOR.match(stripped)
    if m:
        return Generator(
            line_number=line_number, system=m.group(1).strip(), result=m.group(2).strip()
        )

    m = _META.match(stripped)
    if m:
        return MetaNote(line_number=line_number, category=m.group(1), content=m.group(2))

    return TextLine(line_number=line_number, content=stripped)


def parse_code_block(content: str, start_line: int) -> list[NotationElement]:
    """Classify every line of a fenced block.

    `start_line` is the document line of the block's first content line.
    """
    elements: list[NotationElement] = []
    for offset, line in enumerate(content.split("\n")):
        element = classify_line(line, start_line + offset)
        if element is not None:
            elements.append(element)
    return elements
