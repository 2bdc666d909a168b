"""
Slide markdown dialect.

Line-oriented, not CommonMark:
- Inline: **strong**, *emphasis*, ~~strike~~, __mark__ (no nesting)
- Blocks: "# " heading 1, "## " heading 2, "- " bullet, "N. " numbered,
  blank line spacer, anything else a paragraph
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class RunStyle(str, Enum):
    PLAIN = "plain"
    STRONG = "strong"
    EMPHASIS = "emphasis"
    STRIKE = "strike"
    MARK = "mark"  # Highlight or underline, depending on the template


class BlockKind(str, Enum):
    HEADING_1 = "heading-1"
    HEADING_2 = "heading-2"
    BULLET = "bullet"
    NUMBERED = "numbered"
    SPACER = "spacer"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class InlineRun:
    text: str
    style: RunStyle = RunStyle.PLAIN


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    runs: Tuple[InlineRun, ...] = ()
    number: Optional[str] = None  # Numbered items only, as written


@dataclass(frozen=True)
class TitleBody:
    title: str
    body: str


# Alternation order matters: "**" must be tried before "*"
_INLINE_TOKEN = re.compile(
    r"\*\*(?P<strong>.*?)\*\*"
    r"|\*(?P<emphasis>.*?)\*"
    r"|~~(?P<strike>.*?)~~"
    r"|__(?P<mark>.*?)__"
)

_NUMBERED = re.compile(r"^(\d+)\. ")


def parse_inline(text: str) -> List[InlineRun]:
    """Split a line into styled runs, in original order.

    Delimiters without a closing partner stay in the literal text. An empty
    span such as "****" yields an empty STRONG run rather than asterisks.
    """
    runs = []
    pos = 0
    for match in _INLINE_TOKEN.finditer(text):
        if match.start() > pos:
            runs.append(InlineRun(text[pos:match.start()]))
        style = RunStyle(match.lastgroup)
        runs.append(InlineRun(match.group(match.lastgroup), style))
        pos = match.end()
    if pos < len(text):
        runs.append(InlineRun(text[pos:]))
    return runs


def _classify(line: str) -> Block:
    trimmed = line.strip()

    if line.startswith("# "):
        return Block(BlockKind.HEADING_1, tuple(parse_inline(line[2:])))
    if line.startswith("## "):
        return Block(BlockKind.HEADING_2, tuple(parse_inline(line[3:])))
    if trimmed.startswith("- "):
        return Block(BlockKind.BULLET, tuple(parse_inline(trimmed[2:])))

    numbered = _NUMBERED.match(trimmed)
    if numbered:
        return Block(
            BlockKind.NUMBERED,
            tuple(parse_inline(trimmed[numbered.end():])),
            number=numbered.group(1),
        )

    if not trimmed:
        return Block(BlockKind.SPACER)

    return Block(BlockKind.PARAGRAPH, tuple(parse_inline(line)))


def parse_blocks(content: str) -> List[Block]:
    """One block per input line."""
    return [_classify(line) for line in content.split("\n")]


def _is_title_line(line: str) -> bool:
    trimmed = line.strip()
    return trimmed.startswith("# ") or trimmed.startswith("## ") or trimmed == ""


def split_title_body(content: str) -> TitleBody:
    """Split content into leading heading/blank lines and everything after."""
    lines = content.split("\n")
    split_at = len(lines)
    for i, line in enumerate(lines):
        if not _is_title_line(line):
            split_at = i
            break

    return TitleBody(
        title="\n".join(lines[:split_at]),
        body="\n".join(lines[split_at:]),
    )
