from __future__ import annotations

from typing import List

from .models import TextBlock

BULLET_MARKERS = ("- ", "• ")


def format_response_text(text: str) -> List[TextBlock]:
    """Purpose: Split bot reply text into paragraph, heading and bullet-list blocks.
    Inputs/Outputs: Input is the reply string; output is an ordered list of TextBlock.
    Side Effects / State: None; pure function.
    Dependencies: Uses TextBlock from models.
    Failure Modes: Empty input returns []; blank lines are dropped.
    If Removed: Replies render as a single unformatted paragraph.
    Testing Notes: Consecutive bullets must merge into one list block; a line ending
        with ":" is a heading.
    """
    # Accumulate bullets until a plain line closes the list.
    if not text:
        return []
    blocks: List[TextBlock] = []
    pending: List[str] = []
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith(BULLET_MARKERS):
            pending.append(stripped[2:].strip())
            continue
        if pending:
            blocks.append(TextBlock(kind="list", items=pending))
            pending = []
        kind = "heading" if stripped.endswith(":") else "paragraph"
        blocks.append(TextBlock(kind=kind, text=stripped))
    if pending:
        blocks.append(TextBlock(kind="list", items=pending))
    return blocks
