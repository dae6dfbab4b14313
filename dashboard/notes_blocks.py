"""Editing operations over a free-form note's block list.

Every operation returns a new list in canonical form: at least one block,
and never two text blocks next to each other.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from backend.schemas import NOTE_BLOCKS, ImageBlock, NoteBlock, TextBlock, TodoBlock

logger = logging.getLogger(__name__)

BLOCK_TYPES = {"text": TextBlock, "todo": TodoBlock, "image": ImageBlock}


def _merge_text(first: TextBlock, second: TextBlock) -> TextBlock:
    parts = [part for part in (first.content, second.content) if part]
    return first.model_copy(update={"content": "\n".join(parts)})


def normalize_blocks(blocks: List[NoteBlock]) -> List[NoteBlock]:
    result: List[NoteBlock] = []
    for block in blocks:
        if result and isinstance(block, TextBlock) and isinstance(result[-1], TextBlock):
            result[-1] = _merge_text(result[-1], block)
            continue
        result.append(block)
    if not result:
        result.append(TextBlock())
    return result


def parse_blocks(content: Optional[str]) -> List[NoteBlock]:
    try:
        blocks = NOTE_BLOCKS.validate_json(content or "[]")
    except ValueError as exc:
        logger.warning("Discarding unreadable note content: %s", exc)
        blocks = []
    return normalize_blocks(blocks)


def dump_blocks(blocks: List[NoteBlock]) -> str:
    return NOTE_BLOCKS.dump_json(blocks).decode("utf-8")


def can_append_text(blocks: List[NoteBlock]) -> bool:
    """A new text block after a text block would merge away, so only offer one after a todo or image."""
    return not blocks or not isinstance(blocks[-1], TextBlock)


def add_block(blocks: List[NoteBlock], kind: str, content: str = "") -> List[NoteBlock]:
    block_type = BLOCK_TYPES.get(kind)
    if block_type is None:
        raise ValueError(f"Unknown block type: {kind}")
    return normalize_blocks(list(blocks) + [block_type(content=content)])


def update_block_content(blocks: List[NoteBlock], block_id: str, content: str) -> List[NoteBlock]:
    return normalize_blocks(
        [block.model_copy(update={"content": content}) if block.id == block_id else block for block in blocks]
    )


def toggle_todo(blocks: List[NoteBlock], block_id: str) -> List[NoteBlock]:
    return normalize_blocks(
        [
            block.model_copy(update={"completed": not block.completed})
            if block.id == block_id and isinstance(block, TodoBlock)
            else block
            for block in blocks
        ]
    )


def delete_block(blocks: List[NoteBlock], block_id: str) -> List[NoteBlock]:
    return normalize_blocks([block for block in blocks if block.id != block_id])


def note_preview(blocks: List[NoteBlock], limit: int = 120) -> str:
    lines = []
    for block in blocks:
        if isinstance(block, TextBlock) and block.content.strip():
            lines.append(block.content.strip())
        elif isinstance(block, TodoBlock) and block.content.strip():
            lines.append(f"{'☑' if block.completed else '☐'} {block.content.strip()}")
    preview = " · ".join(lines)
    return preview if len(preview) <= limit else preview[: limit - 1] + "…"


def todo_progress(blocks: List[NoteBlock]) -> tuple[int, int]:
    todos = [block for block in blocks if isinstance(block, TodoBlock)]
    return sum(1 for block in todos if block.completed), len(todos)
