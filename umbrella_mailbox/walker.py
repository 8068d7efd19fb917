"""Flatten a BODYSTRUCTURE tree into its content-bearing leaves."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from .models import MAX_STRUCTURE_DEPTH, BodyStructureNode

logger = structlog.get_logger()


@dataclass
class LeafPartInfo:
    """Flattened view of one leaf part."""

    part_id: str
    mime_type: str
    encoding: str | None
    size: int
    disposition: str | None = None
    filename: str | None = None


def walk(root: BodyStructureNode, *, max_depth: int = MAX_STRUCTURE_DEPTH) -> list[LeafPartInfo]:
    """Return the leaves below *root* in pre-order, children in given order.

    Containers are traversed but never emitted.  Leaves without a size are
    skipped: they are structural decoration rather than content.  Only
    call this on a multipart root; a single-part message has no leaves
    below its root.
    """
    leaves: list[LeafPartInfo] = []
    stack: list[tuple[BodyStructureNode, int]] = [(child, 1) for child in reversed(root.children)]

    while stack:
        node, depth = stack.pop()
        if node.is_multipart:
            if depth >= max_depth:
                logger.warning("body_structure_depth_exceeded", part_id=node.part_id, depth=depth)
                continue
            stack.extend((child, depth + 1) for child in reversed(node.children))
            continue
        if node.size is None:
            continue

        leaf = LeafPartInfo(
            part_id=node.part_id,
            mime_type=node.mime_type,
            encoding=node.encoding,
            size=node.size,
        )
        if node.disposition is not None:
            leaf.disposition = node.disposition
            if node.disposition == "attachment":
                leaf.filename = node.disposition_filename
        leaves.append(leaf)

    return leaves
