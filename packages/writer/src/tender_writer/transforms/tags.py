"""
transforms/tags.py — Tag name → shared Tag row resolution.

Tags are shared across tenders and unique by case-insensitive name. Within
one unit of work a name resolves to exactly one Tag instance, so a tender
tagged ["Roads", "roads"] links a single row and a second tender in the
same unit reuses it.

Usage:
    from tender_writer.transforms.tags import TagResolver

    with gateway.unit_of_work() as uow:
        tags = TagResolver().resolve(record.tag_names, uow)
        uow.add_tender(record, tags)
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Protocol

import structlog

from tender_shared.models.orm import Tag, tag_key

log = structlog.get_logger(__name__)


class TagContext(Protocol):
    """The slice of a unit of work the resolver needs."""

    tag_cache: dict[str, Tag]

    def find_tags(self, names: Iterable[str]) -> list[Tag]: ...

    def add_tag(self, tag: Tag) -> None: ...


class TagResolver:
    """Resolves tag names to Tag rows, creating the ones that don't exist."""

    def resolve(self, tag_names: Iterable[str], context: TagContext) -> list[Tag]:
        """
        Return one Tag per distinct name, in first-seen order.

        Looks up every name missing from context.tag_cache with a single
        store query; names still unknown afterwards get a new Tag that is
        added to the unit of work and cached.
        """
        wanted: dict[str, str] = {}
        for raw in tag_names:
            name = raw.strip() if raw else ""
            if not name:
                continue
            wanted.setdefault(tag_key(name), name)

        if not wanted:
            return []

        cache = context.tag_cache
        missing = [name for key, name in wanted.items() if key not in cache]
        if missing:
            for tag in context.find_tags(missing):
                cache.setdefault(tag.tag_key, tag)

        resolved: list[Tag] = []
        created = 0
        for key, name in wanted.items():
            tag = cache.get(key)
            if tag is None:
                tag = Tag(tag_id=uuid.uuid4(), tag_name=name)
                context.add_tag(tag)
                cache[key] = tag
                created += 1
            resolved.append(tag)

        log.debug("tags_resolved", requested=len(wanted), created=created)
        return resolved
