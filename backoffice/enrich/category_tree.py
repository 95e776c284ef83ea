"""Category hierarchy building and display paths."""

import logging
from typing import Optional

from backoffice.upstream.models import Category

logger = logging.getLogger(__name__)

PATH_SEPARATOR = " > "


def is_nested(records: list[Category]) -> bool:
    """True when the upstream already returned a tree."""
    return any(record.children for record in records)


def _resolve_parent(category: Category, by_code: dict[str, Category]) -> Optional[Category]:
    parent = by_code.get(category.parent_category_code or "")
    if parent is None or parent is category:
        return None

    # A parent chain that leads back to this category is a cycle
    seen: set[int] = set()
    node = parent
    while node is not None and id(node) not in seen:
        if node is category:
            return None
        seen.add(id(node))
        node = by_code.get(node.parent_category_code or "")
    return parent


def build_tree(records: list[Category]) -> list[Category]:
    """
    Build a category hierarchy.

    Nested input is returned as-is. Flat input is linked by category code:
    records without a parent code, with an unknown parent, or caught in a
    parent cycle become roots. Sibling order follows input order.

    Args:
        records: Categories as returned by the upstream

    Returns:
        Root categories with ``children`` populated
    """
    if is_nested(records):
        return records

    by_code: dict[str, Category] = {}
    for record in records:
        if record.category_code and record.category_code not in by_code:
            by_code[record.category_code] = record

    for record in records:
        record.children = []

    roots: list[Category] = []
    orphans = 0
    for record in records:
        parent = _resolve_parent(record, by_code)
        if parent is None:
            if record.parent_category_code:
                orphans += 1
            roots.append(record)
        else:
            parent.children.append(record)

    if orphans:
        logger.debug(f"Promoted {orphans} categories with unresolvable parents to roots")

    return roots


def compute_paths(categories: list[Category], parent_path: Optional[str] = None) -> None:
    """Assign ``path`` root-first: "Root", "Root > Child", ..."""
    for category in categories:
        if parent_path:
            category.path = f"{parent_path}{PATH_SEPARATOR}{category.display_name}"
        else:
            category.path = category.display_name

        if category.children:
            compute_paths(category.children, category.path)


def flatten_tree(
    categories: list[Category],
    index: Optional[dict[str, Category]] = None,
) -> dict[str, Category]:
    """Index every node of a tree by category code."""
    if index is None:
        index = {}
    for category in categories:
        if category.category_code:
            index[category.category_code] = category
        if category.children:
            flatten_tree(category.children, index)
    return index


def split_path(path: Optional[str]) -> Optional[list[str]]:
    if not path:
        return None
    return path.split(PATH_SEPARATOR)
