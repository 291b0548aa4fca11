"""Directory tree enumeration."""

from .fs import ChildEntry, list_children
from .tree_walker import TreeWalker, WalkStats, walk

__all__ = [
    "ChildEntry",
    "TreeWalker",
    "WalkStats",
    "list_children",
    "walk",
]
