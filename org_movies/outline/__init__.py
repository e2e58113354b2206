"""
Org outline rendering and document I/O.
"""

from org_movies.outline.document import (
    OutlineFileError,
    append_nodes_to_file,
    insert_node_at_cursor,
    insert_node_at_line,
    insert_node_at_offset,
)
from org_movies.outline.node import format_movie_node, genre_tags

__all__ = [
    "OutlineFileError",
    "append_nodes_to_file",
    "format_movie_node",
    "genre_tags",
    "insert_node_at_cursor",
    "insert_node_at_line",
    "insert_node_at_offset",
]
