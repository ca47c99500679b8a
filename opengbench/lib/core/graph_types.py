"""
opengbench Type Definitions
===========================

Graph metadata handed to the driver by the benchmark harness.

``GraphInfo`` is the read-only descriptor of a graph in the native VE
format (vertex file + edge file). The driver never mutates it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class PropertyType(Enum):
    """Value type of a vertex or edge property column."""
    INTEGER = "int"
    REAL = "real"
    STRING = "string"

    @property
    def is_numeric(self) -> bool:
        return self in (PropertyType.INTEGER, PropertyType.REAL)


@dataclass(frozen=True)
class PropertySpec:
    """One property column: name, value type and number of values."""
    name: str
    type: PropertyType
    arity: int = 1


@dataclass(frozen=True)
class GraphInfo:
    """
    Information about a graph dataset in VE format.

    Attributes:
        name: Short name of the graph (e.g., "example-directed"); also used
            as the graph's intermediate directory name
        vertex_path: Path to the vertex list (one native id per line)
        edge_path: Path to the edge list (``src dst [weight]`` per line)
        is_directed: Whether edges are directed
        num_vertices: Number of vertices, used to presize the id map
        num_edges: Number of edge lines in the edge list
        vertex_properties: Per-vertex property schema (OpenG supports none)
        edge_properties: Per-edge property schema (OpenG supports at most
            one numeric weight)

    Example:
        >>> info = GraphInfo(
        ...     name="tiny",
        ...     vertex_path="graphs/tiny/tiny.v",
        ...     edge_path="graphs/tiny/tiny.e",
        ...     is_directed=False,
        ...     num_vertices=5,
        ...     num_edges=6,
        ... )
        >>> info.is_weighted
        False
    """

    name: str
    vertex_path: str
    edge_path: str
    is_directed: bool = True
    num_vertices: int = 0
    num_edges: int = 0
    vertex_properties: List[PropertySpec] = field(default_factory=list)
    edge_properties: List[PropertySpec] = field(default_factory=list)

    @property
    def has_vertex_properties(self) -> bool:
        return bool(self.vertex_properties)

    @property
    def has_edge_properties(self) -> bool:
        return bool(self.edge_properties)

    @property
    def is_weighted(self) -> bool:
        return self.has_edge_properties
