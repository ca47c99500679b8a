#!/usr/bin/env python3
"""
Graph transcoding from the native VE format to the OpenG csv format.

Two streaming passes over the input graph:

1. Vertex pass: every non-empty vertex line gets the next dense id, written
   to ``vertex.csv`` (header ``id``).
2. Edge pass: every non-empty edge line is resolved through the id map and
   written to ``edge.csv`` (header ``id|id``). Undirected graphs contribute
   both ``(u, v)`` and ``(v, u)``.

Both files are written under temporary names and only renamed into place
once both passes succeed, so a failed transcode never leaves a valid-looking
graph behind. Memory use is bounded by the id map (O(V)).

Standalone usage:
    python -m opengbench.lib.pipeline.transcode --vertices g.v --edges g.e \
        --output /tmp/openg/g --undirected

Library usage:
    from opengbench.lib.pipeline.transcode import transcode_graph

    graph = transcode_graph(graph_info, "/tmp/openg/intermediate/g")
    graph.id_map.forward(42)
"""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, TextIO

from tqdm import tqdm

from ..core.errors import ParseError, UnsupportedGraphError
from ..core.graph_types import GraphInfo
from ..core.utils import DEFAULT_EDGE_DELIMITER, EDGE_DELIMITERS, EDGE_FILE, VERTEX_FILE
from .idmap import VertexIdMap, VertexIdMapper, parse_vertex_id

log = logging.getLogger("opengbench.transcode")

TMP_SUFFIX = ".tmp"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class TranscodedGraph:
    """A graph written in OpenG format, plus the id map needed to read results."""
    name: str
    directory: Path
    vertex_path: Path
    edge_path: Path
    id_map: VertexIdMap
    is_directed: bool
    is_weighted: bool
    num_vertices: int
    num_edge_rows: int


# =============================================================================
# Precondition Checks
# =============================================================================

def check_graph_support(graph: GraphInfo) -> None:
    """
    Reject graphs whose properties OpenG cannot represent.

    OpenG vertices carry no properties; edges carry at most one numeric
    single-valued property (the weight).

    Raises:
        UnsupportedGraphError: the graph cannot be transcoded
    """
    if graph.has_vertex_properties:
        raise UnsupportedGraphError("OpenG does not support vertices with properties")

    if graph.has_edge_properties:
        if len(graph.edge_properties) > 1:
            raise UnsupportedGraphError("OpenG does not support more than one edge property")
        prop = graph.edge_properties[0]
        if not prop.type.is_numeric:
            raise UnsupportedGraphError(
                f"OpenG does not support edge properties of type: {prop.type.value}")
        if prop.arity != 1:
            raise UnsupportedGraphError(
                f"OpenG does not support edge properties with arity {prop.arity}")


# =============================================================================
# Streaming Passes
# =============================================================================

def transcode_vertices(lines: Iterable[str], writer: TextIO,
                       expected_size: int = 0, path: Optional[str] = None) -> VertexIdMap:
    """
    Vertex pass: assign dense ids in file order and write one per row.

    Trailing fields after the native id are ignored.
    """
    mapper = VertexIdMapper(expected_size)
    writer.write("id\n")
    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.rstrip("\r\n")
        fields = line.split()
        if not fields:
            continue
        native_id = parse_vertex_id(fields[0], line=line, line_number=line_number, path=path)
        try:
            dense_id = mapper.assign(native_id, context=line)
        except ParseError as e:
            raise ParseError(e.reason, line=line, line_number=line_number, path=path) from None
        writer.write(f"{dense_id}\n")
    return mapper.freeze()


def transcode_edges(lines: Iterable[str], writer: TextIO, id_map: VertexIdMap,
                    is_directed: bool, is_weighted: bool = False,
                    delimiter: str = DEFAULT_EDGE_DELIMITER,
                    path: Optional[str] = None) -> int:
    """
    Edge pass: remap endpoints and write one row per directed edge.

    Returns:
        Number of edge rows written (E for directed, 2E for undirected)
    """
    expected_fields = 3 if is_weighted else 2
    header = ["id", "id", "weight"] if is_weighted else ["id", "id"]
    writer.write(delimiter.join(header) + "\n")

    rows = 0
    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.rstrip("\r\n")
        fields = line.split()
        if not fields:
            continue
        if len(fields) != expected_fields:
            raise ParseError("Invalid data found in edge list",
                             line=line, line_number=line_number, path=path)

        source = parse_vertex_id(fields[0], line=line, line_number=line_number, path=path)
        destination = parse_vertex_id(fields[1], line=line, line_number=line_number, path=path)
        try:
            source = id_map.forward(source, context=line)
            destination = id_map.forward(destination, context=line)
        except ParseError as e:
            raise ParseError(e.reason, line=line, line_number=line_number, path=path) from None

        suffix = ""
        if is_weighted:
            try:
                float(fields[2])
            except ValueError:
                raise ParseError("Invalid edge weight", line=line,
                                 line_number=line_number, path=path) from None
            suffix = delimiter + fields[2]

        writer.write(f"{source}{delimiter}{destination}{suffix}\n")
        rows += 1
        if not is_directed:
            writer.write(f"{destination}{delimiter}{source}{suffix}\n")
            rows += 1
    return rows


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


# =============================================================================
# Graph Transcoding
# =============================================================================

def transcode_graph(
    graph: GraphInfo,
    output_dir,
    delimiter: str = DEFAULT_EDGE_DELIMITER,
    show_progress: bool = False,
) -> TranscodedGraph:
    """
    Convert a VE graph to OpenG ``vertex.csv`` / ``edge.csv``.

    Args:
        graph: Graph descriptor (paths, directedness, property schema)
        output_dir: Directory for the transcoded files; created if absent.
            Existing ``vertex.csv`` / ``edge.csv`` are replaced.
        delimiter: Edge field delimiter, ``|`` or a single space
        show_progress: Show tqdm progress bars for both passes

    Returns:
        TranscodedGraph with the output paths and the id map

    Raises:
        UnsupportedGraphError: graph properties OpenG cannot represent
        ParseError: malformed line or edge endpoint missing from vertex list
    """
    check_graph_support(graph)
    if delimiter not in EDGE_DELIMITERS:
        raise ValueError(f"Unsupported edge delimiter: {delimiter!r}")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    vertex_path = output_dir / VERTEX_FILE
    edge_path = output_dir / EDGE_FILE
    vertex_tmp = output_dir / (VERTEX_FILE + TMP_SUFFIX)
    edge_tmp = output_dir / (EDGE_FILE + TMP_SUFFIX)

    # Stale output from an earlier upload must not survive a failed transcode
    for stale in (vertex_path, edge_path):
        _remove_quietly(stale)

    log.info(f'Transcoding graph "{graph.name}" to {output_dir}')
    try:
        log.debug("- Reading vertex list to construct ID mapping")
        try:
            with open(graph.vertex_path, "r", encoding="utf-8", errors="strict") as reader, \
                    open(vertex_tmp, "w") as writer:
                lines = tqdm(reader, desc=f"{graph.name} vertices", unit=" lines",
                             total=graph.num_vertices or None, leave=False,
                             disable=not show_progress)
                id_map = transcode_vertices(lines, writer, graph.num_vertices,
                                            path=str(graph.vertex_path))
        except UnicodeDecodeError as e:
            raise ParseError(f"Vertex list is not valid UTF-8 ({e.reason})",
                             path=str(graph.vertex_path)) from e

        if graph.num_vertices and graph.num_vertices != len(id_map):
            log.warning(f'Graph "{graph.name}" declares {graph.num_vertices} vertices, '
                        f'vertex list has {len(id_map)}')

        log.debug("- Writing OpenG csv edge list")
        try:
            with open(graph.edge_path, "r", encoding="utf-8", errors="strict") as reader, \
                    open(edge_tmp, "w") as writer:
                lines = tqdm(reader, desc=f"{graph.name} edges", unit=" lines",
                             total=graph.num_edges or None, leave=False,
                             disable=not show_progress)
                rows = transcode_edges(lines, writer, id_map, graph.is_directed,
                                       is_weighted=graph.is_weighted, delimiter=delimiter,
                                       path=str(graph.edge_path))
        except UnicodeDecodeError as e:
            raise ParseError(f"Edge list is not valid UTF-8 ({e.reason})",
                             path=str(graph.edge_path)) from e

        os.replace(vertex_tmp, vertex_path)
        os.replace(edge_tmp, edge_path)
    except BaseException:
        for tmp in (vertex_tmp, edge_tmp, vertex_path, edge_path):
            _remove_quietly(tmp)
        raise

    log.info(f'Transcoded "{graph.name}": {len(id_map)} vertices, {rows} edge rows')
    return TranscodedGraph(
        name=graph.name,
        directory=output_dir,
        vertex_path=vertex_path,
        edge_path=edge_path,
        id_map=id_map,
        is_directed=graph.is_directed,
        is_weighted=graph.is_weighted,
        num_vertices=len(id_map),
        num_edge_rows=rows,
    )


def main():
    """CLI for graph transcoding."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Transcode a VE graph to the OpenG csv format",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m opengbench.lib.pipeline.transcode --vertices g.v --edges g.e -o out/g
    python -m opengbench.lib.pipeline.transcode --vertices g.v --edges g.e -o out/g --undirected
        """
    )
    parser.add_argument("--vertices", required=True, help="Vertex list path")
    parser.add_argument("--edges", required=True, help="Edge list path")
    parser.add_argument("-o", "--output", required=True, help="Output directory")
    parser.add_argument("--name", help="Graph name (default: vertex file stem)")
    parser.add_argument("--undirected", action="store_true", help="Graph is undirected")
    parser.add_argument("--delimiter", choices=EDGE_DELIMITERS, default=DEFAULT_EDGE_DELIMITER,
                        help="Edge field delimiter")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s",
                        stream=sys.stderr)
    graph = GraphInfo(
        name=args.name or Path(args.vertices).stem,
        vertex_path=args.vertices,
        edge_path=args.edges,
        is_directed=not args.undirected,
    )
    result = transcode_graph(graph, args.output, delimiter=args.delimiter, show_progress=True)
    print(f"{result.num_vertices} vertices, {result.num_edge_rows} edge rows -> {result.directory}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
