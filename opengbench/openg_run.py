#!/usr/bin/env python3
"""
Run one OpenG algorithm on a VE graph.

Uploads the graph (transcoding it to the OpenG format), runs the algorithm,
optionally translates the result back to native vertex ids, and deletes the
intermediate files.

Usage:
    openg-run --config config/openg.json --vertices g.v --edges g.e \
        --algorithm bfs --source 42 --output
    openg-run --config config/openg.json --vertices g.v --edges g.e --undirected \
        --algorithm pr --damping 0.85 --iterations 10 --threads 8
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from opengbench.lib.core.config import load_configuration
from opengbench.lib.core.errors import OpengError
from opengbench.lib.core.graph_types import GraphInfo, PropertySpec, PropertyType
from opengbench.lib.core.utils import (
    ALGORITHMS, LOGGER_NAME, format_duration, get_timestamp, log, print_summary_box,
)
from opengbench.lib.pipeline.jobs import (
    Algorithm, BfsParameters, CdlpParameters, LccParameters, PageRankParameters,
    SsspParameters, WccParameters,
)
from opengbench.lib.pipeline.platform import BenchmarkRun, OpengPlatform


def configure_logging(level: int = logging.INFO) -> None:
    """Send library logging to stderr at ``level``."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(handler)
    logger.setLevel(level)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="openg-run",
        description="Run an OpenG graph algorithm on a graph in VE format.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument("--config", "-c", required=True, help="OpenG JSON configuration file")
    parser.add_argument("--vertices", required=True, help="Vertex list path")
    parser.add_argument("--edges", required=True, help="Edge list path")
    parser.add_argument("--name", help="Graph name (default: vertex file stem)")
    parser.add_argument("--undirected", action="store_true", help="Graph is undirected")
    parser.add_argument("--weighted", action="store_true",
                        help="Edge list has a third column with real-valued weights")

    parser.add_argument("--algorithm", "-a", required=True,
                        choices=sorted(ALGORITHMS.values()),
                        help="Algorithm to run")
    parser.add_argument("--source", type=int, help="Source vertex (native id) for bfs/sssp")
    parser.add_argument("--damping", type=float, default=0.85,
                        help="PageRank damping factor (default: 0.85)")
    parser.add_argument("--iterations", type=int, default=10,
                        help="Iterations for pr / max iterations for cdlp (default: 10)")

    parser.add_argument("--threads", type=int, help="Worker threads (overrides config)")
    parser.add_argument("--timeout", type=float,
                        help="Kill OpenG after this many seconds (overrides config)")
    parser.add_argument("--output", action="store_true",
                        help="Write the translated result to the output directory")
    parser.add_argument("--run-id", help="Run identifier (default: <graph>_<algorithm>_<timestamp>)")
    parser.add_argument("--progress", action="store_true", help="Show transcoding progress")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    return parser


def build_parameters(algorithm: Algorithm, args, parser: argparse.ArgumentParser):
    if algorithm in (Algorithm.BFS, Algorithm.SSSP):
        if args.source is None:
            parser.error(f"--source is required for {algorithm.executable}")
        cls = BfsParameters if algorithm is Algorithm.BFS else SsspParameters
        return cls(source_vertex=args.source)
    if algorithm is Algorithm.PR:
        return PageRankParameters(damping_factor=args.damping, iterations=args.iterations)
    if algorithm is Algorithm.CDLP:
        return CdlpParameters(max_iterations=args.iterations)
    if algorithm is Algorithm.LCC:
        return LccParameters()
    return WccParameters()


def main() -> int:
    """Entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args()

    configure_logging(getattr(logging, args.log_level))
    log.set_level(args.log_level)

    algorithm = Algorithm.parse(args.algorithm)
    parameters = build_parameters(algorithm, args, parser)

    graph = GraphInfo(
        name=args.name or Path(args.vertices).stem,
        vertex_path=args.vertices,
        edge_path=args.edges,
        is_directed=not args.undirected,
        edge_properties=([PropertySpec("weight", PropertyType.REAL)] if args.weighted else []),
    )
    run = BenchmarkRun(
        run_id=args.run_id or f"{graph.name}_{algorithm.executable}_{get_timestamp()}",
        graph_name=graph.name,
        algorithm=algorithm,
        parameters=parameters,
        output_required=args.output,
    )

    log.header(f"OpenG {algorithm.name} on {graph.name}")
    try:
        config = load_configuration(args.config)
        if args.threads is not None:
            config = replace(config, num_worker_threads=args.threads)
        if args.timeout is not None:
            config = replace(config, timeout=args.timeout)

        log.info(f"Configuration: {args.config}, threads: {config.thread_count}")
        platform = OpengPlatform(config, show_progress=args.progress)
        transcoded = platform.upload_graph(graph)
        log.success(f"Uploaded {transcoded.num_vertices} vertices, "
                    f"{transcoded.num_edge_rows} edge rows")
        try:
            result = platform.execute(run)
        finally:
            platform.delete_graph(graph.name)
    except OpengError as e:
        log.error(str(e))
        return 1

    log.success(f"{algorithm.name} completed")
    items = {
        "Algorithm": algorithm.name,
        "Graph": graph.name,
        "Threads": config.thread_count,
        "Exit code": result.exit_code,
        "Duration": format_duration(result.duration),
    }
    if result.output_path is not None:
        items["Output"] = f"{result.output_path} ({result.output_lines} lines)"
    print_summary_box("OpenG Run Summary", items)
    return 0


if __name__ == "__main__":
    sys.exit(main())
