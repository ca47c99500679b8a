#!/usr/bin/env python3
"""
OpenG platform driver.

Implements the three hooks the benchmark harness calls for every graph:

    upload_graph(graph)   transcode to OpenG format, keep the id map
    execute(run)          build the command, run OpenG, translate output
    delete_graph(name)    remove intermediate files, drop the id map

Every ``execute`` call goes through a fresh ``OpengJob``:

    CREATED -> COMMAND_BUILT -> RUNNING -> SUCCEEDED | FAILED | LAUNCH_ERROR
    SUCCEEDED -> OUTPUT_TRANSLATED | FAILED (only if output was requested)
    -> CLEANED                              (raw engine output removed)

There is no retry transition; a failed job is reported and discarded.

Library usage:
    from opengbench.lib.pipeline.platform import OpengPlatform, BenchmarkRun

    platform = OpengPlatform(config)
    platform.upload_graph(graph_info)
    result = platform.execute(BenchmarkRun("run-1", graph_info.name,
                                           Algorithm.BFS, BfsParameters(42)))
    platform.delete_graph(graph_info.name)
"""

import logging
import shutil
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from ..core.config import JobConfiguration
from ..core.errors import ConfigurationError, OpengError, ProcessLaunchError
from ..core.graph_types import GraphInfo
from .jobs import (
    Algorithm, AlgorithmJobSpec, AlgorithmParameters, build_command, build_csr_command,
)
from .results import translate_result_file
from .runner import ProcessOutcome, ProcessRunner, check_exit_code
from .transcode import TranscodedGraph, transcode_graph

log = logging.getLogger("opengbench.platform")

PLATFORM_NAME = "openg"
RAW_OUTPUT_SUFFIX = ".raw"


# =============================================================================
# Run Logging
# =============================================================================

@contextmanager
def run_logging(log_path, logger: logging.Logger, level: int = logging.DEBUG) -> Iterator[Path]:
    """
    Capture everything logged through ``logger`` into ``log_path``.

    ``logger`` belongs to a single run, so concurrent runs never share a
    handler. The handler is attached for the duration of the ``with`` block
    only; no other logger is modified.
    """
    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, mode="a")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))

    previous_level = logger.level
    logger.setLevel(level)
    logger.addHandler(handler)
    try:
        yield log_path
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)
        handler.close()


# =============================================================================
# Jobs
# =============================================================================

class JobState(Enum):
    CREATED = "created"
    COMMAND_BUILT = "command_built"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    LAUNCH_ERROR = "launch_error"
    OUTPUT_TRANSLATED = "output_translated"
    CLEANED = "cleaned"


TERMINAL_STATES = {JobState.SUCCEEDED, JobState.FAILED, JobState.LAUNCH_ERROR,
                   JobState.OUTPUT_TRANSLATED, JobState.CLEANED}

_TRANSITIONS = {
    JobState.CREATED: {JobState.COMMAND_BUILT},
    JobState.COMMAND_BUILT: {JobState.RUNNING},
    JobState.RUNNING: {JobState.SUCCEEDED, JobState.FAILED, JobState.LAUNCH_ERROR},
    JobState.SUCCEEDED: {JobState.OUTPUT_TRANSLATED, JobState.FAILED, JobState.CLEANED},
    JobState.OUTPUT_TRANSLATED: {JobState.CLEANED},
    JobState.FAILED: set(),
    JobState.LAUNCH_ERROR: set(),
    JobState.CLEANED: set(),
}


@dataclass
class BenchmarkRun:
    """
    One algorithm run requested by the harness.

    Parameters are given in the native id space.
    """
    run_id: str
    graph_name: str
    algorithm: Algorithm
    parameters: AlgorithmParameters
    output_required: bool = False
    output_dir: Optional[Path] = None


@dataclass
class JobResult:
    """Outcome of a successful job."""
    run_id: str
    algorithm: Algorithm
    command: List[str]
    exit_code: int
    duration: float
    output_path: Optional[Path] = None
    output_lines: int = 0
    states: List[JobState] = field(default_factory=list)


class OpengJob:
    """Runs one BenchmarkRun against an uploaded graph."""

    def __init__(self, run: BenchmarkRun, graph: TranscodedGraph,
                 config: JobConfiguration, runner: ProcessRunner):
        self.run = run
        self.graph = graph
        self.config = config
        self.runner = runner
        self.state = JobState.CREATED
        self.history: List[JobState] = [JobState.CREATED]
        self.spec: Optional[AlgorithmJobSpec] = None
        self.command: Optional[List[str]] = None
        self.outcome: Optional[ProcessOutcome] = None

    def _transition(self, state: JobState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid job transition {self.state.value} -> {state.value}")
        self.runner.logger.debug(f"Job {self.run.run_id}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def raw_output_path(self) -> Path:
        return self.graph.directory / f"{self.run.run_id}{RAW_OUTPUT_SUFFIX}"

    @property
    def output_path(self) -> Path:
        output_dir = Path(self.run.output_dir) if self.run.output_dir else self.config.output_dir
        return output_dir / self.run.run_id

    def build(self) -> List[str]:
        raw_output = self.raw_output_path if self.run.output_required else None
        self.spec = AlgorithmJobSpec.create(
            self.run.algorithm, self.run.parameters, self.graph.directory,
            self.graph.id_map, output_path=raw_output)
        self.command = build_command(self.spec, self.config)
        self._transition(JobState.COMMAND_BUILT)
        return self.command

    def execute(self) -> JobResult:
        """
        Run the job to a terminal state.

        Raises:
            ParseError: the source vertex is not part of the graph
            ProcessLaunchError: OpenG could not be started
            ProcessExecutionError: OpenG exited non-zero (or timed out)
            OutputTranslationError: OpenG output could not be translated
        """
        self.build()
        translated_lines = 0
        try:
            self._transition(JobState.RUNNING)
            try:
                self.outcome = self.runner.run(self.command)
            except ProcessLaunchError:
                self._transition(JobState.LAUNCH_ERROR)
                raise
            except OpengError:
                self._transition(JobState.FAILED)
                raise

            try:
                check_exit_code(self.outcome)
            except OpengError:
                self._transition(JobState.FAILED)
                raise
            self._transition(JobState.SUCCEEDED)

            if self.run.output_required:
                try:
                    translated_lines = translate_result_file(
                        self.raw_output_path, self.output_path, self.graph.id_map)
                except OpengError:
                    self._transition(JobState.FAILED)
                    raise
                self._transition(JobState.OUTPUT_TRANSLATED)
        finally:
            self._cleanup()

        return JobResult(
            run_id=self.run.run_id,
            algorithm=self.run.algorithm,
            command=self.command,
            exit_code=self.outcome.exit_code,
            duration=self.outcome.duration,
            output_path=self.output_path if self.run.output_required else None,
            output_lines=translated_lines,
            states=list(self.history),
        )

    def _cleanup(self) -> None:
        raw_output = self.raw_output_path
        try:
            if raw_output.exists():
                raw_output.unlink()
        except OSError as e:
            log.warning(f"Failed to delete intermediate output {raw_output}: {e}")
            return
        if self.state in (JobState.SUCCEEDED, JobState.OUTPUT_TRANSLATED):
            self._transition(JobState.CLEANED)


# =============================================================================
# Platform
# =============================================================================

class OpengPlatform:
    """
    OpenG integration for the graph benchmark harness.

    Args:
        config: Job configuration; its directories are validated up front
        logger: Parent logger for OpenG process output; each run logs through
            a child named after its run id
        show_progress: Show progress bars while transcoding
    """

    def __init__(self, config: JobConfiguration, logger: Optional[logging.Logger] = None,
                 show_progress: bool = False):
        config.ensure_directories()
        self.config = config
        self.logger = logger or logging.getLogger("opengbench.openg")
        self.show_progress = show_progress
        self._graphs: Dict[str, TranscodedGraph] = {}

    @property
    def name(self) -> str:
        return PLATFORM_NAME

    def graph_directory(self, graph_name: str) -> Path:
        return self.config.intermediate_dir / graph_name

    def get_graph(self, graph_name: str) -> TranscodedGraph:
        try:
            return self._graphs[graph_name]
        except KeyError:
            raise ConfigurationError(f'Graph "{graph_name}" has not been uploaded') from None

    def _runner(self, logger: Optional[logging.Logger] = None) -> ProcessRunner:
        return ProcessRunner(logger=logger or self.logger, timeout=self.config.timeout)

    def upload_graph(self, graph: GraphInfo) -> TranscodedGraph:
        """Transcode ``graph`` into its own intermediate directory."""
        log.info(f'Preprocessing graph "{graph.name}"')
        directory = self.graph_directory(graph.name)
        if directory.exists():
            log.debug(f"Removing existing intermediate directory {directory}")
            shutil.rmtree(directory)

        transcoded = transcode_graph(graph, directory, delimiter=self.config.edge_delimiter,
                                     show_progress=self.show_progress)

        if self.config.generate_csr:
            cmd = build_csr_command(directory, self.config, graph.is_directed, graph.is_weighted)
            log.info(f"Executing command: {' '.join(cmd)}")
            try:
                check_exit_code(self._runner().run(cmd))
            except OpengError:
                shutil.rmtree(directory, ignore_errors=True)
                raise

        self._graphs[graph.name] = transcoded
        return transcoded

    def execute(self, run: BenchmarkRun) -> JobResult:
        """Run one algorithm on an uploaded graph."""
        graph = self.get_graph(run.graph_name)
        log.info(f'Executing algorithm "{run.algorithm.name}" on graph "{run.graph_name}"')
        run_logger = self.logger.getChild(run.run_id)
        job = OpengJob(run, graph, self.config, self._runner(run_logger))
        with run_logging(self.config.run_log_dir / run.run_id / "driver.log", run_logger):
            result = job.execute()
        log.info(f"Job {run.run_id} finished in {result.duration:.3f}s")
        return result

    def delete_graph(self, graph_name: str) -> None:
        """Remove a graph's intermediate files and forget its id map."""
        self._graphs.pop(graph_name, None)
        directory = self.graph_directory(graph_name)
        try:
            shutil.rmtree(directory)
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning(f"Failed to delete intermediate directory {directory}: {e}")
