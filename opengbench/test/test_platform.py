#!/usr/bin/env python3
"""
OpenG Platform Integration Tests
================================

Runs the full upload -> execute -> delete cycle against fake OpenG binaries
(Python scripts generated in conftest.py) on the bundled tiny graph.

Usage:
    pytest opengbench/test/test_platform.py -v
"""

import logging
import threading
from dataclasses import replace

import pytest

from opengbench.lib.core.errors import (
    ConfigurationError, OutputTranslationError, ParseError, ProcessExecutionError,
    ProcessLaunchError, ProcessTimeoutError,
)
from opengbench.lib.pipeline.jobs import (
    Algorithm, BfsParameters, CdlpParameters, LccParameters, PageRankParameters, WccParameters,
)
from opengbench.lib.pipeline.platform import (
    BenchmarkRun, JobState, OpengJob, OpengPlatform, run_logging,
)
from opengbench.lib.pipeline.runner import ProcessRunner


@pytest.fixture
def platform(job_config):
    return OpengPlatform(job_config)


def test_upload_creates_graph_directory(platform, job_config, tiny_graph):
    transcoded = platform.upload_graph(tiny_graph)
    assert transcoded.directory == job_config.intermediate_dir / "tiny"
    assert (transcoded.directory / "vertex.csv").exists()
    assert (transcoded.directory / "edge.csv").exists()
    assert platform.get_graph("tiny") is transcoded
    assert platform.name == "openg"


def test_bfs_with_output_round_trip(platform, job_config, tiny_graph, engine_args):
    platform.upload_graph(tiny_graph)
    run = BenchmarkRun("tiny-bfs", "tiny", Algorithm.BFS, BfsParameters(30),
                       output_required=True)

    result = platform.execute(run)

    args = engine_args("bfs")
    assert args[args.index("--source") + 1] == "2"
    assert args[args.index("--threadnum") + 1] == "4"
    assert result.exit_code == 0
    assert result.output_path == job_config.output_dir / "tiny-bfs"
    lines = result.output_path.read_text().splitlines()
    # Fake bfs writes 0 for the source and dense id + 1 elsewhere
    assert lines == ["10 1", "20 2", "30 0", "40 4", "50 5"]
    assert result.output_lines == 5
    assert result.states == [
        JobState.CREATED, JobState.COMMAND_BUILT, JobState.RUNNING,
        JobState.SUCCEEDED, JobState.OUTPUT_TRANSLATED, JobState.CLEANED,
    ]
    # Raw engine output is intermediate and removed after translation
    assert not (job_config.intermediate_dir / "tiny" / "tiny-bfs.raw").exists()


def test_implicit_result_ids(platform, tiny_graph, monkeypatch):
    monkeypatch.setenv("FAKE_OPENG_IMPLICIT", "1")
    platform.upload_graph(tiny_graph)
    result = platform.execute(BenchmarkRun("pr-1", "tiny", Algorithm.PR,
                                           PageRankParameters(0.85, 10), output_required=True))
    assert result.output_path.read_text().splitlines() == [
        "10 0", "20 10", "30 20", "40 30", "50 40"]


def test_run_without_output(platform, tiny_graph, engine_args):
    platform.upload_graph(tiny_graph)
    result = platform.execute(BenchmarkRun("cdlp-1", "tiny", Algorithm.CDLP, CdlpParameters(5)))
    assert result.output_path is None
    assert "--output" not in engine_args("cdlp")
    assert result.states[-1] is JobState.CLEANED


def test_nonzero_exit_is_execution_error(platform, tiny_graph, monkeypatch):
    monkeypatch.setenv("FAKE_OPENG_EXIT", "3")
    platform.upload_graph(tiny_graph)
    with pytest.raises(ProcessExecutionError) as excinfo:
        platform.execute(BenchmarkRun("wcc-1", "tiny", Algorithm.WCC, WccParameters(),
                                      output_required=True))
    assert excinfo.value.exit_code == 3


def test_failed_job_state_and_cleanup(job_config, tiny_graph, monkeypatch):
    monkeypatch.setenv("FAKE_OPENG_EXIT", "3")
    platform = OpengPlatform(job_config)
    graph = platform.upload_graph(tiny_graph)
    run = BenchmarkRun("wcc-2", "tiny", Algorithm.WCC, WccParameters(), output_required=True)
    job = OpengJob(run, graph, job_config, ProcessRunner())

    with pytest.raises(ProcessExecutionError):
        job.execute()
    assert job.state is JobState.FAILED
    assert job.is_finished
    assert not job.raw_output_path.exists()
    assert not (job_config.output_dir / "wcc-2").exists()


def test_missing_binary_is_launch_error(job_config, tiny_graph):
    (job_config.binary_dir / "lcc").unlink()
    platform = OpengPlatform(job_config)
    graph = platform.upload_graph(tiny_graph)
    job = OpengJob(BenchmarkRun("lcc-1", "tiny", Algorithm.LCC, LccParameters()),
                   graph, job_config, ProcessRunner())
    with pytest.raises(ProcessLaunchError):
        job.execute()
    assert job.state is JobState.LAUNCH_ERROR


def test_timeout_marks_job_failed(job_config, tiny_graph, monkeypatch):
    monkeypatch.setenv("FAKE_OPENG_SLEEP", "30")
    config = replace(job_config, timeout=0.5)
    platform = OpengPlatform(config)
    graph = platform.upload_graph(tiny_graph)
    job = OpengJob(BenchmarkRun("wcc-3", "tiny", Algorithm.WCC, WccParameters()),
                   graph, config, ProcessRunner(timeout=config.timeout))
    with pytest.raises(ProcessTimeoutError):
        job.execute()
    assert job.state is JobState.FAILED


def test_bad_engine_output_is_translation_error(job_config, tiny_graph, monkeypatch):
    monkeypatch.setenv("FAKE_OPENG_BAD_ID", "17")
    platform = OpengPlatform(job_config)
    graph = platform.upload_graph(tiny_graph)
    run = BenchmarkRun("pr-2", "tiny", Algorithm.PR, PageRankParameters(0.85, 3),
                       output_required=True)
    job = OpengJob(run, graph, job_config, ProcessRunner())

    with pytest.raises(OutputTranslationError):
        job.execute()
    assert job.state is JobState.FAILED
    assert job.history == [JobState.CREATED, JobState.COMMAND_BUILT, JobState.RUNNING,
                           JobState.SUCCEEDED, JobState.FAILED]
    assert not (job_config.output_dir / "pr-2").exists()
    assert not (job_config.intermediate_dir / "tiny" / "pr-2.raw").exists()


def test_unknown_source_vertex(platform, tiny_graph):
    platform.upload_graph(tiny_graph)
    with pytest.raises(ParseError):
        platform.execute(BenchmarkRun("bfs-x", "tiny", Algorithm.BFS, BfsParameters(99)))


def test_execute_requires_upload(platform):
    with pytest.raises(ConfigurationError, match="not been uploaded"):
        platform.execute(BenchmarkRun("r", "nope", Algorithm.WCC, WccParameters()))


def test_delete_graph_removes_directory(platform, job_config, tiny_graph):
    platform.upload_graph(tiny_graph)
    platform.delete_graph("tiny")
    assert not (job_config.intermediate_dir / "tiny").exists()
    with pytest.raises(ConfigurationError):
        platform.get_graph("tiny")
    # Deleting twice is harmless
    platform.delete_graph("tiny")


def test_reupload_replaces_previous_files(platform, job_config, tiny_graph):
    platform.upload_graph(tiny_graph)
    stale = job_config.intermediate_dir / "tiny" / "stale.raw"
    stale.write_text("old")
    platform.upload_graph(tiny_graph)
    assert not stale.exists()


def test_generate_csr_runs_preprocessor(job_config, tiny_weighted_graph, engine_args):
    platform = OpengPlatform(replace(job_config, generate_csr=True))
    transcoded = platform.upload_graph(tiny_weighted_graph)
    assert (transcoded.directory / "csr.done").read_text().strip() == "0 1"
    args = engine_args("genCSR")
    assert args[args.index("--outpath") + 1] == str(transcoded.directory.resolve())


def test_run_log_written(platform, job_config, tiny_graph):
    platform.upload_graph(tiny_graph)
    platform.execute(BenchmarkRun("wcc-log", "tiny", Algorithm.WCC, WccParameters()))
    content = (job_config.run_log_dir / "wcc-log" / "driver.log").read_text()
    assert "[OPENG-OUT] fake wcc starting" in content
    assert "[OPENG-ERR] threadnum=4" in content


def test_run_logging_detaches_handler(tmp_path):
    run_logger = logging.getLogger("opengbench.test.run-x")
    parent = logging.getLogger("opengbench")
    parent_state = (list(parent.handlers), parent.level)
    with run_logging(tmp_path / "logs" / "x.log", run_logger) as path:
        run_logger.debug("inside")
        logging.getLogger("opengbench.test.other").warning("unrelated")
    run_logger.warning("outside")
    assert run_logger.handlers == []
    assert (list(parent.handlers), parent.level) == parent_state
    content = path.read_text()
    assert "inside" in content
    assert "outside" not in content and "unrelated" not in content


def test_concurrent_runs_keep_separate_logs(platform, job_config, tiny_graph, monkeypatch):
    monkeypatch.setenv("FAKE_OPENG_SLEEP", "0.5")
    platform.upload_graph(tiny_graph)
    platform.upload_graph(replace(tiny_graph, name="tiny2"))
    runs = [
        BenchmarkRun("run-a", "tiny", Algorithm.WCC, WccParameters()),
        BenchmarkRun("run-b", "tiny2", Algorithm.PR, PageRankParameters(0.85, 2)),
    ]
    errors = []

    def execute(run):
        try:
            platform.execute(run)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=execute, args=(run,)) for run in runs]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    log_a = (job_config.run_log_dir / "run-a" / "driver.log").read_text()
    log_b = (job_config.run_log_dir / "run-b" / "driver.log").read_text()
    assert "[OPENG-OUT] fake wcc starting" in log_a
    assert "fake pr" not in log_a and "tiny2" not in log_a
    assert "[OPENG-OUT] fake pr starting" in log_b
    assert "fake wcc" not in log_b


def test_platform_rejects_file_as_directory(job_config, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    with pytest.raises(ConfigurationError, match="not a directory"):
        OpengPlatform(replace(job_config, intermediate_dir=blocker))
