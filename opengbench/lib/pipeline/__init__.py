"""Adapter pipeline stages: id mapping, transcoding, jobs, execution, results."""

from .idmap import VertexIdMap, VertexIdMapper
from .jobs import (
    Algorithm, AlgorithmJobSpec, BfsParameters, CdlpParameters, LccParameters,
    PageRankParameters, SsspParameters, WccParameters, build_command,
)
from .platform import BenchmarkRun, JobResult, JobState, OpengJob, OpengPlatform
from .results import translate_result_file
from .runner import ProcessOutcome, ProcessRunner, check_exit_code
from .transcode import TranscodedGraph, transcode_graph
