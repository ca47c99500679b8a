"""
Algorithm job specifications and OpenG command lines.

Each algorithm is one variant of a tagged union: an ``Algorithm`` tag plus a
parameter dataclass. ``build_command`` is the single place where a job turns
into an argument list:

    <binary_dir>/<executable> --dataset <input> --threadnum <n>
        [algorithm flags] [--output <path>]

Algorithm flags:
    BFS, SSSP   --source <dense id>
    PR          --damping <factor> --iteration <n>
    CDLP        --iteration <n>
    LCC, WCC    (none)

Identical (algorithm, parameters, configuration) always yield identical
argument lists.
"""

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from ..core.config import JobConfiguration
from ..core.utils import ALGORITHMS, CSR_GENERATOR
from .idmap import VertexIdMap


class Algorithm(Enum):
    """Algorithms supported by OpenG; the value is the executable name."""
    BFS = ALGORITHMS["BFS"]
    SSSP = ALGORITHMS["SSSP"]
    PR = ALGORITHMS["PR"]
    CDLP = ALGORITHMS["CDLP"]
    LCC = ALGORITHMS["LCC"]
    WCC = ALGORITHMS["WCC"]

    @property
    def executable(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> "Algorithm":
        """Look up an algorithm by tag or executable name (case-insensitive)."""
        key = name.strip().upper()
        if key == "PAGERANK":
            key = "PR"
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown algorithm: {name!r} "
                             f"(expected one of {', '.join(a.name for a in cls)})") from None


# =============================================================================
# Algorithm Parameters
# =============================================================================

@dataclass(frozen=True)
class BfsParameters:
    source_vertex: int


@dataclass(frozen=True)
class SsspParameters:
    source_vertex: int


@dataclass(frozen=True)
class PageRankParameters:
    damping_factor: float
    iterations: int


@dataclass(frozen=True)
class CdlpParameters:
    max_iterations: int


@dataclass(frozen=True)
class LccParameters:
    pass


@dataclass(frozen=True)
class WccParameters:
    pass


AlgorithmParameters = Union[
    BfsParameters, SsspParameters, PageRankParameters,
    CdlpParameters, LccParameters, WccParameters,
]

PARAMETER_TYPES = {
    Algorithm.BFS: BfsParameters,
    Algorithm.SSSP: SsspParameters,
    Algorithm.PR: PageRankParameters,
    Algorithm.CDLP: CdlpParameters,
    Algorithm.LCC: LccParameters,
    Algorithm.WCC: WccParameters,
}


def translate_parameters(parameters: AlgorithmParameters,
                         id_map: VertexIdMap) -> AlgorithmParameters:
    """Replace a native source vertex with its dense id; other parameters pass through."""
    if isinstance(parameters, (BfsParameters, SsspParameters)):
        return replace(parameters,
                       source_vertex=id_map.forward(parameters.source_vertex,
                                                    context="source vertex"))
    return parameters


# =============================================================================
# Job Specification
# =============================================================================

@dataclass(frozen=True)
class AlgorithmJobSpec:
    """
    A fully translated OpenG job.

    Attributes:
        algorithm: Algorithm tag
        parameters: Parameters in the dense id space
        input_path: Transcoded graph directory (``--dataset``)
        output_path: Raw result file (``--output``), None if no output needed
    """
    algorithm: Algorithm
    parameters: AlgorithmParameters
    input_path: Path
    output_path: Optional[Path] = None

    def __post_init__(self):
        expected = PARAMETER_TYPES[self.algorithm]
        if not isinstance(self.parameters, expected):
            raise TypeError(f"{self.algorithm.name} expects {expected.__name__}, "
                            f"got {type(self.parameters).__name__}")

    @classmethod
    def create(cls, algorithm: Algorithm, parameters: AlgorithmParameters,
               input_path, id_map: VertexIdMap,
               output_path=None) -> "AlgorithmJobSpec":
        """Build a spec from native-space parameters, translating ids through ``id_map``."""
        return cls(
            algorithm=algorithm,
            parameters=translate_parameters(parameters, id_map),
            input_path=Path(input_path),
            output_path=Path(output_path) if output_path is not None else None,
        )


def _algorithm_arguments(parameters: AlgorithmParameters) -> List[str]:
    if isinstance(parameters, (BfsParameters, SsspParameters)):
        return ["--source", str(parameters.source_vertex)]
    if isinstance(parameters, PageRankParameters):
        return ["--damping", repr(float(parameters.damping_factor)),
                "--iteration", str(parameters.iterations)]
    if isinstance(parameters, CdlpParameters):
        return ["--iteration", str(parameters.max_iterations)]
    return []


def build_command(spec: AlgorithmJobSpec, config: JobConfiguration) -> List[str]:
    """Build the engine argument list for ``spec``."""
    cmd = [str(Path(config.binary_dir) / spec.algorithm.executable)]
    cmd += ["--dataset", str(spec.input_path)]
    cmd += ["--threadnum", str(config.thread_count)]
    cmd += _algorithm_arguments(spec.parameters)
    if spec.output_path is not None:
        cmd += ["--output", str(spec.output_path)]
    return cmd


def build_csr_command(dataset_dir, config: JobConfiguration,
                      is_directed: bool, is_weighted: bool) -> List[str]:
    """Build the ``genCSR`` preprocessing command for a transcoded graph directory."""
    dataset_dir = str(Path(dataset_dir).resolve())
    return [
        str(Path(config.binary_dir) / CSR_GENERATOR),
        "--dataset", dataset_dir,
        "--outpath", dataset_dir,
        "--undirected", "0" if is_directed else "1",
        "--weight", "1" if is_weighted else "0",
    ]
