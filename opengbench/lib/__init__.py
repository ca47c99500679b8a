"""
opengbench Library - Graph benchmark driver for the OpenG engine.

This library provides functions for:
- Loading and validating the OpenG job configuration
- Mapping native vertex ids to the dense id range OpenG requires
- Transcoding VE graphs to the OpenG csv format
- Building OpenG command lines for every supported algorithm
- Running OpenG processes with streamed, logged output
- Translating OpenG results back to native vertex ids

**Module Overview:**

Sub-packages:
- `core/`:     Constants, logging, errors, data types, configuration
  - `utils`:        Constants (ALGORITHMS), console logger, JSON helpers
  - `errors`:       Error taxonomy (ConfigurationError, ParseError, ...)
  - `graph_types`:  Graph descriptor (GraphInfo, PropertySpec)
  - `config`:       JobConfiguration and its loader
- `pipeline/`: Adapter pipeline stages
  - `idmap`:        VertexIdMapper / VertexIdMap
  - `transcode`:    VE -> vertex.csv / edge.csv
  - `jobs`:         AlgorithmJobSpec and command building
  - `runner`:       ProcessRunner
  - `results`:      Result translation to native ids
  - `platform`:     Upload / execute / delete and the job lifecycle

**Standalone Usage:**
    python -m opengbench.lib.core.utils --list-algorithms
    python -m opengbench.lib.pipeline.transcode --vertices g.v --edges g.e -o out/g

**Library Usage:**
    from opengbench.lib.core.config import load_configuration
    from opengbench.lib.pipeline.platform import OpengPlatform, BenchmarkRun
    from opengbench.lib.pipeline.jobs import Algorithm, PageRankParameters
"""

__version__ = "1.0.0"
__all__ = ["core", "pipeline"]
