"""Shared fixtures: bundled tiny graph, fake OpenG binaries, job configuration."""

import os
import stat
import sys
from pathlib import Path

import pytest

from opengbench.lib.core.config import JobConfiguration
from opengbench.lib.core.graph_types import GraphInfo, PropertySpec, PropertyType
from opengbench.lib.core.utils import ALGORITHMS, CSR_GENERATOR

GRAPHS_DIR = Path(__file__).resolve().parent / "graphs"

# Behaviour of the fake binaries is controlled through the environment:
#   FAKE_OPENG_EXIT      exit code (default 0)
#   FAKE_OPENG_SLEEP     seconds to sleep before exiting
#   FAKE_OPENG_IMPLICIT  "1" writes value-only result lines
#   FAKE_OPENG_BAD_ID    dense id to write in place of the last vertex
FAKE_ENGINE = """#!{python}
import os
import sys
import time

args = sys.argv[1:]
opts = dict(zip(args[::2], args[1::2]))
here = os.path.dirname(os.path.abspath(__file__))
name = os.path.basename(__file__)
with open(os.path.join(here, name + ".args"), "w") as f:
    f.write("\\n".join(args))

print("fake " + name + " starting")
for i in range(int(os.environ.get("FAKE_OPENG_LINES", "3"))):
    print("iteration " + str(i))
sys.stderr.write("threadnum=" + opts.get("--threadnum", "?") + "\\n")
sys.stdout.flush()
time.sleep(float(os.environ.get("FAKE_OPENG_SLEEP", "0")))

if name == "{csr}":
    with open(os.path.join(opts["--outpath"], "csr.done"), "w") as f:
        f.write(opts["--undirected"] + " " + opts["--weight"] + "\\n")

if "--output" in opts:
    with open(os.path.join(opts["--dataset"], "vertex.csv")) as f:
        n = sum(1 for _ in f) - 1
    implicit = os.environ.get("FAKE_OPENG_IMPLICIT") == "1"
    bad_id = os.environ.get("FAKE_OPENG_BAD_ID")
    source = opts.get("--source")
    with open(opts["--output"], "w") as out:
        for vid in range(n):
            if source is not None:
                value = 0 if str(vid) == source else vid + 1
            else:
                value = vid * 10
            if bad_id is not None and vid == n - 1:
                vid = int(bad_id)
            out.write(str(value) + "\\n" if implicit else str(vid) + " " + str(value) + "\\n")

sys.exit(int(os.environ.get("FAKE_OPENG_EXIT", "0")))
"""


def write_fake_binary(bin_dir: Path, name: str) -> Path:
    path = bin_dir / name
    path.write_text(FAKE_ENGINE.replace("{python}", sys.executable).replace("{csr}", CSR_GENERATOR))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def engine_args(fake_bin_dir):
    """Return the argument list the named fake binary was last called with."""
    def _read(name: str):
        return (fake_bin_dir / f"{name}.args").read_text().split("\n")
    return _read


@pytest.fixture(autouse=True)
def clean_fake_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("FAKE_OPENG_"):
            monkeypatch.delenv(key)


@pytest.fixture
def fake_bin_dir(tmp_path) -> Path:
    """Directory with executable fake OpenG binaries for every algorithm."""
    bin_dir = tmp_path / "openg" / "bin" / "standard"
    bin_dir.mkdir(parents=True)
    for executable in list(ALGORITHMS.values()) + [CSR_GENERATOR]:
        write_fake_binary(bin_dir, executable)
    return bin_dir


@pytest.fixture
def job_config(tmp_path, fake_bin_dir) -> JobConfiguration:
    return JobConfiguration(
        binary_dir=fake_bin_dir,
        intermediate_dir=tmp_path / "intermediate",
        output_dir=tmp_path / "output",
        num_worker_threads=4,
    )


@pytest.fixture
def tiny_graph() -> GraphInfo:
    """Bundled 5-vertex, 5-edge undirected graph with ids 10..50."""
    return GraphInfo(
        name="tiny",
        vertex_path=str(GRAPHS_DIR / "tiny" / "tiny.v"),
        edge_path=str(GRAPHS_DIR / "tiny" / "tiny.e"),
        is_directed=False,
        num_vertices=5,
        num_edges=5,
    )


@pytest.fixture
def tiny_weighted_graph() -> GraphInfo:
    return GraphInfo(
        name="tiny-weighted",
        vertex_path=str(GRAPHS_DIR / "tiny" / "tiny-weighted.v"),
        edge_path=str(GRAPHS_DIR / "tiny" / "tiny-weighted.e"),
        is_directed=True,
        num_vertices=5,
        num_edges=5,
        edge_properties=[PropertySpec("weight", PropertyType.REAL)],
    )


@pytest.fixture
def make_graph(tmp_path):
    """Factory writing a VE graph into ``tmp_path`` and describing it."""
    def _make(vertices: str, edges: str, directed: bool = True, name: str = "g") -> GraphInfo:
        vertex_path = tmp_path / f"{name}.v"
        edge_path = tmp_path / f"{name}.e"
        vertex_path.write_text(vertices)
        edge_path.write_text(edges)
        return GraphInfo(name=name, vertex_path=str(vertex_path), edge_path=str(edge_path),
                         is_directed=directed)
    return _make
