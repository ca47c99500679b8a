"""
Vertex id mapping between native and dense id spaces.

OpenG requires vertex ids in the contiguous range [0, N). Native ids are
arbitrary signed 64-bit integers; they are assigned dense ids in the order
they appear in the vertex list, starting at 0.

Usage:
    mapper = VertexIdMapper(expected_size=3)
    for native in (10, 20, 30):
        mapper.assign(native)
    id_map = mapper.freeze()

    id_map.forward(20)   # -> 1
    id_map.reverse(2)    # -> 30
"""

import re
from array import array
from typing import Dict, Iterable, Iterator, Optional

from ..core.errors import OutputTranslationError, ParseError

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

# Plain ASCII decimal: no sign other than "-", no underscores, no whitespace
INTEGER_PATTERN = re.compile(r"-?[0-9]+")


def parse_vertex_id(token: str, line: Optional[str] = None,
                    line_number: Optional[int] = None, path: Optional[str] = None) -> int:
    """Parse a native vertex id, rejecting non-integers and ids outside int64."""
    if not INTEGER_PATTERN.fullmatch(token):
        raise ParseError("Invalid vertex id", line=line if line is not None else token,
                         line_number=line_number, path=path)
    value = int(token)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ParseError("Vertex id out of 64-bit range",
                         line=line if line is not None else token,
                         line_number=line_number, path=path)
    return value


class VertexIdMap:
    """
    Immutable bijection native id <-> dense id.

    Only ``VertexIdMapper.freeze`` creates instances. Read-only after
    construction, so any number of threads may share one map.
    """

    __slots__ = ("_forward", "_reverse")

    def __init__(self, forward: Dict[int, int], reverse: array):
        self._forward = forward
        self._reverse = reverse

    def __len__(self) -> int:
        return len(self._reverse)

    def __contains__(self, native_id: int) -> bool:
        return native_id in self._forward

    def __iter__(self) -> Iterator[int]:
        """Iterate native ids in dense-id order."""
        return iter(self._reverse)

    def forward(self, native_id: int, context: Optional[str] = None) -> int:
        """
        Translate a native id to its dense id.

        Args:
            native_id: Native vertex id
            context: Description of where the id was read (e.g. the raw edge
                line), included in the error

        Raises:
            ParseError: the id is not in the vertex list
        """
        try:
            return self._forward[native_id]
        except KeyError:
            raise ParseError(f"Vertex id {native_id} not found in vertex list",
                             line=context) from None

    def reverse(self, dense_id: int) -> int:
        """
        Translate a dense id back to its native id.

        Raises:
            OutputTranslationError: no vertex was assigned this dense id
        """
        if not 0 <= dense_id < len(self._reverse):
            raise OutputTranslationError(
                f"Dense vertex id {dense_id} has no native counterpart "
                f"(graph has {len(self._reverse)} vertices)")
        return self._reverse[dense_id]


class VertexIdMapper:
    """Builds a VertexIdMap from native ids in vertex-list order."""

    def __init__(self, expected_size: int = 0):
        # expected_size is advisory; dicts and arrays grow as needed
        self._expected_size = expected_size
        self._forward: Dict[int, int] = {}
        self._reverse = array("q")
        self._frozen = False

    def __len__(self) -> int:
        return len(self._reverse)

    def assign(self, native_id: int, context: Optional[str] = None) -> int:
        """
        Assign the next dense id to ``native_id`` and return it.

        Raises:
            ParseError: ``native_id`` was already assigned
        """
        if self._frozen:
            raise RuntimeError("VertexIdMapper is frozen")
        if native_id in self._forward:
            raise ParseError(f"Duplicate vertex id {native_id} in vertex list",
                             line=context)
        dense_id = len(self._reverse)
        self._forward[native_id] = dense_id
        self._reverse.append(native_id)
        return dense_id

    def freeze(self) -> VertexIdMap:
        """Finish construction; the mapper accepts no further ids."""
        self._frozen = True
        return VertexIdMap(self._forward, self._reverse)

    @classmethod
    def build(cls, native_ids: Iterable[int]) -> VertexIdMap:
        """Build a map from native ids in order (single linear pass)."""
        mapper = cls()
        for native_id in native_ids:
            mapper.assign(native_id)
        return mapper.freeze()
