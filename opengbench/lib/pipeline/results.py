"""
Translation of OpenG result files back to native vertex ids.

OpenG writes one line per vertex, either ``<dense id> <value>`` or just
``<value>`` with the dense id implied by the line position. The translated
file has ``<native id> <value>`` per line, in the same order. Values are
copied verbatim.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator

from ..core.errors import OutputTranslationError
from .idmap import INTEGER_PATTERN, VertexIdMap

log = logging.getLogger("opengbench.results")


def translate_result_lines(lines: Iterable[str], id_map: VertexIdMap) -> Iterator[str]:
    """Yield translated ``native value`` lines (without newline) for raw result lines."""
    position = 0
    for line_number, raw_line in enumerate(lines, start=1):
        fields = raw_line.split()
        if not fields:
            continue

        if len(fields) == 1:
            dense_id, value = position, fields[0]
        elif len(fields) == 2:
            if not INTEGER_PATTERN.fullmatch(fields[0]):
                raise OutputTranslationError(
                    f'Invalid vertex id in result line {line_number}: "{raw_line.rstrip()}"')
            dense_id = int(fields[0])
            value = fields[1]
        else:
            raise OutputTranslationError(
                f'Malformed result line {line_number}: "{raw_line.rstrip()}"')

        try:
            native_id = id_map.reverse(dense_id)
        except OutputTranslationError as e:
            raise OutputTranslationError(f"Result line {line_number}: {e}") from None

        position += 1
        yield f"{native_id} {value}"


def translate_result_file(raw_path, output_path, id_map: VertexIdMap) -> int:
    """
    Stream ``raw_path`` into ``output_path`` in the native id space.

    The output is written under a temporary name and renamed on success.

    Returns:
        Number of result lines written

    Raises:
        OutputTranslationError: the result file is missing or malformed, or
            references a dense id with no native counterpart
    """
    raw_path = Path(raw_path)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = output_path.with_name(output_path.name + ".tmp")

    log.debug(f"Translating OpenG output {raw_path} -> {output_path}")
    count = 0
    try:
        with open(raw_path, "r", encoding="utf-8", errors="strict") as reader, \
                open(tmp_path, "w") as writer:
            for line in translate_result_lines(reader, id_map):
                writer.write(line + "\n")
                count += 1
        os.replace(tmp_path, output_path)
    except FileNotFoundError as e:
        raise OutputTranslationError(f"OpenG output file not found: {raw_path}") from e
    except UnicodeDecodeError as e:
        raise OutputTranslationError(
            f"OpenG output file {raw_path} is not valid UTF-8 ({e.reason})") from e
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    log.debug(f"Translated {count} result lines")
    return count
