"""Format and write the artifacts of one generation target.

Every artifact of a target is formatted before anything is written. If
any artifact fails, its raw text is saved as ``<file>.unformatted`` for
inspection and the whole target is aborted with
:class:`~specsdk.exceptions.EmitError`; files of other targets are not
touched. Successful files are written atomically.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence, Union

from specsdk.config import atomic_write
from specsdk.emit.formatter import format_source
from specsdk.exceptions import EmitError, FormatError
from specsdk.models import Artifact

logger = logging.getLogger(__name__)

UNFORMATTED_SUFFIX = ".unformatted"


def write_target(artifacts: Sequence[Artifact], output_dir: Union[str, Path]) -> list[Path]:
    """Format *artifacts* and write them under *output_dir*.

    Args:
        artifacts: The artifacts of one pass.
        output_dir: Root directory of the generated package.

    Returns:
        The written paths, in artifact order.

    Raises:
        EmitError: If any artifact fails formatting. ``paths`` lists the
            ``.unformatted`` files that were written.
    """
    root = Path(output_dir)
    formatted: list[tuple[Path, str]] = []
    failures: list[FormatError] = []

    for artifact in artifacts:
        try:
            formatted.append((root / artifact.path, format_source(artifact.content, artifact.path)))
        except FormatError as exc:
            raw_path = root / (artifact.path + UNFORMATTED_SUFFIX)
            atomic_write(raw_path, artifact.content)
            logger.error("Formatting failed for %s; raw output saved to %s", exc, raw_path)
            failures.append(exc)

    if failures:
        raise EmitError(
            "Formatting failed for " + ", ".join(exc.filename for exc in failures),
            paths=[str(root / (exc.filename + UNFORMATTED_SUFFIX)) for exc in failures],
        )

    written = []
    for path, content in formatted:
        atomic_write(path, content)
        stale = path.with_name(path.name + UNFORMATTED_SUFFIX)
        if stale.exists():
            stale.unlink()
        logger.debug("Wrote %s", path)
        written.append(path)
    return written
