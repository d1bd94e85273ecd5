"""Per-invocation scratch directory for intermediate preview files."""

import logging
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "preview-"


class ScratchWorkspace:
    """
    A uniquely named temporary directory owned by one pipeline run.

    Holds the fetched input (``input<ext>``) and the encoded output. The
    directory is created on ``__enter__`` and removed recursively on
    ``__exit__`` regardless of how the block ended.
    """

    def __init__(self, base_dir: str | Path | None = None, prefix: str = WORKSPACE_PREFIX):
        self._base_dir = base_dir
        self._prefix = prefix
        self._path: Path | None = None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("Scratch workspace is not open")
        return self._path

    def input_path(self, extension: str) -> Path:
        """Path of the fetched source file, keeping the original extension."""
        return self.path / f"input{extension}"

    def output_path(self, name: str) -> Path:
        return self.path / name

    def __enter__(self) -> "ScratchWorkspace":
        self._path = Path(tempfile.mkdtemp(prefix=self._prefix, dir=self._base_dir))
        logger.info("Scratch workspace created", extra={"workspace": str(self._path)})
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        path, self._path = self._path, None
        if path is None:
            return
        shutil.rmtree(path, ignore_errors=True)
        if path.exists():
            logger.warning("Scratch workspace not fully removed", extra={"workspace": str(path)})
        else:
            logger.info("Scratch workspace removed", extra={"workspace": str(path)})
