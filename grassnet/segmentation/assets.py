"""
Read-only access to model files.

Models are memory-mapped rather than read eagerly so switching between
large models does not copy whole files up front.
"""

import mmap
import os
from pathlib import Path
from typing import Optional, Union

from .catalog import ModelDescriptor
from ..core.exceptions import ModelLoadError
from ..core.logging_config import get_logger

logger = get_logger("segmentation.assets")

DEFAULT_EXTENSION = "onnx"


class ModelBlob:
    """A read-only memory map of one model file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._mmap: Optional[mmap.mmap] = None

        try:
            with open(self.path, "rb") as f:
                if os.fstat(f.fileno()).st_size == 0:
                    raise ModelLoadError(f"Model file is empty: {self.path}", path=str(self.path))
                self._mmap = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
        except OSError as e:
            raise ModelLoadError(f"Cannot map model file {self.path}: {e}", path=str(self.path)) from e

    @property
    def closed(self) -> bool:
        return self._mmap is None

    def read(self) -> bytes:
        """Copy of the full model contents."""
        if self._mmap is None:
            raise ModelLoadError(f"Model file already released: {self.path}", path=str(self.path))
        return self._mmap[:]

    def close(self) -> None:
        """Unmap the file. Safe to call more than once."""
        if self._mmap is not None:
            self._mmap.close()
            self._mmap = None

    def __len__(self) -> int:
        return 0 if self._mmap is None else len(self._mmap)

    def __enter__(self) -> "ModelBlob":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"{len(self)} bytes"
        return f"ModelBlob({self.path.name}, {state})"


class ModelAssetStore:
    """Resolves descriptors to `{root}/{path}.{extension}` model files."""

    def __init__(self, root: Union[str, Path], extension: str = DEFAULT_EXTENSION):
        self.root = Path(root)
        self.extension = extension.lstrip(".")

    def asset_path(self, descriptor: ModelDescriptor) -> Path:
        return self.root / f"{descriptor.path}.{self.extension}"

    def exists(self, descriptor: ModelDescriptor) -> bool:
        return self.asset_path(descriptor).is_file()

    def open(self, descriptor: ModelDescriptor) -> ModelBlob:
        """Map the model file for a descriptor; raises ModelLoadError if missing."""
        path = self.asset_path(descriptor)
        if not path.is_file():
            logger.error(f"Model file not found: {path}")
            raise ModelLoadError(f"Model file not found: {path}", path=str(path))

        blob = ModelBlob(path)
        logger.debug(f"Mapped {path} ({len(blob)} bytes)")
        return blob
