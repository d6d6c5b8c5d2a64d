"""
Core data types shared across the GrassNet pipeline.

These dataclasses are the values passed between the catalog, the engine
and the pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple
import numpy as np


class EngineState(Enum):
    """Lifecycle state of a model handle or pipeline."""
    UNLOADED = "unloaded"
    LOADED = "loaded"


@dataclass(frozen=True)
class EngineOptions:
    """
    Execution options handed to an inference backend.

    Attributes:
        num_threads: Threads the runtime may use inside one run
                     (None = runtime default)
        providers: Preferred execution providers, in order
                   (empty = let the backend choose)
    """
    num_threads: Optional[int] = None
    providers: Tuple[str, ...] = field(default_factory=tuple)


@dataclass
class FrameResult:
    """
    Output of one segmentation call.

    Attributes:
        class_map: Class index per output pixel (H x W), row-major
        palette: ARGB color per class index
        model: Path identifier of the model that produced the result

    The class map returned by the pipeline is reused by the next call;
    use copy() to keep it.
    """
    class_map: np.ndarray
    palette: Tuple[int, ...]
    model: str = ""

    def __len__(self) -> int:
        return int(self.class_map.size)

    @property
    def width(self) -> int:
        return int(self.class_map.shape[1])

    @property
    def height(self) -> int:
        return int(self.class_map.shape[0])

    def colors(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Map every class index to its palette color (uint32 ARGB, H x W)."""
        lut = np.asarray(self.palette, dtype=np.uint32)
        return np.take(lut, self.class_map, out=out)

    def class_counts(self) -> np.ndarray:
        """Pixel count per class index, one entry per palette color."""
        return np.bincount(self.class_map.ravel(), minlength=len(self.palette))

    def copy(self) -> "FrameResult":
        """Detach the result from the pipeline's reusable class map."""
        return FrameResult(
            class_map=self.class_map.copy(),
            palette=self.palette,
            model=self.model
        )
