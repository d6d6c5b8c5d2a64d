"""
Model catalog: the static set of segmentation models and their palettes.

Descriptors are immutable and the catalog is a read-only value handed to
each pipeline, so several pipelines can share one catalog safely.
"""

import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Sequence, Tuple

from ..core.exceptions import CatalogError, InvalidIndex, UnknownDataset

# Single-image batch
DIM_BATCH_SIZE = 1
# RGB input channels
DIM_PIXEL_SIZE = 3
# float32 input values and 32-bit output cells
BYTES_PER_CHANNEL = 4


class Dataset(Enum):
    """Color-scheme tag of a model's class set."""
    PASCAL = "PASCAL"


# ARGB colors indexed by class id
PALETTES: Dict[Dataset, Tuple[int, ...]] = {
    Dataset.PASCAL: (
        0x00FFFFFF,  # background
        0xFF228B22,  # green
        0xFFFF1493,  # pink
    ),
}


def parse_dataset(tag) -> Dataset:
    """Resolve a dataset tag from configuration, raising UnknownDataset."""
    if isinstance(tag, Dataset):
        return tag
    try:
        return Dataset(str(tag).upper())
    except ValueError:
        raise UnknownDataset(f"Unknown dataset tag: {tag!r}", dataset=str(tag)) from None


def palette_for(dataset: Dataset) -> Tuple[int, ...]:
    """Ordered class colors for a dataset tag."""
    try:
        return PALETTES[dataset]
    except KeyError:
        raise UnknownDataset(f"No palette registered for dataset {dataset}", dataset=str(dataset)) from None


@dataclass(frozen=True)
class ModelDescriptor:
    """
    Static metadata for one model variant.

    Attributes:
        path: Asset name without extension, also the model identifier
        dataset: Color-scheme tag selecting the palette
        input_width: Model input width (pixels)
        input_height: Model input height (pixels)
        output_width: Model output width (cells)
        output_height: Model output height (cells)
        output_channels: Values per output cell. 1 means the model emits a
                         class index per pixel; more means per-class scores
                         that are reduced with argmax
    """
    path: str
    dataset: Dataset
    input_width: int
    input_height: int
    output_width: int
    output_height: int
    output_channels: int = 1

    def __post_init__(self):
        dims = (self.input_width, self.input_height, self.output_width,
                self.output_height, self.output_channels)
        if any(isinstance(d, bool) or not isinstance(d, numbers.Integral) for d in dims):
            raise CatalogError(f"Model '{self.path}' has non-integer dimensions: {dims}")
        if any(d < 1 for d in dims):
            raise CatalogError(f"Model '{self.path}' has non-positive dimensions: {dims}")

    @property
    def palette(self) -> Tuple[int, ...]:
        return palette_for(self.dataset)

    @property
    def num_classes(self) -> int:
        return len(self.palette)

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        """NHWC input tensor shape."""
        return (DIM_BATCH_SIZE, self.input_height, self.input_width, DIM_PIXEL_SIZE)

    @property
    def output_shape(self) -> Tuple[int, int, int, int]:
        return (DIM_BATCH_SIZE, self.output_height, self.output_width, self.output_channels)

    @property
    def input_size(self) -> int:
        """Number of float values in the input tensor."""
        return DIM_BATCH_SIZE * self.input_width * self.input_height * DIM_PIXEL_SIZE

    @property
    def output_size(self) -> int:
        """Number of 32-bit cells in the output tensor."""
        return DIM_BATCH_SIZE * self.output_width * self.output_height * self.output_channels

    @property
    def input_nbytes(self) -> int:
        return self.input_size * BYTES_PER_CHANNEL

    @property
    def output_nbytes(self) -> int:
        return self.output_size * BYTES_PER_CHANNEL


class ModelCatalog:
    """
    Read-only, ordered collection of model descriptors.

    Every descriptor's palette is resolved at construction so a
    misconfigured dataset fails at startup rather than mid-stream.
    """

    def __init__(self, descriptors: Sequence[ModelDescriptor]):
        self._descriptors: Tuple[ModelDescriptor, ...] = tuple(descriptors)
        for descriptor in self._descriptors:
            palette_for(descriptor.dataset)

    def descriptor(self, index: int) -> ModelDescriptor:
        """Descriptor at index; negative or too-large indices raise InvalidIndex."""
        if isinstance(index, bool) or not isinstance(index, numbers.Integral):
            raise InvalidIndex(f"Model index must be an int, got {index!r}", index=index, count=self.count())
        if not 0 <= index < len(self._descriptors):
            raise InvalidIndex(
                f"Model index {index} out of range [0, {len(self._descriptors)})",
                index=index,
                count=self.count()
            )
        return self._descriptors[index]

    def count(self) -> int:
        return len(self._descriptors)

    def palette_for(self, descriptor: ModelDescriptor) -> Tuple[int, ...]:
        return palette_for(descriptor.dataset)

    def index_of(self, path: str) -> int:
        """Index of the descriptor with the given path."""
        for index, descriptor in enumerate(self._descriptors):
            if descriptor.path == path:
                return index
        raise InvalidIndex(f"No model named '{path}' in catalog", count=self.count())

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(self._descriptors)

    def __repr__(self) -> str:
        names = ", ".join(d.path for d in self._descriptors)
        return f"ModelCatalog([{names}])"
