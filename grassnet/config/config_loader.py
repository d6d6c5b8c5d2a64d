"""
Configuration loader for GrassNet.

Loads YAML configuration files and provides typed access to configuration values.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
from pathlib import Path
import os
import yaml

from ..core.exceptions import CatalogError, InvalidArgument
from ..core.logging_config import get_logger
from ..segmentation.catalog import Dataset, ModelDescriptor, parse_dataset

logger = get_logger("config")


def default_models() -> List[ModelDescriptor]:
    """Built-in catalog: the two 256x256 grass models."""
    return [
        ModelDescriptor("grass1", Dataset.PASCAL, 256, 256, 256, 256),
        ModelDescriptor("grassNet_mobilenet_v2", Dataset.PASCAL, 256, 256, 256, 256),
    ]


@dataclass
class AssetConfig:
    """Where model files live."""
    model_dir: str = "models"
    extension: str = "onnx"


@dataclass
class RuntimeConfig:
    """Inference runtime settings."""
    inference_backend: str = "onnx"      # "onnx" or "mock"
    num_threads: Optional[int] = None    # None = runtime default
    providers: List[str] = field(default_factory=list)
    initial_model: int = 0


@dataclass
class PipelineConfig:
    """Complete pipeline configuration."""
    models: List[ModelDescriptor] = field(default_factory=default_models)
    assets: AssetConfig = field(default_factory=AssetConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    log_level: str = "INFO"


class ConfigLoader:
    """Loads and parses YAML configuration files."""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize config loader.

        Args:
            config_dir: Directory containing config files. Defaults to
                        the 'config' directory in the package.
        """
        if config_dir is None:
            config_dir = Path(__file__).parent
        self.config_dir = Path(config_dir)

    def load_pipeline_config(self, filename: str = "pipeline_config.yaml") -> PipelineConfig:
        """
        Load pipeline configuration.

        Raises:
            UnknownDataset: a model names a dataset without a palette
            CatalogError: the file cannot be parsed or a model entry is incomplete
            InvalidArgument: a runtime value is out of range
        """
        config_path = self.config_dir / filename
        data = self._load_yaml(config_path)

        # Parse model catalog
        if "models" in data:
            models = [self._parse_model(entry) for entry in (data.get("models") or [])]
        else:
            models = default_models()

        # Parse assets; relative model_dir is resolved against the config dir's parent
        asset_data = data.get("assets") or {}
        model_dir = asset_data.get("model_dir", "models")
        if not os.path.isabs(model_dir):
            model_dir = str(self.config_dir.parent / model_dir)
        assets = AssetConfig(
            model_dir=model_dir,
            extension=asset_data.get("extension", "onnx"),
        )

        # Parse runtime
        rt_data = data.get("runtime") or {}
        num_threads = rt_data.get("num_threads")
        if num_threads is not None and (
            isinstance(num_threads, bool) or not isinstance(num_threads, int) or num_threads < 1
        ):
            raise InvalidArgument(f"runtime.num_threads must be a positive integer, got {num_threads!r}")
        runtime = RuntimeConfig(
            inference_backend=rt_data.get("inference_backend", "onnx"),
            num_threads=num_threads,
            providers=list(rt_data.get("providers") or []),
            initial_model=rt_data.get("initial_model", 0),
        )

        # Parse logging
        log_data = data.get("logging") or {}
        log_level = log_data.get("level", "INFO")

        return PipelineConfig(
            models=models,
            assets=assets,
            runtime=runtime,
            log_level=log_level,
        )

    def _parse_model(self, entry: Dict[str, Any]) -> ModelDescriptor:
        """Build a descriptor from one `models` entry."""
        try:
            return ModelDescriptor(
                path=str(entry["path"]),
                dataset=parse_dataset(entry.get("dataset", "PASCAL")),
                input_width=entry["input_width"],
                input_height=entry["input_height"],
                output_width=entry.get("output_width", entry["input_width"]),
                output_height=entry.get("output_height", entry["input_height"]),
                output_channels=entry.get("output_channels", 1),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(f"Invalid model entry {entry!r}: {e}") from e

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        """
        Read the top-level mapping of a pipeline file.

        Only an absent file falls back to the built-in settings; a file that
        exists but cannot be read or parsed is a CatalogError.
        """
        if not path.exists():
            logger.warning(f"No pipeline file at {path}, using built-in models")
            return {}

        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Cannot read pipeline file {path}: {e}")
            raise CatalogError(f"Cannot read pipeline file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise CatalogError(f"Pipeline file {path} must hold a mapping, got {type(data).__name__}")
        return data
