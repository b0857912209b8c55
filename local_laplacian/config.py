"""Configuration management using dataclasses for type safety and validation."""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Literal, Tuple, Union

logger = logging.getLogger(__name__)

PREVIEW = "preview"
LOW_CONTRAST = "low-contrast"
NORMAL_CONTRAST = "normal-contrast"

Mode = Literal["preview", "low-contrast", "normal-contrast"]

MODES: Tuple[str, ...] = (PREVIEW, LOW_CONTRAST, NORMAL_CONTRAST)

# Reference-level window sampled by each mode
MODE_WINDOWS = {
    PREVIEW: (112, 143),
    LOW_CONTRAST: (0, 255),
    NORMAL_CONTRAST: (0, 255),
}

_KEY_ALIASES = {
    "noiseReduction": "noise_reduction",
    "detailEdgeThreshold": "detail_edge_threshold",
    "threshold": "detail_edge_threshold",
    "detailStrength": "detail_strength",
    "edgeStrength": "edge_strength",
    "keepAsLayer": "keep_as_layer",
    "minSize": "min_size",
}


@dataclass
class ToneMapConfig:
    """User parameters for a local Laplacian tone-mapping run.

    Validates all inputs and provides the derived values the pipeline works
    with (detail radius, noise-reduction amount, contrast window).
    """

    mode: Mode = NORMAL_CONTRAST
    noise_reduction: int = 0
    detail_edge_threshold: int = 40
    detail_strength: float = 0.0
    edge_strength: float = 0.0
    keep_as_layer: bool = False
    min_size: int = 2

    @classmethod
    def from_dict(cls, data: dict) -> "ToneMapConfig":
        """Create ToneMapConfig from dictionary.

        Both snake_case and camelCase keys are accepted.

        Raises:
            ValueError: If the dictionary contains unknown keys.
        """
        known = set(cls.__dataclass_fields__)
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown configuration field: {key}")
            values[name] = value
        return cls(**values)

    @classmethod
    def from_json(cls, json_path: Union[str, Path]) -> "ToneMapConfig":
        """Load configuration from JSON file.

        Args:
            json_path: Path to JSON configuration file

        Returns:
            ToneMapConfig instance with loaded parameters

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is malformed
        """
        json_path = Path(json_path)
        if not json_path.exists():
            raise FileNotFoundError(f"Config file not found: {json_path}")

        try:
            with open(json_path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file: {e}")

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a JSON object")

        config = cls.from_dict(data)
        logger.info(f"Loaded config from {json_path}")
        return config

    def to_dict(self) -> dict:
        return asdict(self)

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            ValueError: If any parameter is invalid
        """
        if self.mode not in MODES:
            raise ValueError(f"mode must be one of {', '.join(MODES)}, got {self.mode!r}")
        if isinstance(self.noise_reduction, bool) or self.noise_reduction not in range(5):
            raise ValueError("noise_reduction must be an integer in [0, 4]")
        if not 0 <= self.detail_edge_threshold <= 255:
            raise ValueError("detail_edge_threshold must be in [0, 255]")
        if not -100 <= self.detail_strength <= 100:
            raise ValueError("detail_strength must be in [-100, 100]")
        if not -100 <= self.edge_strength <= 100:
            raise ValueError("edge_strength must be in [-100, 100]")
        if not isinstance(self.keep_as_layer, bool):
            raise ValueError("keep_as_layer must be a boolean")
        if self.min_size < 1:
            raise ValueError("min_size must be >= 1")

    @property
    def detail_radius(self) -> float:
        return self.detail_edge_threshold / 2.0

    @property
    def noise_reduction_amount(self) -> int:
        """Noise-reduction radius; the user value 0 maps to the neutral 1."""
        return self.noise_reduction + 1

    @property
    def window(self) -> Tuple[int, int]:
        return MODE_WINDOWS[self.mode]

    @property
    def uses_contrast_blend(self) -> bool:
        return self.mode == NORMAL_CONTRAST
