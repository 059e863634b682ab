"""
Path resolution and configuration management.

Provides centralized path management for pipeline inputs and outputs.
Relative paths are resolved against the project root, so results do not
depend on the current working directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


def project_root() -> Path:
    """
    Locate the project root.

    Uses TONSILATLAS_ROOT when set, otherwise the checkout containing src/
    for this package. An installed package has no config/ beside it, so the
    current working directory is used instead.
    """
    env_root = os.getenv("TONSILATLAS_ROOT")
    if env_root:
        return Path(env_root).resolve()
    root = Path(__file__).resolve().parent.parent.parent.parent
    if not (root / "config" / "default.yaml").exists():
        return Path.cwd()
    return root


class PathResolver:
    """
    Centralized path resolver for pipeline configuration.

    Loads YAML configuration files and provides easy access to data paths
    with validation.

    Example:
        >>> resolver = PathResolver()
        >>> h5ad_path = resolver.tonsil_h5ad
        >>> figures_dir = resolver.figures
    """

    def __init__(
        self,
        config_path: Path | str | None = None,
        overrides: dict[str, Any] | None = None,
        root: Path | str | None = None,
    ):
        """
        Initialize path resolver.

        Args:
            config_path: Path to configuration file. If None, loads
                config/default.yaml under the project root.
            overrides: Dictionary of override values to apply on top of config.
            root: Base directory for relative paths (defaults to project root).
        """
        self.root = Path(root).resolve() if root is not None else project_root()

        if config_path is None:
            config_path = self.root / "config" / "default.yaml"
        else:
            config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        self.config_path = config_path
        with open(config_path) as f:
            self.config = yaml.safe_load(f) or {}

        # Machine-specific overrides (data locations) live next to the config
        local_config_path = config_path.parent / "local.yaml"
        if local_config_path.exists():
            with open(local_config_path) as f:
                local_config = yaml.safe_load(f) or {}
                self._merge_config(self.config, local_config)

        if overrides:
            self._merge_config(self.config, overrides)

        logger.info(f"Loaded configuration from {config_path}")

    def _merge_config(self, base: dict, overlay: dict) -> None:
        """
        Recursively merge overlay config into base config.

        Args:
            base: Base configuration dictionary (modified in place)
            overlay: Overlay configuration to merge
        """
        for key, value in overlay.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def resolve(self, path: Path | str) -> Path:
        """Resolve a path against the project root unless it is absolute."""
        path = Path(path).expanduser()
        if path.is_absolute():
            return path
        return self.root / path

    def _get_path(self, section: str, key: str, validate: bool = True) -> Path:
        """
        Get path from configuration.

        Args:
            section: Configuration section ('data_paths', 'output_paths')
            key: Path key within section
            validate: If True, log warning if path doesn't exist

        Returns:
            Path object
        """
        if section not in self.config:
            raise KeyError(f"Configuration section '{section}' not found")

        if key not in self.config[section]:
            raise KeyError(f"Path '{key}' not found in section '{section}'")

        path = self.resolve(self.config[section][key])

        if validate and not path.exists():
            logger.warning(f"Path does not exist: {path} ({section}.{key})")

        return path

    # ==================== Data Paths ====================

    @property
    def tonsil_h5ad(self) -> Path:
        """Get tonsil atlas H5AD file path."""
        return self._get_path("data_paths", "tonsil_h5ad")

    @property
    def scenic_auc(self) -> Path:
        """Get pySCENIC AUCell matrix CSV path."""
        return self._get_path("data_paths", "scenic_auc")

    @property
    def regulons(self) -> Path:
        """Get regulon membership CSV path."""
        return self._get_path("data_paths", "regulons")

    @property
    def annotation(self) -> Path:
        """Get updated annotation CSV path."""
        return self._get_path("data_paths", "annotation")

    @property
    def gene_list(self) -> Path:
        """Get TF-correlated gene list CSV path."""
        return self._get_path("data_paths", "gene_list")

    # ==================== Output Paths ====================

    @property
    def results(self) -> Path:
        """Get results output directory."""
        return self._get_path("output_paths", "results", validate=False)

    @property
    def figures(self) -> Path:
        """Get figures output directory."""
        return self._get_path("output_paths", "figures", validate=False)

    def get_output_path(self, name: str) -> Path:
        """
        Get output path by name.

        Args:
            name: Output path name (e.g., 'results', 'figures')

        Returns:
            Path object
        """
        return self._get_path("output_paths", name, validate=False)

    # ==================== Utilities ====================

    def ensure_output_dirs(self) -> None:
        """Create all output directories if they don't exist."""
        for key in self.config.get("output_paths", {}).keys():
            path = self.get_output_path(key)
            path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Ensured output directory exists: {path}")
