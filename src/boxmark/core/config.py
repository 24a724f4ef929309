"""Configuration management for Boxmark."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# Default configuration file path
DEFAULT_CONFIG_PATH = Path("boxmark.yaml")


@dataclass
class AppConfig:
    """
    Application configuration settings.

    Stores user preferences for the annotation canvas.
    """

    catch_radius: float = 20.0  # Corner catch distance in image pixels; edges use half
    default_class_id: int = 0  # Class id for new boxes until another is picked
    line_thickness: int = 2
    font_size: int = 10
    box_color: str = "#FF004B"
    selected_box_color: str = "#FFFF00"
    delete_annotation_key: str = "Delete"  # Key/combination to delete selected box (empty to disable)
    save_annotations_key: str = "Ctrl+S"
    cancel_edit_key: str = "Escape"
    create_annotation_key: str = "N"  # Start a box placed by two clicks
    autosave: bool = False  # Save labels whenever an edit finishes

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            "catchRadius": self.catch_radius,
            "defaultClassId": self.default_class_id,
            "lineThickness": self.line_thickness,
            "fontSize": self.font_size,
            "boxColor": self.box_color,
            "selectedBoxColor": self.selected_box_color,
            "deleteAnnotationKey": self.delete_annotation_key,
            "saveAnnotationsKey": self.save_annotations_key,
            "cancelEditKey": self.cancel_edit_key,
            "createAnnotationKey": self.create_annotation_key,
            "autosave": self.autosave,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AppConfig:
        """Create config from dictionary."""
        return cls(
            catch_radius=float(data.get("catchRadius", 20.0)),
            default_class_id=data.get("defaultClassId", 0),
            line_thickness=data.get("lineThickness", 2),
            font_size=data.get("fontSize", 10),
            box_color=data.get("boxColor", "#FF004B"),
            selected_box_color=data.get("selectedBoxColor", "#FFFF00"),
            delete_annotation_key=data.get("deleteAnnotationKey", "Delete"),
            save_annotations_key=data.get("saveAnnotationsKey", "Ctrl+S"),
            cancel_edit_key=data.get("cancelEditKey", "Escape"),
            create_annotation_key=data.get("createAnnotationKey", "N"),
            autosave=bool(data.get("autosave", False)),
        )


@dataclass
class ClassCatalog:
    """
    Class names from a YOLO data.yaml.

    The list position is the class id written to label files.
    """

    class_names: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ClassCatalog:
        """Create a catalog from a parsed data.yaml."""
        names = data.get("names", [])
        if isinstance(names, str):
            names = [n.strip() for n in names.split(",")]
        elif isinstance(names, dict):
            # Some data.yaml files use {0: 'cat', 1: 'dog'}
            names = [names[k] for k in sorted(names, key=int)]
        return cls(class_names=[str(name) for name in names])

    def name_of(self, class_id: int) -> str:
        """
        Get the display name of a class.

        Args:
            class_id: Numeric class ID

        Returns:
            Class name, or the id as a string if it is not in the catalog
        """
        if 0 <= class_id < len(self.class_names):
            return self.class_names[class_id]
        return str(class_id)


def load_class_catalog(directory: Path) -> ClassCatalog:
    """
    Read the data.yaml class catalog stored beside the images.

    A missing or unreadable file yields an empty catalog, so boxes are
    labeled by their numeric class id.

    Args:
        directory: Directory containing the images

    Returns:
        ClassCatalog instance
    """
    yaml_path = Path(directory) / "data.yaml"
    if not yaml_path.exists():
        logger.debug(f"No data.yaml in {directory}")
        return ClassCatalog()

    try:
        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading {yaml_path}: {e}")
        return ClassCatalog()

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {yaml_path}: expected a mapping")
        return ClassCatalog()

    catalog = ClassCatalog.from_dict(data)
    logger.info(f"Loaded {len(catalog.class_names)} class names from {yaml_path}")
    return catalog


class ConfigManager:
    """
    Persists AppConfig as YAML.

    The configuration is read lazily on first access; update() writes
    changes straight back so settings chosen in the UI survive restarts.
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Optional[AppConfig] = None

    @property
    def config(self) -> AppConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> AppConfig:
        """
        Read the configuration file.

        Returns:
            AppConfig from the file, or defaults if it is missing or broken
        """
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            return AppConfig()

        try:
            with open(self.config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading config {self.config_path}: {e}")
            return AppConfig()

        if not isinstance(data, dict):
            logger.error(f"Config {self.config_path} is not a mapping, using defaults")
            return AppConfig()

        try:
            config = AppConfig.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.error(f"Invalid value in config {self.config_path}: {e}")
            return AppConfig()

        logger.info(f"Loaded configuration from {self.config_path}")
        return config

    def save(self) -> bool:
        """
        Write the current configuration to the file.

        Returns:
            True if the file was written
        """
        try:
            with open(self.config_path, "w") as f:
                yaml.safe_dump(self.config.to_dict(), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            logger.error(f"Error saving config {self.config_path}: {e}")
            return False

        logger.debug(f"Saved configuration to {self.config_path}")
        return True

    def update(self, **kwargs: Any) -> bool:
        """
        Change configuration fields and save.

        Args:
            **kwargs: Field names and new values; unknown names are ignored

        Returns:
            True if the file was written
        """
        config = self.config
        for key, value in kwargs.items():
            if hasattr(config, key):
                setattr(config, key, value)
            else:
                logger.warning(f"Unknown config key: {key}")
        return self.save()
