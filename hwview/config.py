"""Configuration management for hwview."""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from ruamel.yaml import YAML

from .util.logging import resolve_level

DEFAULT_CONFIG_PATH = Path.home() / ".config/hwview/config.yaml"


class ViewConfig(BaseModel):
    """Configuration for the device tree view."""

    show_hidden_devices: bool = Field(default=False, description="Show hidden devices in the tree")


class ExportConfig(BaseModel):
    """Configuration for snapshot export."""

    output_dir: Path = Field(
        default_factory=lambda: Path.home() / "hwview-exports",
        description="Default directory for exported snapshots"
    )
    include_driver_details: bool = Field(default=True, description="Query driver module details on export")
    include_resources: bool = Field(default=True, description="Include IRQ and memory/IO ranges on export")


class BackendConfig(BaseModel):
    """Configuration for platform enumeration."""

    force: Optional[str] = Field(
        default=None,
        description="Force a backend (linux, win32, darwin) instead of detecting the platform"
    )
    command_timeout: int = Field(default=3, description="Timeout in seconds for helper commands")


class HwviewConfig(BaseModel):
    """Main configuration for hwview."""

    view: ViewConfig = Field(default_factory=ViewConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)

    name_mapping_dirs: List[Path] = Field(
        default_factory=list,
        description="Extra directories searched for name-mapping JSON files"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Debug log file, none by default")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        resolve_level(value)
        return value.upper()

    class Config:
        """Pydantic configuration."""

        validate_assignment = True


def load_config(config_path: Optional[Path] = None) -> HwviewConfig:
    """Load configuration from file or create default."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        yaml = YAML(typ="safe")
        with open(config_path, "r") as f:
            data = yaml.load(f) or {}
        return HwviewConfig(**data)

    config = HwviewConfig()
    save_config(config, config_path)
    return config


def save_config(config: HwviewConfig, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.default_flow_style = False

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(mode="json"), f)


def get_config() -> HwviewConfig:
    """Get the global configuration instance."""

    if not hasattr(get_config, "_config"):
        get_config._config = load_config()

    return get_config._config


def set_config(config: HwviewConfig) -> None:
    """Replace the global configuration instance."""
    get_config._config = config
