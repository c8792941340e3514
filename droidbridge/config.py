"""Configuration management for droidbridge."""

import sys
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
from ruamel.yaml import YAML

DEFAULT_CONFIG_PATH = Path.home() / ".config/droidbridge/config.yaml"

# Some adb builds on Windows exit with STATUS_HEAP_CORRUPTION even when the
# command succeeded.
WINDOWS_SPURIOUS_EXIT_CODE = -1073740940


def _default_executable_name() -> str:
    return "adb.exe" if sys.platform == "win32" else "adb"


class BridgeConfig(BaseModel):
    """Configuration for the adb bridge."""

    adb_path: Optional[str] = Field(
        default=None,
        description="Explicit adb executable; skips the PATH probe when set"
    )
    adb_executable_name: str = Field(
        default_factory=_default_executable_name,
        description="Name adb is invoked by when looked up on PATH"
    )
    platform_tools_dir: Path = Field(
        default_factory=lambda: Path.home() / ".local/share/droidbridge/platform-tools",
        description="Fallback directory searched for adb when it is not on PATH"
    )
    command_length_limit: int = Field(
        default=1024,
        gt=0,
        description="Maximum length of one batched shell command"
    )
    spurious_success_exit_codes: List[int] = Field(
        default=[WINDOWS_SPURIOUS_EXIT_CODE],
        description="Exit codes always treated as success"
    )
    default_package_prefixes: List[str] = Field(
        default=[
            "com.oculus",
            "com.android",
            "android",
            "com.qualcomm",
            "com.facebook",
            "oculus",
            "com.weloveoculus.BMBF",
        ],
        description="Package id prefixes hidden by list_non_default_packages"
    )
    command_timeout: Optional[float] = Field(
        default=None,
        description="Seconds before a single adb invocation is killed"
    )
    max_disconnect_retries: Optional[int] = Field(
        default=None,
        ge=1,
        description="Attempts before giving up on a disconnected device (None = forever)"
    )
    reconnect_delay: float = Field(default=2.0, description="CLI pause between reconnect attempts")
    log_level: str = Field(default="INFO", description="Logging level")

    class Config:
        """Pydantic configuration."""

        validate_assignment = True


def load_config(config_path: Optional[Path] = None) -> BridgeConfig:
    """Load configuration from file or create default."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        yaml = YAML(typ="safe")
        with open(config_path, "r") as f:
            data = yaml.load(f) or {}
        return BridgeConfig(**data)
    else:
        config = BridgeConfig()
        save_config(config, config_path)
        return config


def save_config(config: BridgeConfig, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.default_flow_style = False

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(mode="json"), f)


def get_config() -> BridgeConfig:
    """Get the global configuration instance."""

    if not hasattr(get_config, "_config"):
        get_config._config = load_config()

    return get_config._config
