import os
from pathlib import Path
from typing import Optional, Dict, Any, List, Union
from dataclasses import dataclass, field, fields, is_dataclass

import yaml
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class EditTrackingConfig:
    """Edit grouping configuration."""
    grouping_threshold_ms: int = 1000
    adjacency_columns: int = 20
    max_history_size: int = 20
    keep_empty_groups: bool = True  # keep self-cancelling groups in history


@dataclass
class CompilerConfig:
    """LaTeX to HTML compilation configuration."""
    mathjax_url: str = "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"
    formatting_passes: int = 5
    base_mathjax_packages: List[str] = field(default_factory=lambda: [
        "base", "ams", "noerrors", "noundefined", "enumerate"
    ])
    strip_text_escapes: bool = True
    validate_source: bool = True


@dataclass
class PreviewConfig:
    """Timings the host uses before recompiling the preview."""
    debounce_ms: int = 800
    settle_ms: int = 300


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_file: Optional[Path] = None


class TexConfig:
    """
    Main configuration class for the LaTeX core.
    """
    def __init__(
        self,
        edit_tracking: Optional[EditTrackingConfig] = None,
        compiler: Optional[CompilerConfig] = None,
        preview: Optional[PreviewConfig] = None,
        logging: Optional[LoggingConfig] = None,
    ):
        self.edit_tracking = edit_tracking or EditTrackingConfig()
        self.compiler = compiler or CompilerConfig()
        self.preview = preview or PreviewConfig()
        self.logging = logging or LoggingConfig()

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If a value is out of range.
        """
        if self.edit_tracking.max_history_size < 1:
            raise ValueError("max_history_size must be at least 1")
        if self.edit_tracking.grouping_threshold_ms < 0:
            raise ValueError("grouping_threshold_ms must not be negative")
        if self.compiler.formatting_passes < 1:
            raise ValueError("formatting_passes must be at least 1")
        if self.preview.debounce_ms < 0 or self.preview.settle_ms < 0:
            raise ValueError("preview delays must not be negative")

    def update(self, updates: Dict[str, Any]) -> None:
        """Apply a nested mapping of overrides, e.g. {"compiler": {"formatting_passes": 3}}."""
        for section_name, values in updates.items():
            section = getattr(self, section_name, None)
            if section is None or not is_dataclass(section):
                raise ValueError(f"Unknown configuration section: {section_name}")
            known = {f.name for f in fields(section)}
            for key, value in (values or {}).items():
                if key not in known:
                    raise ValueError(f"Unknown setting {section_name}.{key}")
                setattr(section, key, value)

    @classmethod
    def from_environment(cls) -> "TexConfig":
        """Create a TexConfig instance from environment variables."""
        edit_tracking = EditTrackingConfig(
            grouping_threshold_ms=int(os.getenv("TEXCORE_GROUPING_THRESHOLD_MS", "1000")),
            adjacency_columns=int(os.getenv("TEXCORE_ADJACENCY_COLUMNS", "20")),
            max_history_size=int(os.getenv("TEXCORE_MAX_HISTORY_SIZE", "20")),
            keep_empty_groups=_env_bool("TEXCORE_KEEP_EMPTY_GROUPS", "True")
        )

        compiler = CompilerConfig(
            mathjax_url=os.getenv("TEXCORE_MATHJAX_URL", CompilerConfig.mathjax_url),
            formatting_passes=int(os.getenv("TEXCORE_FORMATTING_PASSES", "5")),
            strip_text_escapes=_env_bool("TEXCORE_STRIP_TEXT_ESCAPES", "True"),
            validate_source=_env_bool("TEXCORE_VALIDATE_SOURCE", "True")
        )

        preview = PreviewConfig(
            debounce_ms=int(os.getenv("TEXCORE_PREVIEW_DEBOUNCE_MS", "800")),
            settle_ms=int(os.getenv("TEXCORE_PREVIEW_SETTLE_MS", "300"))
        )

        log_file = os.getenv("TEXCORE_LOG_FILE")
        logging_config = LoggingConfig(
            level=os.getenv("TEXCORE_LOG_LEVEL", "INFO").upper(),
            log_file=Path(log_file) if log_file else None
        )

        return cls(
            edit_tracking=edit_tracking,
            compiler=compiler,
            preview=preview,
            logging=logging_config
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "TexConfig":
        """Create a TexConfig from environment defaults overridden by a YAML file."""
        config = cls.from_environment()
        with open(path, "r", encoding="utf-8") as f:
            overrides = yaml.safe_load(f) or {}
        if not isinstance(overrides, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        if "logging" in overrides and overrides["logging"].get("log_file"):
            overrides["logging"]["log_file"] = Path(overrides["logging"]["log_file"])
        config.update(overrides)
        return config


def get_environment() -> str:
    """
    Determine the current environment.

    Returns:
        str: The current environment ('development', 'production', etc.).
    """
    return os.getenv("FLASK_ENV", "development")


def load_config(path: Optional[Union[str, Path]] = None) -> TexConfig:
    """
    Load and validate the configuration.

    Returns:
        TexConfig: Validated configuration instance.
    """
    try:
        config_path = path or os.getenv("TEXCORE_CONFIG_FILE")
        config = TexConfig.from_yaml(config_path) if config_path else TexConfig.from_environment()
        config.validate()
        return config
    except ValueError as e:
        raise ValueError(f"Failed to load texcore configuration: {str(e)}")
