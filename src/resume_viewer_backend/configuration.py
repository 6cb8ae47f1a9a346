from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

CONFIG_ENV_VAR = "RESUME_VIEWER_CONFIG"

# Environment variable -> dotted config key
ENV_OVERRIDES: Dict[str, str] = {
    "RESUME_VIEWER_ROOT": "root_dir",
    "RESUME_VIEWER_OUTPUT_DIR": "output_dir",
    "RESUME_VIEWER_COMPILE_ON_STARTUP": "compile_on_startup",
    "RESUME_VIEWER_HOST": "server.host",
    "RESUME_VIEWER_PORT": "server.port",
    "RESUME_VIEWER_REMOTE_URL": "remote.url",
    "RESUME_VIEWER_REMOTE_ENABLED": "remote.enabled",
    "RESUME_VIEWER_WATCH": "watch.enabled",
}


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class ToolchainConfig:
    primary: str = "pdflatex"
    alternate: str = "xelatex"
    fixed_path: str = "/usr/local/texlive/2025/bin/universal-darwin/pdflatex"
    extra_args: List[str] = field(default_factory=lambda: ["-interaction=nonstopmode"])


@dataclass
class RemoteConfig:
    enabled: bool = True
    url: str = "https://latex.ytotech.com/builds/sync"
    compiler: str = "pdflatex"
    timeout: float = 30.0


@dataclass
class WatchConfig:
    enabled: bool = True


@dataclass
class Settings:
    root_dir: str = "."
    source_name: str = "resume.tex"
    output_dir: str = "public"
    compile_on_startup: bool = True
    history_size: int = 50
    server: ServerConfig = field(default_factory=ServerConfig)
    toolchain: ToolchainConfig = field(default_factory=ToolchainConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)


@dataclass(frozen=True)
class SourcePaths:
    """
    Absolute locations derived from the settings.

    The artifact is always ``<source stem>.pdf`` in the output directory, the
    name pdflatex itself writes, so the local and online paths agree.
    """

    root: Path
    source_file: Path
    output_dir: Path
    artifact_file: Path

    @classmethod
    def from_settings(cls, settings: DictConfig) -> "SourcePaths":
        root = Path(settings.root_dir).expanduser().resolve()
        output_dir = Path(settings.output_dir)
        if not output_dir.is_absolute():
            output_dir = root / output_dir
        return cls(
            root=root,
            source_file=root / settings.source_name,
            output_dir=output_dir,
            artifact_file=output_dir / Path(settings.source_name).with_suffix(".pdf").name,
        )


def _env_overrides(environ: Dict[str, str]) -> List[str]:
    return [f"{key}={environ[name]}" for name, key in ENV_OVERRIDES.items() if environ.get(name)]


def make_settings(
    overrides: Optional[Dict[str, Any]] = None,
    config_file: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
) -> DictConfig:
    """
    Build settings by layering structured defaults, an optional YAML file,
    environment variables, then explicit overrides.

    Values are validated against the dataclass schema, so a bad type such as
    ``RESUME_VIEWER_PORT=abc`` fails here rather than at bind time.
    """
    base = OmegaConf.structured(Settings)
    layers = [base]
    if config_file is not None:
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found at {config_file}")
        layers.append(OmegaConf.load(config_file))
    layers.append(OmegaConf.from_dotlist(_env_overrides(environ if environ is not None else dict(os.environ))))
    if overrides:
        layers.append(OmegaConf.create(overrides))

    merged = OmegaConf.merge(*layers)
    OmegaConf.set_readonly(merged, True)
    return merged  # type: ignore[return-value]


@lru_cache(maxsize=1)
def load_settings() -> DictConfig:
    load_dotenv()
    config_file = os.environ.get(CONFIG_ENV_VAR)
    return make_settings(config_file=Path(config_file) if config_file else None)
