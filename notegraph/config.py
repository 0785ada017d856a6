"""Configuration for graph building, layout, rendering and animation.

Every component receives its section explicitly; nothing reads module state,
so sessions with different tuning can coexist.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .models import StyleClass

CONFIG_FILENAME = ".notegraph.toml"

DEFAULT_COLORS: dict[StyleClass, str] = {
    StyleClass.STRONG_LINK: "#00ffff",
    StyleClass.MEDIUM_LINK: "#ff69b4",
    StyleClass.LIGHT_LINK: "#9d4edd",
    StyleClass.CURRENT_NODE: "#ff006e",
    StyleClass.SELECTED_NODE: "#00ff88",
    StyleClass.HUB_NODE: "#ff8c00",
    StyleClass.REGULAR_NODE: "#00d4ff",
    StyleClass.MINOR_NODE: "#6c7086",
    StyleClass.CLUSTER_NODE: "#f9e2af",
    StyleClass.HALO: "#6c7086",
    StyleClass.LABEL: "#ffffff",
    StyleClass.COUNT: "#fab387",
    StyleClass.HEADER: "#ffffff",
    StyleClass.LEGEND: "#9aa4b2",
    StyleClass.MESSAGE: "#9aa4b2",
    StyleClass.HINT: "#a6e3a1",
}

DEFAULT_BACKGROUND = "#1e1e2e"


@dataclass(frozen=True)
class VaultConfig:
    exclude: tuple[str, ...] = (".git", "img", "templates")
    extension: str = ".md"


@dataclass(frozen=True)
class PhysicsConfig:
    spring_length: float = 300.0
    spring_strength: float = 0.012
    repulsion: float = 22000.0
    repulsion_cutoff: float = 300.0
    damping: float = 0.92
    iterations: int = 250
    initial_spread: float = 200.0


@dataclass(frozen=True)
class DisplayConfig:
    min_connections: int = 2
    show_isolated: bool = False
    line_density: float = 0.7
    transparency: int = 20
    max_visible_nodes: int = 100
    hub_degree: int = 5
    label_hub_degree: int = 6
    strong_link_degree: int = 5
    medium_link_degree: int = 3
    label_width: int = 25
    hub_label_width: int = 15
    hit_radius: int = 3
    cluster_seed: int = 0


@dataclass(frozen=True)
class AnimationConfig:
    interval_ms: int = 16
    render_every: int = 3
    recenter_at: tuple[int, ...] = (50, 100)


@dataclass(frozen=True)
class GraphConfig:
    vault: VaultConfig = field(default_factory=VaultConfig)
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    animation: AnimationConfig = field(default_factory=AnimationConfig)
    colors: dict[StyleClass, str] = field(default_factory=lambda: dict(DEFAULT_COLORS))
    background: str = DEFAULT_BACKGROUND
    seed: int | None = None


_SECTIONS = {
    "vault": VaultConfig,
    "physics": PhysicsConfig,
    "display": DisplayConfig,
    "animation": AnimationConfig,
}


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _coerce_value(section: str, name: str, default: Any, raw: Any) -> Any:
    """Coerce a raw TOML value to the type of the field default."""
    where = f"{section}.{name}"
    if isinstance(default, bool):
        if not isinstance(raw, bool):
            raise ConfigError(f"{where} must be true or false")
        return raw
    if isinstance(default, int):
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise ConfigError(f"{where} must be an integer")
        return raw
    if isinstance(default, float):
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ConfigError(f"{where} must be a number")
        return float(raw)
    if isinstance(default, tuple):
        if isinstance(raw, str) or not isinstance(raw, list):
            raise ConfigError(f"{where} must be a list")
        item_type = type(default[0]) if default else str
        if not all(isinstance(v, item_type) for v in raw):
            raise ConfigError(f"{where} must be a list of {item_type.__name__}")
        return tuple(raw)
    if isinstance(default, str):
        if not isinstance(raw, str):
            raise ConfigError(f"{where} must be a string")
        return raw
    return raw


def _build_section(name: str, cls: type, data: dict[str, Any]):
    instance = cls()
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown key(s) in [{name}]: {', '.join(unknown)}")
    values = {k: _coerce_value(name, k, getattr(instance, k), v) for k, v in data.items()}
    return replace(instance, **values)


def _validate(config: GraphConfig) -> None:
    p, d, a = config.physics, config.display, config.animation
    if not 0.0 < p.damping < 1.0:
        raise ConfigError("physics.damping must be between 0 and 1")
    if p.iterations < 0:
        raise ConfigError("physics.iterations must be >= 0")
    if p.spring_strength < 0:
        raise ConfigError("physics.spring_strength must be >= 0")
    if not 0 <= d.transparency <= 100:
        raise ConfigError("display.transparency must be between 0 and 100")
    if d.max_visible_nodes < 1:
        raise ConfigError("display.max_visible_nodes must be >= 1")
    if a.render_every < 1:
        raise ConfigError("animation.render_every must be >= 1")
    if a.interval_ms < 0:
        raise ConfigError("animation.interval_ms must be >= 0")
    if not config.vault.extension.startswith("."):
        raise ConfigError("vault.extension must start with '.'")


def config_from_dict(data: dict[str, Any]) -> GraphConfig:
    """Build a GraphConfig from parsed TOML data."""
    unknown = sorted(set(data) - set(_SECTIONS) - {"colors", "background", "seed"})
    if unknown:
        raise ConfigError(f"Unknown section(s): {', '.join(unknown)}")

    sections = {name: _build_section(name, cls, _coerce_dict(data.get(name))) for name, cls in _SECTIONS.items()}

    colors = dict(DEFAULT_COLORS)
    for key, value in _coerce_dict(data.get("colors")).items():
        try:
            style = StyleClass(key)
        except ValueError:
            raise ConfigError(f"Unknown style class in [colors]: {key}") from None
        if not isinstance(value, str):
            raise ConfigError(f"colors.{key} must be a string")
        colors[style] = value

    background = data.get("background", DEFAULT_BACKGROUND)
    if not isinstance(background, str):
        raise ConfigError("background must be a string")

    seed = data.get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        raise ConfigError("seed must be an integer")

    config = GraphConfig(colors=colors, background=background, seed=seed, **sections)
    _validate(config)
    return config


def load_config(path: Path) -> GraphConfig:
    """Load configuration from a TOML file.

    Missing sections and keys keep their defaults; unknown ones are rejected.
    """
    import tomllib

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e
    return config_from_dict(data)


def find_config(vault_path: Path) -> Path | None:
    """Return the vault-owned config file, if present."""
    candidate = vault_path / CONFIG_FILENAME
    return candidate if candidate.is_file() else None
