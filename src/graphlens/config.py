"""Configuration loading and management for graphlens.

Configuration sources are merged in priority order:
    1. Defaults (defined in GraphLensConfig)
    2. Global config (~/.graphlens.toml)
    3. Project config (./graphlens.toml)
    4. Explicit config file
    5. Environment variables (GRAPHLENS_* prefix)
    6. Overrides (passed as kwargs, typically from CLI flags)

Example:
    >>> config = load_config(trace_depth=3)
    >>> config.trace_depth
    3
    >>> config.thresholds.complexity
    10
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import GraphLensError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]
Direction = Literal["DOWN", "RIGHT", "UP", "LEFT"]

# Three-stop coupling color scale, indexed low/medium/high
COUPLING_COLORS = ("#3b82f6", "#f59e0b", "#ef4444")
COUPLING_BREAKS = (0.33, 0.66)

RISK_HIGH_COLOR = "#ef4444"
RISK_MEDIUM_COLOR = "#f97316"


@dataclass(frozen=True)
class RiskThresholds:
    """Thresholds for risk mode.

    Attributes:
        complexity: Cyclomatic complexity above this adds 0.5 risk
        coupling: Normalized coupling score above this adds 0.5 risk
        health: Domain health score (0-100) considered unhealthy
    """

    complexity: int = 10
    coupling: float = 0.6
    health: float = 60

    def __post_init__(self) -> None:
        if self.complexity < 0:
            raise InvalidConfigError("thresholds.complexity", self.complexity, "must be >= 0")
        if not 0.0 <= self.coupling <= 1.0:
            raise InvalidConfigError(
                "thresholds.coupling", self.coupling, "must be between 0.0 and 1.0"
            )
        if not 0 <= self.health <= 100:
            raise InvalidConfigError("thresholds.health", self.health, "must be between 0 and 100")


DEFAULT_RISK_THRESHOLDS = RiskThresholds()


@dataclass(frozen=True)
class ModeLayout:
    """Direction and spacing used by one view mode."""

    direction: Direction = "DOWN"
    node_spacing: float = 60
    layer_spacing: float = 100

    def __post_init__(self) -> None:
        if self.direction not in ("DOWN", "RIGHT", "UP", "LEFT"):
            raise InvalidConfigError("direction", self.direction, "must be DOWN, RIGHT, UP or LEFT")
        if self.node_spacing < 0 or self.layer_spacing < 0:
            raise InvalidConfigError(
                "spacing", (self.node_spacing, self.layer_spacing), "must be non-negative"
            )


def _default_mode_layouts() -> dict[str, ModeLayout]:
    return {
        "architecture": ModeLayout("DOWN", 60, 100),
        "flow": ModeLayout("DOWN", 80, 120),
        "risk": ModeLayout("DOWN", 50, 80),
        "impact": ModeLayout("DOWN", 60, 100),
        "trace": ModeLayout("RIGHT", 80, 120),
    }


@dataclass(frozen=True)
class LayoutConfig:
    """Layout tuning: debounce window, spacing, and node size hints.

    Attributes:
        debounce_seconds: Quiescence window before a layout runs
        modes: Per-mode direction and spacing
        domain_size / file_size / symbol_size: (width, height) size hints
        header_padding: Top padding per nesting depth (room for the title)
        side_padding: Left/right/bottom padding inside containers
        grid_spacing: Gap between cells in grid fallback placement
    """

    debounce_seconds: float = 0.15
    modes: dict[str, ModeLayout] = field(default_factory=_default_mode_layouts)

    domain_size: tuple[float, float] = (500, 300)
    file_size: tuple[float, float] = (300, 150)
    symbol_size: tuple[float, float] = (180, 60)

    header_padding: tuple[float, ...] = (100, 60, 40)
    side_padding: float = 20
    grid_spacing: float = 40

    def __post_init__(self) -> None:
        if self.debounce_seconds < 0:
            raise InvalidConfigError("layout.debounce_seconds", self.debounce_seconds, "must be >= 0")
        for name in ("domain_size", "file_size", "symbol_size"):
            width, height = getattr(self, name)
            if width <= 0 or height <= 0:
                raise InvalidConfigError(f"layout.{name}", (width, height), "must be positive")
        if not self.header_padding:
            raise InvalidConfigError("layout.header_padding", self.header_padding, "must not be empty")
        if self.side_padding < 0 or self.grid_spacing < 0:
            raise InvalidConfigError("layout.padding", self.side_padding, "must be non-negative")

    def for_mode(self, mode: str) -> ModeLayout:
        """Layout settings for *mode*; unknown modes use architecture settings."""
        return self.modes.get(mode) or self.modes.get("architecture") or ModeLayout()

    def size_for(self, kind: str) -> tuple[float, float]:
        """Size hint for a node kind ("domain", "file" or "symbol")."""
        if kind == "domain":
            return self.domain_size
        if kind == "file":
            return self.file_size
        return self.symbol_size

    def header_for_depth(self, depth: int) -> float:
        return self.header_padding[min(depth, len(self.header_padding) - 1)]


@dataclass(frozen=True)
class GraphLensConfig:
    """Configuration for the view pipeline.

    Attributes:
        impact_hops: BFS hop bound used by impact analysis
        related_hops: BFS hop bound for plain related-node queries
        search_min_length: Queries shorter than this do not trigger search
        trace_depth: Hop bound for the function trace projection
        fade_opacity: Opacity for elements outside the current focus
        dim_opacity: Opacity for impact mode without a focused node
        verbosity: Logging verbosity level
        thresholds: Risk mode thresholds
        layout: Layout tuning
    """

    impact_hops: int = 2
    related_hops: int = 1
    search_min_length: int = 3
    trace_depth: int = 5
    fade_opacity: float = 0.15
    dim_opacity: float = 0.4
    verbosity: Verbosity = "normal"

    thresholds: RiskThresholds = field(default_factory=RiskThresholds)
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        for name in ("impact_hops", "related_hops", "trace_depth"):
            if getattr(self, name) < 1:
                raise InvalidConfigError(name, getattr(self, name), "must be at least 1")
        if self.search_min_length < 1:
            raise InvalidConfigError(
                "search_min_length", self.search_min_length, "must be at least 1"
            )
        for name in ("fade_opacity", "dim_opacity"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidConfigError(name, value, "must be between 0.0 and 1.0")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "must be quiet, normal or verbose")


DEFAULT_CONFIG = GraphLensConfig()


def load_config(config_file: Optional[Path] = None, **overrides) -> GraphLensConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags)

    Returns:
        Validated GraphLensConfig instance

    Raises:
        GraphLensError: If a config file is invalid or missing
    """
    merged: dict = {}

    global_config = Path.home() / ".graphlens.toml"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except Exception as e:
            raise GraphLensError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / "graphlens.toml"
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except Exception as e:
            raise GraphLensError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise GraphLensError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except Exception as e:
            raise GraphLensError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update(overrides)

    thresholds = merged.pop("thresholds", None)
    if isinstance(thresholds, dict):
        try:
            merged["thresholds"] = RiskThresholds(**thresholds)
        except TypeError as e:
            raise GraphLensError(f"Invalid [thresholds] config: {e}")
    elif isinstance(thresholds, RiskThresholds):
        merged["thresholds"] = thresholds

    layout = merged.pop("layout", None)
    if isinstance(layout, dict):
        merged["layout"] = _build_layout_config(layout)
    elif isinstance(layout, LayoutConfig):
        merged["layout"] = layout

    try:
        return GraphLensConfig(**merged)
    except TypeError as e:
        raise GraphLensError(f"Invalid configuration: {e}")


def _build_layout_config(raw: dict[str, Any]) -> LayoutConfig:
    """Build LayoutConfig from a [layout] TOML table.

    ``[layout.modes.<mode>]`` sub-tables override single modes; sizes are
    given as two-element arrays.
    """
    values = dict(raw)
    modes = _default_mode_layouts()
    for mode, table in (values.pop("modes", None) or {}).items():
        try:
            modes[mode] = ModeLayout(**table)
        except TypeError as e:
            raise GraphLensError(f"Invalid [layout.modes.{mode}] config: {e}")
    values["modes"] = modes

    for name in ("domain_size", "file_size", "symbol_size", "header_padding"):
        if name in values:
            values[name] = tuple(values[name])

    try:
        return LayoutConfig(**values)
    except TypeError as e:
        raise GraphLensError(f"Invalid [layout] config: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from GRAPHLENS_* environment variables.

    Only scalar top-level fields are read (e.g. GRAPHLENS_TRACE_DEPTH,
    GRAPHLENS_FADE_OPACITY, GRAPHLENS_VERBOSITY).

    Returns:
        Dict of field_name -> parsed_value for any GRAPHLENS_* vars found.
    """
    type_hints = get_type_hints(GraphLensConfig)

    result: dict[str, Any] = {}

    for field_name in GraphLensConfig.__dataclass_fields__:
        env_key = f"GRAPHLENS_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise GraphLensError(f"Invalid {env_key}: {e}")

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Returns None for types that cannot be expressed as a single
    environment value (nested configs).
    """
    origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict."""
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise GraphLensError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
