"""Configuration helpers for the aggregated node-link explorer."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_PATH = PROJECT_ROOT / ".env"

# Load environment variables early so downstream modules can rely on them.
load_dotenv(ENV_PATH, override=False)

NODE_RADIUS_ENV = "NODELINK_NODE_RADIUS"
LAYOUT_WIDTH_ENV = "NODELINK_LAYOUT_WIDTH"
LAYOUT_HEIGHT_ENV = "NODELINK_LAYOUT_HEIGHT"
LAYOUT_SEED_ENV = "NODELINK_LAYOUT_SEED"
LOG_DIR_ENV = "NODELINK_LOG_DIR"

DEFAULT_NODE_RADIUS = 5.0
DEFAULT_LAYOUT_WIDTH = 1024
DEFAULT_LAYOUT_HEIGHT = 768
DEFAULT_LOG_DIR = Path("logs")

# Vertex-table columns holding the layout position of every base vertex.
X_COLUMN = "#X"
Y_COLUMN = "#Y"


@dataclass(frozen=True)
class LayoutSettings:
    """Canvas size and randomness used when placing base vertices."""

    width: int
    height: int
    seed: Optional[int]


@dataclass(frozen=True)
class ViewSettings:
    """Rendering parameters shared by the hull outline and the view builder."""

    node_radius: float
    log_dir: Path


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _parse_int(name: str, raw: Optional[str], default: Optional[int]) -> Optional[int]:
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer; received '{raw}'.") from exc


def get_layout_settings() -> LayoutSettings:
    """Resolve layout configuration from environment with sensible defaults."""

    width = _parse_int(LAYOUT_WIDTH_ENV, _get_env(LAYOUT_WIDTH_ENV), DEFAULT_LAYOUT_WIDTH)
    height = _parse_int(LAYOUT_HEIGHT_ENV, _get_env(LAYOUT_HEIGHT_ENV), DEFAULT_LAYOUT_HEIGHT)
    if width <= 0 or height <= 0:
        raise RuntimeError(
            f"{LAYOUT_WIDTH_ENV}/{LAYOUT_HEIGHT_ENV} must be positive; received {width}x{height}."
        )
    seed = _parse_int(LAYOUT_SEED_ENV, _get_env(LAYOUT_SEED_ENV), None)
    return LayoutSettings(width=width, height=height, seed=seed)


def get_view_settings() -> ViewSettings:
    """Resolve the node radius and log directory."""

    raw_radius = _get_env(NODE_RADIUS_ENV)
    try:
        radius = float(raw_radius) if raw_radius is not None else DEFAULT_NODE_RADIUS
    except ValueError as exc:
        raise RuntimeError(
            f"{NODE_RADIUS_ENV} must be a number; received '{raw_radius}'."
        ) from exc
    if radius < 0:
        raise RuntimeError(f"{NODE_RADIUS_ENV} must not be negative; received {radius}.")

    raw_dir = _get_env(LOG_DIR_ENV, str(DEFAULT_LOG_DIR))
    return ViewSettings(node_radius=radius, log_dir=Path(raw_dir).expanduser())
