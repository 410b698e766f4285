"""
Cargo project scaffolding for compiled flows.

    <out>/Cargo.toml      written once; never overwritten
    <out>/src/main.rs     the generated program; rewritten on every compile
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

TOKIO_VERSION = "1"

CARGO_TOML = """\
[package]
name = "{name}"
version = "0.1.0"
edition = "2021"

[dependencies]
tokio = {{ version = "{tokio}", features = ["full"] }}
"""


def crate_name(directory_name: str) -> str:
    """Turn 'My Flow-2' → 'my_flow_2'; cargo needs a non-numeric leading character."""
    safe = re.sub(r"[^a-z0-9_]+", "_", directory_name.lower()).strip("_")
    if not safe:
        return "flow"
    if safe[0].isdigit():
        safe = f"flow_{safe}"
    return safe


def write_project(out_dir: Union[str, Path], source: str) -> Path:
    """
    Create (or update) a binary Cargo project holding ``source``.

    Returns:
        Path of the written ``src/main.rs``.
    """
    out_dir = Path(out_dir)
    src_dir = out_dir / "src"
    src_dir.mkdir(parents=True, exist_ok=True)

    cargo_toml = out_dir / "Cargo.toml"
    if not cargo_toml.exists():
        name = crate_name(out_dir.resolve().name)
        cargo_toml.write_text(CARGO_TOML.format(name=name, tokio=TOKIO_VERSION), encoding="utf-8")
        logger.info(f"Created {cargo_toml} (crate '{name}')")

    main_rs = src_dir / "main.rs"
    main_rs.write_text(source, encoding="utf-8")
    logger.debug(f"Wrote {len(source)} bytes to {main_rs}")
    return main_rs


__all__ = ["crate_name", "write_project"]
