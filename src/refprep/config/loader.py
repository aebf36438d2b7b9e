# src/refprep/config/loader.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, is_dataclass, fields
from pathlib import Path
import typing as t

try:
    import tomllib  # py>=3.11
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

"""TOML configuration loader and CLI value resolution for refprep."""

MONOMER_ENV_VAR = "CLIBD_MON"
EMBEDDED_SOURCE = "+"

HYDROGEN_MODES = ("readd", "remove", "keep")


class ConfigurationError(ValueError):
    """Raised for settings that make a run impossible before any input is read."""


# -----------------
# Dataclass schema
# -----------------

@dataclass
class MonomersSection:
    dir: str | None = None
    lib: list[str] = field(default_factory=list)
    low: list[str] = field(default_factory=list)

@dataclass
class AutoSection:
    cis: bool = True
    link: bool = False
    ligand: bool = False

@dataclass
class HydrogensSection:
    mode: str = "readd"

@dataclass
class LinksSection:
    search_radius: float = 5.0
    contact_cutoff: float = 3.5
    tolerance: float = 0.5

@dataclass
class Config:
    input_path: Path | None = None
    output_path: Path | None = None
    verbose: bool = False
    log_file: Path | None = None
    monomers: MonomersSection = field(default_factory=MonomersSection)
    auto: AutoSection = field(default_factory=AutoSection)
    hydrogens: HydrogensSection = field(default_factory=HydrogensSection)
    links: LinksSection = field(default_factory=LinksSection)


# -----------------
# Helpers
# -----------------

def _load_toml(path: Path) -> dict:
    with path.open("rb") as f:
        return tomllib.load(f)


def _merge_into_dataclass(section, payload: dict):
    """Recursively merge a dict into a (possibly nested) dataclass instance."""
    for k, v in payload.items():
        if not hasattr(section, k):
            continue
        current = getattr(section, k)
        if is_dataclass(current) and isinstance(v, dict):
            _merge_into_dataclass(current, v)
        else:
            if v is not None:
                setattr(section, k, v)


def _flatten_dataclass(obj, prefix: str = ""):
    """Yield (key_path, value) for leaf attributes of nested dataclasses.

    Field declaration order is preserved so dumps are stable across runs.
    """
    if is_dataclass(obj):
        for f in fields(obj):
            val = getattr(obj, f.name)
            key = f"{prefix}.{f.name}" if prefix else f.name
            if is_dataclass(val):
                yield from _flatten_dataclass(val, key)
            else:
                yield key, val
    else:
        yield prefix or "value", obj


def dump_config(cfg: Config, log_fn=print, header: bool = True):
    """Log all config settings (flattened) with a stable ordering.

    Format: [config] section.key = value
    """
    if header:
        log_fn("[config] -- begin full config dump --")
    for key, val in _flatten_dataclass(cfg):
        log_fn(f"[config] {key} = {val}")
    if header:
        log_fn("[config] -- end full config dump --")


def _as_path_list(value, where: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ConfigurationError(f"{where} must be a string or a list of strings, got {value!r}")


def _validate(cfg: Config) -> None:
    cfg.monomers.lib = _as_path_list(cfg.monomers.lib, "monomers.lib")
    cfg.monomers.low = _as_path_list(cfg.monomers.low, "monomers.low")
    for name in ("cis", "link", "ligand"):
        if not isinstance(getattr(cfg.auto, name), bool):
            raise ConfigurationError(f"auto.{name} must be true or false")
    mode = str(cfg.hydrogens.mode).strip().lower()
    if mode not in HYDROGEN_MODES:
        raise ConfigurationError(
            f"Invalid hydrogens.mode '{cfg.hydrogens.mode}'. Expected one of: " + ", ".join(HYDROGEN_MODES)
        )
    cfg.hydrogens.mode = mode
    for name in ("search_radius", "contact_cutoff", "tolerance"):
        value = getattr(cfg.links, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ConfigurationError(f"links.{name} must be a non-negative number, got {value!r}")
        setattr(cfg.links, name, float(value))
    if cfg.links.contact_cutoff > cfg.links.search_radius:
        raise ConfigurationError("links.contact_cutoff cannot exceed links.search_radius")


# -----------------
# Loader
# -----------------

def load_config(config_path: t.Union[str, Path, None] = None) -> Config:
    """Build a Config from defaults, optionally overlaid with one TOML file."""
    cfg = Config()
    if config_path is None:
        return cfg
    path = Path(config_path)
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        data = _load_toml(path)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc
    for section_name in ("monomers", "auto", "hydrogens", "links"):
        payload = data.get(section_name, {})
        if isinstance(payload, dict):
            _merge_into_dataclass(getattr(cfg, section_name), payload)
    _validate(cfg)
    logging.getLogger(__name__).debug("[config] loaded %s", path)
    return cfg


def parse_yes_no(value: str) -> bool:
    """Parse a Y|N option value (case-insensitive, also accepts yes/no)."""
    v = str(value).strip().lower()
    if v in {"y", "yes"}:
        return True
    if v in {"n", "no"}:
        return False
    raise ConfigurationError(f"Expected Y or N, got '{value}'")


def resolve_hydrogen_mode(no_hydrogens: bool, keep_hydrogens: bool, default: str = "readd") -> str:
    if no_hydrogens and keep_hydrogens:
        raise ConfigurationError("Options --no-hydrogens and --keep-hydrogens are mutually exclusive.")
    if no_hydrogens:
        return "remove"
    if keep_hydrogens:
        return "keep"
    return default


def resolve_monomer_dir(
    cli_value: str | None,
    config_value: str | None,
    environ: t.Mapping[str, str] | None = None,
) -> Path:
    """Pick the monomer library root: CLI, then config file, then $CLIBD_MON.

    Empty strings count as unset.
    """
    env = os.environ if environ is None else environ
    for candidate in (cli_value, config_value, env.get(MONOMER_ENV_VAR)):
        if candidate:
            path = Path(candidate).expanduser()
            if not path.is_dir():
                raise ConfigurationError(f"Monomer library is not a directory: {path}")
            return path
    raise ConfigurationError(f"Set ${MONOMER_ENV_VAR} or use option --monomers.")


__all__ = [
    "Config",
    "ConfigurationError",
    "MonomersSection",
    "AutoSection",
    "HydrogensSection",
    "LinksSection",
    "EMBEDDED_SOURCE",
    "MONOMER_ENV_VAR",
    "load_config",
    "dump_config",
    "parse_yes_no",
    "resolve_hydrogen_mode",
    "resolve_monomer_dir",
]
