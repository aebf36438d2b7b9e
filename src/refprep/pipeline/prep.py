"""Preparation pipeline: model -> monomers -> links -> topology -> restraint file.

Responsibility: run the stages in order on a resolved Config and hand the
result to the writer. Collaborators that touch files or the topology builder
are injectable so the pipeline can run in tests without a full monomer
library.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable
import logging

import gemmi

from refprep.adapters.topology import build_restraint_document
from refprep.config.loader import Config
from refprep.domain.links.discover import add_automatic_links
from refprep.domain.monomers.resolver import Resolution, resolve_monomers
from refprep.domain.monomers.sources import SystemMonomerLibrary
from refprep.io.structure import read_model_file, write_document

__all__ = ["PrepResult", "run_prep"]


@dataclass(slots=True)
class PrepResult:
    output_path: Path
    resolution: Resolution
    added_links: list[gemmi.Connection] = field(default_factory=list)
    hydrogens: str = "readd"


def run_prep(
    cfg: Config,
    monomer_dir: str | Path,
    *,
    read_structure: Callable | None = None,
    build: Callable | None = None,
    write: Callable | None = None,
    library: SystemMonomerLibrary | None = None,
) -> PrepResult:
    if cfg.input_path is None or cfg.output_path is None:
        raise ValueError("input and output paths are required")
    read_structure = read_structure or read_model_file
    build = build or build_restraint_document
    write = write or write_document
    st, doc = read_structure(cfg.input_path)
    model = st[0]

    resolution = resolve_monomers(
        model,
        monomer_dir,
        cfg.monomers.lib,
        cfg.monomers.low,
        embedded_doc=doc,
        allow_adhoc=cfg.auto.ligand,
        library=library,
    )

    added = []
    if cfg.auto.link:
        added = add_automatic_links(
            model,
            st,
            tolerance=cfg.links.tolerance,
            radius=cfg.links.search_radius,
            cutoff=cfg.links.contact_cutoff,
        )
        if not added:
            logging.info("No new links found.")

    monlib = resolution.dictionary.to_monlib(monomer_dir)
    restraints = build(st, monlib, hydrogens=cfg.hydrogens.mode, auto_cis=cfg.auto.cis)
    output = write(restraints, cfg.output_path)
    return PrepResult(
        output_path=Path(output),
        resolution=resolution,
        added_links=added,
        hydrogens=cfg.hydrogens.mode,
    )
