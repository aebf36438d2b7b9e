"""Decision model for logging the effective switches of a preparation run."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List
import logging

from refprep.config.loader import Config

_HYDROGEN_LABELS = {
    "readd": "remove and re-add on riding positions (water excluded)",
    "remove": "remove (do not add)",
    "keep": "keep as in the input file",
}


@dataclass(slots=True)
class DecisionModel:
    monomer_dir: str
    user_sources: List[str]
    low_sources: List[str]
    auto_cis: bool
    auto_link: bool
    auto_ligand: bool
    hydrogens: str
    notes: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def kv_pairs(self) -> list[tuple[str, str]]:
        return [
            ("monomers.dir", self.monomer_dir),
            ("monomers.lib", "[" + ",".join(self.user_sources) + "]"),
            ("monomers.low", "[" + ",".join(self.low_sources) + "]"),
            ("auto.cis", str(self.auto_cis)),
            ("auto.link", str(self.auto_link)),
            ("auto.ligand", str(self.auto_ligand)),
            ("hydrogens", self.hydrogens),
            ("notes", "[" + ",".join(self.notes) + "]"),
            ("warnings", "[" + ",".join(self.warnings) + "]"),
        ]

    def log(self, step: str) -> None:
        sources_section = [
            ("monomers.dir", self.monomer_dir),
            ("monomers.lib", ", ".join(self.user_sources) or "-"),
            ("monomers.low", ", ".join(self.low_sources) or "-"),
        ]
        switch_section = [
            ("auto.cis", "geometry" if self.auto_cis else "CISPEP records"),
            ("auto.link", self.auto_link),
            ("auto.ligand", self.auto_ligand),
            ("hydrogens", _HYDROGEN_LABELS.get(self.hydrogens, self.hydrogens)),
        ]
        notes_section = [(f"note[{i}]", n) for i, n in enumerate(self.notes)]
        all_rows = sources_section + switch_section + notes_section
        k_width = min(max(len(k) for k, _ in all_rows), 48)

        def emit_rows(rows):
            for k, v in rows:
                logging.info(f"[{step}][decisions] {k.ljust(k_width)} : {v}")

        logging.info(f"[{step}][decisions] ── decision summary ──")
        emit_rows(sources_section)
        emit_rows(switch_section)
        if notes_section:
            emit_rows(notes_section)
        for w in self.warnings:
            logging.warning(f"[{step}] {w}")
        # single-line record for the log file
        logging.debug(f"[{step}][decisions] " + " ".join(f"{k}={v}" for k, v in self.kv_pairs()))


def build_prep_decision(cfg: Config, monomer_dir) -> DecisionModel:
    notes: list[str] = []
    warnings: list[str] = []
    if cfg.auto.ligand:
        notes.append("missing monomers get ad-hoc restraints")
    if cfg.auto.link:
        notes.append(f"new links accepted up to covalent radii sum + {cfg.links.tolerance:g} A")
    if cfg.hydrogens.mode == "keep":
        warnings.append("hydrogens are kept; names must match the monomer dictionaries")
    sources = cfg.monomers.lib + cfg.monomers.low
    if "+" in sources and cfg.input_path is not None and cfg.input_path.suffix.lower() not in {".cif", ".mmcif", ".gz"}:
        warnings.append("'+' reads dictionaries embedded in mmCIF input only")
    return DecisionModel(
        monomer_dir=str(monomer_dir),
        user_sources=list(cfg.monomers.lib),
        low_sources=list(cfg.monomers.low),
        auto_cis=cfg.auto.cis,
        auto_link=cfg.auto.link,
        auto_ligand=cfg.auto.ligand,
        hydrogens=cfg.hydrogens.mode,
        notes=notes,
        warnings=warnings,
    )
