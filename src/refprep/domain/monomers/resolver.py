"""Layered monomer resolution.

Order of sources (each one only fills names that are still missing):

1. user dictionaries given with ``--lib`` (in the given order),
2. the system monomer library, queried for the still-missing names only,
3. user dictionaries given with ``--low``,
4. optionally, ad-hoc restraints synthesized from the model.

Whether missing names are acceptable is decided by the caller through
``allow_adhoc``; the resolver never relaxes that on its own.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence
import logging

import gemmi

from refprep.domain.monomers.adhoc import find_most_complete_residue, synthesize_monomer
from refprep.domain.monomers.dictionary import (
    MonomerDictionary,
    TIER_ADHOC,
    TIER_LOW,
    TIER_SYSTEM,
    TIER_USER,
)
from refprep.domain.monomers.sources import SystemMonomerLibrary, load_user_source

__all__ = [
    "MonomerResolutionError",
    "Resolution",
    "required_residue_names",
    "resolve_monomers",
]


class MonomerResolutionError(RuntimeError):
    """Raised when some residue names end up without any definition."""

    def __init__(self, missing: Sequence[str], reason: str = "Missing monomer definitions") -> None:
        self.missing = list(missing)
        super().__init__(f"{reason}: {' '.join(self.missing)}")


@dataclass(slots=True)
class Resolution:
    dictionary: MonomerDictionary
    required: list[str]
    library_misses: list[str] = field(default_factory=list)
    synthesized: list[str] = field(default_factory=list)

    def found(self, tier: str) -> list[str]:
        return self.dictionary.names(tier)

    @property
    def unresolved(self) -> list[str]:
        return self.dictionary.missing(self.required)


def required_residue_names(model: gemmi.Model) -> list[str]:
    """Distinct residue names of the model in order of first occurrence."""
    names: dict[str, None] = {}
    for chain in model:
        for residue in chain:
            names.setdefault(residue.name, None)
    return list(names)


def _load_tier(dictionary: MonomerDictionary, sources: Sequence[str], tier: str,
               embedded_doc: gemmi.cif.Document | None) -> None:
    for source in sources:
        monomers, doc = load_user_source(source, embedded_doc)
        origin = "input file" if doc is embedded_doc else source
        for name, cc in monomers.items():
            dictionary.insert_if_absent(name, cc, tier, origin)
        dictionary.add_link_document(doc, tier)


def resolve_monomers(
    model: gemmi.Model,
    monomer_dir: str | Path,
    user_sources: Sequence[str] = (),
    low_sources: Sequence[str] = (),
    *,
    embedded_doc: gemmi.cif.Document | None = None,
    allow_adhoc: bool = False,
    library: SystemMonomerLibrary | None = None,
) -> Resolution:
    """Resolve a definition for every residue name of ``model``.

    Raises MonomerResolutionError listing the unresolved names (first
    occurrence order) when ad-hoc restraints are not allowed, or when a name
    has no instance with atoms to derive them from.
    """
    library = library or SystemMonomerLibrary(monomer_dir)
    dictionary = MonomerDictionary()
    required = required_residue_names(model)

    _load_tier(dictionary, user_sources, TIER_USER, embedded_doc)
    if len(dictionary):
        logging.info("Monomers read so far: %s", " ".join(dictionary.names()))

    needed = dictionary.missing(required)
    logging.info("Reading monomer library...")
    found, library_misses = library.load(needed)
    for name, cc in found.items():
        dictionary.insert_if_absent(name, cc, TIER_SYSTEM, str(library.path_for(name)))
    if library_misses:
        logging.warning("Not found in the monomer library: %s", " ".join(library_misses))

    _load_tier(dictionary, low_sources, TIER_LOW, embedded_doc)
    needed = dictionary.missing(required)
    resolution = Resolution(dictionary=dictionary, required=required, library_misses=library_misses)
    if not needed:
        return resolution

    for name in needed:
        logging.warning("definition not found for %s.", name)
    if not allow_adhoc:
        raise MonomerResolutionError(needed)

    impossible = []
    for name in needed:
        residue = find_most_complete_residue(name, model)
        if residue is None or len(residue) == 0:
            impossible.append(name)
            continue
        monomer = synthesize_monomer(residue, name)
        dictionary.insert_if_absent(name, monomer.chemcomp, TIER_ADHOC, f"residue {residue.seqid}")
        resolution.synthesized.append(name)
    if resolution.synthesized:
        logging.warning("Using ad-hoc restraints for missing monomers: %s", " ".join(resolution.synthesized))
        logging.warning("Restraints generated by a dedicated program would be better.")
    if impossible:
        raise MonomerResolutionError(impossible, "No atoms to derive ad-hoc restraints from")
    return resolution
