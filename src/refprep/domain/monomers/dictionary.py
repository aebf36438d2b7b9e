"""Merged monomer dictionary with explicit insert-if-absent semantics.

Priority between sources is expressed only by the order in which the
resolver inserts; an entry, once present, is never replaced.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator
import logging

import gemmi

from refprep.domain.monomers.sources import MonLibLog

__all__ = [
    "TIER_USER",
    "TIER_SYSTEM",
    "TIER_LOW",
    "TIER_ADHOC",
    "MonomerEntry",
    "MonomerDictionary",
]

TIER_USER = "user"
TIER_SYSTEM = "system"
TIER_LOW = "low"
TIER_ADHOC = "ad-hoc"


@dataclass(slots=True)
class MonomerEntry:
    name: str
    chemcomp: gemmi.ChemComp
    tier: str
    origin: str  # file path or label of the source

    @property
    def approximate(self) -> bool:
        return self.tier == TIER_ADHOC


class MonomerDictionary:
    """Mapping residue name -> MonomerEntry; first writer wins."""

    def __init__(self) -> None:
        self._entries: dict[str, MonomerEntry] = {}
        self._link_documents: dict[str, list[gemmi.cif.Document]] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def get(self, name: str) -> MonomerEntry | None:
        return self._entries.get(name)

    def insert_if_absent(self, name: str, chemcomp: gemmi.ChemComp, tier: str, origin: str) -> bool:
        """Add ``name`` unless already defined. Returns True if inserted."""
        if name in self._entries:
            logging.debug("[monomers] keeping %s from %s, ignoring %s", name, self._entries[name].origin, origin)
            return False
        self._entries[name] = MonomerEntry(name=name, chemcomp=chemcomp, tier=tier, origin=origin)
        return True

    def missing(self, required: Iterable[str]) -> list[str]:
        """Required names without an entry, in the order given."""
        return [name for name in required if name not in self._entries]

    def names(self, tier: str | None = None) -> list[str]:
        return [n for n, e in self._entries.items() if tier is None or e.tier == tier]

    def is_approximate(self, name: str) -> bool:
        entry = self._entries.get(name)
        return entry is not None and entry.approximate

    def add_link_document(self, doc: gemmi.cif.Document, tier: str = TIER_USER) -> None:
        """Remember a user document so its links/modifications reach the builder."""
        self._link_documents.setdefault(tier, []).append(doc)

    def fingerprint(self) -> dict[str, tuple]:
        """Content snapshot used to compare dictionaries independent of insertion order."""
        out = {}
        for name, entry in self._entries.items():
            cc = entry.chemcomp
            atoms = tuple(sorted(a.id for a in cc.atoms))
            bonds = tuple(sorted(
                (*sorted((b.id1.atom, b.id2.atom)), round(b.value, 3)) for b in cc.rt.bonds
            ))
            out[name] = (entry.tier, entry.origin, atoms, bonds)
        return out

    def to_monlib(self, monomer_dir: str | Path | None = None) -> gemmi.MonLib:
        """Build the gemmi.MonLib consumed by the topology builder.

        Links, modifications and energy types come from user documents and
        from the library's ``list/mon_lib_list.cif`` (when present);
        monomer definitions are exactly the entries of this dictionary.
        MonLib keeps the first link definition it reads, so documents are
        read in tier order: ``--lib``, library, ``--low``.
        """
        monlib = gemmi.MonLib()
        for doc in self._link_documents.get(TIER_USER, []):
            monlib.read_monomer_doc(doc)
        if monomer_dir is not None and (Path(monomer_dir) / "list" / "mon_lib_list.cif").is_file():
            monlib.read_monomer_lib(str(monomer_dir), [], MonLibLog())
        for doc in self._link_documents.get(TIER_LOW, []):
            monlib.read_monomer_doc(doc)
        for name, entry in self._entries.items():
            monlib.monomers[name] = entry.chemcomp
        return monlib
