"""Readers for monomer dictionary sources.

Two kinds of sources exist:

* user dictionaries: a CIF file (optionally gzipped) or the ``+`` sentinel
  that selects dictionary blocks embedded in the mmCIF input itself;
* the system monomer library, a directory tree with one file per monomer
  (``<root>/<first letter>/<NAME>.cif``) queried by name through gemmi.

A source that cannot be read raises MonomerSourceError; nothing is skipped
silently.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import gemmi

from refprep.config.loader import EMBEDDED_SOURCE
from refprep.io.structure import InputStructureError

__all__ = [
    "MonomerSourceError",
    "read_cif_document",
    "monomers_from_document",
    "load_user_source",
    "MonLibLog",
    "SystemMonomerLibrary",
]


class MonomerSourceError(RuntimeError):
    """Raised when a dictionary source is missing, unreadable or unusable."""


def read_cif_document(path: str | Path) -> gemmi.cif.Document:
    p = Path(path)
    if not p.is_file():
        raise MonomerSourceError(f"Monomer dictionary not found: {p}")
    try:
        return gemmi.cif.read(str(p))
    except (RuntimeError, ValueError, OSError) as exc:
        raise MonomerSourceError(f"Failed to read monomer dictionary {p}: {exc}") from exc


def _block_monomer_name(block: gemmi.cif.Block) -> str | None:
    if block.name == "comp_list" or not block.find_values("_chem_comp_atom.atom_id"):
        return None
    return block.name[5:] if block.name.startswith("comp_") else block.name


def _groups(doc: gemmi.cif.Document) -> dict[str, str]:
    groups = {}
    for b in doc:
        for row in b.find("_chem_comp.", ["id", "group"]):
            groups.setdefault(row.str(0), row.str(1))
    return groups


def monomers_from_document(doc: gemmi.cif.Document, origin: str) -> dict[str, gemmi.ChemComp]:
    """Monomer definitions of all dictionary blocks in ``doc`` (document order).

    Blocks listing bonds without target distances are rejected: such files
    (e.g. chemical component entries from the PDB) carry no restraints.
    """
    groups = _groups(doc)
    out: dict[str, gemmi.ChemComp] = {}
    for block in doc:
        name = _block_monomer_name(block)
        if name is None or name in out:
            continue
        if block.find_values("_chem_comp_bond.atom_id_1") and not block.find_values("_chem_comp_bond.value_dist"):
            raise MonomerSourceError(
                f"Bond length information for {name} is missing from {origin}. "
                "Please generate restraints using a dedicated program."
            )
        cc = gemmi.make_chemcomp_from_block(block)
        if name in groups:
            cc.set_group(groups[name])
        out[name] = cc
    return out


def load_user_source(
    source: str,
    embedded_doc: gemmi.cif.Document | None = None,
) -> tuple[dict[str, gemmi.ChemComp], gemmi.cif.Document]:
    """Read one ``--lib``/``--low`` source. Returns (monomers, document)."""
    logging.info("Reading user's library %s...", source)
    if source == EMBEDDED_SOURCE:
        if embedded_doc is None:
            raise InputStructureError(
                f"Library '{EMBEDDED_SOURCE}' reads dictionaries from the input file, which works for mmCIF input only."
            )
        doc, origin = embedded_doc, "input file"
    else:
        doc, origin = read_cif_document(source), source
    monomers = monomers_from_document(doc, origin)
    if not monomers:
        logging.warning("No monomer definitions found in %s", origin)
    return monomers, doc


class MonLibLog:
    """File-like sink for gemmi's monomer library messages."""

    def write(self, text: str) -> None:
        text = text.rstrip()
        if text:
            logging.debug("[monomers] %s", text)

    def flush(self) -> None:
        pass


class SystemMonomerLibrary:
    """Name-based access to a CCP4-style monomer library directory.

    Files are located and read by gemmi (``MonLib.path``,
    ``MonLib.read_monomer_lib``) into a private MonLib.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._monlib: gemmi.MonLib | None = None

    def _read(self, names: list[str]) -> gemmi.MonLib:
        if not (self.root / "list" / "mon_lib_list.cif").is_file():
            raise MonomerSourceError(f"Not a monomer library (no list/mon_lib_list.cif): {self.root}")
        monlib = gemmi.MonLib()
        try:
            monlib.read_monomer_lib(str(self.root), names, MonLibLog())
        except (RuntimeError, ValueError, OSError) as exc:
            raise MonomerSourceError(f"Failed to read monomer library {self.root}: {exc}") from exc
        self._monlib = monlib
        return monlib

    def path_for(self, name: str) -> Path:
        monlib = self._monlib if self._monlib is not None else self._read([])
        return Path(monlib.path(name))

    def load(self, names: Iterable[str]) -> tuple[dict[str, gemmi.ChemComp], list[str]]:
        """Read definitions for ``names``. Returns (found, missing) in request order."""
        names = list(names)
        monlib = self._read(names)
        found = {name: monlib.monomers[name] for name in names if name in monlib.monomers}
        missing = [name for name in names if name not in found]
        return found, missing
