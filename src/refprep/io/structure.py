"""Coordinate input and restraint-document output.

Thin wrappers around gemmi readers/writers so the pipeline can swap them in
tests.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

import gemmi

__all__ = ["InputStructureError", "read_model_file", "write_document"]


class InputStructureError(RuntimeError):
    """Raised when the coordinate input cannot be used for preparation."""


def read_model_file(path: str | os.PathLike) -> tuple[gemmi.Structure, gemmi.cif.Document | None]:
    """Read PDB/mmCIF/mmJSON (optionally gzipped) and set up entities.

    Returns the structure and, for mmCIF input, the parsed document (source of
    dictionary blocks embedded in the file). Raises InputStructureError when
    the file holds no models or no atoms.
    """
    logging.info("Reading %s ...", path)
    if not Path(path).is_file():
        raise InputStructureError(f"Input file not found: {path}")
    doc = gemmi.cif.Document()
    try:
        st = gemmi.read_structure(str(path), merge_chain_parts=True, format=gemmi.CoorFormat.Detect, save_doc=doc)
    except (RuntimeError, ValueError) as exc:
        raise InputStructureError(f"Failed to read {path}: {exc}") from exc
    st.setup_entities()
    # an input without atoms still comes back with one empty model
    if len(st) == 0 or st[0].count_atom_sites() == 0:
        raise InputStructureError("No models found in the input file.")
    return st, (doc if len(doc) > 0 else None)


def write_document(doc: gemmi.cif.Document, path: str | os.PathLike) -> Path:
    """Write a CIF document via a temporary sibling and an atomic rename.

    A failure while writing leaves no (partial) file at ``path``.
    """
    target = Path(path)
    tmp = target.with_name(target.name + ".part")
    logging.info("Writing %s", target)
    try:
        doc.write_file(str(tmp), gemmi.cif.Style.NoBlankLines)
        os.replace(tmp, target)
    finally:
        if tmp.exists():
            tmp.unlink()
    return target
