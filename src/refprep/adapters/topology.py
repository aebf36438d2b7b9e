"""gemmi topology builder adapter.

Turns a prepared structure and a monomer library into the restraint
document (coordinates plus restraints) written by the prep step.
"""
from __future__ import annotations

import logging

import gemmi

__all__ = ["hydrogen_change", "build_restraint_document"]

_H_CHANGE = {
    "readd": gemmi.HydrogenChange.ReAddButWater,
    "remove": gemmi.HydrogenChange.Remove,
    "keep": gemmi.HydrogenChange.NoChange,
}


class _WarningStream:
    """File-like sink for gemmi's topology warnings."""

    def write(self, text: str) -> None:
        text = text.rstrip()
        if text:
            logging.warning(text)

    def flush(self) -> None:
        pass


def hydrogen_change(mode: str) -> gemmi.HydrogenChange:
    try:
        return _H_CHANGE[mode]
    except KeyError:
        raise ValueError(f"Unknown hydrogen mode: {mode!r}") from None


def build_restraint_document(
    st: gemmi.Structure,
    monlib: gemmi.MonLib,
    hydrogens: str = "readd",
    auto_cis: bool = True,
) -> gemmi.cif.Document:
    """Prepare topology and hydrogens, then the restraint document.

    With ``auto_cis`` cis/trans peptide flags come from the model geometry,
    otherwise CISPEP records of the input are used.
    """
    h_change = hydrogen_change(hydrogens)
    logging.info("Preparing topology, hydrogens, restraints...")
    topo = gemmi.prepare_topology(st, monlib, h_change=h_change, warnings=_WarningStream(),
                                  reorder=True, ignore_unknown_links=False, use_cispeps=not auto_cis)
    logging.info("Preparing data for Refmac...")
    return gemmi.prepare_refmac_crd(st, topo, monlib, h_change)
