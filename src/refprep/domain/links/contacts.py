"""Close-contact enumeration on top of gemmi's spatial index.

Contacts are converted into plain ``Contact`` records so that the link
decision logic can be exercised without a gemmi model.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import gemmi

__all__ = ["AtomSite", "Contact", "site_from_cra", "enumerate_contacts"]

DEFAULT_SEARCH_RADIUS = 5.0
DEFAULT_CONTACT_CUTOFF = 3.5


@dataclass(frozen=True, slots=True)
class AtomSite:
    chain: str
    res_index: int  # position of the residue within its chain
    seqid: str
    resname: str
    atom: str
    altloc: str = ""
    element: str = "C"

    def key(self) -> tuple[str, str, str, str]:
        """Identity used to match existing connections (altloc ignored)."""
        return (self.chain, self.seqid, self.resname, self.atom)

    def same_residue(self, other: "AtomSite") -> bool:
        return self.chain == other.chain and self.res_index == other.res_index

    def adjacent_residue(self, other: "AtomSite") -> bool:
        return self.chain == other.chain and abs(self.res_index - other.res_index) == 1

    def __str__(self) -> str:
        return f"{self.chain}/{self.resname} {self.seqid}/{self.atom}"


@dataclass(frozen=True, slots=True)
class Contact:
    site1: AtomSite
    site2: AtomSite
    image_idx: int
    distance: float
    # site2 lies in another asymmetric unit; None means derive it from image_idx
    other_asu: bool | None = None
    # gemmi CRAs, kept for building connections
    cra1: Any = field(default=None, compare=False, repr=False)
    cra2: Any = field(default=None, compare=False, repr=False)

    def same_asu(self) -> bool:
        if self.other_asu is None:
            return self.image_idx == 0
        return not self.other_asu


def _residue_indices(model: gemmi.Model) -> dict[tuple[str, str, str], int]:
    out = {}
    for chain in model:
        for idx, residue in enumerate(chain):
            out.setdefault((chain.name, str(residue.seqid), residue.name), idx)
    return out


def site_from_cra(cra, res_index: int) -> AtomSite:
    altloc = cra.atom.altloc
    return AtomSite(
        chain=cra.chain.name,
        res_index=res_index,
        seqid=str(cra.residue.seqid),
        resname=cra.residue.name,
        atom=cra.atom.name,
        altloc="" if altloc == "\0" else altloc,
        element=cra.atom.element.name,
    )


def enumerate_contacts(
    model: gemmi.Model,
    cell: gemmi.UnitCell,
    radius: float = DEFAULT_SEARCH_RADIUS,
    cutoff: float = DEFAULT_CONTACT_CUTOFF,
) -> list[Contact]:
    """All atom pairs closer than ``cutoff``, including symmetry mates.

    Pairs within one residue or between neighbouring residues of the same
    chain in the same asymmetric unit are not reported. Whether the partner
    is a copy in another asymmetric unit comes from the nearest periodic
    image, so a pure lattice translation counts as another unit.
    """
    ns = gemmi.NeighborSearch(model, cell, radius).populate()
    cs = gemmi.ContactSearch(cutoff)
    cs.ignore = gemmi.ContactSearch.Ignore.AdjacentResidues
    indices = _residue_indices(model)
    out = []
    for r in cs.find_contacts(ns):
        p1, p2 = r.partner1, r.partner2
        i1 = indices[(p1.chain.name, str(p1.residue.seqid), p1.residue.name)]
        i2 = indices[(p2.chain.name, str(p2.residue.seqid), p2.residue.name)]
        # lattice translations keep image_idx 0 but still leave the ASU
        image = cell.find_nearest_pbc_image(p1.atom.pos, p2.atom.pos, r.image_idx)
        out.append(Contact(site1=site_from_cra(p1, i1), site2=site_from_cra(p2, i2),
                           image_idx=r.image_idx, distance=r.dist, other_asu=not image.same_asu(),
                           cra1=p1, cra2=p2))
    return out
