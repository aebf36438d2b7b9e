"""Ad-hoc restraints for residues that no dictionary describes.

Bonding is inferred from the observed coordinates of a single residue
instance, without any chemical knowledge beyond covalent radii. The result
is approximate by construction: bond and angle targets are simply the
observed values. A restraint generator run on the actual compound gives
better restraints.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging

import gemmi
import numpy as np

__all__ = [
    "AdHocMonomer",
    "find_most_complete_residue",
    "residue_atoms",
    "infer_bonds",
    "infer_angles",
    "synthesize_monomer",
]

BOND_TOLERANCE = 0.4  # Å added to the sum of covalent radii
MIN_BOND_DISTANCE = 0.4
NEAREST_NEIGHBOR_SCALE = 1.3
BOND_ESD = 0.02
ANGLE_ESD = 3.0
ADHOC_DESCRIPTION = "ad-hoc restraints from model coordinates"

_HYDROGENS = {"H", "D"}


@dataclass(slots=True)
class AdHocMonomer:
    """Synthesized definition; ``approximate`` is always True."""
    name: str
    atom_names: list[str]
    elements: list[str]
    bonds: list[tuple[int, int, float]] = field(default_factory=list)
    angles: list[tuple[int, int, int, float]] = field(default_factory=list)
    chemcomp: gemmi.ChemComp | None = None
    approximate: bool = True


def find_most_complete_residue(name: str, model: gemmi.Model) -> gemmi.Residue | None:
    """Instance of ``name`` with the most atoms; the first one wins ties."""
    best = None
    for chain in model:
        for residue in chain:
            if residue.name == name and (best is None or len(residue) > len(best)):
                best = residue
    return best


def residue_atoms(residue: gemmi.Residue) -> tuple[list[str], list[str], np.ndarray]:
    """Names, element symbols and coordinates; one atom per name (first conformer)."""
    names: list[str] = []
    elements: list[str] = []
    coords: list[tuple[float, float, float]] = []
    for atom in residue:
        if atom.name in names:
            continue
        names.append(atom.name)
        elements.append(atom.element.name)
        coords.append((atom.pos.x, atom.pos.y, atom.pos.z))
    return names, elements, np.array(coords, dtype=float).reshape(-1, 3)


def infer_bonds(elements: list[str], coords: np.ndarray,
                tolerance: float = BOND_TOLERANCE) -> list[tuple[int, int, float]]:
    """Bonds (i, j, distance) with i < j, ordered by i then j.

    i-j is bonded when d <= r_i + r_j + tolerance. An atom left without any
    bond is attached to its nearest neighbour if that one lies within
    NEAREST_NEIGHBOR_SCALE * (r_i + r_j).
    """
    n = len(elements)
    if n < 2:
        return []
    radii = np.array([gemmi.Element(el).covalent_r for el in elements])
    dist = np.sqrt(((coords[:, None, :] - coords[None, :, :]) ** 2).sum(axis=-1))
    is_h = np.array([el.upper() in _HYDROGENS for el in elements])
    allowed = ~(is_h[:, None] & is_h[None, :]) & (dist >= MIN_BOND_DISTANCE)
    np.fill_diagonal(allowed, False)
    bonded = np.triu(allowed & (dist <= radii[:, None] + radii[None, :] + tolerance), k=1)
    pairs = {(int(i), int(j)) for i, j in zip(*np.nonzero(bonded))}
    has_bond = bonded.any(axis=0) | bonded.any(axis=1)
    for i in np.flatnonzero(~has_bond):
        candidates = np.where(allowed[i], dist[i], np.inf)
        j = int(np.argmin(candidates))
        if np.isfinite(candidates[j]) and candidates[j] <= NEAREST_NEIGHBOR_SCALE * (radii[i] + radii[j]):
            pairs.add((min(int(i), j), max(int(i), j)))
    return [(i, j, float(dist[i, j])) for i, j in sorted(pairs)]


def infer_angles(bonds: list[tuple[int, int, float]], coords: np.ndarray) -> list[tuple[int, int, int, float]]:
    """Angles (i, center, k, degrees) for every two bonds sharing an atom."""
    neighbors: dict[int, list[int]] = {}
    for i, j, _ in bonds:
        neighbors.setdefault(i, []).append(j)
        neighbors.setdefault(j, []).append(i)
    angles = []
    for center in sorted(neighbors):
        nbs = sorted(neighbors[center])
        for a in range(len(nbs)):
            for b in range(a + 1, len(nbs)):
                v1 = coords[nbs[a]] - coords[center]
                v2 = coords[nbs[b]] - coords[center]
                cos = np.dot(v1, v2) / (np.linalg.norm(v1) * np.linalg.norm(v2))
                angle = float(np.degrees(np.arccos(np.clip(cos, -1.0, 1.0))))
                angles.append((nbs[a], center, nbs[b], angle))
    return angles


def _make_document(monomer: AdHocMonomer, coords: np.ndarray) -> gemmi.cif.Document:
    q = gemmi.cif.quote
    doc = gemmi.cif.Document()
    block = doc.add_new_block(f"comp_{monomer.name}")
    block.set_pair("_chem_comp.id", q(monomer.name))
    block.set_pair("_chem_comp.name", q(ADHOC_DESCRIPTION))
    loop = block.init_loop("_chem_comp_atom.", ["comp_id", "atom_id", "type_symbol", "type_energy",
                                                 "charge", "x", "y", "z"])
    for name, el, xyz in zip(monomer.atom_names, monomer.elements, coords):
        loop.add_row([q(monomer.name), q(name), el, el.upper(), "0",
                      f"{xyz[0]:.3f}", f"{xyz[1]:.3f}", f"{xyz[2]:.3f}"])
    if monomer.bonds:
        loop = block.init_loop("_chem_comp_bond.", ["comp_id", "atom_id_1", "atom_id_2", "type",
                                                     "value_dist", "value_dist_esd"])
        for i, j, d in monomer.bonds:
            loop.add_row([q(monomer.name), q(monomer.atom_names[i]), q(monomer.atom_names[j]),
                          "single", f"{d:.3f}", f"{BOND_ESD:.3f}"])
    if monomer.angles:
        loop = block.init_loop("_chem_comp_angle.", ["comp_id", "atom_id_1", "atom_id_2", "atom_id_3",
                                                      "value_angle", "value_angle_esd"])
        for i, c, k, a in monomer.angles:
            loop.add_row([q(monomer.name), q(monomer.atom_names[i]), q(monomer.atom_names[c]),
                          q(monomer.atom_names[k]), f"{a:.2f}", f"{ANGLE_ESD:.1f}"])
    return doc


def synthesize_monomer(residue: gemmi.Residue, name: str | None = None) -> AdHocMonomer:
    """Build an approximate definition from one residue instance.

    Raises ValueError for a residue without atoms.
    """
    name = name or residue.name
    names, elements, coords = residue_atoms(residue)
    if not names:
        raise ValueError(f"Residue {name} {residue.seqid} has no atoms; cannot derive restraints")
    bonds = infer_bonds(elements, coords)
    monomer = AdHocMonomer(name=name, atom_names=names, elements=elements,
                           bonds=bonds, angles=infer_angles(bonds, coords))
    doc = _make_document(monomer, coords)
    monomer.chemcomp = gemmi.make_chemcomp_from_block(doc[0])
    logging.info("[adhoc] %s: %d atoms, %d bonds, %d angles from residue %s",
                 name, len(names), len(bonds), len(monomer.angles), residue.seqid)
    return monomer
