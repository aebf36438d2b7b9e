# tests/helpers/monomers.py
from pathlib import Path

import gemmi

ALA_DEF = (
    [("N", "N"), ("CA", "C"), ("C", "C"), ("O", "O"), ("CB", "C")],
    [("N", "CA", 1.458), ("CA", "C", 1.525), ("C", "O", 1.231), ("CA", "CB", 1.520)],
)
GLY_DEF = (
    [("N", "N"), ("CA", "C"), ("C", "C"), ("O", "O")],
    [("N", "CA", 1.456), ("CA", "C", 1.514), ("C", "O", 1.232)],
)
XYZ_DEF = (
    [("C1", "C"), ("C2", "C"), ("O1", "O")],
    [("C1", "C2", 1.510), ("C2", "O1", 1.420)],
)


def monomer_block_text(name, atoms, bonds, with_distances=True) -> str:
    lines = [f"data_comp_{name}", "loop_", "_chem_comp_atom.comp_id", "_chem_comp_atom.atom_id",
             "_chem_comp_atom.type_symbol", "_chem_comp_atom.type_energy", "_chem_comp_atom.charge"]
    for atom_id, element in atoms:
        lines.append(f"{name} {atom_id} {element} {element.upper()} 0")
    if bonds:
        lines += ["loop_", "_chem_comp_bond.comp_id", "_chem_comp_bond.atom_id_1",
                  "_chem_comp_bond.atom_id_2", "_chem_comp_bond.type"]
        if with_distances:
            lines += ["_chem_comp_bond.value_dist", "_chem_comp_bond.value_dist_esd"]
        for a1, a2, dist in bonds:
            row = f"{name} {a1} {a2} single"
            if with_distances:
                row += f" {dist:.3f} 0.020"
            lines.append(row)
    return "\n".join(lines) + "\n"


def comp_list_text(monomers: dict, group="peptide") -> str:
    head = ["data_comp_list", "loop_", "_chem_comp.id", "_chem_comp.three_letter_code",
            "_chem_comp.name", "_chem_comp.group", "_chem_comp.number_atoms_all",
            "_chem_comp.number_atoms_nh", "_chem_comp.desc_level"]
    for name, (atoms, _) in monomers.items():
        head.append(f"{name} {name} '{name} test' {group} {len(atoms)} {len(atoms)} .")
    return "\n".join(head) + "\n"


def dictionary_text(monomers: dict, group="peptide", with_distances=True) -> str:
    """monomers: {name: (atoms, bonds)} -> CIF text with comp_list and one block per monomer."""
    blocks = [monomer_block_text(n, a, b, with_distances) for n, (a, b) in monomers.items()]
    return comp_list_text(monomers, group) + "\n" + "\n".join(blocks)


def write_dictionary(path: Path, monomers: dict, **kwargs) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dictionary_text(monomers, **kwargs))
    return path


def make_monomer_library(root: Path, monomers: dict) -> Path:
    """Directory laid out like the CCP4 monomer library (``<root>/<letter>/<NAME>.cif``).

    The list and energy files are minimal but present, as gemmi reads both.
    """
    for name, definition in monomers.items():
        write_dictionary(root / name[0].lower() / f"{name}.cif", {name: definition})
    (root / "list").mkdir(parents=True, exist_ok=True)
    (root / "list" / "mon_lib_list.cif").write_text(comp_list_text(monomers))
    (root / "ener_lib.cif").write_text("data_energy\n_lib_name.name refprep-test\n")
    return root


def chemcomp(name, atoms, bonds) -> gemmi.ChemComp:
    doc = gemmi.cif.read_string(monomer_block_text(name, atoms, bonds))
    return gemmi.make_chemcomp_from_block(doc[0])


def link_text(link_id: str, dist: float, comp="CYS", atom="SG") -> str:
    """Dictionary document holding one ``_chem_link`` with a single bond."""
    return "\n".join([
        "data_link_list", "loop_", "_chem_link.id", "_chem_link.comp_id_1", "_chem_link.mod_id_1",
        "_chem_link.group_comp_1", "_chem_link.comp_id_2", "_chem_link.mod_id_2",
        "_chem_link.group_comp_2", "_chem_link.name",
        f"{link_id} {comp} . . {comp} . . 'test link'",
        "",
        f"data_link_{link_id}", "loop_", "_chem_link_bond.link_id", "_chem_link_bond.atom_1_comp_id",
        "_chem_link_bond.atom_id_1", "_chem_link_bond.atom_2_comp_id", "_chem_link_bond.atom_id_2",
        "_chem_link_bond.type", "_chem_link_bond.value_dist", "_chem_link_bond.value_dist_esd",
        f"{link_id} 1 {atom} 2 {atom} single {dist:.3f} 0.020",
    ]) + "\n"
