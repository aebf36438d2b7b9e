import pytest

from refprep.domain.links.contacts import AtomSite, Contact
from refprep.domain.links.discover import is_covalent, is_link_candidate, plan_links


def site(chain="A", index=0, seqid="1", resname="LIG", atom="C1", element="C"):
    return AtomSite(chain=chain, res_index=index, seqid=seqid, resname=resname, atom=atom, element=element)


def contact(s1, s2, distance=1.5, image=0, other_asu=None):
    return Contact(site1=s1, site2=s2, image_idx=image, distance=distance, other_asu=other_asu)


def test_site_label():
    assert str(site("A", 11, "12", "CYS", "SG", "S")) == "A/CYS 12/SG"


def test_same_and_adjacent_residues_are_excluded_in_same_image():
    a = site("A", 4, "5")
    assert not is_link_candidate(contact(a, site("A", 4, "5", atom="C2")), set())
    assert not is_link_candidate(contact(a, site("A", 5, "6")), set())
    assert is_link_candidate(contact(a, site("A", 6, "7")), set())
    assert is_link_candidate(contact(a, site("B", 5, "6")), set())


def test_symmetry_mates_are_not_excluded_by_adjacency():
    a = site("A", 4, "5")
    assert is_link_candidate(contact(a, site("A", 5, "6"), image=1), set())
    assert is_link_candidate(contact(a, site("A", 4, "5", atom="C2"), image=2), set())


def test_existing_connection_in_either_orientation():
    a, b = site("A", 0, "1", atom="SG"), site("B", 0, "9", atom="SG")
    existing = {(b.key(), a.key())}
    assert not is_link_candidate(contact(a, b), existing)
    assert not is_link_candidate(contact(b, a), existing)


def test_existing_connection_stored_in_one_orientation_only():
    a, b = site("A", 0, "1", atom="SG"), site("B", 0, "9", atom="SG")
    assert not is_link_candidate(contact(a, b), {(a.key(), b.key())})
    assert not is_link_candidate(contact(b, a), {(a.key(), b.key())})
    assert plan_links([contact(b, a, distance=2.03)], {(a.key(), b.key())}) == []


def test_lattice_translation_counts_as_other_asu():
    a = site("A", 4, "5")
    shifted = contact(a, site("A", 5, "6"), image=0, other_asu=True)
    assert not shifted.same_asu()
    assert is_link_candidate(shifted, set())
    assert not plan_links([shifted], set())[0].same_asu
    assert contact(a, site("B", 0, "1"), image=0).same_asu()


def test_existing_connection_ignores_altloc():
    a = AtomSite("A", 0, "1", "CYS", "SG", altloc="B", element="S")
    b = site("B", 0, "9", "CYS", "SG", "S")
    assert not is_link_candidate(contact(a, b), {(site("A", 0, "1", "CYS", "SG", "S").key(), b.key())})


def test_covalent_threshold():
    assert is_covalent(1.3, 0.7, 0.7)
    assert is_covalent(1.9, 0.7, 0.7)
    assert not is_covalent(2.5, 0.7, 0.7)
    assert is_covalent(2.5, 0.7, 0.7, tolerance=1.2)


def test_plan_accepts_short_and_rejects_long_contacts():
    near = contact(site("A", 0, "1"), site("B", 0, "1"), distance=1.3)
    far = contact(site("A", 0, "1", atom="C2"), site("B", 0, "1", atom="C2"), distance=2.5)
    proposals = plan_links([near, far], set())
    assert [p.contact for p in proposals] == [near]
    assert proposals[0].name == "added1"


def test_names_follow_contact_order_and_skip_used_names():
    contacts = [contact(site("A", i, str(i + 1), atom="C1"), site("B", i, str(i + 1), atom="C1"), 1.5)
                for i in range(3)]
    first = plan_links(contacts, set(), existing_names=["added2"])
    assert [p.name for p in first] == ["added1", "added3", "added4"]
    again = plan_links(contacts, set(), existing_names=["added2"])
    assert [(p.name, p.contact) for p in again] == [(p.name, p.contact) for p in first]


def test_pair_reported_twice_is_linked_once():
    a, b = site("A", 0, "1"), site("B", 0, "1")
    proposals = plan_links([contact(a, b, 1.5, 0), contact(b, a, 1.5, 3)], set())
    assert len(proposals) == 1
    assert proposals[0].same_asu


def test_describe_matches_report_format():
    p = plan_links([contact(site("A", 0, "12", "CYS", "SG", "S"), site("B", 0, "40", "CYS", "SG", "S"), 2.03)],
                   set())[0]
    assert p.describe() == "Added link A/CYS 12/SG - B/CYS 40/SG"


@pytest.mark.parametrize("distance", [0.0, 1.0])
def test_zero_tolerance_still_accepts_within_radii(distance):
    assert is_covalent(distance, 0.7, 0.7, tolerance=0.0)
