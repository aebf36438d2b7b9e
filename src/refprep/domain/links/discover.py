"""Automatic discovery of covalent links missing from LINK/SSBOND records."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable
import logging

import gemmi

from refprep.domain.links.contacts import (
    DEFAULT_CONTACT_CUTOFF,
    DEFAULT_SEARCH_RADIUS,
    AtomSite,
    Contact,
    enumerate_contacts,
)

__all__ = [
    "DEFAULT_TOLERANCE",
    "LinkProposal",
    "connection_keys",
    "is_link_candidate",
    "is_covalent",
    "plan_links",
    "add_automatic_links",
]

DEFAULT_TOLERANCE = 0.5  # Å added to the sum of covalent radii

AtomKey = tuple[str, str, str, str]


@dataclass(frozen=True, slots=True)
class LinkProposal:
    name: str
    contact: Contact

    @property
    def same_asu(self) -> bool:
        return self.contact.same_asu()

    def describe(self) -> str:
        return f"Added link {self.contact.site1} - {self.contact.site2}"


def _address_key(addr: gemmi.AtomAddress) -> AtomKey:
    return (addr.chain_name, str(addr.res_id.seqid), addr.res_id.name, addr.atom_name)


def connection_keys(st: gemmi.Structure) -> set[tuple[AtomKey, AtomKey]]:
    """Atom pairs of existing connections, stored in both orientations."""
    keys = set()
    for con in st.connections:
        k1, k2 = _address_key(con.partner1), _address_key(con.partner2)
        keys.add((k1, k2))
        keys.add((k2, k1))
    return keys


def is_link_candidate(contact: Contact, existing_keys: set[tuple[AtomKey, AtomKey]]) -> bool:
    """False for pairs that must never get an automatic link."""
    s1, s2 = contact.site1, contact.site2
    if contact.same_asu() and (s1.same_residue(s2) or s1.adjacent_residue(s2)):
        return False
    k1, k2 = s1.key(), s2.key()
    return (k1, k2) not in existing_keys and (k2, k1) not in existing_keys


def _radius(site: AtomSite) -> float:
    return gemmi.Element(site.element).covalent_r


def is_covalent(distance: float, r1: float, r2: float, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    return distance <= r1 + r2 + tolerance


def plan_links(
    contacts: Iterable[Contact],
    existing_keys: set[tuple[AtomKey, AtomKey]],
    existing_names: Iterable[str] = (),
    tolerance: float = DEFAULT_TOLERANCE,
) -> list[LinkProposal]:
    """Accepted contacts with their connection names, in contact order."""
    used = set(existing_names)
    seen = set(existing_keys)
    proposals = []
    counter = 0
    for contact in contacts:
        if not is_link_candidate(contact, seen):
            continue
        if not is_covalent(contact.distance, _radius(contact.site1), _radius(contact.site2), tolerance):
            continue
        counter += 1
        while f"added{counter}" in used:
            counter += 1
        name = f"added{counter}"
        used.add(name)
        k1, k2 = contact.site1.key(), contact.site2.key()
        seen.update({(k1, k2), (k2, k1)})
        proposals.append(LinkProposal(name=name, contact=contact))
    return proposals


def _make_connection(proposal: LinkProposal) -> gemmi.Connection:
    con = gemmi.Connection()
    con.name = proposal.name
    con.type = gemmi.ConnectionType.Covale
    con.asu = gemmi.Asu.Same if proposal.same_asu else gemmi.Asu.Different
    cra1, cra2 = proposal.contact.cra1, proposal.contact.cra2
    con.partner1 = gemmi.make_address(cra1.chain, cra1.residue, cra1.atom)
    con.partner2 = gemmi.make_address(cra2.chain, cra2.residue, cra2.atom)
    con.reported_distance = proposal.contact.distance
    return con


def add_automatic_links(
    model: gemmi.Model,
    st: gemmi.Structure,
    tolerance: float = DEFAULT_TOLERANCE,
    radius: float = DEFAULT_SEARCH_RADIUS,
    cutoff: float = DEFAULT_CONTACT_CUTOFF,
) -> list[gemmi.Connection]:
    """Append connections for covalent contacts not yet in ``st.connections``."""
    contacts = enumerate_contacts(model, st.cell, radius=radius, cutoff=cutoff)
    proposals = plan_links(contacts, connection_keys(st),
                           [con.name for con in st.connections], tolerance)
    added = []
    for proposal in proposals:
        con = _make_connection(proposal)
        st.connections.append(con)
        added.append(con)
        logging.info(proposal.describe())
    logging.debug("[links] %d contacts examined, %d links added", len(contacts), len(added))
    return added
