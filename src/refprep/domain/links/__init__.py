"""Covalent link discovery between residues (including symmetry mates)."""

from .contacts import AtomSite, Contact, enumerate_contacts  # noqa: F401
from .discover import add_automatic_links, is_link_candidate, plan_links  # noqa: F401
