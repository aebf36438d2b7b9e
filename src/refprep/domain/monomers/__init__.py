"""Monomer dictionary sources, merging and resolution."""

from .dictionary import MonomerDictionary, MonomerEntry  # noqa: F401
from .resolver import MonomerResolutionError, Resolution, resolve_monomers  # noqa: F401
from .sources import MonomerSourceError, SystemMonomerLibrary  # noqa: F401
