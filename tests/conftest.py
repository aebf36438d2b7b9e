import logging

import pytest
import gemmi

from refprep.infra.logging import reset_logging
from tests.helpers.monomers import ALA_DEF, GLY_DEF, make_monomer_library


@pytest.fixture(autouse=True)
def _isolated_logging(monkeypatch):
    """Each test starts without CLIBD_MON and leaves no handlers behind."""
    monkeypatch.delenv("CLIBD_MON", raising=False)
    monkeypatch.delenv("REFPREP_LOG_LEVEL", raising=False)
    level = logging.getLogger().level
    yield
    reset_logging()
    logging.getLogger().setLevel(level)


@pytest.fixture
def monomer_lib(tmp_path):
    """System monomer library holding ALA and GLY only."""
    return make_monomer_library(tmp_path / "monomers", {"ALA": ALA_DEF, "GLY": GLY_DEF})


@pytest.fixture
def stub_builder():
    """Replacement for the gemmi topology builder; records what it was given."""
    calls = []

    def build(st, monlib, hydrogens="readd", auto_cis=True):
        calls.append({"st": st, "monlib": monlib, "hydrogens": hydrogens, "auto_cis": auto_cis})
        doc = gemmi.cif.Document()
        block = doc.add_new_block("restraints")
        block.set_pair("_refprep.hydrogens", hydrogens)
        block.set_pair("_refprep.connections", str(len(st.connections)))
        return doc

    build.calls = calls
    return build
