import textwrap

import pytest

from refprep.config.loader import (
    ConfigurationError,
    dump_config,
    load_config,
    parse_yes_no,
    resolve_hydrogen_mode,
    resolve_monomer_dir,
)


def _write(tmp_path, text):
    p = tmp_path / "refprep.toml"
    p.write_text(textwrap.dedent(text))
    return p


def test_defaults_without_file():
    cfg = load_config(None)
    assert cfg.auto.cis is True
    assert cfg.auto.link is False
    assert cfg.auto.ligand is False
    assert cfg.hydrogens.mode == "readd"
    assert cfg.monomers.lib == [] and cfg.monomers.low == []
    assert cfg.links.tolerance == 0.5


def test_toml_overrides_and_unknown_keys(tmp_path):
    path = _write(tmp_path, """
    [monomers]
    dir = "/opt/monomers"
    lib = "ligands.cif"
    low = ["a.cif", "b.cif"]
    colour = "blue"

    [auto]
    link = true

    [hydrogens]
    mode = "Remove"

    [links]
    tolerance = 0.3
    """)
    cfg = load_config(path)
    assert cfg.monomers.dir == "/opt/monomers"
    assert cfg.monomers.lib == ["ligands.cif"]
    assert cfg.monomers.low == ["a.cif", "b.cif"]
    assert cfg.auto.link is True and cfg.auto.cis is True
    assert cfg.hydrogens.mode == "remove"
    assert cfg.links.tolerance == pytest.approx(0.3)


@pytest.mark.parametrize("body, fragment", [
    ('[hydrogens]\nmode = "sometimes"\n', "hydrogens.mode"),
    ('[auto]\nlink = "yes"\n', "auto.link"),
    ('[links]\ntolerance = -1\n', "links.tolerance"),
    ('[links]\ncontact_cutoff = 9.0\n', "contact_cutoff"),
    ('[monomers]\nlib = [1, 2]\n', "monomers.lib"),
])
def test_invalid_values_raise(tmp_path, body, fragment):
    with pytest.raises(ConfigurationError, match=fragment):
        load_config(_write(tmp_path, body))


def test_missing_and_malformed_files(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "absent.toml")
    with pytest.raises(ConfigurationError, match="Invalid TOML"):
        load_config(_write(tmp_path, "[auto\n"))


def test_dump_config_is_flat_and_ordered():
    lines = []
    dump_config(load_config(None), log_fn=lines.append)
    assert lines[0].endswith("begin full config dump --")
    keys = [l.split(" = ")[0] for l in lines[1:-1]]
    assert "[config] monomers.dir" in keys
    assert keys.index("[config] monomers.dir") < keys.index("[config] links.tolerance")


@pytest.mark.parametrize("value, expected", [("Y", True), ("y", True), ("yes", True), ("N", False), ("no", False)])
def test_parse_yes_no(value, expected):
    assert parse_yes_no(value) is expected


def test_parse_yes_no_rejects_other_words():
    with pytest.raises(ConfigurationError):
        parse_yes_no("maybe")


def test_hydrogen_mode_resolution():
    assert resolve_hydrogen_mode(False, False) == "readd"
    assert resolve_hydrogen_mode(True, False) == "remove"
    assert resolve_hydrogen_mode(False, True) == "keep"
    assert resolve_hydrogen_mode(False, False, default="keep") == "keep"
    with pytest.raises(ConfigurationError, match="mutually exclusive"):
        resolve_hydrogen_mode(True, True)


def test_monomer_dir_priority(tmp_path):
    cli, cfg, env = (tmp_path / n for n in ("cli", "cfg", "env"))
    for d in (cli, cfg, env):
        d.mkdir()
    environ = {"CLIBD_MON": str(env)}
    assert resolve_monomer_dir(str(cli), str(cfg), environ) == cli
    assert resolve_monomer_dir(None, str(cfg), environ) == cfg
    assert resolve_monomer_dir("", None, environ) == env


def test_monomer_dir_missing_everywhere():
    with pytest.raises(ConfigurationError, match=r"Set \$CLIBD_MON or use option --monomers."):
        resolve_monomer_dir(None, None, {})
    with pytest.raises(ConfigurationError):
        resolve_monomer_dir(None, None, {"CLIBD_MON": ""})


def test_monomer_dir_must_be_directory(tmp_path):
    f = tmp_path / "file.txt"
    f.write_text("x")
    with pytest.raises(ConfigurationError, match="not a directory"):
        resolve_monomer_dir(str(f), None, {})
