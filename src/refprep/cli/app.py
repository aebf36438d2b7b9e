# src/refprep/cli/app.py
import argparse
import logging
import sys
from pathlib import Path

from refprep import __version__
from refprep.config.loader import (
    ConfigurationError,
    dump_config,
    load_config,
    parse_yes_no,
    resolve_hydrogen_mode,
    resolve_monomer_dir,
)
from refprep.infra.decisions import build_prep_decision
from refprep.infra.logging import log_run_header, setup_logging
from refprep.pipeline import prep

DESCRIPTION = (
    "Prepare an intermediate restraint file for refinement: resolve monomer "
    "definitions, optionally add links and ad-hoc ligand restraints, "
    "add or remove hydrogens, and write coordinates with restraints (mmCIF)."
)


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"ERROR: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    p = _Parser("refprep", description=DESCRIPTION)
    p.add_argument("input", metavar="INPUT_FILE", help="Coordinates (PDB, mmCIF or mmJSON, optionally gzipped)")
    p.add_argument("output", metavar="OUTPUT_FILE", help="Output restraint file (mmCIF)")
    p.add_argument("--monomers", metavar="DIR", help="Monomer library dir (default: $CLIBD_MON).")
    p.add_argument("--lib", metavar="CIF", action="append",
                   help="User dictionary, read before the monomer library; '+' = blocks of the input file. Repeatable.")
    p.add_argument("--low", metavar="CIF", action="append",
                   help="Like --lib, but used only for monomers missing from the library. Repeatable.")
    p.add_argument("--auto-cis", metavar="Y|N", type=parse_yes_no,
                   help="Assign cis/trans ignoring CISPEP record (default: Y).")
    p.add_argument("--auto-link", metavar="Y|N", type=parse_yes_no,
                   help="Find links not included in LINK/SSBOND (default: N).")
    p.add_argument("--auto-ligand", metavar="Y|N", type=parse_yes_no,
                   help="Use ad-hoc restraints for monomers without definitions (default: N).")
    p.add_argument("-H", "--no-hydrogens", action="store_true", help="Remove (and do not add) hydrogens.")
    p.add_argument("--keep-hydrogens", action="store_true", help="Preserve hydrogens from the input file.")
    p.add_argument("--config", metavar="TOML", help="Optional refprep.toml with default settings.")
    p.add_argument("--log-file", metavar="PATH", help="Also write a detailed log to this file.")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose output.")
    p.add_argument("--version", action="version", version=f"refprep {__version__}")
    return p


def _resolve_config(args: argparse.Namespace):
    """TOML settings with command-line values on top."""
    cfg = load_config(args.config)
    cfg.input_path = Path(args.input)
    cfg.output_path = Path(args.output)
    cfg.verbose = args.verbose
    cfg.log_file = Path(args.log_file) if args.log_file else None
    if args.lib:
        cfg.monomers.lib = list(args.lib)
    if args.low:
        cfg.monomers.low = list(args.low)
    for name in ("cis", "link", "ligand"):
        value = getattr(args, f"auto_{name}")
        if value is not None:
            setattr(cfg.auto, name, value)
    cfg.hydrogens.mode = resolve_hydrogen_mode(args.no_hydrogens, args.keep_hydrogens,
                                               default=cfg.hydrogens.mode)
    return cfg


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        setup_logging(verbose=args.verbose, log_path=args.log_file)
        cfg = _resolve_config(args)
        monomer_dir = resolve_monomer_dir(args.monomers, cfg.monomers.dir)
        cfg.monomers.dir = str(monomer_dir)
        log_run_header("prep")
        dump_config(cfg, log_fn=logging.debug)
        build_prep_decision(cfg, monomer_dir).log("prep")
        result = prep.run_prep(cfg, monomer_dir)
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        logging.debug("[prep] aborted", exc_info=True)
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    logging.debug("[prep] wrote %s", result.output_path)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
