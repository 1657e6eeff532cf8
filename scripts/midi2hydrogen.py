#!/usr/bin/env python3
# scripts/midi2hydrogen.py
"""
Convertit des fichiers MIDI en chansons Hydrogen (.h2song) via le script
Lua midi_to_hydrogen.lua.

Usage:
  python -m scripts.midi2hydrogen song1.mid song2.mid
  python -m scripts.midi2hydrogen --script path/to/midi_to_hydrogen.lua *.mid
  python -m scripts.midi2hydrogen --out-dir songs/ --strict -v *.mid
  python -m scripts.midi2hydrogen -- -intro.mid   # nom commençant par "-"

Chaque chanson est écrite sur stdout (ou dans --out-dir), chaque échec sur
stderr, une ligne par fichier, dans l'ordre des arguments. Le code de sortie
est 0 même en cas d'échec, sauf avec --strict.
"""
import argparse
import os
import sys
from pathlib import Path

from utils.log import log_err, log_info, log_ok, log_warn, set_verbose
from utils.lua_converter import DEFAULT_SCRIPT, ConversionError, convert
from utils.midi_info import describe_midi, format_summary

SCRIPT_ENV = "MIDI2HYDROGEN_SCRIPT"
SONG_SUFFIX = ".h2song"


def build_parser():
    ap = argparse.ArgumentParser(description="Conversion MIDI → chanson Hydrogen via script Lua.")
    ap.add_argument('midi_files', nargs='*')
    ap.add_argument('--script', default=os.environ.get(SCRIPT_ENV, DEFAULT_SCRIPT),
                    help=f"Script Lua de conversion (défaut: ${SCRIPT_ENV} ou {DEFAULT_SCRIPT})")
    ap.add_argument('--out-dir', default=None,
                    help="Écrire <dir>/<nom>.h2song au lieu de stdout")
    ap.add_argument('--strict', action='store_true',
                    help="Code de sortie 1 si au moins un fichier a échoué")
    ap.add_argument('-v', '--verbose', action='store_true')
    return ap


def shown(path) -> str:
    """Nom de fichier affichable, même s'il n'est pas en UTF-8."""
    return os.fsencode(path).decode("utf-8", "replace")


def log_summary(midi_path):
    try:
        log_info("MIDI :", format_summary(describe_midi(midi_path)))
    except (OSError, EOFError, ValueError) as e:
        log_warn("Lecture MIDI impossible:", shown(midi_path), f"({e})")


def write_song(out_dir: Path, midi_path, song: str) -> Path:
    out_path = out_dir / (Path(midi_path).stem + SONG_SUFFIX)
    out_path.write_text(song, encoding="utf-8")
    return out_path


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    set_verbose(args.verbose)

    out_dir = None
    if args.out_dir:
        out_dir = Path(args.out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)

    log_info("Script :", args.script)
    failed = 0
    for midi_path in args.midi_files:
        if args.verbose:
            log_summary(midi_path)
        try:
            song = convert(args.script, midi_path)
        except ConversionError as e:
            log_err(f"{shown(midi_path)}: {e}")
            failed += 1
            continue

        if out_dir is None:
            sys.stdout.write(song + "\n")
            sys.stdout.flush()
            log_ok("Converti :", shown(midi_path))
            continue
        try:
            out_path = write_song(out_dir, midi_path, song)
        except OSError as e:
            log_err(f"{shown(midi_path)}: write failed: {e}")
            failed += 1
            continue
        log_ok(f"{shown(midi_path)} -> {shown(out_path)}")

    if args.midi_files:
        log_info(f"Terminé. Convertis: {len(args.midi_files) - failed}, Échecs: {failed}")
    return 1 if (args.strict and failed) else 0


if __name__ == '__main__':
    sys.exit(main())
