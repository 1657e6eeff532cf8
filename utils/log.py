# utils/log.py
import os
import sys

# Fichier de log pour le debug (optionnel, via variable d'environnement)
DEBUG_LOG_ENV = "MIDI2HYDROGEN_DEBUG_LOG"

_verbose = False

def set_verbose(flag: bool):
    global _verbose
    _verbose = bool(flag)

def is_verbose() -> bool:
    return _verbose

def log_info(*a):
    if _verbose: print("ℹ️", *a, file=sys.stderr, flush=True)
def log_ok(*a):
    if _verbose: print("✅", *a, file=sys.stderr, flush=True)
def log_warn(*a):  print("⚠️", *a, file=sys.stderr, flush=True)
def log_err(*a):   print("❌", *a, file=sys.stderr, flush=True)

def log_debug(message):
    path = os.environ.get(DEBUG_LOG_ENV)
    if not path:
        return
    try:
        with open(path, 'a', encoding='utf-8') as f:
            f.write(message + '\n')
    except OSError:
        pass
