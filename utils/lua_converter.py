# utils/lua_converter.py
"""
Conversion MIDI → chanson Hydrogen déléguée à un script Lua externe.

Le script doit, à son exécution, enregistrer une fonction globale
midi_to_hydrogen(midi_file) qui retourne le texte XML de la chanson.
Chaque appel à convert() ouvre un interpréteur Lua neuf et le referme
quoi qu'il arrive : un fichier raté ne peut pas polluer le suivant.
"""
import os
from contextlib import contextmanager

from lupa import LuaError, LuaRuntime, lua_type

from utils.log import log_debug

DEFAULT_SCRIPT = "../midi_to_hydrogen.lua"
ENTRY_POINT = "midi_to_hydrogen"

NOT_TEXT = "cannot convert return value to text"

# Sentinelle posée dans le registre Lua : son __gc tourne à la fermeture de l'état
GUARD = '''
local released = ...
debug.getregistry().midi2hydrogen_guard = setmetatable({}, {__gc = function() released() end})
'''

_live = 0


class ConversionError(Exception):
    """Échec d'une conversion : kind = famille d'erreur, step = étape fautive."""
    kind = "conversion"

    def __init__(self, step, message):
        self.step = step
        self.message = one_line(message)
        super().__init__(f"{step} failed: {self.message}")


class ScriptLoadError(ConversionError):
    kind = "load"

    def __init__(self, message):
        super().__init__("load", message)


class ScriptExecError(ConversionError):
    kind = "exec"


def one_line(text) -> str:
    text = "" if text is None else str(text)
    return " ".join(text.split()) or "unknown error"


def live_interpreters() -> int:
    """Nombre d'états Lua ouverts et pas encore fermés (lua_close)."""
    return _live


def _released():
    global _live
    _live -= 1


@contextmanager
def open_interpreter():
    """Contexte Lua isolé, libs standard chargées, fermé en sortie de bloc.

    Le bloc ne doit garder aucun objet Lua (fonction, table, exception
    chaînée) au-delà de sa sortie, sinon l'état reste ouvert.
    """
    global _live
    lua = LuaRuntime(register_eval=False)
    lua.execute(GUARD, _released)
    _live += 1
    log_debug(f"interpréteur Lua ouvert (actifs={_live})")
    try:
        yield lua
    finally:
        del lua
        log_debug(f"interpréteur Lua fermé (actifs={_live})")


def load_script(lua: LuaRuntime, script_path):
    """Compile le script sans l'exécuter (loadfile)."""
    try:
        result = lua.globals().loadfile(os.fsencode(script_path))
    except UnicodeDecodeError:
        # message Lua contenant un chemin non UTF-8
        raise ScriptLoadError(f"cannot open {os.fsdecode(script_path)!r}")
    # loadfile retourne `nil, message` en cas d'échec
    if isinstance(result, tuple):
        chunk = result[0] if result else None
        message = result[1] if len(result) > 1 else None
    else:
        chunk, message = result, None
    if chunk is None:
        raise ScriptLoadError(message or f"cannot load {script_path}")
    return chunk


def run_script(chunk):
    try:
        chunk()
    except LuaError as e:
        raise ScriptExecError("exec", e)
    except UnicodeDecodeError:
        raise ScriptExecError("exec", "error message is not valid UTF-8")


def call_entry_point(lua: LuaRuntime, midi_path) -> str:
    func = lua.globals()[ENTRY_POINT]
    if func is None or lua_type(func) not in ("function", "table", "userdata"):
        raise ScriptExecError("call", f"global '{ENTRY_POINT}' is not a function")
    try:
        # chemin transmis tel quel, octets compris
        result = func(os.fsencode(midi_path))
    except LuaError as e:
        raise ScriptExecError("call", e)
    except UnicodeDecodeError:
        raise ScriptExecError("call", NOT_TEXT)
    # un seul résultat retenu, comme un appel Lua à 1 valeur de retour
    if isinstance(result, tuple):
        result = result[0] if result else None
    if not isinstance(result, str):
        raise ScriptExecError("call", NOT_TEXT)
    return result


def run_conversion(lua: LuaRuntime, script_path, midi_path) -> str:
    chunk = load_script(lua, script_path)
    run_script(chunk)
    del chunk
    return call_entry_point(lua, midi_path)


def detach(error: ConversionError) -> ConversionError:
    """Coupe traceback et chaînage, qui gardent des objets Lua vivants."""
    error.__cause__ = error.__context__ = None
    return error.with_traceback(None)


def convert(script_path, midi_path) -> str:
    """Retourne le texte de la chanson Hydrogen produite par le script pour midi_path."""
    log_debug(f"conversion {os.fsdecode(midi_path)!r} via {script_path}")
    song = error = None
    with open_interpreter() as lua:
        try:
            song = run_conversion(lua, script_path, midi_path)
        except ConversionError as e:
            error = detach(e)
        del lua
    if error is not None:
        log_debug(f"conversion KO : {error}")
        raise error
    log_debug(f"conversion OK : {len(song)} caractères")
    return song
