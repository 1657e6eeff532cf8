import pytest

from utils import log

GOOD = '''
function midi_to_hydrogen(midi_file)
  return "<song><name>" .. midi_file .. "</name></song>"
end
'''


@pytest.fixture
def lua_script(tmp_path):
    """Écrit un script Lua dans tmp_path et retourne son chemin."""
    def write(source, name="midi_to_hydrogen.lua"):
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return str(path)
    return write


@pytest.fixture
def good_script(lua_script):
    return lua_script(GOOD)


@pytest.fixture(autouse=True)
def quiet_logs(monkeypatch):
    monkeypatch.delenv(log.DEBUG_LOG_ENV, raising=False)
    monkeypatch.delenv("MIDI2HYDROGEN_SCRIPT", raising=False)
    log.set_verbose(False)
    yield
    log.set_verbose(False)
