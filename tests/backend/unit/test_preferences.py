from portal.application.preferences import PreferenceStore
from portal.infrastructure.store.base import THEME_KEY, MemoryStore


def test_defaults_to_dark_when_absent():
    assert PreferenceStore(MemoryStore()).read() is True


def test_reads_stored_values():
    assert PreferenceStore(MemoryStore({THEME_KEY: "light"})).read() is False
    assert PreferenceStore(MemoryStore({THEME_KEY: "dark"})).read() is True
    # Anything other than "dark" reads as light.
    assert PreferenceStore(MemoryStore({THEME_KEY: "purple"})).read() is False


def test_toggle_persists_and_applies():
    store = MemoryStore()
    applied = []
    prefs = PreferenceStore(store, apply=applied.append)

    assert prefs.toggle() is False
    assert store.get(THEME_KEY) == "light"
    assert prefs.toggle() is True
    assert store.get(THEME_KEY) == "dark"
    assert applied == [False, True]


def test_toggle_survives_restart():
    store = MemoryStore()
    PreferenceStore(store).toggle()

    restarted = PreferenceStore(store)

    assert restarted.read() is False
