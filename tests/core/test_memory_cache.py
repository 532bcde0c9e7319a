from app.core.memory_cache import MemoryCache
from app.core.signal import Signal


def test_get_missing_key_returns_none():
    cache = MemoryCache()
    assert cache.get("missing") is None


def test_set_then_get_returns_same_instance():
    cache = MemoryCache()
    value = {"layers": []}
    cache.set("key", value)

    assert cache.get("key") is value
    assert "key" in cache


def test_entry_evicted_when_token_changes():
    signal = Signal()
    cache = MemoryCache()
    cache.set("key", "cached", signal.get_token("key"))

    signal.signal_token("key")

    assert cache.get("key") is None
    assert "key" not in cache


def test_value_read_with_expired_token_is_not_cached():
    """
    Token taken, then the document changed before the value was stored:
    the value may be stale and must not be cached.
    """
    signal = Signal()
    cache = MemoryCache()
    token = signal.get_token("key")
    signal.signal_token("key")

    cache.set("key", "stale", token)

    assert cache.get("key") is None


def test_old_token_does_not_evict_newer_entry():
    signal = Signal()
    cache = MemoryCache()

    cache.set("key", "first", signal.get_token("a"))
    cache.set("key", "second", signal.get_token("b"))

    signal.signal_token("a")

    assert cache.get("key") == "second"


def test_remove_and_clear():
    cache = MemoryCache()
    cache.set("one", 1)
    cache.set("two", 2)

    cache.remove("one")
    assert cache.get("one") is None
    assert cache.get("two") == 2

    cache.clear()
    assert cache.get("two") is None


def test_lru_bound():
    cache = MemoryCache(maxsize=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")  # 'b' becomes the least recently used
    cache.set("c", 3)

    assert cache.get("a") == 1
    assert cache.get("b") is None
    assert cache.get("c") == 3


def test_dropped_entries_release_their_token_callbacks():
    signal = Signal()
    cache = MemoryCache(maxsize=1)

    cache.set("a", 1, signal.get_token("key"))
    cache.remove("a")
    assert signal.pending_callbacks("key") == 0

    cache.set("a", 1, signal.get_token("key"))
    cache.clear()
    assert signal.pending_callbacks("key") == 0

    cache.set("a", 1, signal.get_token("key"))
    cache.set("b", 2, signal.get_token("key"))  # 'a' pushed out by the size bound
    assert signal.pending_callbacks("key") == 1


def test_replacing_an_entry_keeps_callbacks_bounded():
    """A key that is never signalled must not accumulate callbacks"""
    signal = Signal()
    cache = MemoryCache()

    for i in range(50):
        cache.set("layers", i, signal.get_token("LayersDocument"))

    assert cache.get("layers") == 49
    assert signal.pending_callbacks("LayersDocument") == 1


def test_signalled_entry_leaves_no_callbacks():
    signal = Signal()
    cache = MemoryCache()
    cache.set("a", 1, signal.get_token("key"), signal.get_token("other"))

    signal.signal_token("key")

    assert cache.get("a") is None
    assert signal.pending_callbacks("key") == 0
    assert signal.pending_callbacks("other") == 0
