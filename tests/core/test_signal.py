from app.core.signal import Signal
from app.models.document import Document


def test_token_changes_once_signalled():
    signal = Signal()
    token = signal.get_token("LayersDocument")

    assert token.has_changed is False

    signal.signal_token("LayersDocument")

    assert token.has_changed is True
    # A token taken after the signal is current again
    assert signal.get_token("LayersDocument").has_changed is False


def test_signal_only_affects_its_key():
    signal = Signal()
    layers_token = signal.get_token("LayersDocument")
    other_token = signal.get_token("Other")

    signal.signal_token("Other")

    assert layers_token.has_changed is False
    assert other_token.has_changed is True


def test_callbacks_run_once_on_signal():
    signal = Signal()
    calls = []
    token = signal.get_token("key")
    token.register_change_callback(lambda: calls.append("fired"))

    signal.signal_token("key")
    signal.signal_token("key")

    assert calls == ["fired"]


def test_callback_on_changed_token_runs_immediately():
    signal = Signal()
    calls = []
    token = signal.get_token("key")
    signal.signal_token("key")

    token.register_change_callback(lambda: calls.append("fired"))

    assert calls == ["fired"]


def test_deferred_signal_waits_for_commit(db):
    signal = Signal()
    token = signal.get_token("key")

    db.add(Document(type="Something", content={}))
    db.flush()
    signal.deferred_signal_token("key", db)

    assert token.has_changed is False

    db.commit()

    assert token.has_changed is True


def test_deferred_signal_dropped_on_rollback(db):
    signal = Signal()
    token = signal.get_token("key")

    db.add(Document(type="Something", content={}))
    db.flush()
    signal.deferred_signal_token("key", db)
    db.rollback()

    # A later, unrelated commit must not fire it either
    db.add(Document(type="Other", content={}))
    db.commit()

    assert token.has_changed is False


def test_deferred_signal_fires_once_per_commit(db):
    signal = Signal()
    calls = []
    signal.get_token("key").register_change_callback(lambda: calls.append("fired"))

    db.add(Document(type="Something", content={}))
    db.flush()
    signal.deferred_signal_token("key", db)
    signal.deferred_signal_token("key", db)
    db.commit()

    assert calls == ["fired"]
    assert signal.get_version("key") == 1


def test_cancelled_callback_does_not_run():
    signal = Signal()
    calls = []
    cancel = signal.get_token("key").register_change_callback(lambda: calls.append("fired"))

    cancel()
    signal.signal_token("key")

    assert calls == []
    assert signal.pending_callbacks("key") == 0
