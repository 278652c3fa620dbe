from yapl.core.types import Cost
from yapl.utils.events import ChainFinished, ChainStarted, publish, subscribe, unsubscribe


def test_subscribe_and_publish():
    seen = []

    @subscribe(ChainStarted)
    def _on_start(evt):
        seen.append(evt.chain_id)

    publish(ChainStarted(path="doc.yml", chain_id="a"))
    publish(ChainFinished(path="doc.yml", chain_id="a", outputs=[], cost=Cost()))
    assert seen == ["a"]

    unsubscribe(ChainStarted, _on_start)
    publish(ChainStarted(path="doc.yml", chain_id="b"))
    assert seen == ["a"]


def test_failing_handler_does_not_propagate():
    seen = []

    @subscribe(ChainStarted)
    def _bad(evt):
        raise RuntimeError("handler bug")

    subscribe(ChainStarted)(seen.append)
    publish(ChainStarted(path="doc.yml", chain_id="a"))
    assert len(seen) == 1


def test_event_timestamp():
    evt = ChainStarted(path="doc.yml", chain_id="a")
    assert evt.ts.tzinfo is not None
