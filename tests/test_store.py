"""Tests for subscription persistence."""

from github_webhooks import store
from github_webhooks.models import Subscription


def test_upsert_twice_keeps_one_row(db):
    assert store.upsert(db, platform="chat", type="group", target="g1", repo="acme/widgets", events="all") is True
    assert store.upsert(db, platform="chat", type="group", target="g1", repo="acme/widgets", events="push,star") is False

    rows = db.query(Subscription).all()
    assert len(rows) == 1
    assert rows[0].events == "push,star"


def test_same_target_different_repositories(db):
    store.upsert(db, platform="chat", type="group", target="g1", repo="acme/widgets", events="all")
    store.upsert(db, platform="chat", type="group", target="g1", repo="acme/gadgets", events="all")
    store.upsert(db, platform="chat", type="group", target="g2", repo="acme/widgets", events="all")

    assert [s.repo for s in store.get_for_target(db, "chat", "g1")] == ["acme/gadgets", "acme/widgets"]
    assert sorted(s.target for s in store.get_for_repo(db, "acme/widgets")) == ["g1", "g2"]
    assert len(store.get_all(db)) == 3


def test_remove(db):
    store.upsert(db, platform="chat", type="group", target="g1", repo="acme/widgets", events="all")
    store.upsert(db, platform="chat", type="group", target="g1", repo="acme/gadgets", events="all")

    assert store.remove(db, "chat", "g1", "acme/widgets") == 1
    assert store.remove(db, "chat", "g1", "acme/widgets") == 0
    assert store.remove(db, "chat", "g1") == 1
    assert store.get_all(db) == []


def test_remove_narrowed_by_type(db):
    store.upsert(db, platform="chat", type="group", target="x1", repo="acme/widgets", events="all")
    store.upsert(db, platform="chat", type="user", target="x1", repo="acme/widgets", events="all")

    assert store.remove(db, "chat", "x1", "acme/widgets", type="group") == 1
    assert [s.type for s in store.get_all(db)] == ["user"]
    assert store.remove(db, "chat", "x1", "acme/widgets") == 1


def test_upsert_recovers_from_concurrent_insert(db, monkeypatch):
    store.upsert(db, platform="chat", type="group", target="g1", repo="acme/widgets", events="all")
    db.expunge_all()

    # simulate a subscribe racing this one: the existence check misses the row
    real_query = db.query
    calls = []

    class _Miss:
        def filter_by(self, **kwargs):
            return self

        def first(self):
            return None

    def query(*args):
        calls.append(args)
        if len(calls) == 1:
            return _Miss()
        return real_query(*args)

    monkeypatch.setattr(db, "query", query)

    assert store.upsert(db, platform="chat", type="group", target="g1", repo="acme/widgets", events="push") is False
    monkeypatch.undo()
    rows = db.query(Subscription).all()
    assert len(rows) == 1
    assert rows[0].events == "push"
