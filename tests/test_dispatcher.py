"""Tests for subscription event filtering and message dispatch."""

from hypothesis import given, strategies as st

from github_webhooks.dispatcher import dispatch, filter_by_event, parse_events, wants_event
from github_webhooks.formatter import SUPPORTED_EVENTS, Message
from github_webhooks.schemas import SubscriptionRead

from tests.conftest import FakeBot

MESSAGE = Message(text="📦 Repository: acme/widgets")
event_names = st.sampled_from(SUPPORTED_EVENTS + ("deployment", "ping", "create"))


def sub(target="g1", platform="chat", events="all"):
    return SubscriptionRead(platform=platform, type="group", target=target, repo="acme/widgets", events=events)


@given(event=event_names, events=st.sampled_from(["all", "", "  ", None, " all "]))
def test_all_or_empty_accepts_every_event(event, events):
    assert wants_event(events, event)


@given(event=event_names)
def test_explicit_list_accepts_only_listed(event):
    assert wants_event("push,star", event) == (event in ("push", "star"))
    assert wants_event(" push , star ", event) == (event in ("push", "star"))


@given(event=event_names, chosen=st.lists(event_names, min_size=1, unique=True))
def test_unknown_fallback_includes_everyone(event, chosen):
    assert wants_event(",".join(chosen), event, forward_unknown=True)


def test_parse_events():
    assert parse_events("push, star,,issues ") == {"push", "star", "issues"}
    assert parse_events(None) == set()


def test_filter_by_event():
    subs = [sub("a", events="push"), sub("b", events="star"), sub("c", events="all")]
    assert [s.target for s in filter_by_event(subs, "push")] == ["a", "c"]


def test_dispatch_matches_platform_case_insensitively():
    bot = FakeBot(platform="Chat")
    delivered = dispatch([bot], [sub("g1", platform="chat"), sub("u1", platform="CHAT")], MESSAGE)

    assert delivered == 2
    assert [target for target, _ in bot.sent] == ["g1", "u1"]


def test_dispatch_skips_subscriptions_without_bot():
    bot = FakeBot(platform="chat")
    delivered = dispatch([bot], [sub("g1", platform="other")], MESSAGE)

    assert delivered == 0
    assert bot.sent == []


def test_dispatch_sends_through_every_matching_bot():
    bots = [FakeBot(self_id="b1"), FakeBot(self_id="b2"), FakeBot(platform="other", self_id="b3")]
    assert dispatch(bots, [sub("g1")], MESSAGE) == 2
    assert [len(bot.sent) for bot in bots] == [1, 1, 0]


def test_dispatch_failure_is_isolated(caplog):
    failing = FakeBot(self_id="b1", fail_targets={"g1"})
    healthy = FakeBot(self_id="b2")

    with caplog.at_level("ERROR"):
        delivered = dispatch([failing, healthy], [sub("g1"), sub("g2")], MESSAGE)

    assert delivered == 3
    assert [t for t, _ in failing.sent] == ["g2"]
    assert [t for t, _ in healthy.sent] == ["g1", "g2"]
    assert "Failed to deliver" in caplog.text
