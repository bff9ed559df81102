import hashlib
import json

import pytest

from formshield.domain.strategy import (
    ABStrategy,
    BlendMember,
    BlendStrategy,
    CanaryStrategy,
    FallbackStrategy,
    FirstAvailableStrategy,
    NoneStrategy,
    VoteStrategy,
)
from formshield.errors import ClassifierError, ConfigurationError
from formshield.orchestrator.router import ClassifierRouter, ab_bucket
from formshield.orchestrator.tracing import EventChannel

PAYLOAD = {"message": "hello there", "domain": "example.com"}


@pytest.mark.asyncio
async def test_none_strategy_calls_nothing(scripted):
    a = scripted("a")
    router = ClassifierRouter([a])
    assert await router.route(NoneStrategy(), PAYLOAD) == []
    assert a.calls == 0


@pytest.mark.asyncio
async def test_first_available_uses_only_the_first_entry(scripted):
    a, b = scripted("a", "spam", 0.7), scripted("b")
    router = ClassifierRouter([a, b])
    results = await router.route(FirstAvailableStrategy(order=["a", "b"]), PAYLOAD)
    assert [(r.provider, r.label) for r in results] == [("a", "spam")]
    assert b.calls == 0


@pytest.mark.asyncio
async def test_first_available_unknown_id_is_configuration_error(scripted):
    router = ClassifierRouter([scripted("b")])
    with pytest.raises(ConfigurationError):
        await router.route(FirstAvailableStrategy(order=["missing", "b"]), PAYLOAD)


@pytest.mark.asyncio
async def test_first_available_failure_propagates(scripted):
    router = ClassifierRouter([scripted("a", error=RuntimeError("boom"))])
    with pytest.raises(RuntimeError):
        await router.route(FirstAvailableStrategy(order=["a"]), PAYLOAD)


@pytest.mark.asyncio
async def test_malformed_result_is_classifier_error(scripted):
    router = ClassifierRouter([scripted("a", raw={"label": "maybe", "confidence": 3})])
    with pytest.raises(ClassifierError) as excinfo:
        await router.route(FirstAvailableStrategy(order=["a"]), PAYLOAD)
    assert excinfo.value.provider == "a"


@pytest.mark.asyncio
async def test_fallback_primary_success_skips_secondary(scripted):
    a, b = scripted("a"), scripted("b")
    router = ClassifierRouter([a, b])
    results = await router.route(FallbackStrategy(primary="a", secondary="b"), PAYLOAD)
    assert [r.provider for r in results] == ["a"]
    assert b.calls == 0


@pytest.mark.asyncio
async def test_fallback_timeout_calls_secondary_once(scripted):
    a = scripted("a", delay=0.2)
    b = scripted("b", "spam", 0.6)
    router = ClassifierRouter([a, b])
    results = await router.route(FallbackStrategy(primary="a", secondary="b", timeout_s=0.01), PAYLOAD)
    assert [(r.provider, r.label) for r in results] == [("b(fallback)", "spam")]
    assert b.calls == 1


@pytest.mark.asyncio
async def test_fallback_primary_error_calls_secondary(scripted):
    a = scripted("a", error=RuntimeError("down"))
    b = scripted("b")
    router = ClassifierRouter([a, b])
    results = await router.route(FallbackStrategy(primary="a", secondary="b"), PAYLOAD)
    assert [r.provider for r in results] == ["b(fallback)"]


@pytest.mark.asyncio
async def test_fallback_both_failing_yields_empty(scripted):
    router = ClassifierRouter([scripted("a", error=RuntimeError("x")), scripted("b", error=RuntimeError("y"))])
    assert await router.route(FallbackStrategy(primary="a", secondary="b"), PAYLOAD) == []


@pytest.mark.asyncio
async def test_fallback_unknown_secondary_is_configuration_error(scripted):
    router = ClassifierRouter([scripted("a")])
    with pytest.raises(ConfigurationError):
        await router.route(FallbackStrategy(primary="a", secondary="nope"), PAYLOAD)


@pytest.mark.asyncio
async def test_vote_drops_failed_and_unknown_members(scripted):
    a = scripted("a", "human", 0.8)
    b = scripted("b", error=RuntimeError("boom"))
    c = scripted("c", "spam", 0.4, delay=0.05)
    router = ClassifierRouter([a, b, c])
    results = await router.route(VoteStrategy(members=["a", "b", "ghost", "c"]), PAYLOAD)
    assert sorted(r.provider for r in results) == ["a", "c"]
    assert a.calls == b.calls == c.calls == 1


@pytest.mark.asyncio
async def test_blend_attaches_configured_weights(scripted):
    router = ClassifierRouter([scripted("a"), scripted("b", "spam")])
    strategy = BlendStrategy(members=[BlendMember(id="a", weight=3), BlendMember(id="b")])
    results = await router.route(strategy, PAYLOAD)
    assert {r.provider: r.weight for r in results} == {"a": 3.0, "b": 1.0}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("draw", "pct", "expected"),
    [
        (0.0, 10, "cand(canary)"),
        (0.99, 10, "ctrl"),
        (0.0, 0, "ctrl"),
        (0.99, 100, "cand(canary)"),
    ],
)
async def test_canary_routes_by_draw(scripted, fixed_random, draw, pct, expected):
    ctrl, cand = scripted("ctrl"), scripted("cand")
    router = ClassifierRouter([ctrl, cand], rng=fixed_random(draw))
    results = await router.route(CanaryStrategy(control="ctrl", candidate="cand", pct=pct), PAYLOAD)
    assert [r.provider for r in results] == [expected]
    assert ctrl.calls + cand.calls == 1


@pytest.mark.asyncio
async def test_canary_failure_yields_empty(scripted, fixed_random):
    router = ClassifierRouter(
        [scripted("ctrl", error=RuntimeError("x")), scripted("cand")],
        rng=fixed_random(0.5),
    )
    assert await router.route(CanaryStrategy(control="ctrl", candidate="cand", pct=10), PAYLOAD) == []


def test_ab_bucket_matches_digest_parity():
    text = json.dumps(PAYLOAD, sort_keys=True, separators=(",", ":"), ensure_ascii=True) + "salt-1"
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    expected = "b" if int(digest, 16) % 2 == 1 else "a"
    assert ab_bucket(PAYLOAD, "salt-1") == expected


def test_ab_bucket_ignores_key_order():
    reordered = {"domain": "example.com", "message": "hello there"}
    assert ab_bucket(reordered, "s") == ab_bucket(PAYLOAD, "s")


@pytest.mark.asyncio
async def test_ab_is_deterministic(scripted):
    a, b = scripted("a"), scripted("b")
    router = ClassifierRouter([a, b])
    strategy = ABStrategy(a="a", b="b", salt="exp-7")
    arm = ab_bucket(PAYLOAD, "exp-7")
    first = await router.route(strategy, PAYLOAD)
    second = await router.route(strategy, PAYLOAD)
    chosen = "b" if arm == "b" else "a"
    assert [r.provider for r in first] == [f"{chosen}({arm})"]
    assert first == second
    assert (a.calls, b.calls) == ((0, 2) if arm == "b" else (2, 0))


@pytest.mark.asyncio
async def test_ab_unknown_arm_is_configuration_error(scripted):
    router = ClassifierRouter([scripted("a")])
    with pytest.raises(ConfigurationError):
        await router.route(ABStrategy(a="a", b="missing"), PAYLOAD)


@pytest.mark.asyncio
async def test_failures_are_reported_to_event_sink(scripted):
    events = []
    router = ClassifierRouter(
        [scripted("a", error=RuntimeError("down"))],
        events=EventChannel(events.append),
    )
    await router.route(VoteStrategy(members=["a"]), PAYLOAD)
    assert events[0]["stage"] == "router"
    assert events[0]["status"] == "error"
    assert events[0]["data"] == {"provider": "a", "error": "RuntimeError"}
