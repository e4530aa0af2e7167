import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from nrm.models import MonitoredNode, ReleaseTag, ResolvedRelease, ResolveStatus
from nrm.monitor import ReleaseResolver, ReleaseState


T0 = datetime(2024, 8, 1, 12, 0, tzinfo=UTC)


@dataclass
class FakeSource:
    releases: list[ReleaseTag]
    calls: list[str] = field(default_factory=list)

    def list_releases(self, project: str) -> list[ReleaseTag]:
        self.calls.append(project)
        return list(self.releases)


@dataclass
class _FailingSource:
    def list_releases(self, project: str) -> list[ReleaseTag]:  # noqa: ARG002
        raise RuntimeError("github unavailable")


@dataclass
class FakeStore:
    """
    纯内存 store：记录 set_release 调用，便于断言。
    """

    releases: list[tuple[str, datetime]] = field(default_factory=list)

    def set_release(self, version: str, published_at: datetime) -> None:
        self.releases.append((version, published_at))

    def all_candidates(self) -> list[MonitoredNode]:
        return []

    def report_updated(self, name: str) -> None:  # noqa: ARG002
        raise AssertionError("resolver must not write verdicts")

    def report_not_updated(self, name: str) -> None:  # noqa: ARG002
        raise AssertionError("resolver must not write verdicts")


def _tag(name: str, hours: int = 0) -> ReleaseTag:
    return ReleaseTag(tag_name=name, published_at=T0 + timedelta(hours=hours))


def _resolver(source, store=None, state=None) -> ReleaseResolver:  # noqa: ANN001
    return ReleaseResolver(
        source=source,
        store=store if store is not None else FakeStore(),
        state=state if state is not None else ReleaseState(),
        project="paritytech/polkadot-sdk",
        tag_prefix="polkadot-v",
    )


def test_only_client_family_tags_are_considered() -> None:
    source = FakeSource(
        releases=[
            _tag("polkadot-parachain-v1.9.0", 2),
            _tag("polkadot-v1.2.0", 1),
            _tag("other-v9.9.9", 3),
        ]
    )
    store = FakeStore()
    resolver = _resolver(source, store=store)

    release = resolver.resolve_latest_release()

    assert release == ResolvedRelease(name="1.2.0", published_at=T0 + timedelta(hours=1))
    assert store.releases == [("1.2.0", T0 + timedelta(hours=1))]
    assert source.calls == ["paritytech/polkadot-sdk"]


def test_picks_numeric_maximum() -> None:
    source = FakeSource(
        releases=[
            _tag("polkadot-v1.2.10", 3),
            _tag("polkadot-v1.0.0", 1),
            _tag("polkadot-v1.2.3", 2),
            _tag("polkadot-v1.2.9", 4),
        ]
    )
    release = _resolver(source).resolve_latest_release()
    assert release is not None
    assert release.name == "1.2.10"
    assert release.published_at == T0 + timedelta(hours=3)


def test_ties_resolve_to_last_in_input_order() -> None:
    source = FakeSource(releases=[_tag("polkadot-v1.2", 1), _tag("polkadot-v1.2.0", 2)])
    release = _resolver(source).resolve_latest_release()
    assert release == ResolvedRelease(name="1.2.0", published_at=T0 + timedelta(hours=2))


def test_second_resolution_with_same_releases_is_noop() -> None:
    source = FakeSource(releases=[_tag("polkadot-v1.15.0")])
    store = FakeStore()
    state = ReleaseState()
    resolver = _resolver(source, store=store, state=state)

    first = resolver.resolve()
    cached = state.get()
    second = resolver.resolve()

    assert first.status is ResolveStatus.NEW_RELEASE
    assert first.release == ResolvedRelease(name="1.15.0", published_at=T0)
    assert second.status is ResolveStatus.NO_NEW_RELEASE
    assert second.release is None
    assert state.get() is cached
    # set_release 每次成功解析都会写入
    assert [v for v, _ in store.releases] == ["1.15.0", "1.15.0"]


def test_newer_release_replaces_cached_state() -> None:
    source = FakeSource(releases=[_tag("polkadot-v1.15.0")])
    state = ReleaseState()
    resolver = _resolver(source, state=state)
    resolver.resolve()

    source.releases.append(_tag("polkadot-v1.15.1", 5))
    outcome = resolver.resolve()

    assert outcome.status is ResolveStatus.NEW_RELEASE
    assert state.get() == ResolvedRelease(name="1.15.1", published_at=T0 + timedelta(hours=5))


def test_fetch_failure_degrades_to_no_release(caplog) -> None:  # noqa: ANN001
    seeded = ResolvedRelease(name="1.14.0", published_at=T0)
    state = ReleaseState(latest=seeded)
    store = FakeStore()
    resolver = _resolver(_FailingSource(), store=store, state=state)

    caplog.set_level(logging.ERROR)
    outcome = resolver.resolve()

    assert outcome.status is ResolveStatus.FETCH_FAILED
    assert outcome.release is None
    assert "github unavailable" in (outcome.error or "")
    assert state.get() is seeded
    assert store.releases == []
    assert "could not get latest release" in caplog.text


def test_no_matching_tags() -> None:
    source = FakeSource(releases=[_tag("polkadot-parachain-v1.9.0"), _tag("cumulus-v0.9.0")])
    store = FakeStore()
    outcome = _resolver(source, store=store).resolve()
    assert outcome.status is ResolveStatus.NO_CANDIDATES
    assert outcome.release is None
    assert store.releases == []


def test_empty_release_list() -> None:
    assert _resolver(FakeSource(releases=[])).resolve().status is ResolveStatus.NO_CANDIDATES


def test_best_candidate_malformed_does_not_fall_back(caplog) -> None:  # noqa: ANN001
    """
    排名最高的 tag 无法抽取三段版本号时，整轮返回空，不回退到次高的合法 tag。
    """
    source = FakeSource(releases=[_tag("polkadot-v1.15.2"), _tag("polkadot-v2.0")])
    store = FakeStore()
    state = ReleaseState()

    caplog.set_level(logging.WARNING)
    outcome = _resolver(source, store=store, state=state).resolve()

    assert outcome.status is ResolveStatus.MALFORMED_TAG
    assert outcome.release is None
    assert state.get() is None
    assert store.releases == []
    assert "unable to extract version from tag name: polkadot-v2.0" in caplog.text


def test_independent_states_do_not_interfere() -> None:
    source = FakeSource(releases=[_tag("polkadot-v1.15.0")])
    a = _resolver(source, state=ReleaseState())
    b = _resolver(source, state=ReleaseState())

    assert a.resolve().status is ResolveStatus.NEW_RELEASE
    assert b.resolve().status is ResolveStatus.NEW_RELEASE
