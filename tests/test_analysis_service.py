from tdsgrade.io.settings import TDSSettings
from tdsgrade.service.analysis import AnalysisService
from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.tasting.model import DominanceEvent, TastingProfile


def _make_profile(profile_id: str = "p1") -> TastingProfile:
    events = [DominanceEvent(AttributeId.CACAO, 0.0, 6.0), DominanceEvent(AttributeId.ROAST, 6.0, 9.0)]
    return TastingProfile.create(events, swallow_time=9.0, total_duration=12.0, profile_id=profile_id)


def test_unchanged_profile_is_served_from_cache() -> None:
    with AnalysisService(max_workers=1) as service:
        profile = _make_profile()
        first = service.get_analysis(profile)
        second = service.get_analysis(profile)
        assert first is second
        assert (service.hits, service.misses) == (1, 1)


def test_revised_profile_is_recomputed() -> None:
    with AnalysisService(max_workers=1) as service:
        profile = _make_profile()
        before = service.get_analysis(profile)
        revised = profile.revise(events=[DominanceEvent(AttributeId.CACAO, 0.0, 9.0)])
        after = service.get_analysis(revised)
        assert after is not before
        assert after.scores[AttributeId.ROAST].score == 0
        assert service.misses == 2


def test_invalidate_drops_every_revision() -> None:
    with AnalysisService(max_workers=1) as service:
        profile = _make_profile()
        other = _make_profile("p2")
        service.get_analysis(profile)
        service.get_analysis(profile.revise(swallow_time=8.0))
        service.get_stream(profile)
        service.get_analysis(other)
        service.get_aggregate([profile, other])
        assert service.invalidate("p1") == 3
        assert len(service) == 1


def test_newer_revision_evicts_superseded_results() -> None:
    with AnalysisService(max_workers=1) as service:
        profile = _make_profile()
        service.get_aggregate([profile])
        latest = profile
        for _ in range(50):
            latest = latest.revise(swallow_time=latest.swallow_time)
            service.get_analysis(latest)
        assert len(service) == 1

        stale = service.get_analysis(profile)
        assert stale.scores[AttributeId.CACAO].score == service.get_analysis(latest).scores[AttributeId.CACAO].score
        assert len(service) == 1


def test_submit_runs_off_thread_and_shares_cache() -> None:
    with AnalysisService(max_workers=2) as service:
        profile = _make_profile()
        future = service.submit(profile)
        result = future.result(timeout=10)
        assert result is service.get_analysis(profile)
        stream = service.submit_stream(profile).result(timeout=10)
        assert len(stream) == 121
        curve = service.submit_aggregate([profile]).result(timeout=10)
        assert curve.replication_count == 1


def test_settings_shape_the_stream() -> None:
    settings = TDSSettings(resolution=0.5)
    with AnalysisService(settings=settings) as service:
        stream = service.get_stream(_make_profile())
        assert len(stream) == 25
