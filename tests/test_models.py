from datetime import UTC, datetime, timedelta, timezone

from nrm.models import ResolvedRelease, ResolveOutcome, ResolveStatus, parse_rfc3339_datetime


def test_parse_rfc3339_variants() -> None:
    expected = datetime(2024, 8, 1, 12, 0, tzinfo=UTC)
    assert parse_rfc3339_datetime("2024-08-01T12:00:00Z") == expected
    assert parse_rfc3339_datetime("2024-08-01T12:00:00+00:00") == expected
    assert parse_rfc3339_datetime("2024-08-01T14:00:00+02:00") == expected
    assert parse_rfc3339_datetime("2024-08-01T12:00:00").tzinfo is not None
    assert parse_rfc3339_datetime("2024-08-01T14:00:00+02:00").utcoffset() == timezone(timedelta(hours=2)).utcoffset(None)


def test_outcome_distinguishes_failure_from_no_new_release() -> None:
    """
    两种情况对 release 的读者一样（都是 None），但 status 可区分。
    """
    failed = ResolveOutcome(status=ResolveStatus.FETCH_FAILED, error="RuntimeError: boom")
    unchanged = ResolveOutcome(status=ResolveStatus.NO_NEW_RELEASE)
    new = ResolveOutcome(
        status=ResolveStatus.NEW_RELEASE,
        release=ResolvedRelease(name="1.15.1", published_at=datetime(2024, 8, 1, tzinfo=UTC)),
    )

    assert failed.release is None and unchanged.release is None
    assert failed.status != unchanged.status
    assert new.is_new and not failed.is_new
