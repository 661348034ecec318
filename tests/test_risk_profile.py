import itertools

import pytest

from urgeguard.schemas.risk import HourlyRisk, OnboardingProfile, PeakWindow, RiskLevel
from urgeguard.services.risk_profile import (
    build_hourly_profile,
    classify_risk,
    find_peak_window,
    format_hour,
)
from tests.fixtures import LATENIGHT_HEAVY_USER


def _curve(values):
    return [HourlyRisk(hour=h, base_risk=v, risk_level=classify_risk(v), label=format_hour(h))
            for h, v in enumerate(values)]


def test_no_profile_is_flat_low():
    hourly = build_hourly_profile(None)
    assert len(hourly) == 24
    assert [h.hour for h in hourly] == list(range(24))
    assert all(h.base_risk == 20 and h.risk_level == RiskLevel.LOW for h in hourly)


def test_latenight_heavy_user_curve():
    hourly = build_hourly_profile(LATENIGHT_HEAVY_USER)
    for h in hourly:
        if h.hour in (22, 23, 0, 1):
            assert h.base_risk == 60
            assert h.risk_level == RiskLevel.MODERATE
        else:
            assert h.base_risk == 25
            assert h.risk_level == RiskLevel.LOW


def test_triggers_and_isolation_add_to_their_hours():
    profile = OnboardingProfile(
        screen_time="4-6 hours",
        risk_windows=["evening"],
        triggers=["social-media", "boredom"],
        alone_pattern="usually",
    )
    hourly = {h.hour: h.base_risk for h in build_hourly_profile(profile)}
    # floor 15 + screen 5 + alone 8
    assert hourly[3] == 28
    # + boredom 10
    assert hourly[13] == 38
    # + evening 35 + social media 12 + boredom 10
    assert hourly[20] == 85
    # + social media only, wrapped past midnight
    assert hourly[0] == 40


def test_everything_selected_clamps_at_95():
    profile = OnboardingProfile(
        screen_time="6+ hours",
        risk_windows=["morning", "afternoon", "evening", "latenight", "verylate"],
        triggers=["stress", "loneliness", "boredom", "fatigue", "socialmedia"],
        alone_pattern="always",
    )
    hourly = build_hourly_profile(profile)
    assert max(h.base_risk for h in hourly) == 95
    # every hour sits in some window: floor 15 + window 35 + screen 10 + alone 8
    assert min(h.base_risk for h in hourly) == 68


@pytest.mark.parametrize("screen_time", ["<2 hours", "2-4 hours", "4-6 hours", "6+ hours"])
@pytest.mark.parametrize("alone", ["always", "usually", "sometimes", "rarely"])
def test_every_hour_is_clamped_and_levelled(screen_time, alone):
    windows = ["morning", "afternoon", "evening", "latenight", "verylate"]
    triggers = ["loneliness", "boredom", "fatigue", "socialmedia"]
    for n in range(0, 6, 2):
        for chosen_windows in itertools.combinations(windows, n):
            profile = OnboardingProfile(
                screen_time=screen_time,
                risk_windows=list(chosen_windows),
                triggers=triggers[: n],
                alone_pattern=alone,
            )
            for h in build_hourly_profile(profile):
                assert 5 <= h.base_risk <= 95
                assert h.risk_level == classify_risk(h.base_risk)


def test_builder_is_idempotent():
    assert build_hourly_profile(LATENIGHT_HEAVY_USER) == build_hourly_profile(LATENIGHT_HEAVY_USER)


def test_en_dash_screen_time_is_accepted():
    profile = OnboardingProfile(screen_time="4–6 hours", alone_pattern="rarely")
    assert build_hourly_profile(profile)[12].base_risk == 20


def test_unknown_trigger_is_rejected():
    with pytest.raises(ValueError):
        OnboardingProfile(screen_time="6+ hours", triggers=["gaming"])


def test_classify_thresholds():
    assert classify_risk(39) == RiskLevel.LOW
    assert classify_risk(40) == RiskLevel.MODERATE
    assert classify_risk(69) == RiskLevel.MODERATE
    assert classify_risk(70) == RiskLevel.HIGH


def test_peak_window_latenight_user():
    peak = find_peak_window(build_hourly_profile(LATENIGHT_HEAVY_USER), ["fatigue"])
    assert peak.start_hour == 22
    assert peak.avg_risk == 60
    assert set(peak.hours) <= {22, 23, 0, 1}
    assert peak.triggers == ["fatigue"]


def test_peak_window_wraps_midnight():
    values = [10] * 24
    values[23] = values[0] = values[1] = 90
    peak = find_peak_window(_curve(values))
    assert (peak.start_hour, peak.end_hour, peak.length, peak.avg_risk) == (23, 1, 3, 90)


def test_peak_window_first_maximum_wins():
    # two identical plateaus; the earlier start is reported
    values = [10] * 24
    for h in (3, 4, 5, 15, 16, 17):
        values[h] = 80
    peak = find_peak_window(_curve(values))
    assert (peak.start_hour, peak.length) == (3, 3)


def test_flat_profile_peak_is_first_window():
    peak = find_peak_window(build_hourly_profile(None))
    assert (peak.start_hour, peak.end_hour, peak.length, peak.avg_risk) == (0, 2, 3, 20)


def test_peak_window_bounds_for_many_profiles():
    for windows in itertools.combinations(["morning", "afternoon", "evening", "latenight", "verylate"], 2):
        profile = OnboardingProfile(screen_time="2-4 hours", risk_windows=list(windows))
        peak = find_peak_window(build_hourly_profile(profile))
        assert 3 <= peak.length <= 6
        assert 0 <= peak.start_hour <= 23
        assert 0 <= peak.end_hour <= 23
        assert peak.end_hour == (peak.start_hour + peak.length - 1) % 24


def test_wraparound_window_hours():
    window = PeakWindow(start_hour=22, end_hour=2, length=5, avg_risk=70)
    assert window.hours == [22, 23, 0, 1, 2]


@pytest.mark.parametrize("hour,label", [(0, "12 AM"), (9, "9 AM"), (12, "12 PM"), (13, "1 PM"), (23, "11 PM")])
def test_format_hour(hour, label):
    assert format_hour(hour) == label
