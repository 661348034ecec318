#!/usr/bin/env python3
"""
Store a quick onboarding profile:  python scripts/dev_profile.py
Replaces whatever profile is already there.
"""
import asyncio

from urgeguard.db import async_session, create_db_and_tables
from urgeguard.schemas.risk import OnboardingProfile
from urgeguard.services.risk_profile import build_hourly_profile, find_peak_window
from urgeguard.store.recorder import EventRecorder


def ask_list(prompt: str) -> list:
    return [item.strip() for item in input(prompt).split(",") if item.strip()]


async def main():
    profile = OnboardingProfile(
        screen_time=input("Screen time (<2 hours, 2-4 hours, 4-6 hours, 6+ hours): ").strip(),
        risk_windows=ask_list("Risk windows (morning, afternoon, evening, latenight, verylate): "),
        triggers=ask_list("Triggers (stress, loneliness, boredom, fatigue, socialmedia): "),
        alone_pattern=input("Alone (always, usually, sometimes, rarely): ").strip() or "sometimes",
    )
    await create_db_and_tables()
    await EventRecorder(async_session).replace_profile(profile)

    hourly = build_hourly_profile(profile)
    peak = find_peak_window(hourly, profile.triggers)
    for entry in hourly:
        print(f"{entry.label:>6}  {entry.base_risk:3d}%  {entry.risk_level.value}")
    print(f"Peak window: {peak.start_hour}:00-{peak.end_hour}:59 avg {peak.avg_risk}%")

if __name__ == "__main__":
    asyncio.run(main())
