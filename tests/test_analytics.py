from datetime import date, datetime, timezone

import pytest

from apps.backend.services.analytics.analytics_repository import AnalyticsRepository, MerchantActivity
from apps.backend.services.analytics.analytics_service import (
    AnalyticsService,
    activity_trends,
    add_months,
    cards_breakdown,
    days_of_week,
    growth,
    growth_trends,
    program_stats,
    quick_overview,
    series,
    users_breakdown,
)
from apps.backend.services.core_service import BadRequestError
from apps.backend.services.merchants.merchant_repository import MerchantRepository

from conftest import admin_headers, merchant_headers, seed_merchant, seed_program

TODAY = date(2024, 3, 15)


def ts(day: str, hour: int = 10) -> str:
    return f"{day}T{hour:02d}:00:00+00:00"


@pytest.fixture
def activity():
    programs = [
        {"id": "p1", "name": "Coffee", "description": "Coffee card"},
        {"id": "p2", "name": "Bagel", "description": None},
    ]
    cards = [
        {"id": "c1", "user_id": "u1", "loyalty_program_id": "p1", "status": "REWARD_REDEEMED",
         "created_at": ts("2024-03-02", 0), "completed_at": ts("2024-03-05", 0), "redeemed_at": ts("2024-03-06")},
        {"id": "c2", "user_id": "u2", "loyalty_program_id": "p1", "status": "ACTIVE",
         "created_at": ts("2024-02-10")},
        {"id": "c3", "user_id": "u1", "loyalty_program_id": "p2", "status": "REWARD_READY",
         "created_at": ts("2024-03-10", 0), "completed_at": ts("2024-03-12", 0)},
    ]
    punches = [
        {"punch_card_id": "c1", "created_at": ts("2024-03-02")},
        {"punch_card_id": "c1", "created_at": ts("2024-03-03")},
        {"punch_card_id": "c1", "created_at": ts("2024-03-05")},
        {"punch_card_id": "c2", "created_at": ts("2024-02-10")},
        {"punch_card_id": "c3", "created_at": ts("2024-03-10")},
        {"punch_card_id": "c3", "created_at": ts("2024-03-12")},
    ]
    users = {
        "u1": {"id": "u1", "external_id": "ext-1", "created_at": ts("2024-03-02", 9)},
        "u2": {"id": "u2", "external_id": None, "created_at": ts("2024-02-10", 9)},
    }
    return MerchantActivity(programs=programs, cards=cards, punches=punches, users=users)


@pytest.mark.parametrize("current,previous,expected", [
    (0, 0, 0),
    (3, 0, 300),
    (1, 2, -50.0),
    (2, 3, -33.3),
    (5, 1, 400.0),
])
def test_growth(current, previous, expected):
    assert growth(current, previous) == expected


def test_add_months_clamps_day():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 3, 15), -12) == date(2023, 3, 15)
    assert add_months(date(2023, 12, 1), 1) == date(2024, 1, 1)


def test_series_ends_today():
    days = series(TODAY, "days")
    assert len(days) == 13
    assert days[0] == date(2024, 3, 3)
    assert days[-1] == TODAY
    assert series(TODAY, "months")[0] == date(2023, 3, 15)


def test_series_rejects_unknown_unit():
    with pytest.raises(BadRequestError):
        series(TODAY, "years")


def test_quick_overview(activity):
    res = quick_overview(activity, TODAY)
    assert res == {
        "totalUsers": 1,
        "totalPunches": 5,
        "totalCards": 2,
        "rewardsRedeemed": 1,
        "totalUsersGrowth": 0.0,
        "totalCardsGrowth": 100.0,
        "totalPunchesGrowth": 400.0,
        "rewardsRedeemedGrowth": 100,
    }


def test_users_and_cards_breakdown(activity):
    assert users_breakdown(activity) == {"registeredUsers": 1, "anonymousUsers": 1, "totalUsers": 2}
    assert cards_breakdown(activity) == {
        "activeCards": 1,
        "rewardReadyCards": 1,
        "rewardRedeemedCards": 1,
        "totalCards": 3,
    }


def test_growth_trends_are_cumulative(activity):
    points = growth_trends(activity, "days", TODAY)["data"]
    assert len(points) == 13
    assert points[0] == {
        "date": "2024-03-03",
        "totalUsers": 2,
        "totalPunches": 3,
        "totalCards": 2,
        "totalRewardsRedeemed": 0,
    }
    assert points[-1]["totalPunches"] == 6
    assert points[-1]["totalCards"] == 3
    assert points[-1]["totalRewardsRedeemed"] == 1
    punches = [p["totalPunches"] for p in points]
    assert punches == sorted(punches)


def test_growth_trend_month_labels(activity):
    points = growth_trends(activity, "months", TODAY)["data"]
    assert points[0]["date"] == "2023-03"
    assert points[-1]["date"] == "2024-03"


def test_activity_trends_bucket_per_unit(activity):
    points = {p["date"]: p for p in activity_trends(activity, "days", TODAY)["data"]}
    assert points["2024-03-05"]["punches"] == 1
    assert points["2024-03-06"]["rewardsRedeemed"] == 1
    assert points["2024-03-10"]["newCards"] == 1
    assert sum(p["newCards"] for p in points.values()) == 1

    monthly = activity_trends(activity, "months", TODAY)["data"]
    feb = next(p for p in monthly if p["date"] == "2024-02")
    # the February point covers Feb 15 .. Mar 14
    assert feb["punches"] == 5
    assert feb["newCustomers"] == 1


def test_days_of_week(activity):
    data = days_of_week(activity)["data"]
    assert [d["day"] for d in data][0] == "Monday"
    saturday = data[5]
    assert saturday["day"] == "Saturday"
    # 2024-02-10 and 2024-03-02 are Saturdays
    assert saturday["newCards"] == 2
    assert saturday["punches"] == 2
    assert saturday["newCustomers"] == 2
    assert sum(d["punches"] for d in data) == 6


def test_program_stats(activity):
    data = program_stats(activity)["data"]
    assert [p["name"] for p in data] == ["Bagel", "Coffee"]
    bagel, coffee = data
    assert bagel["completionRate"] == 100.0
    assert bagel["averageTimeToComplete"] == 2.0
    assert coffee == {
        "loyaltyProgramId": "p1",
        "name": "Coffee",
        "description": "Coffee card",
        "totalCards": 2,
        "activeCards": 1,
        "completedCards": 1,
        "completionRate": 50.0,
        "averageTimeToComplete": 3.0,
        "rewardsRedeemed": 1,
    }


def test_program_without_cards():
    data = program_stats(MerchantActivity(programs=[{"id": "p", "name": "Empty"}]))["data"]
    assert data[0]["completionRate"] == 0
    assert data[0]["averageTimeToComplete"] == 0


def test_service_filters_by_program(run, fake_sb, merchant):
    coffee = seed_program(fake_sb, merchant["id"], name="Coffee")
    bagel = seed_program(fake_sb, merchant["id"], name="Bagel", is_deleted=True)
    fake_sb.add("user", {"id": "u1"})
    fake_sb.add("punch_card", {"user_id": "u1", "loyalty_program_id": coffee["id"], "status": "ACTIVE"})
    fake_sb.add("punch_card", {"user_id": "u1", "loyalty_program_id": bagel["id"], "status": "ACTIVE"})

    service = AnalyticsService(
        AnalyticsRepository(fake_sb),
        MerchantRepository(fake_sb),
        clock=lambda: datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
    )
    everything = run(service.get_growth_trends(merchant["id"], "days"))["data"]
    only_coffee = run(service.get_growth_trends(merchant["id"], "days", coffee["id"]))["data"]
    assert everything[-1]["totalCards"] == 2
    assert only_coffee[-1]["totalCards"] == 1

    # deleted programs still count
    stats = run(service.get_loyalty_programs(merchant["id"]))["data"]
    assert [p["name"] for p in stats] == ["Bagel", "Coffee"]


def test_load_reads_past_the_server_row_cap(run, fake_sb, merchant):
    fake_sb.max_rows = 1000
    program = seed_program(fake_sb, merchant["id"])
    cards = [
        fake_sb.add("punch_card", {"user_id": f"u{i}", "loyalty_program_id": program["id"], "status": "ACTIVE"})
        for i in range(250)
    ]
    for i in range(2500):
        fake_sb.add("punch", {"punch_card_id": cards[i % len(cards)]["id"]})
    for i in range(250):
        fake_sb.add("user", {"id": f"u{i}"})

    activity = run(AnalyticsRepository(fake_sb).load(merchant["id"]))
    assert len(activity.cards) == 250
    assert len(activity.punches) == 2500
    assert len({p["id"] for p in activity.punches}) == 2500
    assert len(activity.users) == 250
    assert max(fake_sb.in_sizes) <= 200


def test_endpoints_require_merchant_access(client, fake_sb, merchant, merchant_staff):
    url = f"/analytics/{merchant['id']}/quick-overview"
    assert client.get(url).status_code == 401
    res = client.get(url, headers=merchant_headers(merchant_staff))
    assert res.status_code == 200
    assert res.json()["data"]["totalCards"] == 0

    other = seed_merchant(fake_sb, slug="tea-house", name="Tea House")
    assert client.get(f"/analytics/{other['id']}/cards", headers=merchant_headers(merchant_staff)).status_code == 403


def test_endpoint_rejects_bad_time_unit(client, merchant, merchant_staff):
    res = client.get(
        f"/analytics/{merchant['id']}/growth-trends",
        params={"timeUnit": "years"},
        headers=merchant_headers(merchant_staff),
    )
    assert res.status_code == 400
    assert "timeUnit" in res.json()["error"]


def test_unknown_merchant_is_null(client):
    res = client.get("/analytics/00000000-0000-0000-0000-000000000000/users", headers=admin_headers())
    assert res.status_code == 200
    assert res.json()["data"] is None
