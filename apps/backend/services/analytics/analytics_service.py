"""
Merchant Analytics
==================

Dashboard numbers for the merchant app:

- quick overview      this month vs last month, with growth %
- users               registered vs anonymous customers
- cards               punch cards per status
- growth trends       13 cumulative points ending today
- activity trends     13 buckets of new activity ending today
- days of week        activity per weekday, Monday first
- loyalty programs    per-program completion stats

All aggregation is pure Python over a MerchantActivity snapshot so it can be
tested without a database. Dates are UTC calendar dates.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

from apps.backend.services.analytics.analytics_repository import AnalyticsRepository, MerchantActivity
from apps.backend.services.core_service import BadRequestError, NotFoundError
from apps.backend.services.merchants.merchant_repository import MerchantRepository
from apps.backend.services.punches.punch_card_repository import (
    STATUS_ACTIVE,
    STATUS_REWARD_READY,
    STATUS_REWARD_REDEEMED,
)
from apps.backend.utils.timestamps import parse_ts, utcnow

log = logging.getLogger("epunch.analytics")

TIME_UNITS = ("days", "weeks", "months")
TREND_POINTS = 13
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


# -------------------------
# Pure helpers
# -------------------------

def growth(current: int, previous: int) -> float:
    if previous == 0:
        return current * 100 if current > 0 else 0
    return round((current - previous) / previous * 100, 1)


def add_months(d: date, months: int) -> date:
    index = d.month - 1 + months
    year, month = d.year + index // 12, index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def shift(d: date, time_unit: str, n: int) -> date:
    if time_unit == "days":
        return d + timedelta(days=n)
    if time_unit == "weeks":
        return d + timedelta(weeks=n)
    if time_unit == "months":
        return add_months(d, n)
    raise BadRequestError(f"Invalid timeUnit '{time_unit}'. Expected one of: {', '.join(TIME_UNITS)}")


def series(today: date, time_unit: str) -> List[date]:
    return [shift(today, time_unit, k - (TREND_POINTS - 1)) for k in range(TREND_POINTS)]


def label(d: date, time_unit: str) -> str:
    return d.strftime("%Y-%m") if time_unit == "months" else d.isoformat()


def _day(value: Any) -> Optional[date]:
    ts = parse_ts(value)
    return ts.date() if ts else None


def _count(rows: Iterable[Dict[str, Any]], column: str, pred: Callable[[date], bool]) -> int:
    n = 0
    for row in rows:
        d = _day(row.get(column))
        if d is not None and pred(d):
            n += 1
    return n


def _customers(activity: MerchantActivity) -> List[Dict[str, Any]]:
    """Distinct users holding at least one of the merchant's cards."""
    seen = set()
    out = []
    for card in activity.cards:
        uid = str(card["user_id"])
        if uid in seen:
            continue
        seen.add(uid)
        out.append(activity.users.get(uid) or {"id": uid})
    return out


def quick_overview(activity: MerchantActivity, today: date) -> Dict[str, Any]:
    month_start = today.replace(day=1)
    prev_start = add_months(month_start, -1)

    def metrics(start: date, end: date) -> Dict[str, int]:
        def within(d: date) -> bool:
            return start <= d < end

        cards = [c for c in activity.cards if _count([c], "created_at", within)]
        return {
            "users": len({str(c["user_id"]) for c in cards}),
            "punches": _count(activity.punches, "created_at", within),
            "cards": len(cards),
            "rewards": _count(activity.cards, "redeemed_at", within),
        }

    cur = metrics(month_start, add_months(month_start, 1))
    prev = metrics(prev_start, month_start)

    return {
        "totalUsers": cur["users"],
        "totalPunches": cur["punches"],
        "totalCards": cur["cards"],
        "rewardsRedeemed": cur["rewards"],
        "totalUsersGrowth": growth(cur["users"], prev["users"]),
        "totalCardsGrowth": growth(cur["cards"], prev["cards"]),
        "totalPunchesGrowth": growth(cur["punches"], prev["punches"]),
        "rewardsRedeemedGrowth": growth(cur["rewards"], prev["rewards"]),
    }


def users_breakdown(activity: MerchantActivity) -> Dict[str, int]:
    customers = _customers(activity)
    registered = sum(1 for u in customers if u.get("external_id"))
    return {
        "registeredUsers": registered,
        "anonymousUsers": len(customers) - registered,
        "totalUsers": len(customers),
    }


def cards_breakdown(activity: MerchantActivity) -> Dict[str, int]:
    statuses = [c.get("status") for c in activity.cards]
    return {
        "activeCards": statuses.count(STATUS_ACTIVE),
        "rewardReadyCards": statuses.count(STATUS_REWARD_READY),
        "rewardRedeemedCards": statuses.count(STATUS_REWARD_REDEEMED),
        "totalCards": len(statuses),
    }


def growth_trends(activity: MerchantActivity, time_unit: str, today: date) -> Dict[str, Any]:
    points = []
    for point in series(today, time_unit):
        def upto(d: date, point=point) -> bool:
            return d <= point

        users = {str(c["user_id"]) for c in activity.cards if _count([c], "created_at", upto)}
        points.append({
            "date": label(point, time_unit),
            "totalUsers": len(users),
            "totalPunches": _count(activity.punches, "created_at", upto),
            "totalCards": _count(activity.cards, "created_at", upto),
            "totalRewardsRedeemed": _count(activity.cards, "redeemed_at", upto),
        })
    return {"data": points}


def activity_trends(activity: MerchantActivity, time_unit: str, today: date) -> Dict[str, Any]:
    customers = _customers(activity)
    points = []
    for point in series(today, time_unit):
        end = shift(point, time_unit, 1)

        def within(d: date, start=point, end=end) -> bool:
            return start <= d < end

        points.append({
            "date": label(point, time_unit),
            "newCustomers": _count(customers, "created_at", within),
            "punches": _count(activity.punches, "created_at", within),
            "rewardsRedeemed": _count(activity.cards, "redeemed_at", within),
            "newCards": _count(activity.cards, "created_at", within),
        })
    return {"data": points}


def days_of_week(activity: MerchantActivity) -> Dict[str, Any]:
    customers = _customers(activity)
    data = []
    for index, name in enumerate(WEEKDAYS):
        def on_day(d: date, index=index) -> bool:
            return d.weekday() == index

        data.append({
            "day": name,
            "newCustomers": _count(customers, "created_at", on_day),
            "punches": _count(activity.punches, "created_at", on_day),
            "rewardsRedeemed": _count(activity.cards, "redeemed_at", on_day),
            "newCards": _count(activity.cards, "created_at", on_day),
        })
    return {"data": data}


def program_stats(activity: MerchantActivity) -> Dict[str, Any]:
    by_program: Dict[str, List[Dict[str, Any]]] = {}
    for card in activity.cards:
        by_program.setdefault(str(card["loyalty_program_id"]), []).append(card)

    data = []
    for program in sorted(activity.programs, key=lambda p: p.get("name") or ""):
        cards = by_program.get(str(program["id"]), [])
        completed = [c for c in cards if c.get("completed_at")]

        days: List[float] = []
        for c in completed:
            start, end = parse_ts(c.get("created_at")), parse_ts(c.get("completed_at"))
            if start and end:
                days.append((end - start).total_seconds() / 86400)

        data.append({
            "loyaltyProgramId": program["id"],
            "name": program.get("name"),
            "description": program.get("description"),
            "totalCards": len(cards),
            "activeCards": sum(1 for c in cards if c.get("status") == STATUS_ACTIVE),
            "completedCards": len(completed),
            "completionRate": round(len(completed) / len(cards) * 100, 2) if cards else 0,
            "averageTimeToComplete": round(sum(days) / len(days), 1) if days else 0,
            "rewardsRedeemed": sum(1 for c in cards if c.get("status") == STATUS_REWARD_REDEEMED),
        })
    return {"data": data}


# -------------------------
# Service
# -------------------------

class AnalyticsService:
    def __init__(self, repo: AnalyticsRepository, merchants: MerchantRepository, clock: Callable[[], datetime] = utcnow) -> None:
        self.repo = repo
        self.merchants = merchants
        self.clock = clock

    def _today(self) -> date:
        return self.clock().date()

    async def _load(self, merchant_id: str, program_id: Optional[str] = None) -> MerchantActivity:
        if not await self.merchants.find_by_id(merchant_id):
            raise NotFoundError(f"Merchant with ID {merchant_id} not found")
        return await self.repo.load(merchant_id, program_id)

    @staticmethod
    def _check_time_unit(time_unit: str) -> None:
        if time_unit not in TIME_UNITS:
            raise BadRequestError(f"Invalid timeUnit '{time_unit}'. Expected one of: {', '.join(TIME_UNITS)}")

    async def get_quick_overview(self, merchant_id: str) -> Dict[str, Any]:
        log.info("Quick overview for merchant %s", merchant_id)
        return quick_overview(await self._load(merchant_id), self._today())

    async def get_users(self, merchant_id: str) -> Dict[str, int]:
        return users_breakdown(await self._load(merchant_id))

    async def get_cards(self, merchant_id: str) -> Dict[str, int]:
        return cards_breakdown(await self._load(merchant_id))

    async def get_growth_trends(self, merchant_id: str, time_unit: str, program_id: Optional[str] = None) -> Dict[str, Any]:
        self._check_time_unit(time_unit)
        log.info("Growth trends for merchant %s unit=%s program=%s", merchant_id, time_unit, program_id)
        return growth_trends(await self._load(merchant_id, program_id), time_unit, self._today())

    async def get_activity_trends(self, merchant_id: str, time_unit: str, program_id: Optional[str] = None) -> Dict[str, Any]:
        self._check_time_unit(time_unit)
        log.info("Activity trends for merchant %s unit=%s program=%s", merchant_id, time_unit, program_id)
        return activity_trends(await self._load(merchant_id, program_id), time_unit, self._today())

    async def get_days_of_week(self, merchant_id: str, program_id: Optional[str] = None) -> Dict[str, Any]:
        return days_of_week(await self._load(merchant_id, program_id))

    async def get_loyalty_programs(self, merchant_id: str) -> Dict[str, Any]:
        return program_stats(await self._load(merchant_id))
