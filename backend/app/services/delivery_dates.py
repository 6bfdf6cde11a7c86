"""
Despatch/delivery date calculation for the weekly cut-off schedule.

Orders are despatched on Tuesday, Wednesday or Thursday and delivered the
following day. Which despatch day an order lands on depends on the weekday
it was placed and whether it was placed before the daily cut-off:

    placed on        before cut-off    at/after cut-off
    Monday           Tuesday           Wednesday
    Tuesday          Wednesday         Thursday
    Wednesday        Thursday          Tuesday (following week)
    Thu/Fri/Sat/Sun  Tuesday           Tuesday

Bank holidays are not taken into account.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.utils.log import get_logger

log = get_logger("app.services.delivery_dates", "DELIVERY-DATES")

MON, TUE, WED, THU, FRI, SAT, SUN = range(7)

# (placement weekday, at_or_after_cutoff) -> despatch weekday
DESPATCH_RULES = {
    (MON, False): TUE,
    (MON, True): WED,
    (TUE, False): WED,
    (TUE, True): THU,
    (WED, False): THU,
    (WED, True): TUE,
    (THU, False): TUE,
    (THU, True): TUE,
    (FRI, False): TUE,
    (FRI, True): TUE,
    (SAT, False): TUE,
    (SAT, True): TUE,
    (SUN, False): TUE,
    (SUN, True): TUE,
}


@dataclass(frozen=True)
class DeliveryWindow:
    despatch_date: date
    delivery_date: date

    @property
    def delivery_display(self) -> str:
        """DD/MM/YYYY, as written to the order file."""
        return self.delivery_date.strftime("%d/%m/%Y")

    @property
    def packing_label(self) -> str:
        """'Packing DD.MM.YY' label for the despatch day."""
        return "Packing " + self.despatch_date.strftime("%d.%m.%y")

    def as_dict(self) -> dict:
        return {
            "despatch_date": self.despatch_date.isoformat(),
            "delivery_date": self.delivery_display,
            "packing_date": self.packing_label,
        }


def next_weekday(day: date, target: int) -> date:
    """Nearest `target` weekday strictly after `day` (a full week if `day` is one)."""
    ahead = (target - day.weekday()) % 7
    return day + timedelta(days=ahead or 7)


class DateWindowCalculator:
    def __init__(self, cutoff_hour: int = 16, cutoff_minute: int = 0, tz: str = "Europe/London"):
        if not (0 <= cutoff_hour <= 23 and 0 <= cutoff_minute <= 59):
            raise ValueError(f"Invalid cut-off {cutoff_hour}:{cutoff_minute}")
        self.cutoff_hour = cutoff_hour
        self.cutoff_minute = cutoff_minute
        self.tz = ZoneInfo(tz)

    @classmethod
    def from_config(cls, config) -> "DateWindowCalculator":
        return cls(config.cutoff_hour, config.cutoff_minute, config.timezone)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def to_local(self, moment: datetime) -> datetime:
        # naive values come from the DB and are stored as UTC
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tz)

    def is_after_cutoff(self, local: datetime) -> bool:
        return (local.hour, local.minute) >= (self.cutoff_hour, self.cutoff_minute)

    def despatch_date(self, placed_at: datetime) -> date:
        local = self.to_local(placed_at)
        target = DESPATCH_RULES[(local.weekday(), self.is_after_cutoff(local))]
        return next_weekday(local.date(), target)

    def compute(self, placed_at: Optional[datetime]) -> DeliveryWindow:
        if placed_at is None:
            placed_at = self._now()
            log.warning("order has no placement timestamp; using current time")
        despatch = self.despatch_date(placed_at)
        return DeliveryWindow(despatch_date=despatch, delivery_date=despatch + timedelta(days=1))

    def next_from_now(self) -> DeliveryWindow:
        """Window an order placed right now would get."""
        return self.compute(self._now())
