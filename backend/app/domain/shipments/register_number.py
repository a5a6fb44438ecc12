"""
Register number allocation.

Register numbers have the form YYYYMM-NNNN where YYYYMM comes from the
bility date and NNNN restarts at 1 every calendar month. Allocation is an
atomic increment of the month's counter row, done inside the caller's
transaction so the number and the shipment commit or roll back together.
"""

import calendar
from datetime import date
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, case

from backend.app.core.config import settings
from backend.app.models.register_sequence import RegisterSequence
from backend.app.models.shipment import Shipment


def period_for(bility_date: date) -> str:
    return f"{bility_date.year}{bility_date.month:02d}"


def format_register_number(period: str, value: int) -> str:
    return f"{period}-{value:0{settings.register_number_width}d}"


def month_bounds(bility_date: date) -> tuple[date, date]:
    last_day = calendar.monthrange(bility_date.year, bility_date.month)[1]
    return bility_date.replace(day=1), bility_date.replace(day=last_day)


class RegisterNumberAllocator:

    @staticmethod
    async def count_in_month(db: AsyncSession, bility_date: date) -> int:
        """Number of shipments whose bility date falls in the same calendar month."""
        first, last = month_bounds(bility_date)
        result = await db.execute(
            select(func.count()).select_from(Shipment).where(
                Shipment.bility_date >= first,
                Shipment.bility_date <= last
            )
        )
        return result.scalar_one()

    @staticmethod
    async def highest_suffix(db: AsyncSession, period: str) -> int:
        """Largest NNNN already used by a shipment in the period, 0 if none."""
        result = await db.execute(
            select(Shipment.register_number)
            .where(Shipment.register_number.like(f"{period}-%"))
            .order_by(func.length(Shipment.register_number).desc(), Shipment.register_number.desc())
            .limit(1)
        )
        latest = result.scalar_one_or_none()
        if latest is None:
            return 0
        suffix = latest.rsplit("-", 1)[1]
        return int(suffix) if suffix.isdigit() else 0

    @staticmethod
    async def floor_for(db: AsyncSession, bility_date: date) -> int:
        """
        Value the next number must exceed.

        Months imported with gaps in their numbering have fewer shipments
        than their highest number, so both the count and the highest
        suffix are taken into account.
        """
        count = await RegisterNumberAllocator.count_in_month(db, bility_date)
        highest = await RegisterNumberAllocator.highest_suffix(db, period_for(bility_date))
        return max(count, highest)

    @staticmethod
    async def _current_value(db: AsyncSession, period: str) -> Optional[int]:
        result = await db.execute(
            select(RegisterSequence.last_value).where(RegisterSequence.period == period)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def allocate(db: AsyncSession, bility_date: date) -> str:
        """
        Allocate the next register number for the bility date's month.

        Increments the counter with a single UPDATE ... RETURNING, jumping
        past any number already written outside the counter. A month with no
        counter yet is seeded above the same floor; two writers seeding the
        same month at once make one of them fail on the counter's primary
        key, and the caller retries against the committed state.
        """
        period = period_for(bility_date)
        floor = await RegisterNumberAllocator.floor_for(db, bility_date)

        result = await db.execute(
            update(RegisterSequence)
            .where(RegisterSequence.period == period)
            .values(last_value=case(
                (RegisterSequence.last_value >= floor, RegisterSequence.last_value + 1),
                else_=floor + 1,
            ))
            .returning(RegisterSequence.last_value)
            .execution_options(synchronize_session=False)
        )
        value = result.scalar_one_or_none()

        if value is None:
            value = floor + 1
            db.add(RegisterSequence(period=period, last_value=value))
            await db.flush()

        return format_register_number(period, value)

    @staticmethod
    async def preview(db: AsyncSession, bility_date: date) -> str:
        """Next number for the month without reserving it."""
        period = period_for(bility_date)
        floor = await RegisterNumberAllocator.floor_for(db, bility_date)
        current = await RegisterNumberAllocator._current_value(db, period)
        return format_register_number(period, max(current or 0, floor) + 1)
