"""
Hotel API - Administrative Reports
==================================

Read-only aggregations over bookings, rooms, services and users. Nothing in
this module writes to the database.

Cancelled bookings and cancelled service line items never count towards
revenue, nights or occupancy.
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

import pandas as pd
from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import Booking, BookingService, Room, RoomType, Service, User, ROOM_STATUSES
from exceptions import ValidationError
from logging_config import get_logger
from services import with_db

logger = get_logger(__name__)

EXPORT_REPORTS = {
    "bookings": "booking_summary_report",
    "occupancy": "room_occupancy_report",
    "revenue-by-room-type": "revenue_by_room_type_report",
    "service-usage": "service_usage_report",
    "customer-statistics": "customer_statistics_report",
}

# CSV header per export, written even when a report has no rows
EXPORT_COLUMNS = {
    "bookings": [
        "booking_id", "customer_name", "customer_email", "room_number", "room_type",
        "check_in_date", "check_out_date", "total_nights", "total_amount", "status", "booking_date",
    ],
    "occupancy": ["date", "occupied_rooms", "occupancy_rate"],
    "revenue-by-room-type": [
        "room_type", "base_price", "total_bookings", "total_nights", "total_revenue", "average_booking_value",
    ],
    "service-usage": [
        "booking_service_id", "service_name", "category", "customer_name", "quantity",
        "unit_price", "total_price", "service_date", "status",
    ],
    "customer-statistics": [
        "id", "username", "full_name", "email", "phone", "address", "created_at", "booking_count", "total_spent",
    ],
}


def _money(value) -> float:
    return round(float(value or 0), 2)


def _active_bookings():
    return Booking.status != "cancelled"


def _active_items():
    return BookingService.status != "cancelled"


def resolve_period(start_date: Optional[date], end_date: Optional[date],
                   today: Optional[date] = None) -> Tuple[date, date]:
    """Defaults to the last month up to today."""
    today = today or date.today()
    start = start_date or (today - relativedelta(months=1))
    end = end_date or today
    if end < start:
        raise ValidationError.for_field("end_date", "The end date must be a date after or equal to start date.")
    return start, end


class ReportService:

    @staticmethod
    @with_db
    def booking_summary(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict:
        """Bookings and revenue per booking day."""
        start, end = resolve_period(start_date, end_date)
        rows = db.query(
            Booking.booking_date.label("day"),
            func.count(Booking.id).label("total_bookings"),
            func.sum(Booking.total_amount).label("total_revenue"),
        ).filter(
            Booking.booking_date.between(start, end),
            _active_bookings(),
        ).group_by(Booking.booking_date).order_by(Booking.booking_date).all()

        daily = [
            {"date": r.day.isoformat(), "total_bookings": r.total_bookings, "total_revenue": _money(r.total_revenue)}
            for r in rows
        ]
        total_bookings = sum(d["total_bookings"] for d in daily)
        total_revenue = _money(sum(d["total_revenue"] for d in daily))
        return {
            "total_bookings": total_bookings,
            "total_revenue": total_revenue,
            "average_daily_bookings": round(total_bookings / len(daily), 2) if daily else 0,
            "average_daily_revenue": round(total_revenue / len(daily), 2) if daily else 0,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "daily_data": daily,
        }

    @staticmethod
    def _occupancy_by_day(db: Session, start: date, end: date) -> Tuple[int, List[Dict]]:
        total_rooms = db.query(func.count(Room.id)).scalar() or 0

        days = {}
        current = start
        while current <= end:
            days[current] = set()
            current += timedelta(days=1)

        # Bookings whose stay touches the period
        bookings = db.query(Booking.room_id, Booking.check_in_date, Booking.check_out_date).filter(
            _active_bookings(),
            Booking.check_in_date <= end,
            Booking.check_out_date > start,
        ).all()

        for b in bookings:
            day = max(b.check_in_date, start)
            last = min(b.check_out_date, end + timedelta(days=1))
            while day < last:
                days[day].add(b.room_id)
                day += timedelta(days=1)

        daily = []
        for day, rooms in days.items():
            occupied = len(rooms)
            daily.append({
                "date": day.isoformat(),
                "occupied_rooms": occupied,
                "occupancy_rate": round(occupied / total_rooms * 100, 2) if total_rooms else 0,
            })
        return total_rooms, daily

    @staticmethod
    @with_db
    def room_occupancy(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict:
        """Rooms held by a booking on each night of the period (check_in <= night < check_out)."""
        start, end = resolve_period(start_date, end_date)
        total_rooms, daily = ReportService._occupancy_by_day(db, start, end)
        average = round(sum(d["occupancy_rate"] for d in daily) / len(daily), 2) if daily else 0
        logger.info(f"room_occupancy: {start}..{end} average {average}%")
        return {
            "total_rooms": total_rooms,
            "average_occupancy_rate": average,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "daily_data": daily,
        }

    @staticmethod
    def _revenue_by_room_type_rows(db: Session, start: date, end: date) -> List[Dict]:
        total_revenue = func.sum(Booking.total_amount)
        rows = db.query(
            RoomType.name,
            RoomType.base_price,
            func.count(Booking.id).label("total_bookings"),
            func.sum(Booking.total_nights).label("total_nights"),
            total_revenue.label("total_revenue"),
            func.avg(Booking.total_amount).label("average_booking_value"),
        ).join(Room, Booking.room_id == Room.id).join(RoomType, Room.room_type_id == RoomType.id).filter(
            Booking.booking_date.between(start, end),
            _active_bookings(),
        ).group_by(RoomType.name, RoomType.base_price).order_by(total_revenue.desc()).all()

        return [
            {
                "room_type": r.name,
                "base_price": _money(r.base_price),
                "total_bookings": r.total_bookings,
                "total_nights": int(r.total_nights or 0),
                "total_revenue": _money(r.total_revenue),
                "average_booking_value": _money(r.average_booking_value),
            }
            for r in rows
        ]

    @staticmethod
    @with_db
    def revenue_by_room_type(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict:
        start, end = resolve_period(start_date, end_date)
        return {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "data": ReportService._revenue_by_room_type_rows(db, start, end),
        }

    @staticmethod
    @with_db
    def service_usage(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict:
        start, end = resolve_period(start_date, end_date)
        total_revenue = func.sum(BookingService.total_price)
        rows = db.query(
            Service.name,
            Service.category,
            func.count(BookingService.id).label("usage_count"),
            func.sum(BookingService.quantity).label("total_quantity"),
            total_revenue.label("total_revenue"),
        ).join(Service, BookingService.service_id == Service.id).filter(
            BookingService.service_date.between(start, end),
            _active_items(),
        ).group_by(Service.name, Service.category).order_by(total_revenue.desc()).all()

        data = [
            {
                "service_name": r.name,
                "category": r.category,
                "usage_count": r.usage_count,
                "total_quantity": int(r.total_quantity or 0),
                "total_revenue": _money(r.total_revenue),
            }
            for r in rows
        ]
        return {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "total_services_revenue": _money(sum(d["total_revenue"] for d in data)),
            "data": data,
        }

    @staticmethod
    def _top_customers(db: Session, start: date, end: date, order_by: str, limit: int = 10) -> List[Dict]:
        booking_count = func.count(Booking.id).label("booking_count")
        total_spent = func.sum(Booking.total_amount).label("total_spent")
        ordering = booking_count.desc() if order_by == "bookings" else total_spent.desc()
        rows = db.query(User.id, User.full_name, User.email, booking_count, total_spent).join(
            Booking, Booking.customer_id == User.id
        ).filter(
            Booking.booking_date.between(start, end),
            _active_bookings(),
        ).group_by(User.id, User.full_name, User.email).order_by(ordering, User.id).limit(limit).all()

        return [
            {
                "id": r.id,
                "full_name": r.full_name,
                "email": r.email,
                "booking_count": r.booking_count,
                "total_spent": _money(r.total_spent),
            }
            for r in rows
        ]

    @staticmethod
    @with_db
    def customer_statistics(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict:
        start, end = resolve_period(start_date, end_date)
        new_customers = db.query(func.count(User.id)).filter(
            User.role == "customer",
            User.created_at.between(datetime.combine(start, time.min), datetime.combine(end, time.max)),
        ).scalar() or 0
        return {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "new_customers": new_customers,
            "top_customers_by_bookings": ReportService._top_customers(db, start, end, "bookings"),
            "top_customers_by_revenue": ReportService._top_customers(db, start, end, "revenue"),
        }

    @staticmethod
    @with_db
    def dashboard_summary(db: Session, today: Optional[date] = None) -> Dict:
        """Quick overview: today, this month, rooms by status, upcoming arrivals."""
        today = today or date.today()
        first_day = today.replace(day=1)
        last_day = today.replace(day=calendar.monthrange(today.year, today.month)[1])

        def bookings_between(start: date, end: date):
            return db.query(
                func.count(Booking.id), func.sum(Booking.total_amount)
            ).filter(Booking.booking_date.between(start, end), _active_bookings()).one()

        today_count, today_revenue = bookings_between(today, today)
        month_count, month_revenue = bookings_between(first_day, last_day)

        check_ins = db.query(func.count(Booking.id)).filter(
            Booking.check_in_date == today, _active_bookings()).scalar() or 0
        check_outs = db.query(func.count(Booking.id)).filter(
            Booking.check_out_date == today, _active_bookings()).scalar() or 0

        by_status = dict(db.query(Room.status, func.count(Room.id)).group_by(Room.status).all())
        rooms = {status: by_status.get(status, 0) for status in ROOM_STATUSES}
        total_rooms = sum(rooms.values())
        held = rooms["occupied"] + rooms["reserved"]

        upcoming = db.query(Booking).filter(
            Booking.check_in_date > today,
            Booking.status == "confirmed",
        ).order_by(Booking.check_in_date).limit(5).all()

        return {
            "today": {
                "date": today.isoformat(),
                "bookings": today_count,
                "revenue": _money(today_revenue),
                "check_ins": check_ins,
                "check_outs": check_outs,
            },
            "monthly": {
                "month": today.strftime("%B %Y"),
                "bookings": month_count,
                "revenue": _money(month_revenue),
            },
            "rooms": {
                "total": total_rooms,
                **rooms,
                "occupancy_rate": round(held / total_rooms * 100, 2) if total_rooms else 0,
            },
            "upcoming_bookings": [
                {
                    "id": b.id,
                    "check_in_date": b.check_in_date.isoformat(),
                    "check_out_date": b.check_out_date.isoformat(),
                    "customer_name": b.customer.full_name,
                    "customer_email": b.customer.email,
                    "room_number": b.room.room_number,
                }
                for b in upcoming
            ],
        }

    @staticmethod
    @with_db
    def yearly_financial(db: Session, year: Optional[int] = None, today: Optional[date] = None) -> Dict:
        """Room and service revenue per month of the year, plus category breakdowns."""
        today = today or date.today()
        year = year or today.year
        if not 2000 <= year <= today.year + 1:
            raise ValidationError.for_field("year", f"The year must be between 2000 and {today.year + 1}.")
        start, end = date(year, 1, 1), date(year, 12, 31)

        monthly = {
            m: {"month": m, "month_name": calendar.month_name[m], "room_revenue": 0.0, "service_revenue": 0.0}
            for m in range(1, 13)
        }

        bookings = db.query(Booking.booking_date, Booking.total_amount, Booking.total_nights).filter(
            Booking.booking_date.between(start, end), _active_bookings()).all()
        for b in bookings:
            monthly[b.booking_date.month]["room_revenue"] += b.total_amount

        items = db.query(BookingService.service_date, BookingService.total_price).filter(
            BookingService.service_date.between(start, end), _active_items()).all()
        for i in items:
            monthly[i.service_date.month]["service_revenue"] += i.total_price

        for data in monthly.values():
            data["room_revenue"] = _money(data["room_revenue"])
            data["service_revenue"] = _money(data["service_revenue"])
            data["total_revenue"] = _money(data["room_revenue"] + data["service_revenue"])

        category_revenue = func.sum(BookingService.total_price)
        categories = db.query(
            Service.category,
            func.count(BookingService.id).label("usage_count"),
            category_revenue.label("total_revenue"),
        ).join(Service, BookingService.service_id == Service.id).filter(
            BookingService.service_date.between(start, end), _active_items(),
        ).group_by(Service.category).order_by(category_revenue.desc()).all()

        room_revenue = _money(sum(m["room_revenue"] for m in monthly.values()))
        service_revenue = _money(sum(m["service_revenue"] for m in monthly.values()))
        total_bookings = len(bookings)

        return {
            "year": year,
            "total_revenue": _money(room_revenue + service_revenue),
            "room_revenue": room_revenue,
            "service_revenue": service_revenue,
            "total_bookings": total_bookings,
            "total_nights": sum(b.total_nights for b in bookings),
            "average_booking_value": round(room_revenue / total_bookings, 2) if total_bookings else 0,
            "monthly_data": list(monthly.values()),
            "room_type_performance": ReportService._revenue_by_room_type_rows(db, start, end),
            "service_category_performance": [
                {"category": c.category, "usage_count": c.usage_count, "total_revenue": _money(c.total_revenue)}
                for c in categories
            ],
        }

    # ==========================================
    # EXPORT
    # ==========================================

    @staticmethod
    @with_db
    def export_rows(db: Session, report_type: str, start_date: Optional[date] = None,
                    end_date: Optional[date] = None) -> Tuple[str, List[Dict]]:
        """
        Flat, row-per-record data for a report.

        Returns:
            (file name stem, rows)
        """
        if report_type not in EXPORT_REPORTS:
            raise ValidationError.for_field("report_type", "The selected report type is invalid.")
        start, end = resolve_period(start_date, end_date)

        if report_type == "bookings":
            rows = [
                {
                    "booking_id": b.id,
                    "customer_name": b.customer.full_name,
                    "customer_email": b.customer.email,
                    "room_number": b.room.room_number,
                    "room_type": b.room.room_type.name,
                    "check_in_date": b.check_in_date.isoformat(),
                    "check_out_date": b.check_out_date.isoformat(),
                    "total_nights": b.total_nights,
                    "total_amount": _money(b.total_amount),
                    "status": b.status,
                    "booking_date": b.booking_date.isoformat(),
                }
                for b in db.query(Booking).filter(Booking.booking_date.between(start, end))
                .order_by(Booking.booking_date, Booking.id).all()
            ]
        elif report_type == "occupancy":
            rows = ReportService._occupancy_by_day(db, start, end)[1]
        elif report_type == "revenue-by-room-type":
            rows = ReportService._revenue_by_room_type_rows(db, start, end)
        elif report_type == "service-usage":
            rows = [
                {
                    "booking_service_id": i.id,
                    "service_name": i.service.name,
                    "category": i.service.category,
                    "customer_name": i.booking.customer.full_name,
                    "quantity": i.quantity,
                    "unit_price": _money(i.unit_price),
                    "total_price": _money(i.total_price),
                    "service_date": i.service_date.isoformat(),
                    "status": i.status,
                }
                for i in db.query(BookingService).filter(BookingService.service_date.between(start, end))
                .order_by(BookingService.service_date, BookingService.id).all()
            ]
        else:
            rows = ReportService._customer_rows(db, start, end)

        logger.info(f"export_rows: {report_type} {start}..{end} ({len(rows)} rows)")
        return EXPORT_REPORTS[report_type], rows

    @staticmethod
    def _customer_rows(db: Session, start: date, end: date) -> List[Dict]:
        stats = db.query(
            Booking.customer_id,
            func.count(Booking.id).label("booking_count"),
            func.sum(Booking.total_amount).label("total_spent"),
        ).filter(
            Booking.booking_date.between(start, end), _active_bookings(),
        ).group_by(Booking.customer_id).subquery()

        rows = db.query(
            User, func.coalesce(stats.c.booking_count, 0), func.coalesce(stats.c.total_spent, 0)
        ).outerjoin(stats, stats.c.customer_id == User.id).filter(
            User.role == "customer"
        ).order_by(func.coalesce(stats.c.booking_count, 0).desc(), User.id).all()

        return [
            {
                "id": user.id,
                "username": user.username,
                "full_name": user.full_name,
                "email": user.email,
                "phone": user.phone,
                "address": user.address,
                "created_at": user.created_at.isoformat() if user.created_at else None,
                "booking_count": count,
                "total_spent": _money(spent),
            }
            for user, count, spent in rows
        ]


def rows_to_csv(rows: List[Dict], columns: List[str]) -> str:
    """One header line from `columns`, then one line per row."""
    return pd.DataFrame(rows, columns=columns).to_csv(index=False)
