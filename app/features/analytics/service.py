"""Service layer for analytics operations.

Fetches scoped, filtered rows with SQLAlchemy and hands them to the pure
reducers in ``analytics.aggregations``.
"""

from collections.abc import Sequence
from datetime import date, datetime, timedelta

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.security import Caller
from app.features.analytics import aggregations
from app.features.analytics.schemas import (
    AreaStat,
    AreaWiseResponse,
    DashboardOverview,
    DashboardResponse,
    DeliveryPerformanceResponse,
    MonthComparison,
    MonthlyCollection,
    MonthlyComparisonResponse,
    PaymentStat,
    PaymentTrendsResponse,
    RetentionResponse,
    StaffPerformance,
    TopCustomer,
    WeekdayTrend,
)
from app.features.customers.access import customer_scope, scope_query
from app.features.customers.models import Customer, CustomerStatus
from app.features.deliveries.models import DeliveryRecord, DeliveryStatus
from app.features.staff.models import Staff
from app.shared.periods import date_range_bounds, day_bounds, month_bounds
from app.shared.utils import to_decimal

logger = get_logger(__name__)


class AnalyticsService:
    """Service for computing delivery analytics.

    All methods are async, scope rows to the caller's customers and never
    raise on empty data.
    """

    def __init__(self) -> None:
        """Initialize analytics service."""
        self.settings = get_settings()

    async def _delivered(
        self,
        db: AsyncSession,
        caller: Caller,
        *filters: ColumnElement[bool],
    ) -> Sequence[DeliveryRecord]:
        """Delivered records of visible customers, ordered by date then id."""
        stmt = (
            select(DeliveryRecord)
            .join(Customer, DeliveryRecord.customer_id == Customer.id)
            .where(DeliveryRecord.status == DeliveryStatus.DELIVERED.value, *filters)
            .order_by(DeliveryRecord.date, DeliveryRecord.id)
        )
        predicate = customer_scope(caller)
        if predicate is not None:
            stmt = stmt.where(predicate)
        return (await db.execute(stmt)).scalars().all()

    async def _count_active(self, db: AsyncSession, caller: Caller) -> int:
        stmt = scope_query(
            select(func.count(Customer.id)).where(
                Customer.status == CustomerStatus.ACTIVE.value
            ),
            caller,
        )
        return (await db.execute(stmt)).scalar_one()

    @staticmethod
    def _range(start_date: date | None, end_date: date | None) -> list[ColumnElement[bool]]:
        start, end = date_range_bounds(start_date, end_date)
        filters: list[ColumnElement[bool]] = []
        if start is not None:
            filters.append(DeliveryRecord.date >= start)
        if end is not None:
            filters.append(DeliveryRecord.date < end)
        return filters

    async def dashboard(
        self,
        db: AsyncSession,
        caller: Caller,
        now: datetime | None = None,
    ) -> DashboardResponse:
        """Dashboard snapshot: today, this month, last 7 days, top customers.

        Args:
            db: Database session.
            caller: Requesting staff member.
            now: Reference time (server-local); defaults to the current time.

        Returns:
            Overview counters, a 7-bucket weekday trend and the top customers
            of the month.
        """
        now = now or datetime.now()
        today_start, today_end = day_bounds(now.date())
        month_start, month_end = month_bounds(now.year, now.month)

        today_stmt = (
            select(DeliveryRecord.status)
            .join(Customer, DeliveryRecord.customer_id == Customer.id)
            .where(DeliveryRecord.date >= today_start, DeliveryRecord.date < today_end)
        )
        predicate = customer_scope(caller)
        if predicate is not None:
            today_stmt = today_stmt.where(predicate)
        today_counts = aggregations.count_by_status(
            (await db.execute(today_stmt)).scalars().all()
        )

        month_records = await self._delivered(
            db,
            caller,
            DeliveryRecord.date >= month_start,
            DeliveryRecord.date <= month_end,
        )
        week_records = await self._delivered(
            db, caller, DeliveryRecord.date >= now - timedelta(days=7)
        )

        top = aggregations.top_customers(month_records, self.settings.analytics_top_customers)
        names: dict[str, Customer] = {}
        if top:
            customer_stmt = select(Customer).where(Customer.id.in_([t.customer_id for t in top]))
            names = {c.id: c for c in (await db.execute(customer_stmt)).scalars().all()}

        overview = DashboardOverview(
            total_active_customers=await self._count_active(db, caller),
            today_delivered_count=today_counts.get(DeliveryStatus.DELIVERED.value, 0),
            today_pending_count=today_counts.get(DeliveryStatus.PENDING.value, 0),
            month_to_date_litres=float(sum(to_decimal(r.litres) for r in month_records)),
            month_to_date_revenue=float(sum(to_decimal(r.total_amount) for r in month_records)),
        )

        logger.info(
            "analytics.dashboard_computed",
            total_active_customers=overview.total_active_customers,
            month_records=len(month_records),
        )
        return DashboardResponse(
            overview=overview,
            weekly_trend=[
                WeekdayTrend(
                    day=bucket.day,
                    day_name=bucket.day_name,
                    litres=float(bucket.litres),
                    revenue=float(bucket.revenue),
                )
                for bucket in aggregations.weekly_trend(week_records)
            ],
            top_customers=[
                TopCustomer(
                    customer_id=t.customer_id,
                    customer_name=names[t.customer_id].name,
                    customer_phone=names[t.customer_id].phone,
                    total_litres=float(t.total_litres),
                    total_amount=float(t.total_amount),
                )
                for t in top
                if t.customer_id in names
            ],
        )

    async def monthly_comparison(
        self,
        db: AsyncSession,
        caller: Caller,
        months: int | None = None,
        now: datetime | None = None,
    ) -> MonthlyComparisonResponse:
        """Delivered totals per calendar month over the last ``months`` x 30 days."""
        months = months or self.settings.analytics_default_comparison_months
        now = now or datetime.now()
        records = await self._delivered(
            db, caller, DeliveryRecord.date >= now - timedelta(days=months * 30)
        )
        buckets = aggregations.group_by_month(records)

        logger.info("analytics.monthly_comparison_computed", months=months, buckets=len(buckets))
        return MonthlyComparisonResponse(
            months_back=months,
            monthly_comparison=[
                MonthComparison(
                    month=b.label,
                    year=b.year,
                    month_number=b.month,
                    total_litres=float(b.total_litres),
                    total_revenue=float(b.total_revenue),
                    delivery_count=b.delivery_count,
                )
                for b in buckets
            ],
        )

    async def area_wise(
        self,
        db: AsyncSession,
        caller: Caller,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> AreaWiseResponse:
        """Per-area totals over Active customers, highest revenue first."""
        customer_stmt = scope_query(
            select(Customer.id, Customer.area).where(
                Customer.status == CustomerStatus.ACTIVE.value
            ),
            caller,
        )
        customer_areas = {row.id: row.area for row in (await db.execute(customer_stmt)).all()}

        records: Sequence[DeliveryRecord] = []
        if customer_areas:
            records = await self._delivered(
                db,
                caller,
                DeliveryRecord.customer_id.in_(list(customer_areas)),
                *self._range(start_date, end_date),
            )

        return AreaWiseResponse(
            area_stats=[
                AreaStat(
                    area=t.area,
                    customer_count=t.customer_count,
                    total_litres=float(t.total_litres),
                    total_revenue=float(t.total_revenue),
                    delivery_count=t.delivery_count,
                )
                for t in aggregations.area_wise(customer_areas, records)
            ]
        )

    async def delivery_performance(
        self,
        db: AsyncSession,
        caller: Caller,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> DeliveryPerformanceResponse:
        """Delivered totals per staff member, most deliveries first.

        Staff ids without a staff row are kept with null names.
        """
        records = await self._delivered(db, caller, *self._range(start_date, end_date))
        grouped = aggregations.delivery_performance(records)

        staff_ids = [t.staff_id for t in grouped if t.staff_id is not None]
        staff: dict[str, Staff] = {}
        if staff_ids:
            stmt = select(Staff).where(Staff.id.in_(staff_ids))
            staff = {s.id: s for s in (await db.execute(stmt)).scalars().all()}

        performance = []
        for totals in grouped:
            member = staff.get(totals.staff_id) if totals.staff_id else None
            performance.append(
                StaffPerformance(
                    staff_id=totals.staff_id,
                    staff_name=member.full_name if member else None,
                    staff_username=member.username if member else None,
                    total_deliveries=totals.total_deliveries,
                    total_litres=float(totals.total_litres),
                    total_revenue=float(totals.total_revenue),
                    avg_litres_per_delivery=float(totals.avg_litres_per_delivery),
                )
            )
        return DeliveryPerformanceResponse(performance=performance)

    async def customer_retention(
        self,
        db: AsyncSession,
        caller: Caller,
        now: datetime | None = None,
    ) -> RetentionResponse:
        """Active, new and churned customers over two trailing windows.

        With a window of W days: recently active customers have a Delivered
        record in [now - W, now]; previously active ones in [now - 2W, now - W).
        """
        now = now or datetime.now()
        window = timedelta(days=self.settings.analytics_window_days)
        recent_start = now - window
        previous_start = now - 2 * window

        new_stmt = scope_query(
            select(func.count(Customer.id)).where(
                Customer.status == CustomerStatus.ACTIVE.value,
                Customer.start_date >= recent_start,
            ),
            caller,
        )
        new_customers = (await db.execute(new_stmt)).scalar_one()

        records = await self._delivered(db, caller, DeliveryRecord.date >= previous_start)
        recently = {r.customer_id for r in records if r.date >= recent_start}
        previously = {r.customer_id for r in records if r.date < recent_start}
        result = aggregations.retention(previously, recently)

        logger.info(
            "analytics.retention_computed",
            previously_active=len(previously),
            recently_active=len(recently),
            churned=result.churned,
        )
        return RetentionResponse(
            active_customers=await self._count_active(db, caller),
            new_customers=new_customers,
            churned_customers=result.churned,
            retention_rate=result.rate,
        )

    async def payment_trends(
        self,
        db: AsyncSession,
        caller: Caller,
    ) -> PaymentTrendsResponse:
        """Payment-status breakdown of all Delivered records plus monthly collections."""
        records = await self._delivered(db, caller)
        return PaymentTrendsResponse(
            payment_stats=[
                PaymentStat(
                    payment_status=t.payment_status,
                    count=t.count,
                    total_amount=float(t.total_amount),
                )
                for t in aggregations.payment_breakdown(records)
            ],
            monthly_payments=[
                MonthlyCollection(
                    year=b.year,
                    month=b.month,
                    collected_amount=float(b.total_revenue),
                    payment_count=b.delivery_count,
                )
                for b in aggregations.monthly_collections(
                    records, self.settings.analytics_payment_trend_months
                )
            ],
        )
