"""Read-side statistics over the complaint table.

Everything here is recomputed from the rows on each call; nothing is cached or
maintained incrementally.
"""

import calendar
import math
from collections import Counter, defaultdict
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Count
from django.utils import timezone

from .models import Complaint, User

SECONDS_PER_DAY = 60 * 60 * 24
TREND_MONTHS = 6

PERFORMANCE_BANDS = (
    (80, "Excellent"),
    (70, "Good"),
    (60, "Average"),
)


def half_up(value, places=0):
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def percentage(part, whole, places=2):
    if not whole:
        return 0
    return half_up(part / whole * 100, places)


def performance_label(resolution_rate) -> str:
    for threshold, label in PERFORMANCE_BANDS:
        if resolution_rate >= threshold:
            return label
    return "Needs Improvement"


def elapsed_days(created_at, updated_at) -> float:
    return (updated_at - created_at).total_seconds() / SECONDS_PER_DAY


def subtract_months(moment, months):
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def month_key(moment) -> str:
    return f"{timezone.localtime(moment):%Y-%m}"


def start_of_today(now=None):
    local_now = timezone.localtime(now or timezone.now())
    return local_now.replace(hour=0, minute=0, second=0, microsecond=0)


def grouped_counts(queryset, field):
    rows = queryset.values(field).annotate(count=Count("id")).order_by("-count", field)
    return [{field: row[field], "count": row["count"]} for row in rows]


def dashboard_snapshot(now=None) -> dict:
    complaints = Complaint.objects.all()
    status_counts = Counter(dict(complaints.values_list("status").annotate(count=Count("id")).order_by()))
    total = sum(status_counts.values())
    resolved = status_counts[Complaint.Status.RESOLVED]

    resolved_rows = complaints.filter(status=Complaint.Status.RESOLVED).values_list("created_at", "updated_at")
    whole_days = [math.ceil(elapsed_days(created, updated)) for created, updated in resolved_rows]
    average_days = sum(whole_days) / len(whole_days) if whole_days else 0

    return {
        "total_reports": total,
        "pending_reports": status_counts[Complaint.Status.PENDING],
        "in_progress_reports": status_counts[Complaint.Status.IN_PROGRESS],
        "resolved_reports": resolved,
        "resolved_today": complaints.filter(
            status=Complaint.Status.RESOLVED,
            created_at__gte=start_of_today(now),
        ).count(),
        "resolution_rate": percentage(resolved, total, places=0),
        "avg_resolution_time": half_up(average_days, 1),
        "category_stats": grouped_counts(complaints, "category"),
        "priority_stats": grouped_counts(complaints, "priority"),
        "status_stats": grouped_counts(complaints, "status"),
    }


def department_performance(complaints):
    rows = complaints.filter(assigned_department__isnull=False).values_list(
        "assigned_department", "status", "created_at", "updated_at"
    )
    totals = Counter()
    resolution_times = defaultdict(list)
    for department, status, created_at, updated_at in rows:
        totals[department] += 1
        if status == Complaint.Status.RESOLVED:
            resolution_times[department].append(elapsed_days(created_at, updated_at))

    performance = []
    for department, total in sorted(totals.items(), key=lambda item: (-item[1], item[0])):
        times = resolution_times[department]
        rate = len(times) / total * 100
        performance.append(
            {
                "department": department,
                "total_reports": total,
                "resolution_rate": half_up(rate, 2),
                "avg_response_time": half_up(sum(times) / len(times), 1) if times else 0,
                "performance": performance_label(rate),
            }
        )
    return performance


def monthly_trends(complaints, now=None, months=TREND_MONTHS):
    window_start = subtract_months(now or timezone.now(), months)
    submitted = Counter(
        month_key(created_at)
        for created_at in complaints.filter(created_at__gte=window_start).values_list("created_at", flat=True)
    )
    resolved = Counter(
        month_key(updated_at)
        for updated_at in complaints.filter(
            status=Complaint.Status.RESOLVED,
            updated_at__gte=window_start,
        ).values_list("updated_at", flat=True)
    )
    return [
        {"month": month, "submitted": submitted[month], "resolved": resolved[month]}
        for month in sorted(set(submitted) | set(resolved))
    ]


def overview(now=None) -> dict:
    complaints = Complaint.objects.all()
    total = complaints.count()
    resolved_rows = list(
        complaints.filter(status=Complaint.Status.RESOLVED).values_list("created_at", "updated_at")
    )
    resolved = len(resolved_rows)
    average_days = (
        sum(elapsed_days(created, updated) for created, updated in resolved_rows) / resolved if resolved else 0
    )

    def breakdown(field):
        return [
            {field: row[field], "count": row["count"], "percentage": percentage(row["count"], total)}
            for row in grouped_counts(complaints, field)
        ]

    return {
        "overview": {
            "total_reports": total,
            "resolved_reports": resolved,
            "resolution_rate": percentage(resolved, total),
            "avg_resolution_time": half_up(average_days, 1),
            "total_users": User.objects.exclude(role=User.Role.ADMIN).count(),
        },
        "reports_by_status": breakdown("status"),
        "reports_by_category": breakdown("category"),
        "department_performance": department_performance(complaints),
        "monthly_trends": monthly_trends(complaints, now=now),
    }


def detailed(start_date=None, end_date=None, top_reporters=10) -> dict:
    complaints = Complaint.objects.select_related("reporter").annotate(helpers_count=Count("helpers"))
    if start_date and end_date:
        complaints = complaints.filter(created_at__date__gte=start_date, created_at__date__lte=end_date)
    reports = list(complaints)

    statuses = Counter(report.status for report in reports)
    total = len(reports)
    reporters = {}
    reporter_counts = Counter()
    for report in reports:
        reporter_counts[report.reporter_id] += 1
        reporters[report.reporter_id] = report.reporter

    return {
        "time_range": {
            "start_date": start_date.isoformat() if start_date and end_date else None,
            "end_date": end_date.isoformat() if start_date and end_date else None,
        },
        "summary": {
            "total_reports": total,
            "resolved_reports": statuses[Complaint.Status.RESOLVED],
            "pending_reports": statuses[Complaint.Status.PENDING],
            "in_progress_reports": statuses[Complaint.Status.IN_PROGRESS],
            "resolution_rate": percentage(statuses[Complaint.Status.RESOLVED], total),
        },
        "distributions": {
            "priority": dict(Counter(report.priority for report in reports)),
            "category": dict(Counter(report.category for report in reports)),
        },
        "top_reporters": [
            {
                "name": reporters[reporter_id].name,
                "email": reporters[reporter_id].email,
                "count": count,
            }
            for reporter_id, count in reporter_counts.most_common(top_reporters)
        ],
        "reports": [
            {
                "id": report.id,
                "complaint_code": report.complaint_code,
                "title": report.title,
                "category": report.category,
                "priority": report.priority,
                "status": report.status,
                "created_at": report.created_at.isoformat(),
                "updated_at": report.updated_at.isoformat(),
                "reporter": {"name": report.reporter.name, "email": report.reporter.email},
                "helpers_count": report.helpers_count,
                "assigned_department": report.assigned_department,
            }
            for report in reports
        ],
    }
