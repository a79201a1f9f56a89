import csv

from django.http import HttpResponse, JsonResponse
from django.utils import timezone

from . import analytics
from .models import Complaint
from .serializers import iso

REPORT_CSV_HEADERS = [
    "Complaint ID",
    "Title",
    "Description",
    "Category",
    "Priority",
    "Status",
    "Address",
    "Latitude",
    "Longitude",
    "Image URL",
    "Assigned Department",
    "Reporter Name",
    "Reporter Email",
    "Reporter Phone",
    "Created At",
    "Updated At",
    "Helpers Count",
    "Helper Organizations",
]

MAP_CSV_HEADERS = [
    "Complaint ID",
    "Title",
    "Category",
    "Priority",
    "Status",
    "Address",
    "Latitude",
    "Longitude",
    "Image URL",
    "Assigned Department",
    "Reporter Name",
    "Reporter Email",
    "Created At",
    "Updated At",
]


def export_filename(prefix, extension, now=None) -> str:
    return f"{prefix}_{timezone.localdate(now):%Y-%m-%d}.{extension}"


def attachment(response, filename):
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


def reports_for_export():
    return Complaint.objects.select_related("reporter").prefetch_related("helpers__ngo")


def located_reports():
    return Complaint.objects.select_related("reporter").filter(latitude__isnull=False, longitude__isnull=False)


def helper_organizations(report) -> str:
    return "; ".join(helper.ngo.organization or helper.ngo.name for helper in report.helpers.all())


def optional(value):
    return "" if value is None else value


def reports_csv():
    response = HttpResponse(content_type="text/csv")
    writer = csv.writer(response)
    writer.writerow(REPORT_CSV_HEADERS)
    for report in reports_for_export():
        writer.writerow(
            [
                report.complaint_code,
                report.title,
                report.description,
                report.category,
                report.priority,
                report.status,
                report.address,
                optional(report.latitude),
                optional(report.longitude),
                optional(report.image_url),
                optional(report.assigned_department),
                report.reporter.name,
                report.reporter.email,
                report.reporter.phone,
                iso(report.created_at),
                iso(report.updated_at),
                len(report.helpers.all()),
                helper_organizations(report),
            ]
        )
    return attachment(response, export_filename("civic_reports", "csv"))


def reports_json():
    reports = list(reports_for_export())
    payload = {
        "export_date": timezone.now().isoformat(),
        "total_reports": len(reports),
        "reports": [
            {
                "complaint_code": report.complaint_code,
                "title": report.title,
                "description": report.description,
                "category": report.category,
                "priority": report.priority,
                "status": report.status,
                "address": report.address,
                "location": {"latitude": report.latitude, "longitude": report.longitude},
                "image_url": report.image_url,
                "assigned_department": report.assigned_department,
                "reporter": {
                    "name": report.reporter.name,
                    "email": report.reporter.email,
                    "phone": report.reporter.phone,
                },
                "helpers": [
                    {
                        "name": helper.ngo.name,
                        "organization": helper.ngo.organization,
                        "status": helper.status,
                        "message": helper.message,
                    }
                    for helper in report.helpers.all()
                ],
                "timestamps": {
                    "created_at": iso(report.created_at),
                    "updated_at": iso(report.updated_at),
                },
            }
            for report in reports
        ],
    }
    return attachment(JsonResponse(payload), export_filename("civic_reports", "json"))


def map_geojson():
    features = [
        {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [report.longitude, report.latitude]},
            "properties": {
                "complaint_code": report.complaint_code,
                "title": report.title,
                "description": report.description,
                "category": report.category,
                "priority": report.priority,
                "status": report.status,
                "address": report.address,
                "image_url": report.image_url,
                "assigned_department": report.assigned_department,
                "reporter": {"name": report.reporter.name, "email": report.reporter.email},
                "created_at": iso(report.created_at),
                "updated_at": iso(report.updated_at),
            },
        }
        for report in located_reports()
    ]
    response = JsonResponse({"type": "FeatureCollection", "features": features}, content_type="application/geo+json")
    return attachment(response, export_filename("civic_map_data", "geojson"))


def map_csv():
    response = HttpResponse(content_type="text/csv")
    writer = csv.writer(response)
    writer.writerow(MAP_CSV_HEADERS)
    for report in located_reports():
        writer.writerow(
            [
                report.complaint_code,
                report.title,
                report.category,
                report.priority,
                report.status,
                report.address,
                report.latitude,
                report.longitude,
                optional(report.image_url),
                optional(report.assigned_department),
                report.reporter.name,
                report.reporter.email,
                iso(report.created_at),
                iso(report.updated_at),
            ]
        )
    return attachment(response, export_filename("civic_map_data", "csv"))


def analytics_csv():
    summary = analytics.overview()
    totals = summary["overview"]
    department_rows = analytics.grouped_counts(
        Complaint.objects.filter(assigned_department__isnull=False), "assigned_department"
    )

    response = HttpResponse(content_type="text/csv")
    writer = csv.writer(response)
    writer.writerow(["Analytics Report"])
    writer.writerow(["Generated on", timezone.now().isoformat()])
    writer.writerow([])
    writer.writerow(["Summary"])
    writer.writerow(["Total Reports", totals["total_reports"]])
    writer.writerow(["Resolved Reports", totals["resolved_reports"]])
    writer.writerow(["Resolution Rate", f"{totals['resolution_rate']:.2f}%"])
    writer.writerow([])
    writer.writerow(["Reports by Category"])
    writer.writerow(["Category", "Count", "Percentage"])
    for row in summary["reports_by_category"]:
        writer.writerow([row["category"], row["count"], f"{row['percentage']:.2f}%"])
    writer.writerow([])
    writer.writerow(["Reports by Status"])
    writer.writerow(["Status", "Count", "Percentage"])
    for row in summary["reports_by_status"]:
        writer.writerow([row["status"], row["count"], f"{row['percentage']:.2f}%"])
    writer.writerow([])
    writer.writerow(["Reports by Department"])
    writer.writerow(["Department", "Count", "Percentage"])
    for row in department_rows:
        share = analytics.percentage(row["count"], totals["total_reports"])
        writer.writerow([row["assigned_department"], row["count"], f"{share:.2f}%"])
    return attachment(response, export_filename("civic_analytics", "csv"))
