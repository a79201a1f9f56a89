from django.urls import path

from .views import (
    AllReportListView,
    AnalyticsDetailedView,
    AnalyticsOverviewView,
    ComplaintHelperListView,
    DashboardAnalyticsView,
    ExportView,
    HelperStatusView,
    HelpRequestView,
    LoginView,
    LogoutView,
    MyHelpingListView,
    MyReportListView,
    NgoReportListView,
    ProfileView,
    RegisterView,
    ReportCollectionView,
    ReportDepartmentView,
    ReportStatusView,
    UserListView,
)

app_name = "complaints"

urlpatterns = [
    path("auth/register", RegisterView.as_view(), name="register"),
    path("auth/login", LoginView.as_view(), name="login"),
    path("auth/logout", LogoutView.as_view(), name="logout"),
    path("auth/me", ProfileView.as_view(), name="profile"),
    path("auth/users", UserListView.as_view(), name="user_list"),
    path("reports/", ReportCollectionView.as_view(), name="report_collection"),
    path("reports/me", MyReportListView.as_view(), name="my_reports"),
    path("reports/all", AllReportListView.as_view(), name="all_reports"),
    path("reports/for-ngo", NgoReportListView.as_view(), name="ngo_reports"),
    path("reports/analytics", DashboardAnalyticsView.as_view(), name="dashboard_analytics"),
    path("reports/<int:pk>/status", ReportStatusView.as_view(), name="report_status"),
    path("reports/<int:pk>/department", ReportDepartmentView.as_view(), name="report_department"),
    path("helpers/ngo/my-helping", MyHelpingListView.as_view(), name="my_helping"),
    path("helpers/<int:complaint_id>/help", HelpRequestView.as_view(), name="help_request"),
    path("helpers/<int:complaint_id>", ComplaintHelperListView.as_view(), name="complaint_helpers"),
    path("helpers/<int:helper_id>/status", HelperStatusView.as_view(), name="helper_status"),
    path("analytics/overview", AnalyticsOverviewView.as_view(), name="analytics_overview"),
    path("analytics/detailed", AnalyticsDetailedView.as_view(), name="analytics_detailed"),
    path("export/reports/csv", ExportView.as_view(export_name="reports-csv"), name="export_reports_csv"),
    path("export/reports/json", ExportView.as_view(export_name="reports-json"), name="export_reports_json"),
    path("export/map/geojson", ExportView.as_view(export_name="map-geojson"), name="export_map_geojson"),
    path("export/map/csv", ExportView.as_view(export_name="map-csv"), name="export_map_csv"),
    path("export/analytics/csv", ExportView.as_view(export_name="analytics-csv"), name="export_analytics_csv"),
]
