import logging

from django.conf import settings
from django.contrib.auth.hashers import check_password, identify_hasher
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.crypto import constant_time_compare

from . import analytics, exports
from . import serializers as serialize
from .api import ApiView
from .exceptions import Conflict, Unauthorized, ValidationFailed
from .forms import (
    ComplaintFilterForm,
    ComplaintForm,
    DateRangeForm,
    DepartmentForm,
    HelpActionForm,
    HelperStatusForm,
    LoginForm,
    ProfileForm,
    RegisterForm,
    StatusUpdateForm,
)
from .models import Complaint, ComplaintHelper, User
from .tokens import issue_token

logger = logging.getLogger(__name__)

CITIZEN = frozenset({User.Role.CITIZEN})
NGO = frozenset({User.Role.NGO})
ADMIN = frozenset({User.Role.ADMIN})


def apply_complaint_filters(queryset, params):
    form = ComplaintFilterForm(params)
    form.is_valid()
    filters = form.cleaned_data

    query = (filters.get("q") or "").strip()
    if query:
        queryset = queryset.filter(
            Q(title__icontains=query)
            | Q(complaint_code__icontains=query)
            | Q(address__icontains=query)
        )
    for field in ("category", "status", "priority"):
        value = (filters.get(field) or "").strip()
        if value:
            queryset = queryset.filter(**{field: value})
    # Malformed dates are dropped by the form and simply not applied.
    if filters.get("start_date"):
        queryset = queryset.filter(created_at__date__gte=filters["start_date"])
    if filters.get("end_date"):
        queryset = queryset.filter(created_at__date__lte=filters["end_date"])
    return queryset


def password_matches(user, raw_password) -> bool:
    if user.role != User.Role.ADMIN:
        return check_password(raw_password, user.password)
    try:
        identify_hasher(user.password)
    except ValueError:
        # Operator-provisioned admin rows store the password as plain text.
        if not settings.ALLOW_PLAINTEXT_ADMIN_PASSWORDS:
            logger.warning("Plaintext admin password rejected for user %s", user.pk)
            return False
        matched = constant_time_compare(raw_password, user.password)
        if matched:
            logger.warning("Admin %s signed in with a plaintext stored password", user.pk)
        return matched
    return check_password(raw_password, user.password)


def auth_payload(user) -> dict:
    return {"token": issue_token(user), "user": serialize.public_user(user)}


class HealthView(ApiView):
    authentication_required = False

    def get(self, request):
        return JsonResponse({"status": "ok"})


class RegisterView(ApiView):
    authentication_required = False

    def post(self, request):
        form = RegisterForm(self.get_payload())
        if not form.is_valid():
            raise ValidationFailed.from_form(form, "Missing or invalid registration fields")
        if User.objects.filter(email__iexact=form.cleaned_data["email"]).exists():
            raise Conflict("Email already in use")

        user = form.build_user()
        try:
            with transaction.atomic():
                user.save()
        except IntegrityError:
            raise Conflict("Email already in use")
        logger.info("Registered %s user %s", user.role, user.pk)
        return JsonResponse(auth_payload(user), status=201)


class LoginView(ApiView):
    authentication_required = False

    def post(self, request):
        form = LoginForm(self.get_payload())
        if not form.is_valid():
            raise ValidationFailed.from_form(form, "Missing credentials")

        user = User.objects.filter(email__iexact=form.cleaned_data["email"], is_active=True).first()
        if user is None or not password_matches(user, form.cleaned_data["password"]):
            logger.info("Failed login for %s", form.cleaned_data["email"])
            raise Unauthorized("Invalid credentials")

        user.last_login = timezone.now()
        user.save(update_fields=["last_login"])
        return JsonResponse(auth_payload(user))


class LogoutView(ApiView):
    authentication_required = False

    def post(self, request):
        # Tokens are stateless; the client discards its copy.
        return JsonResponse({"success": True})


class ProfileView(ApiView):
    def get(self, request):
        return JsonResponse(serialize.profile(self.get_caller()))

    def patch(self, request):
        user = self.get_caller()
        data = model_to_dict(user, fields=ProfileForm._meta.fields)
        data.update(self.get_payload())
        form = ProfileForm(data, instance=user)
        if not form.is_valid():
            raise ValidationFailed.from_form(form)
        user = form.save()
        return JsonResponse(serialize.profile(user))


class UserListView(ApiView):
    allowed_roles = {"get": ADMIN}
    verify_role_freshly = True

    def get(self, request):
        users = User.objects.annotate(complaint_count=Count("complaints")).order_by("-created_at")
        return JsonResponse(
            [
                {
                    **serialize.public_user(user),
                    "created_at": serialize.iso(user.created_at),
                    "updated_at": serialize.iso(user.updated_at),
                    "complaint_count": user.complaint_count,
                }
                for user in users
            ],
            safe=False,
        )


class ReportCollectionView(ApiView):
    allowed_roles = {"get": ADMIN, "post": CITIZEN}

    def get(self, request):
        queryset = Complaint.objects.prefetch_related("helpers__ngo")
        reports = apply_complaint_filters(queryset, request.GET)
        return JsonResponse([serialize.complaint_with_helpers(report) for report in reports], safe=False)

    def post(self, request):
        form = ComplaintForm(self.get_payload())
        if not form.is_valid():
            raise ValidationFailed.from_form(form, "Missing required fields")
        complaint = form.save(commit=False)
        complaint.reporter = self.get_caller()
        complaint.status = Complaint.Status.PENDING
        complaint.save()
        logger.info("Report %s created by user %s", complaint.complaint_code, complaint.reporter_id)
        return JsonResponse(serialize.complaint(complaint), status=201)


class MyReportListView(ApiView):
    allowed_roles = {"get": CITIZEN}

    def get(self, request):
        queryset = Complaint.objects.filter(reporter_id=request.auth.subject_id)
        reports = apply_complaint_filters(queryset, request.GET)
        return JsonResponse([serialize.complaint(report) for report in reports], safe=False)


class AllReportListView(ApiView):
    def get(self, request):
        reports = apply_complaint_filters(Complaint.objects.all(), request.GET)
        return JsonResponse([serialize.complaint(report) for report in reports], safe=False)


class NgoReportListView(ApiView):
    allowed_roles = {"get": NGO}
    verify_role_freshly = True

    def get(self, request):
        # Service area is recorded on the NGO profile but is not applied here.
        reports = apply_complaint_filters(Complaint.objects.all(), request.GET)
        return JsonResponse([serialize.complaint(report) for report in reports], safe=False)


class ReportStatusView(ApiView):
    allowed_roles = {"patch": ADMIN}
    not_found_message = "Report not found"

    def patch(self, request, pk):
        complaint = get_object_or_404(Complaint, pk=pk)
        form = StatusUpdateForm(self.get_payload())
        if not form.is_valid():
            raise ValidationFailed.from_form(form, "Invalid status")

        previous_status = complaint.status
        complaint.status = form.cleaned_data["status"]
        complaint.save(update_fields=["status", "updated_at"])
        logger.info(
            "Report %s status %s -> %s by admin %s",
            complaint.pk,
            previous_status,
            complaint.status,
            request.auth.subject_id,
        )
        return JsonResponse(serialize.complaint(complaint))


class ReportDepartmentView(ApiView):
    allowed_roles = {"patch": ADMIN}
    not_found_message = "Report not found"

    def patch(self, request, pk):
        complaint = get_object_or_404(Complaint, pk=pk)
        form = DepartmentForm(self.get_payload(), instance=complaint)
        if not form.is_valid():
            raise ValidationFailed.from_form(form)
        complaint = form.save()
        return JsonResponse(serialize.complaint(complaint))


class DashboardAnalyticsView(ApiView):
    allowed_roles = {"get": ADMIN}

    def get(self, request):
        return JsonResponse(analytics.dashboard_snapshot())


class HelpRequestView(ApiView):
    allowed_roles = {"post": NGO}
    not_found_message = "Report not found"
    verify_role_freshly = True

    def post(self, request, complaint_id):
        form = HelpActionForm(self.get_payload())
        if not form.is_valid():
            raise ValidationFailed.from_form(form, "Invalid action. Use 'add' or 'remove'")
        complaint = get_object_or_404(Complaint, pk=complaint_id)
        ngo = self.current_user

        if form.cleaned_data["action"] == HelpActionForm.ACTION_ADD:
            with transaction.atomic():
                helper, created = ComplaintHelper.objects.update_or_create(
                    complaint=complaint,
                    ngo=ngo,
                    defaults={
                        "status": ComplaintHelper.Status.HELPING,
                        "message": form.cleaned_data["message"],
                    },
                )
            logger.info("NGO %s helping with report %s (created=%s)", ngo.pk, complaint.pk, created)
            return JsonResponse(
                {
                    "success": True,
                    "message": "Successfully added as helper",
                    "helper": serialize.helper(helper),
                }
            )

        deleted, _ = ComplaintHelper.objects.filter(complaint=complaint, ngo=ngo).delete()
        logger.info("NGO %s stopped helping with report %s (removed=%s)", ngo.pk, complaint.pk, deleted)
        return JsonResponse({"success": True, "message": "Successfully removed as helper"})


class ComplaintHelperListView(ApiView):
    allowed_roles = {"get": ADMIN}
    verify_role_freshly = True

    def get(self, request, complaint_id):
        helpers = ComplaintHelper.objects.filter(complaint_id=complaint_id).select_related("ngo")
        return JsonResponse([serialize.helper(helper) for helper in helpers], safe=False)


class MyHelpingListView(ApiView):
    allowed_roles = {"get": NGO}
    verify_role_freshly = True

    def get(self, request):
        helpers = ComplaintHelper.objects.filter(ngo=self.current_user).select_related("complaint")
        return JsonResponse(
            [serialize.helper(helper, include_ngo=False, include_complaint=True) for helper in helpers],
            safe=False,
        )


class HelperStatusView(ApiView):
    allowed_roles = {"patch": ADMIN}
    not_found_message = "Helper not found"
    verify_role_freshly = True

    def patch(self, request, helper_id):
        helper = get_object_or_404(ComplaintHelper.objects.select_related("ngo"), pk=helper_id)
        form = HelperStatusForm(self.get_payload())
        if not form.is_valid():
            raise ValidationFailed.from_form(form, "Invalid helper status")

        helper.status = form.cleaned_data["status"]
        helper.save(update_fields=["status", "updated_at"])
        return JsonResponse(
            {
                "success": True,
                "message": "Helper status updated successfully",
                "helper": serialize.helper(helper),
            }
        )


class AnalyticsOverviewView(ApiView):
    allowed_roles = {"get": ADMIN}
    verify_role_freshly = True

    def get(self, request):
        return JsonResponse(analytics.overview())


class AnalyticsDetailedView(ApiView):
    allowed_roles = {"get": ADMIN}
    verify_role_freshly = True

    def get(self, request):
        form = DateRangeForm(request.GET)
        if not form.is_valid():
            raise ValidationFailed.from_form(form, "Invalid date range")
        return JsonResponse(
            analytics.detailed(
                start_date=form.cleaned_data.get("start_date"),
                end_date=form.cleaned_data.get("end_date"),
            )
        )


class ExportView(ApiView):
    allowed_roles = {"get": ADMIN}
    verify_role_freshly = True
    builders = {
        "reports-csv": exports.reports_csv,
        "reports-json": exports.reports_json,
        "map-geojson": exports.map_geojson,
        "map-csv": exports.map_csv,
        "analytics-csv": exports.analytics_csv,
    }
    export_name = None

    def get(self, request):
        logger.info("Export %s requested by admin %s", self.export_name, request.auth.subject_id)
        return self.builders[self.export_name]()
