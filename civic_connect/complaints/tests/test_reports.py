from datetime import datetime, timedelta
from datetime import timezone as dt_timezone

from django.urls import reverse
from django.utils import timezone

from complaints.models import Complaint, ComplaintHelper, generate_complaint_code

from .base import ApiTestCase


class ComplaintCodeTests(ApiTestCase):
    def test_code_is_date_plus_last_six_millisecond_digits(self):
        moment = datetime(2026, 3, 5, 10, 15, 30, 123000, tzinfo=dt_timezone.utc)
        code = generate_complaint_code(moment)
        self.assertRegex(code, r"^CR20260305\d{6}$")
        self.assertEqual(code[-6:], str(int(moment.timestamp() * 1000))[-6:])

    def test_code_assigned_on_first_save(self):
        complaint = self.create_complaint()
        self.assertTrue(complaint.complaint_code.startswith("CR"))
        original = complaint.complaint_code
        complaint.title = "Renamed"
        complaint.save()
        self.assertEqual(complaint.complaint_code, original)


class CreateReportTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.url = reverse("complaints:report_collection")

    def payload(self, **overrides):
        data = {
            "title": "Pothole on Main St",
            "description": "Deep pothole near the bus stop.",
            "category": "Pothole",
            "priority": "high",
            "latitude": 28.61,
            "longitude": 77.20,
            "address": "Main St, Ward 3",
        }
        data.update(overrides)
        return data

    def test_citizen_creates_pending_report_with_exact_coordinates(self):
        response = self.post_json(self.url, self.payload(), user=self.citizen)

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["status"], "PENDING")
        self.assertTrue(body["complaint_code"])
        self.assertEqual(body["latitude"], 28.61)
        self.assertEqual(body["longitude"], 77.20)
        self.assertEqual(body["reporter_id"], self.citizen.id)

        complaint = Complaint.objects.get(pk=body["id"])
        self.assertEqual(complaint.latitude, 28.61)
        self.assertEqual(complaint.longitude, 77.20)

    def test_client_cannot_inject_reporter_or_status(self):
        response = self.post_json(
            self.url,
            self.payload(
                reporter=self.other_citizen.id,
                reporter_id=self.other_citizen.id,
                status="RESOLVED",
                complaint_code="FORGED",
            ),
            user=self.citizen,
        )

        self.assertEqual(response.status_code, 201)
        complaint = Complaint.objects.get(pk=response.json()["id"])
        self.assertEqual(complaint.reporter, self.citizen)
        self.assertEqual(complaint.status, Complaint.Status.PENDING)
        self.assertNotEqual(complaint.complaint_code, "FORGED")

    def test_location_is_optional(self):
        data = self.payload()
        del data["latitude"], data["longitude"]
        response = self.post_json(self.url, data, user=self.citizen)
        self.assertEqual(response.status_code, 201)
        self.assertIsNone(response.json()["latitude"])
        self.assertIsNone(response.json()["longitude"])

    def test_single_axis_location_rejected(self):
        data = self.payload()
        del data["longitude"]
        response = self.post_json(self.url, data, user=self.citizen)
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Complaint.objects.exists())

    def test_out_of_range_coordinates_rejected(self):
        response = self.post_json(self.url, self.payload(latitude=123.0), user=self.citizen)
        self.assertEqual(response.status_code, 400)

    def test_missing_required_fields_rejected(self):
        for field in ("title", "description", "category", "priority"):
            data = self.payload()
            del data[field]
            response = self.post_json(self.url, data, user=self.citizen)
            self.assertEqual(response.status_code, 400, field)
            self.assertIn(field, response.json()["details"])
        self.assertFalse(Complaint.objects.exists())

    def test_unknown_priority_rejected(self):
        response = self.post_json(self.url, self.payload(priority="urgent"), user=self.citizen)
        self.assertEqual(response.status_code, 400)

    def test_image_url_is_stored(self):
        response = self.post_json(
            self.url,
            self.payload(image_url="https://images.example.com/reports/pothole.jpg"),
            user=self.citizen,
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["image_url"], "https://images.example.com/reports/pothole.jpg")

    def test_image_url_without_scheme_assumes_https(self):
        response = self.post_json(self.url, self.payload(image_url="images.example.com/pothole.jpg"), user=self.citizen)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["image_url"], "https://images.example.com/pothole.jpg")

    def test_blank_image_url_is_stored_as_null(self):
        response = self.post_json(self.url, self.payload(image_url=""), user=self.citizen)
        self.assertEqual(response.status_code, 201)
        self.assertIsNone(Complaint.objects.get(pk=response.json()["id"]).image_url)

    def test_token_for_deleted_account_is_unauthorized(self):
        headers = self.auth(self.citizen)
        self.citizen.delete()
        response = self.client.post(self.url, data=self.payload(), content_type="application/json", **headers)
        self.assertEqual(response.status_code, 401)
        self.assertFalse(Complaint.objects.exists())

    def test_only_citizens_can_create(self):
        for user in (self.ngo, self.admin):
            response = self.post_json(self.url, self.payload(), user=user)
            self.assertEqual(response.status_code, 403)
        self.assertFalse(Complaint.objects.exists())

    def test_anonymous_create_is_unauthorized(self):
        response = self.post_json(self.url, self.payload())
        self.assertEqual(response.status_code, 401)


class ListReportTests(ApiTestCase):
    def test_citizen_only_sees_own_reports_newest_first(self):
        older = self.create_complaint(title="Older")
        newer = self.create_complaint(title="Newer")
        Complaint.objects.filter(pk=older.pk).update(created_at=timezone.now() - timedelta(days=1))
        self.create_complaint(reporter=self.other_citizen, title="Not mine")

        response = self.get_json(reverse("complaints:my_reports"), user=self.citizen)

        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["id"] for item in response.json()], [newer.id, older.id])

    def test_own_reports_ignore_client_supplied_owner(self):
        foreign = self.create_complaint(reporter=self.other_citizen)
        response = self.get_json(
            reverse("complaints:my_reports"),
            user=self.citizen,
            data={"reporter": self.other_citizen.id, "reporter_id": self.other_citizen.id, "q": foreign.complaint_code},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_own_reports_forbidden_for_other_roles(self):
        for user in (self.ngo, self.admin):
            self.assertEqual(self.get_json(reverse("complaints:my_reports"), user=user).status_code, 403)

    def test_all_reports_visible_to_every_role(self):
        self.create_complaint()
        self.create_complaint(reporter=self.other_citizen)
        for user in (self.citizen, self.ngo, self.admin):
            response = self.get_json(reverse("complaints:all_reports"), user=user)
            self.assertEqual(response.status_code, 200)
            self.assertEqual(len(response.json()), 2)
            self.assertNotIn("helpers", response.json()[0])

    def test_all_reports_require_token(self):
        self.assertEqual(self.client.get(reverse("complaints:all_reports")).status_code, 401)

    def test_admin_listing_includes_helpers_with_ngo_contact(self):
        complaint = self.create_complaint()
        ComplaintHelper.objects.create(complaint=complaint, ngo=self.ngo, message="On our way")

        response = self.get_json(reverse("complaints:report_collection"), user=self.admin)

        self.assertEqual(response.status_code, 200)
        helpers = response.json()[0]["helpers"]
        self.assertEqual(len(helpers), 1)
        self.assertEqual(helpers[0]["status"], "HELPING")
        self.assertEqual(
            helpers[0]["ngo"],
            {
                "id": self.ngo.id,
                "name": "Helping Hands",
                "email": "ngo@example.com",
                "phone": "9990001111",
                "organization": "Helping Hands Foundation",
                "service_area": "Central District",
            },
        )

    def test_admin_listing_forbidden_for_citizens_and_ngos(self):
        for user in (self.citizen, self.ngo):
            self.assertEqual(self.get_json(reverse("complaints:report_collection"), user=user).status_code, 403)

    def test_ngo_listing_returns_every_report_regardless_of_service_area(self):
        self.create_complaint(address="Far North Ward")
        self.create_complaint(reporter=self.other_citizen, address="South Ward")
        response = self.get_json(reverse("complaints:ngo_reports"), user=self.ngo)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 2)

    def test_ngo_listing_forbidden_for_other_roles(self):
        for user in (self.citizen, self.admin):
            self.assertEqual(self.get_json(reverse("complaints:ngo_reports"), user=user).status_code, 403)

    def test_filters_narrow_listing(self):
        self.create_complaint(category="Pothole", priority="high")
        self.create_complaint(category="Garbage", priority="low")
        self.create_complaint(category="Pothole", priority="low", status=Complaint.Status.RESOLVED)

        response = self.get_json(
            reverse("complaints:all_reports"),
            user=self.ngo,
            data={"category": "Pothole", "status": "PENDING"},
        )
        self.assertEqual(len(response.json()), 1)
        self.assertEqual(response.json()[0]["priority"], "high")

    def test_malformed_date_filter_is_ignored(self):
        self.create_complaint()
        response = self.get_json(reverse("complaints:all_reports"), user=self.ngo, data={"start_date": "yesterday"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 1)


class UpdateStatusTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.complaint = self.create_complaint(latitude=28.61, longitude=77.20)
        Complaint.objects.filter(pk=self.complaint.pk).update(
            created_at=timezone.now() - timedelta(hours=2),
            updated_at=timezone.now() - timedelta(hours=2),
        )
        self.complaint.refresh_from_db()
        self.url = reverse("complaints:report_status", kwargs={"pk": self.complaint.pk})

    def test_admin_resolves_report_and_every_role_sees_it(self):
        created_at = self.complaint.created_at

        response = self.patch_json(self.url, {"status": "RESOLVED"}, user=self.admin)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "RESOLVED")
        self.complaint.refresh_from_db()
        self.assertEqual(self.complaint.created_at, created_at)
        self.assertGreater(self.complaint.updated_at, created_at)
        for user in (self.citizen, self.ngo, self.admin):
            listing = self.get_json(reverse("complaints:all_reports"), user=user).json()
            self.assertEqual(listing[0]["status"], "RESOLVED")

    def test_any_status_may_follow_any_other(self):
        for status in ("RESOLVED", "PENDING", "REJECTED", "ASSIGNED", "IN_PROGRESS"):
            response = self.patch_json(self.url, {"status": status}, user=self.admin)
            self.assertEqual(response.status_code, 200)
            self.complaint.refresh_from_db()
            self.assertEqual(self.complaint.status, status)

    def test_non_admin_forbidden(self):
        for user in (self.citizen, self.other_citizen, self.ngo):
            response = self.patch_json(self.url, {"status": "RESOLVED"}, user=user)
            self.assertEqual(response.status_code, 403)
        self.complaint.refresh_from_db()
        self.assertEqual(self.complaint.status, Complaint.Status.PENDING)

    def test_status_outside_closed_set_rejected_and_unchanged(self):
        for status in ("DONE", "resolved", "", None):
            response = self.patch_json(self.url, {"status": status}, user=self.admin)
            self.assertEqual(response.status_code, 400)
        self.complaint.refresh_from_db()
        self.assertEqual(self.complaint.status, Complaint.Status.PENDING)

    def test_unknown_report_not_found(self):
        url = reverse("complaints:report_status", kwargs={"pk": self.complaint.pk + 100})
        response = self.patch_json(url, {"status": "RESOLVED"}, user=self.admin)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "Report not found")


class AssignDepartmentTests(ApiTestCase):
    def test_admin_assigns_and_clears_department(self):
        complaint = self.create_complaint()
        url = reverse("complaints:report_department", kwargs={"pk": complaint.pk})

        response = self.patch_json(url, {"assigned_department": "  Public Works "}, user=self.admin)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["assigned_department"], "Public Works")

        self.patch_json(url, {"assigned_department": ""}, user=self.admin)
        complaint.refresh_from_db()
        self.assertIsNone(complaint.assigned_department)

    def test_non_admin_forbidden(self):
        complaint = self.create_complaint()
        url = reverse("complaints:report_department", kwargs={"pk": complaint.pk})
        response = self.patch_json(url, {"assigned_department": "Roads"}, user=self.citizen)
        self.assertEqual(response.status_code, 403)
