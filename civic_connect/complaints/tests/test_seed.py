from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse

from complaints.models import Complaint, ComplaintHelper, User


class SeedDataTests(TestCase):
    def seed(self):
        call_command("seed_data", stdout=StringIO())

    def test_seed_creates_accounts_reports_and_helper(self):
        self.seed()

        self.assertEqual(User.objects.get(email="admin@civicconnect.local").role, User.Role.ADMIN)
        self.assertEqual(User.objects.get(email="help@ngoaid.local").role, User.Role.NGO)
        self.assertEqual(Complaint.objects.count(), 3)
        self.assertEqual(ComplaintHelper.objects.count(), 1)

    def test_seed_is_idempotent(self):
        self.seed()
        self.seed()
        self.assertEqual(User.objects.count(), 3)
        self.assertEqual(Complaint.objects.count(), 3)

    def test_seeded_accounts_can_log_in(self):
        self.seed()
        credentials = [
            ("admin@civicconnect.local", "admin123"),
            ("help@ngoaid.local", "NgoPass12345!"),
            ("citizen@civicconnect.local", "CitizenPass123!"),
        ]
        for email, password in credentials:
            response = self.client.post(
                reverse("complaints:login"),
                data={"email": email, "password": password},
                content_type="application/json",
            )
            self.assertEqual(response.status_code, 200, email)
