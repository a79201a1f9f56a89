from django.core.management.base import BaseCommand

from complaints.models import Complaint, ComplaintHelper, User

ADMIN_EMAIL = "admin@civicconnect.local"
ADMIN_PASSWORD = "admin123"


class Command(BaseCommand):
    help = "Seed the database with sample users, complaints and an NGO helper."

    def handle(self, *args, **options):
        # Admin rows are provisioned directly with a plaintext password.
        admin_user, created_admin = User.objects.get_or_create(
            email=ADMIN_EMAIL,
            defaults={"name": "Admin User", "role": User.Role.ADMIN, "password": ADMIN_PASSWORD},
        )

        ngo_user, created_ngo = User.objects.get_or_create(
            email="help@ngoaid.local",
            defaults={
                "name": "Helping Hands",
                "role": User.Role.NGO,
                "organization": "Helping Hands Foundation",
                "service_area": "Central District",
            },
        )
        if created_ngo:
            ngo_user.set_password("NgoPass12345!")
            ngo_user.save()

        citizen_user, created_citizen = User.objects.get_or_create(
            email="citizen@civicconnect.local",
            defaults={"name": "Citizen User", "role": User.Role.CITIZEN},
        )
        if created_citizen:
            citizen_user.set_password("CitizenPass123!")
            citizen_user.save()

        sample_definitions = [
            {
                "title": "Overflowing Garbage Bins",
                "description": "Municipal bins are not being cleared regularly in Zone 2.",
                "category": "Garbage",
                "priority": Complaint.Priority.HIGH,
                "address": "Zone 2 - Main Street",
                "latitude": 28.6139,
                "longitude": 77.2090,
                "status": Complaint.Status.PENDING,
                "assigned_department": None,
            },
            {
                "title": "Pothole on Ring Road",
                "description": "Large potholes causing traffic congestion and accidents.",
                "category": "Pothole",
                "priority": Complaint.Priority.HIGH,
                "address": "Ring Road Block A",
                "latitude": 28.5672,
                "longitude": 77.2100,
                "status": Complaint.Status.IN_PROGRESS,
                "assigned_department": "Public Works",
            },
            {
                "title": "Streetlights Not Working",
                "description": "Streetlights remain off at night near the public park.",
                "category": "Streetlight",
                "priority": Complaint.Priority.MEDIUM,
                "address": "Public Park Road",
                "latitude": None,
                "longitude": None,
                "status": Complaint.Status.RESOLVED,
                "assigned_department": "Electricity",
            },
        ]

        created_count = 0
        for item in sample_definitions:
            title = item.pop("title")
            complaint, created = Complaint.objects.get_or_create(
                reporter=citizen_user,
                title=title,
                defaults=item,
            )
            if created:
                created_count += 1
                if complaint.status == Complaint.Status.IN_PROGRESS:
                    ComplaintHelper.objects.get_or_create(
                        complaint=complaint,
                        ngo=ngo_user,
                        defaults={"message": "Volunteers available this weekend."},
                    )

        self.stdout.write(self.style.SUCCESS("Seed complete."))
        self.stdout.write(
            self.style.WARNING(
                f"Credentials: {ADMIN_EMAIL} / {ADMIN_PASSWORD} (plaintext admin), "
                "help@ngoaid.local / NgoPass12345!, "
                "citizen@civicconnect.local / CitizenPass123!"
            )
        )
        if created_admin:
            self.stdout.write(self.style.WARNING("Admin password is stored unhashed; rotate it before production use."))
        self.stdout.write(self.style.SUCCESS(f"New complaints created: {created_count}"))
