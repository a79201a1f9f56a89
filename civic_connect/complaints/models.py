from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone


class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("An email address is required.")
        user = self.model(email=self.normalize_email(email).lower(), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("role", User.Role.CITIZEN)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields["role"] = User.Role.ADMIN
        return self._create_user(email, password, **extra_fields)


class User(AbstractBaseUser):
    class Role(models.TextChoices):
        CITIZEN = "CITIZEN", "Citizen"
        NGO = "NGO", "NGO"
        ADMIN = "ADMIN", "Admin"

    name = models.CharField(max_length=120)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.CITIZEN)
    organization = models.CharField(max_length=255, blank=True)
    service_area = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} <{self.email}>"

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.is_admin

    def has_perm(self, perm, obj=None) -> bool:
        return self.is_active and self.is_admin

    def has_module_perms(self, app_label) -> bool:
        return self.is_active and self.is_admin


def generate_complaint_code(moment=None) -> str:
    """Human-readable code: ``CR`` + local date + last six digits of the epoch milliseconds.

    Two reports created in the same millisecond (modulo 10**6 ms) on the same day
    share a code, so it is indexed but never used as a key.
    """
    moment = moment or timezone.now()
    local = timezone.localtime(moment)
    epoch_ms = str(int(moment.timestamp() * 1000))
    return f"CR{local:%Y%m%d}{epoch_ms[-6:]}"


class Complaint(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        ASSIGNED = "ASSIGNED", "Assigned"
        IN_PROGRESS = "IN_PROGRESS", "In Progress"
        RESOLVED = "RESOLVED", "Resolved"
        REJECTED = "REJECTED", "Rejected"

    class Priority(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"

    complaint_code = models.CharField(max_length=24, db_index=True, blank=True)
    title = models.CharField(max_length=255)
    description = models.TextField()
    category = models.CharField(max_length=100)
    priority = models.CharField(max_length=10, choices=Priority.choices)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    address = models.CharField(max_length=255, blank=True)
    latitude = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(-90.0), MaxValueValidator(90.0)],
    )
    longitude = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(-180.0), MaxValueValidator(180.0)],
    )
    image_url = models.URLField(max_length=500, null=True, blank=True)
    assigned_department = models.CharField(max_length=120, null=True, blank=True)
    reporter = models.ForeignKey(
        "complaints.User",
        on_delete=models.CASCADE,
        related_name="complaints",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(latitude__isnull=True, longitude__isnull=True)
                    | models.Q(latitude__isnull=False, longitude__isnull=False)
                ),
                name="complaint_location_both_or_neither",
            ),
        ]

    def __str__(self):
        return self.complaint_code or f"Complaint #{self.pk}"

    def save(self, *args, **kwargs):
        if not self.complaint_code:
            self.complaint_code = generate_complaint_code()
        super().save(*args, **kwargs)


class ComplaintHelper(models.Model):
    class Status(models.TextChoices):
        HELPING = "HELPING", "Helping"
        CONTACTED = "CONTACTED", "Contacted"
        DECLINED = "DECLINED", "Declined"

    complaint = models.ForeignKey(
        Complaint,
        on_delete=models.CASCADE,
        related_name="helpers",
    )
    ngo = models.ForeignKey(
        "complaints.User",
        on_delete=models.CASCADE,
        related_name="helping",
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.HELPING,
    )
    message = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["complaint", "ngo"], name="unique_helper_per_complaint"),
        ]

    def __str__(self):
        return f"{self.ngo.name} - {self.complaint}"
