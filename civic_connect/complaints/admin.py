from django.contrib import admin
from django.db import models

from .models import Complaint, ComplaintHelper, User


class ComplaintHelperInline(admin.TabularInline):
    model = ComplaintHelper
    extra = 0
    readonly_fields = ("created_at", "updated_at")
    raw_id_fields = ("ngo",)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "role", "organization", "is_active", "created_at")
    list_filter = ("role", "is_active")
    search_fields = ("name", "email", "organization", "service_area")
    readonly_fields = ("password", "last_login", "created_at", "updated_at")


@admin.register(Complaint)
class ComplaintAdmin(admin.ModelAdmin):
    list_display = (
        "complaint_code",
        "title",
        "category",
        "priority",
        "status",
        "assigned_department",
        "reporter",
        "created_at",
    )
    list_filter = ("status", "priority", "category", "created_at")
    search_fields = ("complaint_code", "title", "reporter__email", "address")
    readonly_fields = ("complaint_code", "created_at", "updated_at")
    raw_id_fields = ("reporter",)
    inlines = [ComplaintHelperInline]
    formfield_overrides = {models.URLField: {"assume_scheme": "https"}}


@admin.register(ComplaintHelper)
class ComplaintHelperAdmin(admin.ModelAdmin):
    list_display = ("id", "complaint", "ngo", "status", "created_at", "updated_at")
    list_filter = ("status",)
    search_fields = ("complaint__complaint_code", "ngo__name", "ngo__organization")
    readonly_fields = ("created_at", "updated_at")
