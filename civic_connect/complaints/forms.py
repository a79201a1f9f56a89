from django import forms
from django.contrib.auth import password_validation
from django.core.exceptions import ValidationError

from .models import Complaint, ComplaintHelper, User


class RegisterForm(forms.Form):
    ROLE_CHOICES = [
        (User.Role.CITIZEN, User.Role.CITIZEN.label),
        (User.Role.NGO, User.Role.NGO.label),
    ]

    name = forms.CharField(max_length=120)
    email = forms.EmailField()
    password = forms.CharField(strip=False)
    phone = forms.CharField(max_length=20, required=False)
    address = forms.CharField(max_length=255, required=False)
    role = forms.ChoiceField(choices=ROLE_CHOICES, required=False)
    organization = forms.CharField(max_length=255, required=False)
    service_area = forms.CharField(max_length=255, required=False)

    def clean_email(self):
        return self.cleaned_data["email"].lower()

    def clean_role(self):
        return self.cleaned_data.get("role") or User.Role.CITIZEN

    def clean(self):
        cleaned_data = super().clean()
        if cleaned_data.get("role") == User.Role.NGO:
            if not cleaned_data.get("organization"):
                self.add_error("organization", "Organization is required for NGO accounts.")
            if not cleaned_data.get("service_area"):
                self.add_error("service_area", "Service area is required for NGO accounts.")

        password = cleaned_data.get("password")
        if password:
            candidate = User(
                name=cleaned_data.get("name", ""),
                email=cleaned_data.get("email", ""),
            )
            try:
                password_validation.validate_password(password, candidate)
            except ValidationError as error:
                self.add_error("password", error)
        return cleaned_data

    def build_user(self) -> User:
        data = self.cleaned_data
        is_ngo = data["role"] == User.Role.NGO
        user = User(
            name=data["name"],
            email=data["email"],
            phone=data["phone"],
            address=data["address"],
            role=data["role"],
            organization=data["organization"] if is_ngo else "",
            service_area=data["service_area"] if is_ngo else "",
        )
        user.set_password(data["password"])
        return user


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(strip=False)

    def clean_email(self):
        return self.cleaned_data["email"].lower()


class ProfileForm(forms.ModelForm):
    NGO_FIELDS = ("organization", "service_area")

    class Meta:
        model = User
        fields = ["name", "phone", "address", "organization", "service_area"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance.role == User.Role.NGO:
            for field in self.NGO_FIELDS:
                self.fields[field].required = True
        else:
            # Only NGO accounts carry organization details.
            for field in self.NGO_FIELDS:
                del self.fields[field]


class ComplaintForm(forms.ModelForm):
    image_url = forms.URLField(max_length=500, required=False, empty_value=None, assume_scheme="https")

    class Meta:
        model = Complaint
        fields = [
            "title",
            "description",
            "category",
            "priority",
            "latitude",
            "longitude",
            "address",
            "image_url",
        ]

    def clean(self):
        cleaned_data = super().clean()
        latitude = cleaned_data.get("latitude")
        longitude = cleaned_data.get("longitude")
        if self.has_error("latitude") or self.has_error("longitude"):
            return cleaned_data
        if (latitude is None) != (longitude is None):
            raise ValidationError("Latitude and longitude must be provided together.")
        return cleaned_data


class StatusUpdateForm(forms.Form):
    status = forms.ChoiceField(choices=Complaint.Status.choices)


class DepartmentForm(forms.ModelForm):
    class Meta:
        model = Complaint
        fields = ["assigned_department"]

    def clean_assigned_department(self):
        return (self.cleaned_data.get("assigned_department") or "").strip() or None


class HelpActionForm(forms.Form):
    ACTION_ADD = "add"
    ACTION_REMOVE = "remove"

    action = forms.ChoiceField(choices=[(ACTION_ADD, "Add"), (ACTION_REMOVE, "Remove")])
    message = forms.CharField(required=False)


class HelperStatusForm(forms.Form):
    status = forms.ChoiceField(choices=ComplaintHelper.Status.choices)


class ComplaintFilterForm(forms.Form):
    q = forms.CharField(required=False)
    category = forms.CharField(required=False)
    status = forms.CharField(required=False)
    priority = forms.CharField(required=False)
    start_date = forms.DateField(required=False, input_formats=["%Y-%m-%d"])
    end_date = forms.DateField(required=False, input_formats=["%Y-%m-%d"])


class DateRangeForm(forms.Form):
    start_date = forms.DateField(required=False, input_formats=["%Y-%m-%d"])
    end_date = forms.DateField(required=False, input_formats=["%Y-%m-%d"])

    def clean(self):
        cleaned_data = super().clean()
        start, end = cleaned_data.get("start_date"), cleaned_data.get("end_date")
        if start and end and start > end:
            raise ValidationError("start_date must not be after end_date.")
        return cleaned_data
