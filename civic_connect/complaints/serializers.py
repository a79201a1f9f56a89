def iso(value):
    return value.isoformat() if value else None


def public_user(user) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
    }


def profile(user) -> dict:
    data = public_user(user)
    data.update(
        {
            "phone": user.phone,
            "address": user.address,
            "organization": user.organization or None,
            "service_area": user.service_area or None,
            "created_at": iso(user.created_at),
            "updated_at": iso(user.updated_at),
        }
    )
    return data


def ngo_contact(user) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "organization": user.organization,
        "service_area": user.service_area,
    }


def complaint(item) -> dict:
    return {
        "id": item.id,
        "complaint_code": item.complaint_code,
        "title": item.title,
        "description": item.description,
        "category": item.category,
        "priority": item.priority,
        "status": item.status,
        "address": item.address,
        "latitude": item.latitude,
        "longitude": item.longitude,
        "image_url": item.image_url,
        "assigned_department": item.assigned_department,
        "reporter_id": item.reporter_id,
        "created_at": iso(item.created_at),
        "updated_at": iso(item.updated_at),
    }


def complaint_summary(item) -> dict:
    data = complaint(item)
    for key in ("image_url", "assigned_department", "reporter_id"):
        data.pop(key)
    return data


def helper(item, include_ngo=True, include_complaint=False) -> dict:
    data = {
        "id": item.id,
        "complaint_id": item.complaint_id,
        "ngo_id": item.ngo_id,
        "status": item.status,
        "message": item.message,
        "created_at": iso(item.created_at),
        "updated_at": iso(item.updated_at),
    }
    if include_ngo:
        data["ngo"] = ngo_contact(item.ngo)
    if include_complaint:
        data["complaint"] = complaint_summary(item.complaint)
    return data


def complaint_with_helpers(item) -> dict:
    data = complaint(item)
    data["helpers"] = [helper(entry) for entry in item.helpers.all()]
    return data
