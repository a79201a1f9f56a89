import json
import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404, JsonResponse
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from .exceptions import ApiError, Unauthorized, ValidationFailed
from .models import User
from .tokens import decode_token, token_from_header

logger = logging.getLogger(__name__)

ALL_ROLES = frozenset(User.Role.values)


def error_response(message, status, details=None):
    body = {"error": message}
    if details:
        body["details"] = details
    return JsonResponse(body, status=status)


def parse_json_body(request) -> dict:
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ValidationFailed("Request body must be valid JSON")
    if not isinstance(payload, dict):
        raise ValidationFailed("Request body must be a JSON object")
    return payload


class ApiView(View):
    """JSON endpoint guarded by a bearer token and a per-method role list.

    ``allowed_roles`` maps a lower-case HTTP method to the roles that may call it;
    a method missing from the map is open to every authenticated role. Views with
    ``verify_role_freshly`` re-read the caller's role from the database instead of
    trusting the token claim. A missing object is reported with ``not_found_message``.
    """

    authentication_required = True
    allowed_roles = {}
    verify_role_freshly = False
    not_found_message = "Not found"

    @classmethod
    def as_view(cls, **initkwargs):
        return csrf_exempt(super().as_view(**initkwargs))

    def dispatch(self, request, *args, **kwargs):
        request.auth = None
        self.current_user = None
        try:
            if self.authentication_required and request.method.lower() in self.http_method_names:
                self.authenticate(request)
                self.authorize(request)
            return super().dispatch(request, *args, **kwargs)
        except ApiError as exc:
            return error_response(exc.message, exc.status_code, exc.details)
        except PermissionDenied as exc:
            return error_response(str(exc) or "Forbidden", 403)
        except Http404:
            return error_response(self.not_found_message, 404)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.path)
            return error_response("Internal server error", 500)

    def authenticate(self, request):
        token = token_from_header(request.headers.get("Authorization"))
        request.auth = decode_token(token)
        if self.verify_role_freshly:
            try:
                self.current_user = User.objects.get(pk=request.auth.subject_id, is_active=True)
            except User.DoesNotExist:
                raise Unauthorized("Account not found")

    def authorize(self, request):
        permitted = self.allowed_roles.get(request.method.lower(), ALL_ROLES)
        role = self.current_user.role if self.current_user is not None else request.auth.role
        if role not in permitted:
            logger.info(
                "Denied %s %s to %s user %s",
                request.method,
                request.path,
                role,
                request.auth.subject_id,
            )
            raise PermissionDenied("Forbidden")

    def get_caller(self):
        if self.current_user is None:
            try:
                self.current_user = User.objects.get(pk=self.request.auth.subject_id, is_active=True)
            except User.DoesNotExist:
                raise Unauthorized("Account not found")
        return self.current_user

    def get_payload(self) -> dict:
        return parse_json_body(self.request)
