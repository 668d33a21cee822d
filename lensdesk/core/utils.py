"""Utility functions for audit and error logging"""
import json
import logging
import traceback

from django.core.serializers.json import DjangoJSONEncoder
from django.forms.models import model_to_dict

from .models import AuditLog, ErrorLog

logger = logging.getLogger('lensdesk.core')

SENSITIVE_KEYS = ('password', 'password_confirm', 'old_password', 'new_password',
                  'token', 'access', 'refresh', 'secret', 'authorization', 'api_key')
MASK = '***'


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def get_user_agent(request):
    if not request or not hasattr(request, 'META'):
        return None
    agent = request.META.get('HTTP_USER_AGENT')
    return agent[:500] if agent else None


def to_json_safe(data):
    """Round-trip through DjangoJSONEncoder so decimals and dates fit a JSONField"""
    if data is None:
        return None
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))


def snapshot(instance, exclude=None):
    """Field values of a model instance, suitable for old/new audit values"""
    if instance is None:
        return None
    exclude = list(exclude or []) + ['password']
    return to_json_safe(model_to_dict(instance, exclude=exclude))


def diff_values(old_values, new_values):
    """
    Field-level change set between two snapshots.

    Returns ``{field: {'old': ..., 'new': ...}}`` for every key whose value
    differs; keys only present on one side are included.
    """
    old_values = old_values or {}
    new_values = new_values or {}
    changes = {}
    for key in set(old_values) | set(new_values):
        before = old_values.get(key)
        after = new_values.get(key)
        if before != after:
            changes[key] = {'old': before, 'new': after}
    return changes


def sanitize_request_body(body):
    """Mask credentials and tokens anywhere inside a request payload"""
    if isinstance(body, dict):
        cleaned = {}
        for key, value in body.items():
            if any(marker in str(key).lower() for marker in SENSITIVE_KEYS):
                cleaned[key] = MASK
            else:
                cleaned[key] = sanitize_request_body(value)
        return cleaned
    if isinstance(body, (list, tuple)):
        return [sanitize_request_body(item) for item in body]
    return body


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, old_values=None,
                     new_values=None, status_code=None, success=True, error_message=None):
    """
    Create an audit log entry

    Args:
        request: Django/DRF request (for user, IP, user agent, method and path)
        action: One of AuditLog.ACTION_CHOICES
        model_name: Name of the model being acted upon
        object_id: ID of the object (stored as string)
        changes: Field-level changes; computed from old/new values when omitted
        user: Optional user override (defaults to request.user)
        object_name: Human-readable name of the object
        old_values / new_values: Snapshots before and after the change
        status_code / success / error_message: Outcome of the request

    Never raises: a failed audit write must not fail the main operation.
    """
    try:
        audit_user = user
        if audit_user is None and request is not None and hasattr(request, 'user'):
            audit_user = request.user

        if not action or not model_name or object_id is None:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        if changes is None and (old_values is not None or new_values is not None):
            changes = diff_values(old_values, new_values)

        return AuditLog.objects.create(
            user=audit_user if audit_user is not None and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=str(object_name)[:255] if object_name else None,
            old_values=to_json_safe(old_values),
            new_values=to_json_safe(new_values),
            changes=to_json_safe(changes) or {},
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
            method=getattr(request, 'method', None),
            endpoint=request.get_full_path()[:500] if request is not None and hasattr(request, 'get_full_path') else None,
            status_code=status_code,
            success=success,
            error_message=error_message,
        )
    except Exception as e:
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def severity_for_status(status_code):
    if status_code is None or status_code >= 500:
        return 'ERROR'
    return 'WARNING'


def _request_body(request):
    data = getattr(request, 'data', None)
    if data is None:
        return None
    try:
        if hasattr(data, 'dict'):
            data = data.dict()
        return to_json_safe(sanitize_request_body(data))
    except (TypeError, ValueError):
        return None


def log_error(exc, request=None, status_code=500, code=None, severity=None):
    """
    Persist an ErrorLog row for a failed request.

    Never raises; problems writing the row are sent to the application log.
    """
    try:
        user = getattr(request, 'user', None)
        params = None
        if request is not None and hasattr(request, 'query_params'):
            params = to_json_safe(sanitize_request_body(request.query_params.dict()))
        stack = None
        if exc is not None and exc.__traceback__ is not None:
            stack = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return ErrorLog.objects.create(
            error_type=type(exc).__name__ if exc is not None else 'Error',
            message=str(exc) if exc is not None else '',
            stack=stack,
            code=code,
            status_code=status_code,
            method=getattr(request, 'method', None),
            endpoint=request.get_full_path()[:500] if request is not None and hasattr(request, 'get_full_path') else None,
            request_body=_request_body(request),
            params=params,
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
            user=user if user is not None and user.is_authenticated else None,
            severity=severity or severity_for_status(status_code),
        )
    except Exception as e:
        logger.error(f"Failed to create error log: {str(e)}")
        return None
