"""
Create/update/soft-delete helpers shared by the master-data views.

Each helper validates with the given serializer, enforces case-insensitive
uniqueness on business codes and names (409 Conflict), stamps
``created_by``/``updated_by`` and writes the audit trail.
"""
import logging

from django.db import transaction
from rest_framework import status
from rest_framework.response import Response

from .exceptions import ConflictError, DependencyError
from .utils import create_audit_log, snapshot

logger = logging.getLogger('lensdesk.core')


def ensure_unique(model, field, value, label, code='DUPLICATE_CODE', exclude_pk=None):
    """
    Raise ConflictError when another row already uses ``value`` for ``field``.

    Columns with a database unique constraint are checked against every row;
    other columns only against rows that have not been soft-deleted.
    """
    if value in (None, ''):
        return
    queryset = model.objects.filter(**{f'{field}__iexact': value})
    if not model._meta.get_field(field).unique:
        queryset = queryset.filter(is_deleted=False)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if queryset.exists():
        raise ConflictError(f"{label} '{value}' already exists", code=code)


def _check_unique_fields(model, validated_data, unique_fields, exclude_pk=None):
    for field, label, code in unique_fields:
        if field in validated_data:
            ensure_unique(model, field, validated_data[field], label, code=code, exclude_pk=exclude_pk)


def create_master(request, serializer_class, unique_fields=(), context=None):
    """
    Validate and create a master row.

    ``unique_fields`` is a sequence of ``(field, label, error_code)``.
    """
    serializer = serializer_class(data=request.data, context=context or {'request': request})
    serializer.is_valid(raise_exception=True)
    model = serializer_class.Meta.model
    _check_unique_fields(model, serializer.validated_data, unique_fields)

    with transaction.atomic():
        instance = serializer.save(created_by=request.user, updated_by=request.user)

    create_audit_log(request, 'CREATE', model.__name__, instance.pk, object_name=str(instance),
                     new_values=snapshot(instance), status_code=status.HTTP_201_CREATED)
    logger.info(f"{model.__name__} {instance.pk} created by {request.user.username}")
    return Response(serializer.data, status=status.HTTP_201_CREATED)


def update_master(request, instance, serializer_class, unique_fields=(), context=None):
    """Validate and apply a PUT or PATCH to a master row"""
    partial = request.method == 'PATCH'
    old_values = snapshot(instance)
    serializer = serializer_class(instance, data=request.data, partial=partial,
                                  context=context or {'request': request})
    serializer.is_valid(raise_exception=True)
    model = serializer_class.Meta.model
    _check_unique_fields(model, serializer.validated_data, unique_fields, exclude_pk=instance.pk)

    with transaction.atomic():
        instance = serializer.save(updated_by=request.user)

    create_audit_log(request, 'UPDATE', model.__name__, instance.pk, object_name=str(instance),
                     old_values=old_values, new_values=snapshot(instance))
    logger.info(f"{model.__name__} {instance.pk} updated by {request.user.username}")
    return Response(serializer.data)


def delete_master(request, instance, blockers=()):
    """
    Soft-delete a master row.

    ``blockers`` is a sequence of ``(queryset, error_code, message)``; the
    delete is refused with 400 when any queryset has rows.
    """
    for queryset, code, message in blockers:
        if queryset.exists():
            logger.warning(f"Delete of {type(instance).__name__} {instance.pk} blocked: {code}")
            raise DependencyError(message, code=code)

    old_values = snapshot(instance)
    instance.soft_delete(request.user)
    create_audit_log(request, 'DELETE', type(instance).__name__, instance.pk, object_name=str(instance),
                     old_values=old_values, status_code=status.HTTP_204_NO_CONTENT)
    logger.info(f"{type(instance).__name__} {instance.pk} deleted by {request.user.username}")
    return Response(status=status.HTTP_204_NO_CONTENT)
