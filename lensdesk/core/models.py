from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Extended user model with staff master fields"""
    BLOOD_GROUP_CHOICES = [
        ('A+', 'A+'),
        ('A-', 'A-'),
        ('B+', 'B+'),
        ('B-', 'B-'),
        ('AB+', 'AB+'),
        ('AB-', 'AB-'),
        ('O+', 'O+'),
        ('O-', 'O-'),
    ]

    usercode = models.CharField(max_length=50, unique=True, blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    alternate_phone = models.CharField(max_length=20, blank=True, null=True)
    address = models.CharField(max_length=500, blank=True)
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES, blank=True)
    department = models.ForeignKey('Department', on_delete=models.SET_NULL, null=True, blank=True, related_name='users')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'


class MasterModel(models.Model):
    """
    Common columns for master-data tables.

    Rows are never removed from the database; ``soft_delete`` flags them and
    list and lookup queries filter on ``is_deleted=False``.
    """
    is_active = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def soft_delete(self, user=None):
        self.is_deleted = True
        self.is_active = False
        if user is not None and user.is_authenticated:
            self.updated_by = user
        self.save(update_fields=['is_deleted', 'is_active', 'updated_by', 'updated_at'])


class Department(MasterModel):
    """Staff departments (front desk, fitting, dispatch, accounts)"""
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, blank=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'departments'
        ordering = ['name']


class AuditLog(models.Model):
    """Audit trail for create/update/delete and authentication events"""
    ACTION_CHOICES = [
        ('CREATE', 'Create'),
        ('UPDATE', 'Update'),
        ('DELETE', 'Delete'),
        ('VIEW', 'View'),
        ('LOGIN', 'Login'),
        ('LOGOUT', 'Logout'),
        ('LOGIN_FAILED', 'Login Failed'),
        ('STATUS_CHANGE', 'Status Change'),
        ('APPLY_DISCOUNTS', 'Apply Discounts'),
        ('EXPORT', 'Export'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., customer name, order number)")
    old_values = models.JSONField(null=True, blank=True)
    new_values = models.JSONField(null=True, blank=True)
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=500, blank=True, null=True)
    method = models.CharField(max_length=10, blank=True, null=True)
    endpoint = models.CharField(max_length=500, blank=True, null=True)
    status_code = models.PositiveSmallIntegerField(null=True, blank=True)
    success = models.BooleanField(default=True)
    error_message = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action} {self.model_name}#{self.object_id}"

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_4a1f2e_idx'),
            models.Index(fields=['action'], name='audit_logs_action_7c2d9b_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_3e8f1a_idx'),
        ]


class ErrorLog(models.Model):
    """Server-side failures recorded by the API exception handler"""
    SEVERITY_CHOICES = [
        ('INFO', 'Info'),
        ('WARNING', 'Warning'),
        ('ERROR', 'Error'),
        ('CRITICAL', 'Critical'),
    ]

    error_type = models.CharField(max_length=100)
    message = models.TextField()
    stack = models.TextField(blank=True, null=True)
    code = models.CharField(max_length=100, blank=True, null=True)
    status_code = models.PositiveSmallIntegerField(default=500)
    method = models.CharField(max_length=10, blank=True, null=True)
    endpoint = models.CharField(max_length=500, blank=True, null=True)
    request_body = models.JSONField(null=True, blank=True)
    params = models.JSONField(null=True, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=500, blank=True, null=True)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='error_logs')
    severity = models.CharField(max_length=10, choices=SEVERITY_CHOICES, default='ERROR')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"[{self.severity}] {self.error_type}: {self.message[:60]}"

    class Meta:
        db_table = 'error_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='error_logs_created_5b2c7d_idx'),
            models.Index(fields=['severity'], name='error_logs_severit_9a4e6f_idx'),
            models.Index(fields=['error_type'], name='error_logs_error_t_1d3b8c_idx'),
        ]
