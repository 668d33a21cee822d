from decimal import Decimal
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from lensdesk.core.models import MasterModel, User
from lensdesk.lenses.models import (
    LensProduct, LensCategory, LensType, LensDia, LensFitting,
    LensCoating, LensTinting, LensMaterial
)
from lensdesk.parties.models import Customer

PRICE_VALIDATORS = [MinValueValidator(Decimal('0.00'))]


class SaleOrder(MasterModel):
    """Customer lens order with the optical prescription for each eye"""
    STATUS_CHOICES = [
        ('DRAFT', 'Draft'),
        ('CONFIRMED', 'Confirmed'),
        ('IN_PRODUCTION', 'In Production'),
        ('READY_FOR_DISPATCH', 'Ready for Dispatch'),
        ('DELIVERED', 'Delivered'),
    ]

    DISPATCH_STATUS_CHOICES = [
        ('Pending', 'Pending'),
        ('Assigned', 'Assigned'),
        ('In Transit', 'In Transit'),
        ('Delivered', 'Delivered'),
    ]

    ORDER_PREFIX = 'SO'

    order_no = models.CharField(max_length=50, unique=True, editable=False)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='sale_orders')
    customer_ref_no = models.CharField(max_length=100, blank=True)
    order_date = models.DateField(default=timezone.localdate)
    order_type = models.CharField(max_length=100, blank=True)
    delivery_schedule = models.DateField(null=True, blank=True)
    remark = models.CharField(max_length=500, blank=True)
    item_ref_no = models.CharField(max_length=100, blank=True)
    free_lens = models.BooleanField(default=False)
    urgent_order = models.BooleanField(default=False)
    free_fitting = models.BooleanField(default=False)

    # Lens
    lens = models.ForeignKey(LensProduct, on_delete=models.PROTECT, null=True, blank=True, related_name='sale_orders')
    category = models.ForeignKey(LensCategory, on_delete=models.PROTECT, null=True, blank=True, related_name='sale_orders')
    type = models.ForeignKey(LensType, on_delete=models.PROTECT, null=True, blank=True, related_name='sale_orders')
    dia = models.ForeignKey(LensDia, on_delete=models.PROTECT, null=True, blank=True, related_name='sale_orders')
    fitting = models.ForeignKey(LensFitting, on_delete=models.PROTECT, null=True, blank=True, related_name='sale_orders')
    coating = models.ForeignKey(LensCoating, on_delete=models.PROTECT, null=True, blank=True, related_name='sale_orders')
    tinting = models.ForeignKey(LensTinting, on_delete=models.PROTECT, null=True, blank=True, related_name='sale_orders')
    material = models.ForeignKey(LensMaterial, on_delete=models.PROTECT, null=True, blank=True, related_name='sale_orders')

    # Prescription
    right_eye = models.BooleanField(default=False)
    left_eye = models.BooleanField(default=False)
    right_spherical = models.CharField(max_length=50, blank=True)
    right_cylindrical = models.CharField(max_length=50, blank=True)
    right_axis = models.CharField(max_length=50, blank=True)
    right_add = models.CharField(max_length=50, blank=True)
    right_dia = models.CharField(max_length=50, blank=True)
    left_spherical = models.CharField(max_length=50, blank=True)
    left_cylindrical = models.CharField(max_length=50, blank=True)
    left_axis = models.CharField(max_length=50, blank=True)
    left_add = models.CharField(max_length=50, blank=True)
    left_dia = models.CharField(max_length=50, blank=True)

    # Status and dispatch
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='DRAFT')
    dispatch_status = models.CharField(max_length=20, choices=DISPATCH_STATUS_CHOICES, default='Pending')
    assigned_person = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True,
                                        related_name='assigned_sale_orders')
    dispatch_id = models.CharField(max_length=100, blank=True)
    estimated_date = models.DateField(null=True, blank=True)
    estimated_time = models.CharField(max_length=20, blank=True)
    actual_date = models.DateField(null=True, blank=True)
    actual_time = models.CharField(max_length=20, blank=True)
    dispatch_notes = models.CharField(max_length=1000, blank=True)

    # Pricing
    lens_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=PRICE_VALIDATORS)
    right_eye_extra = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=PRICE_VALIDATORS)
    left_eye_extra = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=PRICE_VALIDATORS)
    fitting_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=PRICE_VALIDATORS)
    tinting_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=PRICE_VALIDATORS)
    discount = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
        help_text="Order discount percentage (0-100)"
    )
    additional_price = models.JSONField(default=list, blank=True, help_text="List of {name, value} charges")

    def __str__(self):
        return self.order_no

    class Meta:
        db_table = 'sale_orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='sale_orders_status_2f6a1c_idx'),
            models.Index(fields=['order_date'], name='sale_orders_order_d_8b3e4d_idx'),
        ]

    @classmethod
    def next_order_no(cls, year=None):
        """``SO-{year}-{NNN}``, one past the highest number issued this year"""
        year = year or timezone.localdate().year
        prefix = f"{cls.ORDER_PREFIX}-{year}-"
        last_number = 0
        for order_no in cls.objects.filter(order_no__startswith=prefix).values_list('order_no', flat=True):
            try:
                last_number = max(last_number, int(order_no[len(prefix):]))
            except ValueError:
                continue
        return f"{prefix}{last_number + 1:03d}"

    def save(self, *args, **kwargs):
        if not self.order_no:
            self.order_no = self.next_order_no()
        super().save(*args, **kwargs)

    @property
    def additional_total(self):
        return sum((Decimal(str(item.get('value') or 0)) for item in self.additional_price or []), Decimal('0.00'))

    @property
    def subtotal(self):
        return (self.lens_price + self.right_eye_extra + self.left_eye_extra
                + self.fitting_price + self.tinting_price + self.additional_total)

    @property
    def total(self):
        subtotal = self.subtotal
        return (subtotal - subtotal * self.discount / 100).quantize(Decimal('0.01'))
