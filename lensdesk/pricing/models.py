from decimal import Decimal
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from lensdesk.core.models import User
from lensdesk.lenses.models import LensPrice
from lensdesk.parties.models import Customer


class PriceMapping(models.Model):
    """
    Customer-specific discount on one coating price record.

    At most one row exists per (customer, lens_price); applying a new
    discount to the same pair overwrites it.
    """
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='price_mappings')
    lens_price = models.ForeignKey(LensPrice, on_delete=models.CASCADE, related_name='price_mappings')
    discount_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
        help_text="Discount percentage (0-100)"
    )
    discount_price = models.DecimalField(max_digits=10, decimal_places=2,
                                         help_text="Base price reduced by discount_rate")
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.customer.code} / {self.lens_price_id}: {self.discount_rate}%"

    class Meta:
        db_table = 'price_mappings'
        ordering = ['-updated_at']
        constraints = [
            models.UniqueConstraint(fields=['customer', 'lens_price'], name='unique_customer_lens_price'),
        ]
