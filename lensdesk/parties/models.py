from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import models
from lensdesk.core.models import MasterModel, User


class BusinessCategory(MasterModel):
    """Kind of customer business (retail optician, hospital, chain store)"""
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, blank=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'business_categories'
        ordering = ['name']
        verbose_name_plural = 'business categories'


class Party(MasterModel):
    """Contact and tax columns shared by customers and vendors"""
    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=200)
    shop_name = models.CharField(max_length=200, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=15, blank=True)
    alternate_phone = models.CharField(max_length=15, blank=True)
    address = models.CharField(max_length=500, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=10, blank=True)
    gstin = models.CharField(max_length=15, blank=True)
    notes = models.CharField(max_length=1000, blank=True)

    def __str__(self):
        return f"{self.name} ({self.code})"

    class Meta:
        abstract = True
        ordering = ['name']


class Customer(Party):
    """Optical shops and walk-in customers buying lenses"""
    email = models.EmailField()
    credit_limit = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                       validators=[MinValueValidator(Decimal('0.00'))])
    outstanding_credit = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                             validators=[MinValueValidator(Decimal('0.00'))])
    sales_person = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='customers')
    business_category = models.ForeignKey(BusinessCategory, on_delete=models.SET_NULL, null=True, blank=True,
                                          related_name='customers')

    class Meta(Party.Meta):
        db_table = 'customers'


class Vendor(Party):
    """Lens suppliers and labs"""
    category = models.CharField(max_length=100, blank=True)

    class Meta(Party.Meta):
        db_table = 'vendors'
