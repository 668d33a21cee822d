from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import models
from lensdesk.core.models import MasterModel


class LensAttribute(MasterModel):
    """Name + description columns shared by the simple lens attribute masters"""
    name = models.CharField(max_length=200)
    description = models.CharField(max_length=500, blank=True)

    def __str__(self):
        return self.name

    class Meta:
        abstract = True
        ordering = ['name']


class LensBrand(LensAttribute):
    """Lens manufacturers (Essilor, Zeiss, Hoya...)"""

    class Meta(LensAttribute.Meta):
        db_table = 'lens_brands'


class LensCategory(LensAttribute):
    """Single vision, bifocal, progressive..."""

    class Meta(LensAttribute.Meta):
        db_table = 'lens_categories'
        verbose_name_plural = 'lens categories'


class LensMaterial(LensAttribute):
    """CR-39, polycarbonate, high index..."""

    class Meta(LensAttribute.Meta):
        db_table = 'lens_materials'


class LensType(LensAttribute):
    """Stock or RX"""

    class Meta(LensAttribute.Meta):
        db_table = 'lens_types'


class LensCoating(LensAttribute):
    """Anti-reflective, blue cut, hard coat..."""
    short_name = models.CharField(max_length=50, blank=True)

    class Meta(LensAttribute.Meta):
        db_table = 'lens_coatings'


class LensTinting(LensAttribute):
    short_name = models.CharField(max_length=50, blank=True)
    tinting_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'),
                                        validators=[MinValueValidator(Decimal('0.00'))])

    class Meta(LensAttribute.Meta):
        db_table = 'lens_tintings'


class LensFitting(LensAttribute):
    short_name = models.CharField(max_length=50, blank=True)
    fitting_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'),
                                        validators=[MinValueValidator(Decimal('0.00'))])

    class Meta(LensAttribute.Meta):
        db_table = 'lens_fittings'


class LensDia(LensAttribute):
    """Lens blank diameters (65, 70, 75 mm...)"""
    short_name = models.CharField(max_length=50, blank=True)

    class Meta(LensAttribute.Meta):
        db_table = 'lens_dias'
        verbose_name = 'lens diameter'


class LensProduct(MasterModel):
    """A sellable lens of one brand; priced per coating through LensPrice"""
    brand = models.ForeignKey(LensBrand, on_delete=models.PROTECT, related_name='products')
    category = models.ForeignKey(LensCategory, on_delete=models.PROTECT, null=True, blank=True, related_name='products')
    material = models.ForeignKey(LensMaterial, on_delete=models.PROTECT, null=True, blank=True, related_name='products')
    type = models.ForeignKey(LensType, on_delete=models.PROTECT, null=True, blank=True, related_name='products')
    product_code = models.CharField(max_length=100, unique=True)
    lens_name = models.CharField(max_length=200)
    range_text = models.CharField(max_length=500, blank=True)

    def __str__(self):
        return f"{self.lens_name} ({self.product_code})"

    class Meta:
        db_table = 'lens_products'
        ordering = ['lens_name']


class LensPrice(MasterModel):
    """
    Coating price record: the base price of one product with one coating.

    Customer discounts are attached to these rows (see pricing.PriceMapping).
    """
    lens = models.ForeignKey(LensProduct, on_delete=models.CASCADE, related_name='prices')
    coating = models.ForeignKey(LensCoating, on_delete=models.PROTECT, related_name='prices')
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])

    def __str__(self):
        return f"{self.lens.lens_name} / {self.coating.name}: {self.price}"

    class Meta:
        db_table = 'lens_prices'
        unique_together = [['lens', 'coating']]
