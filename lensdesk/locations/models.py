from django.core.validators import MinValueValidator
from django.db import models
from lensdesk.core.models import MasterModel


class Location(MasterModel):
    """Physical storage locations (shop floor, back room, lab)"""
    name = models.CharField(max_length=200)
    location_code = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=500, blank=True)

    def __str__(self):
        return f"{self.name} ({self.location_code})"

    class Meta:
        db_table = 'location_masters'
        ordering = ['name']


class Tray(MasterModel):
    """Trays holding lens stock, each kept at one location"""
    name = models.CharField(max_length=200)
    tray_code = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=500, blank=True)
    capacity = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])
    location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name='trays')

    def __str__(self):
        return f"{self.name} ({self.tray_code})"

    class Meta:
        db_table = 'tray_masters'
        ordering = ['name']
