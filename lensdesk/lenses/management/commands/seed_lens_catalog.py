"""
Management command to load a sample lens catalog: attribute masters,
brands, products and coating prices
"""
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from lensdesk.lenses.models import (
    LensBrand, LensCategory, LensMaterial, LensType, LensCoating,
    LensTinting, LensFitting, LensDia, LensProduct, LensPrice
)

CATEGORIES = [
    ('Single Vision', 'Single vision lenses for near or distance'),
    ('Bifocal', 'Two focal points for near and distance'),
    ('Progressive', 'Multiple focal points without visible lines'),
]

MATERIALS = [
    ('Plastic (CR-39)', 'Standard plastic lens material'),
    ('Polycarbonate', 'Impact resistant material'),
    ('High Index 1.67', 'Extra thin lenses'),
]

TYPES = [
    ('Stock', 'Ready stock lenses'),
    ('RX', 'Prescription lenses surfaced to order'),
]

COATINGS = [
    ('Anti-Reflective (AR)', 'AR', 'Reduces glare and reflections'),
    ('Blue Light Protection', 'BLP', 'Filters blue light from screens'),
    ('Hard Coat', 'HC', 'Scratch resistant coating'),
    ('Premium Multi-Coat', 'PMC', 'Combination of premium coatings'),
]

TINTINGS = [
    ('Grey Solid', 'GRY', Decimal('250.00')),
    ('Brown Gradient', 'BRG', Decimal('300.00')),
]

FITTINGS = [
    ('Standard Fitting', 'STD', Decimal('200.00')),
    ('Premium Fitting', 'PRM', Decimal('350.00')),
    ('Rimless Fitting', 'RML', Decimal('600.00')),
]

DIAS = [('65mm', '65'), ('70mm', '70'), ('75mm', '75')]

BRANDS = [
    ('Essilor', 'World leader in ophthalmic optics'),
    ('Zeiss', 'German precision optics'),
    ('Hoya', 'Japanese optical excellence'),
]

# (brand, product_code, lens_name, category, material, type, {coating short name: price})
PRODUCTS = [
    ('Essilor', 'ESS-SV-STD', 'Essilor Single Vision Standard', 'Single Vision', 'Plastic (CR-39)', 'Stock',
     {'HC': '1500', 'AR': '2000', 'BLP': '5000', 'PMC': '6500'}),
    ('Essilor', 'ESS-PRG-VAR', 'Essilor Varilux Comfort', 'Progressive', 'Polycarbonate', 'RX',
     {'AR': '8500', 'BLP': '9800'}),
    ('Zeiss', 'ZIS-PRG-PRM', 'Zeiss Progressive Premium', 'Progressive', 'High Index 1.67', 'RX',
     {'AR': '12000', 'PMC': '14500'}),
    ('Zeiss', 'ZIS-SV-CLR', 'Zeiss ClearView Single Vision', 'Single Vision', 'Plastic (CR-39)', 'Stock',
     {'HC': '1800', 'AR': '2600'}),
    ('Hoya', 'HOY-SV-ASP', 'Hoya Single Vision Aspheric', 'Single Vision', 'Polycarbonate', 'Stock',
     {'HC': '1400', 'AR': '2100', 'BLP': '3900'}),
    ('Hoya', 'HOY-BF-STD', 'Hoya Bifocal Standard', 'Bifocal', 'Plastic (CR-39)', 'RX',
     {'AR': '3200'}),
]


class Command(BaseCommand):
    help = "Loads a sample lens catalog (brands, masters, products and coating prices)"

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete the existing lens catalog before loading',
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("SEEDING LENS CATALOG"))
        self.stdout.write(self.style.SUCCESS("=" * 80))

        with transaction.atomic():
            if options['clear']:
                self.stdout.write(self.style.WARNING("Clearing existing lens catalog..."))
                LensPrice.objects.all().delete()
                LensProduct.objects.all().delete()
                for model in (LensBrand, LensCategory, LensMaterial, LensType, LensCoating,
                              LensTinting, LensFitting, LensDia):
                    model.objects.all().delete()
                self.stdout.write(self.style.SUCCESS("Lens catalog cleared."))

            categories = {name: self.upsert(LensCategory, name, description=desc) for name, desc in CATEGORIES}
            materials = {name: self.upsert(LensMaterial, name, description=desc) for name, desc in MATERIALS}
            types = {name: self.upsert(LensType, name, description=desc) for name, desc in TYPES}
            coatings = {
                short: self.upsert(LensCoating, name, short_name=short, description=desc)
                for name, short, desc in COATINGS
            }
            for name, short, price in TINTINGS:
                self.upsert(LensTinting, name, short_name=short, tinting_price=price)
            for name, short, price in FITTINGS:
                self.upsert(LensFitting, name, short_name=short, fitting_price=price)
            for name, short in DIAS:
                self.upsert(LensDia, name, short_name=short)
            brands = {name: self.upsert(LensBrand, name, description=desc) for name, desc in BRANDS}

            price_count = 0
            for brand, code, lens_name, category, material, lens_type, prices in PRODUCTS:
                product, created = LensProduct.objects.update_or_create(
                    product_code=code,
                    defaults={
                        'brand': brands[brand],
                        'lens_name': lens_name,
                        'category': categories[category],
                        'material': materials[material],
                        'type': types[lens_type],
                        'is_active': True,
                        'is_deleted': False,
                    },
                )
                label = "Created" if created else "Updated"
                self.stdout.write(self.style.SUCCESS(f"  ✓ {label}: {lens_name}"))
                for short, price in prices.items():
                    LensPrice.objects.update_or_create(
                        lens=product,
                        coating=coatings[short],
                        defaults={'price': Decimal(price), 'is_active': True, 'is_deleted': False},
                    )
                    price_count += 1

        self.stdout.write(self.style.SUCCESS("\n" + "=" * 80))
        self.stdout.write(self.style.SUCCESS("SUMMARY"))
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(f"Brands: {LensBrand.objects.filter(is_deleted=False).count()}")
        self.stdout.write(f"Products: {LensProduct.objects.filter(is_deleted=False).count()}")
        self.stdout.write(f"Coating prices written: {price_count}")

    def upsert(self, model, name, **fields):
        instance, _ = model.objects.update_or_create(
            name=name,
            defaults=dict(fields, is_active=True, is_deleted=False),
        )
        return instance
