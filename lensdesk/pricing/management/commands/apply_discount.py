"""
Management command to apply a brand or product discount to one customer
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from lensdesk.lenses.models import LensBrand, LensProduct
from lensdesk.parties.models import Customer
from lensdesk.pricing.discounts import DiscountError
from lensdesk.pricing.editor import DiscountCascadeEditor
from lensdesk.pricing.transports import LocalDiscountTransport


class Command(BaseCommand):
    help = "Cascades a discount percentage over a brand (or one of its products) for a customer"

    def add_arguments(self, parser):
        parser.add_argument('--customer', required=True, help='Customer code')
        parser.add_argument('--brand', required=True, help='Lens brand name')
        parser.add_argument('--product', help='Product code; limits the cascade to this product')
        parser.add_argument('--percent', required=True, help='Discount percentage (0-100)')
        parser.add_argument('--user', help='Username recorded as the author of the change')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show the pending discounts without saving them',
        )

    def handle(self, *args, **options):
        try:
            customer = Customer.objects.get(code__iexact=options['customer'], is_deleted=False)
        except Customer.DoesNotExist:
            raise CommandError(f"Customer '{options['customer']}' not found")

        try:
            brand = LensBrand.objects.get(name__iexact=options['brand'], is_deleted=False)
        except LensBrand.DoesNotExist:
            raise CommandError(f"Brand '{options['brand']}' not found")

        product = None
        if options['product']:
            try:
                product = LensProduct.objects.get(product_code__iexact=options['product'], brand=brand, is_deleted=False)
            except LensProduct.DoesNotExist:
                raise CommandError(f"Product '{options['product']}' not found under brand {brand.name}")

        user = None
        if options['user']:
            user = get_user_model().objects.filter(username=options['user']).first()
            if user is None:
                raise CommandError(f"User '{options['user']}' not found")

        editor = DiscountCascadeEditor(LocalDiscountTransport(user=user), notify=self.notice)
        try:
            editor.load_hierarchy(customer.id)
            if product is not None:
                percent = editor.set_product_discount(brand.id, product.id, options['percent'])
            else:
                percent = editor.set_brand_discount(brand.id, options['percent'])
        except DiscountError as e:
            raise CommandError(str(e))

        scope = f"{brand.name} / {product.lens_name}" if product is not None else brand.name
        self.stdout.write(self.style.SUCCESS(f"Customer: {customer.code} ({customer.name})"))
        self.stdout.write(f"Scope: {scope}")
        self.stdout.write(f"Discount: {percent}%")

        changed = [entry for entry in editor.pending.values() if not entry.persisted]
        for entry in changed:
            self.stdout.write(f"  - price {entry.price_id} (coating {entry.coating_id}): {entry.discount}%")

        if not changed:
            self.stdout.write(self.style.WARNING("No coating prices under this scope."))
            return

        if options['dry_run']:
            self.stdout.write(self.style.WARNING("\nDry run complete. Nothing saved."))
            return

        try:
            result = editor.save()
        except DiscountError as e:
            raise CommandError(str(e))
        self.stdout.write(self.style.SUCCESS(f"\nSaved. {result['affected']} price mappings written."))

    def notice(self, level, message):
        styles = {'success': self.style.SUCCESS, 'error': self.style.ERROR}
        style = styles.get(level, self.style.NOTICE)
        self.stdout.write(style(message))
