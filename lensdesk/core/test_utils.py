"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from lensdesk.core.models import Department
from lensdesk.locations.models import Location, Tray
from lensdesk.lenses.models import (
    LensBrand, LensCategory, LensMaterial, LensType, LensCoating,
    LensTinting, LensFitting, LensDia, LensProduct, LensPrice
)
from lensdesk.parties.models import BusinessCategory, Customer, Vendor
from lensdesk.pricing.models import PriceMapping
from lensdesk.sales.models import SaleOrder
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""
    __test__ = False

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def random_digits(length=10):
        return ''.join(random.choices(string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False, **extra):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser,
            **extra
        )

    @staticmethod
    def create_department(name=None, **extra):
        """Create a test department"""
        return Department.objects.create(name=name or f'Department_{TestDataFactory.random_string(6)}', **extra)

    @staticmethod
    def create_location(name=None, location_code=None, **extra):
        """Create a test location"""
        return Location.objects.create(
            name=name or f'Location_{TestDataFactory.random_string(6)}',
            location_code=location_code or f'LOC{TestDataFactory.random_string(6).upper()}',
            **extra
        )

    @staticmethod
    def create_tray(location=None, name=None, tray_code=None, capacity=50, **extra):
        """Create a test tray"""
        return Tray.objects.create(
            location=location or TestDataFactory.create_location(),
            name=name or f'Tray_{TestDataFactory.random_string(6)}',
            tray_code=tray_code or f'TR{TestDataFactory.random_string(6).upper()}',
            capacity=capacity,
            **extra
        )

    @staticmethod
    def _create_attribute(model, prefix, name=None, **extra):
        return model.objects.create(name=name or f'{prefix}_{TestDataFactory.random_string(6)}', **extra)

    @staticmethod
    def create_brand(name=None, **extra):
        """Create a test lens brand"""
        return TestDataFactory._create_attribute(LensBrand, 'Brand', name, **extra)

    @staticmethod
    def create_category(name=None, **extra):
        return TestDataFactory._create_attribute(LensCategory, 'Category', name, **extra)

    @staticmethod
    def create_material(name=None, **extra):
        return TestDataFactory._create_attribute(LensMaterial, 'Material', name, **extra)

    @staticmethod
    def create_lens_type(name=None, **extra):
        return TestDataFactory._create_attribute(LensType, 'Type', name, **extra)

    @staticmethod
    def create_coating(name=None, short_name='', **extra):
        """Create a test lens coating"""
        return TestDataFactory._create_attribute(LensCoating, 'Coating', name, short_name=short_name, **extra)

    @staticmethod
    def create_tinting(name=None, tinting_price=Decimal('250.00'), **extra):
        return TestDataFactory._create_attribute(LensTinting, 'Tinting', name, tinting_price=tinting_price, **extra)

    @staticmethod
    def create_fitting(name=None, fitting_price=Decimal('200.00'), **extra):
        return TestDataFactory._create_attribute(LensFitting, 'Fitting', name, fitting_price=fitting_price, **extra)

    @staticmethod
    def create_dia(name=None, **extra):
        return TestDataFactory._create_attribute(LensDia, 'Dia', name, **extra)

    @staticmethod
    def create_product(brand=None, lens_name=None, product_code=None, **extra):
        """Create a test lens product"""
        if not lens_name:
            lens_name = f'Lens_{TestDataFactory.random_string(6)}'
        if not product_code:
            product_code = f'LP-{TestDataFactory.random_string(8).upper()}'
        return LensProduct.objects.create(
            brand=brand or TestDataFactory.create_brand(),
            lens_name=lens_name,
            product_code=product_code,
            **extra
        )

    @staticmethod
    def create_price(product=None, coating=None, price=Decimal('1000.00'), **extra):
        """Create a test coating price record"""
        return LensPrice.objects.create(
            lens=product or TestDataFactory.create_product(),
            coating=coating or TestDataFactory.create_coating(),
            price=Decimal(str(price)),
            **extra
        )

    @staticmethod
    def create_business_category(name=None, **extra):
        return BusinessCategory.objects.create(name=name or f'Business_{TestDataFactory.random_string(6)}', **extra)

    @staticmethod
    def create_customer(code=None, name=None, email=None, **extra):
        """Create a test customer"""
        if not code:
            code = f'CUST{TestDataFactory.random_string(6).upper()}'
        return Customer.objects.create(
            code=code,
            name=name or f'Customer_{TestDataFactory.random_string(6)}',
            email=email or f'{code.lower()}@test.com',
            phone=extra.pop('phone', TestDataFactory.random_digits(10)),
            **extra
        )

    @staticmethod
    def create_vendor(code=None, name=None, **extra):
        """Create a test vendor"""
        return Vendor.objects.create(
            code=code or f'VEND{TestDataFactory.random_string(6).upper()}',
            name=name or f'Vendor_{TestDataFactory.random_string(6)}',
            phone=extra.pop('phone', TestDataFactory.random_digits(10)),
            **extra
        )

    @staticmethod
    def create_price_mapping(customer=None, lens_price=None, discount_rate=Decimal('10.00'), **extra):
        """Create a test price mapping with its discounted price filled in"""
        lens_price = lens_price or TestDataFactory.create_price()
        discount_rate = Decimal(str(discount_rate))
        discount_price = (lens_price.price - lens_price.price * discount_rate / 100).quantize(Decimal('0.01'))
        return PriceMapping.objects.create(
            customer=customer or TestDataFactory.create_customer(),
            lens_price=lens_price,
            discount_rate=discount_rate,
            discount_price=extra.pop('discount_price', discount_price),
            **extra
        )

    @staticmethod
    def create_sale_order(customer=None, user=None, **extra):
        """Create a test sale order"""
        return SaleOrder.objects.create(
            customer=customer or TestDataFactory.create_customer(),
            created_by=user,
            updated_by=user,
            **extra
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
