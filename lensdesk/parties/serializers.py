import re
from rest_framework import serializers
from .models import BusinessCategory, Customer, Vendor

PARTY_FIELDS = ['id', 'code', 'name', 'shop_name', 'email', 'phone', 'alternate_phone', 'address',
                'city', 'state', 'pincode', 'gstin', 'notes', 'is_active',
                'created_by', 'updated_by', 'created_at', 'updated_at']
PARTY_READ_ONLY = ['created_by', 'updated_by', 'created_at', 'updated_at']
PHONE_RE = re.compile(r'^\d{10,15}$')


class PartySerializer(serializers.ModelSerializer):
    """Shared validation for customers and vendors"""

    def validate_code(self, value):
        value = value.strip().upper()
        if not value:
            raise serializers.ValidationError("Code is required")
        return value

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value

    def _validate_phone(self, value):
        if value and not PHONE_RE.match(value):
            raise serializers.ValidationError("Phone number must be 10-15 digits")
        return value

    def validate_phone(self, value):
        return self._validate_phone(value)

    def validate_alternate_phone(self, value):
        return self._validate_phone(value)

    def validate_pincode(self, value):
        if value and not value.isdigit():
            raise serializers.ValidationError("Pincode must contain digits only")
        return value

    def validate_gstin(self, value):
        return value.strip().upper() if value else value


class CustomerSerializer(PartySerializer):
    sales_person_name = serializers.CharField(source='sales_person.username', read_only=True, default=None)
    business_category_name = serializers.CharField(source='business_category.name', read_only=True, default=None)
    has_price_mapping = serializers.SerializerMethodField()

    class Meta:
        model = Customer
        fields = PARTY_FIELDS + ['credit_limit', 'outstanding_credit', 'sales_person', 'sales_person_name',
                                 'business_category', 'business_category_name', 'has_price_mapping']
        read_only_fields = PARTY_READ_ONLY
        extra_kwargs = {'code': {'validators': []}}

    def validate_business_category(self, value):
        if value is not None and (value.is_deleted or not value.is_active):
            raise serializers.ValidationError("Selected business category does not exist or is inactive")
        return value

    def get_has_price_mapping(self, obj):
        return obj.price_mappings.exists()


class VendorSerializer(PartySerializer):
    class Meta:
        model = Vendor
        fields = PARTY_FIELDS + ['category']
        read_only_fields = PARTY_READ_ONLY
        extra_kwargs = {'code': {'validators': []}}


class BusinessCategorySerializer(serializers.ModelSerializer):
    customer_count = serializers.SerializerMethodField()

    class Meta:
        model = BusinessCategory
        fields = ['id', 'name', 'description', 'is_active', 'customer_count',
                  'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = PARTY_READ_ONLY

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value

    def get_customer_count(self, obj):
        return obj.customers.filter(is_deleted=False).count()
