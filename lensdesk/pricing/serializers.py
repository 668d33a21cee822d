from rest_framework import serializers
from lensdesk.lenses.models import LensBrand, LensCoating, LensPrice, LensProduct
from .discounts import MIN_DISCOUNT, MAX_DISCOUNT
from .models import PriceMapping


# Discount hierarchy (camelCase keys are part of the discount editor protocol)
class HierarchyPriceMappingSerializer(serializers.ModelSerializer):
    discountRate = serializers.DecimalField(source='discount_rate', max_digits=5, decimal_places=2, coerce_to_string=False)
    discountPrice = serializers.DecimalField(source='discount_price', max_digits=10, decimal_places=2, coerce_to_string=False)

    class Meta:
        model = PriceMapping
        fields = ['id', 'discountRate', 'discountPrice']


class HierarchyCoatingSerializer(serializers.ModelSerializer):
    class Meta:
        model = LensCoating
        fields = ['id', 'name', 'short_name']


class HierarchyPriceSerializer(serializers.ModelSerializer):
    price = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False)
    coating = HierarchyCoatingSerializer()
    priceMappings = HierarchyPriceMappingSerializer(source='customer_mappings', many=True)

    class Meta:
        model = LensPrice
        fields = ['id', 'price', 'coating', 'priceMappings']


class HierarchyProductSerializer(serializers.ModelSerializer):
    lensPriceMasters = HierarchyPriceSerializer(source='live_prices', many=True)

    class Meta:
        model = LensProduct
        fields = ['id', 'lens_name', 'product_code', 'lensPriceMasters']


class HierarchyBrandSerializer(serializers.ModelSerializer):
    lensProductMasters = HierarchyProductSerializer(source='live_products', many=True)

    class Meta:
        model = LensBrand
        fields = ['id', 'name', 'lensProductMasters']


# Apply discounts payload
class DiscountEntrySerializer(serializers.Serializer):
    brandId = serializers.IntegerField(required=False, allow_null=True)
    productId = serializers.IntegerField(required=False, allow_null=True)
    coatingId = serializers.IntegerField(required=False, allow_null=True)
    priceId = serializers.IntegerField()
    discount = serializers.FloatField(min_value=MIN_DISCOUNT, max_value=MAX_DISCOUNT)


class ApplyDiscountsSerializer(serializers.Serializer):
    customerId = serializers.IntegerField()
    discounts = DiscountEntrySerializer(many=True, allow_empty=False)


# Price mapping CRUD
class PriceMappingSerializer(serializers.ModelSerializer):
    customer_code = serializers.CharField(source='customer.code', read_only=True)
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    lens_name = serializers.CharField(source='lens_price.lens.lens_name', read_only=True)
    product_code = serializers.CharField(source='lens_price.lens.product_code', read_only=True)
    brand_name = serializers.CharField(source='lens_price.lens.brand.name', read_only=True)
    coating_name = serializers.CharField(source='lens_price.coating.name', read_only=True)
    base_price = serializers.DecimalField(source='lens_price.price', max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = PriceMapping
        fields = ['id', 'customer', 'customer_code', 'customer_name', 'lens_price', 'lens_name', 'product_code',
                  'brand_name', 'coating_name', 'base_price', 'discount_rate', 'discount_price',
                  'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = ['discount_price', 'created_by', 'updated_by', 'created_at', 'updated_at']
        # (customer, lens_price) uniqueness is handled by the bulk views
        validators = []


class PriceMappingWriteSerializer(serializers.Serializer):
    customer = serializers.IntegerField()
    lens_price = serializers.IntegerField()
    discount_rate = serializers.DecimalField(max_digits=5, decimal_places=2,
                                             min_value=MIN_DISCOUNT, max_value=MAX_DISCOUNT)


class PriceMappingUpdateSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    discount_rate = serializers.DecimalField(max_digits=5, decimal_places=2,
                                             min_value=MIN_DISCOUNT, max_value=MAX_DISCOUNT)


class BulkPriceMappingSerializer(serializers.Serializer):
    mappings = PriceMappingWriteSerializer(many=True, allow_empty=False)


class BulkPriceMappingUpdateSerializer(serializers.Serializer):
    mappings = PriceMappingUpdateSerializer(many=True, allow_empty=False)


class BulkDeleteSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)


class CalculateCostSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    lens_price_id = serializers.IntegerField()
    fitting_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, default=1)
