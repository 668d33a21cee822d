from rest_framework import serializers
from .models import (
    LensBrand, LensCategory, LensMaterial, LensType, LensCoating,
    LensTinting, LensFitting, LensDia, LensProduct, LensPrice
)

MASTER_READ_ONLY = ['created_by', 'updated_by', 'created_at', 'updated_at']
ATTRIBUTE_FIELDS = ['id', 'name', 'description', 'is_active', 'created_by', 'updated_by', 'created_at', 'updated_at']


class LensAttributeSerializer(serializers.ModelSerializer):
    """Base for the name/description masters"""

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value


class LensBrandSerializer(LensAttributeSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = LensBrand
        fields = ATTRIBUTE_FIELDS + ['product_count']
        read_only_fields = MASTER_READ_ONLY

    def get_product_count(self, obj):
        return obj.products.filter(is_deleted=False).count()


class LensCategorySerializer(LensAttributeSerializer):
    class Meta:
        model = LensCategory
        fields = ATTRIBUTE_FIELDS
        read_only_fields = MASTER_READ_ONLY


class LensMaterialSerializer(LensAttributeSerializer):
    class Meta:
        model = LensMaterial
        fields = ATTRIBUTE_FIELDS
        read_only_fields = MASTER_READ_ONLY


class LensTypeSerializer(LensAttributeSerializer):
    class Meta:
        model = LensType
        fields = ATTRIBUTE_FIELDS
        read_only_fields = MASTER_READ_ONLY


class LensCoatingSerializer(LensAttributeSerializer):
    class Meta:
        model = LensCoating
        fields = ATTRIBUTE_FIELDS + ['short_name']
        read_only_fields = MASTER_READ_ONLY


class LensTintingSerializer(LensAttributeSerializer):
    class Meta:
        model = LensTinting
        fields = ATTRIBUTE_FIELDS + ['short_name', 'tinting_price']
        read_only_fields = MASTER_READ_ONLY


class LensFittingSerializer(LensAttributeSerializer):
    class Meta:
        model = LensFitting
        fields = ATTRIBUTE_FIELDS + ['short_name', 'fitting_price']
        read_only_fields = MASTER_READ_ONLY


class LensDiaSerializer(LensAttributeSerializer):
    class Meta:
        model = LensDia
        fields = ATTRIBUTE_FIELDS + ['short_name']
        read_only_fields = MASTER_READ_ONLY


class LensPriceSerializer(serializers.ModelSerializer):
    coating_name = serializers.CharField(source='coating.name', read_only=True)
    lens_name = serializers.CharField(source='lens.lens_name', read_only=True)

    class Meta:
        model = LensPrice
        fields = ['id', 'lens', 'lens_name', 'coating', 'coating_name', 'price', 'is_active',
                  'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = ['lens'] + MASTER_READ_ONLY
        # (lens, coating) uniqueness is checked by the view (409 DUPLICATE_PRICE)
        validators = []

    def validate_coating(self, value):
        if value.is_deleted or not value.is_active:
            raise serializers.ValidationError("Coating does not exist or is inactive")
        return value


class LensProductSerializer(serializers.ModelSerializer):
    brand_name = serializers.CharField(source='brand.name', read_only=True)
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    material_name = serializers.CharField(source='material.name', read_only=True, default=None)
    type_name = serializers.CharField(source='type.name', read_only=True, default=None)
    price_count = serializers.SerializerMethodField()

    class Meta:
        model = LensProduct
        fields = ['id', 'brand', 'brand_name', 'category', 'category_name', 'material', 'material_name',
                  'type', 'type_name', 'product_code', 'lens_name', 'range_text', 'price_count',
                  'is_active', 'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = MASTER_READ_ONLY
        extra_kwargs = {'product_code': {'validators': []}}

    def get_price_count(self, obj):
        return obj.prices.filter(is_deleted=False).count()

    def validate_lens_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Lens name is required")
        return value

    def validate_product_code(self, value):
        value = value.strip().upper()
        if not value:
            raise serializers.ValidationError("Product code is required")
        return value

    def validate(self, attrs):
        # Referenced masters must be live
        for field in ('brand', 'category', 'material', 'type'):
            master = attrs.get(field)
            if master is not None and (master.is_deleted or not master.is_active):
                raise serializers.ValidationError({field: f"Selected {field} does not exist or is inactive"})
        return attrs


class LensProductDetailSerializer(LensProductSerializer):
    prices = serializers.SerializerMethodField()

    class Meta(LensProductSerializer.Meta):
        fields = LensProductSerializer.Meta.fields + ['prices']

    def get_prices(self, obj):
        prices = obj.prices.filter(is_deleted=False).select_related('coating').order_by('coating__name')
        return LensPriceSerializer(prices, many=True).data
