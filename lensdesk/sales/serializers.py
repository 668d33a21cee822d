from decimal import Decimal, InvalidOperation
from rest_framework import serializers
from .models import SaleOrder

MASTER_FIELDS = ['lens', 'category', 'type', 'dia', 'fitting', 'coating', 'tinting', 'material']
EYE_FIELDS = [
    'right_eye', 'left_eye',
    'right_spherical', 'right_cylindrical', 'right_axis', 'right_add', 'right_dia',
    'left_spherical', 'left_cylindrical', 'left_axis', 'left_add', 'left_dia',
]
DISPATCH_FIELDS = [
    'dispatch_status', 'assigned_person', 'dispatch_id', 'estimated_date', 'estimated_time',
    'actual_date', 'actual_time', 'dispatch_notes',
]
PRICE_FIELDS = ['lens_price', 'right_eye_extra', 'left_eye_extra', 'fitting_price', 'tinting_price',
                'discount', 'additional_price']


def validate_additional_price(value):
    """A list of ``{name, value}`` charges with non-negative values"""
    if value in (None, ''):
        return []
    if not isinstance(value, list):
        raise serializers.ValidationError("Additional price must be a list of {name, value} items")
    cleaned = []
    for index, item in enumerate(value):
        if not isinstance(item, dict) or not str(item.get('name') or '').strip():
            raise serializers.ValidationError(f"Item {index + 1}: name is required")
        try:
            amount = Decimal(str(item.get('value', 0)))
        except (InvalidOperation, ValueError):
            raise serializers.ValidationError(f"Item {index + 1}: value must be a number")
        if amount.is_nan() or amount < 0:
            raise serializers.ValidationError(f"Item {index + 1}: value must be a non-negative number")
        cleaned.append({'name': str(item['name']).strip(), 'value': float(amount)})
    return cleaned


class SaleOrderSerializer(serializers.ModelSerializer):
    customer_code = serializers.CharField(source='customer.code', read_only=True)
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    lens_name = serializers.CharField(source='lens.lens_name', read_only=True, default=None)
    coating_name = serializers.CharField(source='coating.name', read_only=True, default=None)
    assigned_person_name = serializers.CharField(source='assigned_person.username', read_only=True, default=None)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = SaleOrder
        fields = (
            ['id', 'order_no', 'customer', 'customer_code', 'customer_name', 'customer_ref_no', 'order_date',
             'order_type', 'delivery_schedule', 'remark', 'item_ref_no', 'free_lens', 'urgent_order',
             'free_fitting']
            + MASTER_FIELDS + ['lens_name', 'coating_name']
            + EYE_FIELDS
            + ['status'] + DISPATCH_FIELDS + ['assigned_person_name']
            + PRICE_FIELDS + ['subtotal', 'total']
            + ['is_active', 'created_by', 'updated_by', 'created_at', 'updated_at']
        )
        read_only_fields = ['order_no', 'created_by', 'updated_by', 'created_at', 'updated_at']

    def validate_customer(self, value):
        if value.is_deleted or not value.is_active:
            raise serializers.ValidationError("Customer does not exist or is inactive")
        return value

    def validate_additional_price(self, value):
        return validate_additional_price(value)

    def validate(self, attrs):
        # Referenced lens masters must be live
        for field in MASTER_FIELDS:
            master = attrs.get(field)
            if master is not None and (master.is_deleted or not master.is_active):
                raise serializers.ValidationError({field: f"Selected {field} does not exist or is inactive"})
        return attrs


class SaleOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=SaleOrder.STATUS_CHOICES)


class SaleOrderDispatchSerializer(serializers.ModelSerializer):
    class Meta:
        model = SaleOrder
        fields = DISPATCH_FIELDS

    def validate_assigned_person(self, value):
        if value is not None and not value.is_active:
            raise serializers.ValidationError("Assigned person is inactive")
        return value
