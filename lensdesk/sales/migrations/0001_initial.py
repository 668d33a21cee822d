import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


def price_field():
    return models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10,
                               validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])


def master_fk(to):
    return models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT,
                             related_name='sale_orders', to=to)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('lenses', '0001_initial'),
        ('parties', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='SaleOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_active', models.BooleanField(default=True)),
                ('is_deleted', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order_no', models.CharField(editable=False, max_length=50, unique=True)),
                ('customer_ref_no', models.CharField(blank=True, max_length=100)),
                ('order_date', models.DateField(default=django.utils.timezone.localdate)),
                ('order_type', models.CharField(blank=True, max_length=100)),
                ('delivery_schedule', models.DateField(blank=True, null=True)),
                ('remark', models.CharField(blank=True, max_length=500)),
                ('item_ref_no', models.CharField(blank=True, max_length=100)),
                ('free_lens', models.BooleanField(default=False)),
                ('urgent_order', models.BooleanField(default=False)),
                ('free_fitting', models.BooleanField(default=False)),
                ('right_eye', models.BooleanField(default=False)),
                ('left_eye', models.BooleanField(default=False)),
                ('right_spherical', models.CharField(blank=True, max_length=50)),
                ('right_cylindrical', models.CharField(blank=True, max_length=50)),
                ('right_axis', models.CharField(blank=True, max_length=50)),
                ('right_add', models.CharField(blank=True, max_length=50)),
                ('right_dia', models.CharField(blank=True, max_length=50)),
                ('left_spherical', models.CharField(blank=True, max_length=50)),
                ('left_cylindrical', models.CharField(blank=True, max_length=50)),
                ('left_axis', models.CharField(blank=True, max_length=50)),
                ('left_add', models.CharField(blank=True, max_length=50)),
                ('left_dia', models.CharField(blank=True, max_length=50)),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('CONFIRMED', 'Confirmed'), ('IN_PRODUCTION', 'In Production'), ('READY_FOR_DISPATCH', 'Ready for Dispatch'), ('DELIVERED', 'Delivered')], default='DRAFT', max_length=30)),
                ('dispatch_status', models.CharField(choices=[('Pending', 'Pending'), ('Assigned', 'Assigned'), ('In Transit', 'In Transit'), ('Delivered', 'Delivered')], default='Pending', max_length=20)),
                ('dispatch_id', models.CharField(blank=True, max_length=100)),
                ('estimated_date', models.DateField(blank=True, null=True)),
                ('estimated_time', models.CharField(blank=True, max_length=20)),
                ('actual_date', models.DateField(blank=True, null=True)),
                ('actual_time', models.CharField(blank=True, max_length=20)),
                ('dispatch_notes', models.CharField(blank=True, max_length=1000)),
                ('lens_price', price_field()),
                ('right_eye_extra', price_field()),
                ('left_eye_extra', price_field()),
                ('fitting_price', price_field()),
                ('tinting_price', price_field()),
                ('discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Order discount percentage (0-100)', max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0')), django.core.validators.MaxValueValidator(Decimal('100'))])),
                ('additional_price', models.JSONField(blank=True, default=list, help_text='List of {name, value} charges')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sale_orders', to='parties.customer')),
                ('lens', master_fk('lenses.lensproduct')),
                ('category', master_fk('lenses.lenscategory')),
                ('type', master_fk('lenses.lenstype')),
                ('dia', master_fk('lenses.lensdia')),
                ('fitting', master_fk('lenses.lensfitting')),
                ('coating', master_fk('lenses.lenscoating')),
                ('tinting', master_fk('lenses.lenstinting')),
                ('material', master_fk('lenses.lensmaterial')),
                ('assigned_person', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_sale_orders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'sale_orders',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='sale_orders_status_2f6a1c_idx'),
                    models.Index(fields=['order_date'], name='sale_orders_order_d_8b3e4d_idx'),
                ],
            },
        ),
    ]
