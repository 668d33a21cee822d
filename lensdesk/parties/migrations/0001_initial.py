import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


def party_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('is_active', models.BooleanField(default=True)),
        ('is_deleted', models.BooleanField(default=False)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('code', models.CharField(max_length=50, unique=True)),
        ('name', models.CharField(max_length=200)),
        ('shop_name', models.CharField(blank=True, max_length=200)),
        ('phone', models.CharField(blank=True, max_length=15)),
        ('alternate_phone', models.CharField(blank=True, max_length=15)),
        ('address', models.CharField(blank=True, max_length=500)),
        ('city', models.CharField(blank=True, max_length=100)),
        ('state', models.CharField(blank=True, max_length=100)),
        ('pincode', models.CharField(blank=True, max_length=10)),
        ('gstin', models.CharField(blank=True, max_length=15)),
        ('notes', models.CharField(blank=True, max_length=1000)),
        ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
        ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Customer',
            fields=party_fields() + [
                ('email', models.EmailField(max_length=254)),
                ('credit_limit', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('outstanding_credit', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('sales_person', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='customers', to=settings.AUTH_USER_MODEL)),
            ],
            options={'db_table': 'customers', 'ordering': ['name']},
        ),
        migrations.CreateModel(
            name='Vendor',
            fields=party_fields() + [
                ('email', models.EmailField(blank=True, max_length=254)),
                ('category', models.CharField(blank=True, max_length=100)),
            ],
            options={'db_table': 'vendors', 'ordering': ['name']},
        ),
    ]
