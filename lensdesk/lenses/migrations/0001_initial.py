import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


def master_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('is_active', models.BooleanField(default=True)),
        ('is_deleted', models.BooleanField(default=False)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
        ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
    ]


def attribute_fields():
    return master_fields() + [
        ('name', models.CharField(max_length=200)),
        ('description', models.CharField(blank=True, max_length=500)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='LensBrand',
            fields=attribute_fields(),
            options={'db_table': 'lens_brands', 'ordering': ['name']},
        ),
        migrations.CreateModel(
            name='LensCategory',
            fields=attribute_fields(),
            options={'db_table': 'lens_categories', 'ordering': ['name'], 'verbose_name_plural': 'lens categories'},
        ),
        migrations.CreateModel(
            name='LensMaterial',
            fields=attribute_fields(),
            options={'db_table': 'lens_materials', 'ordering': ['name']},
        ),
        migrations.CreateModel(
            name='LensType',
            fields=attribute_fields(),
            options={'db_table': 'lens_types', 'ordering': ['name']},
        ),
        migrations.CreateModel(
            name='LensCoating',
            fields=attribute_fields() + [
                ('short_name', models.CharField(blank=True, max_length=50)),
            ],
            options={'db_table': 'lens_coatings', 'ordering': ['name']},
        ),
        migrations.CreateModel(
            name='LensTinting',
            fields=attribute_fields() + [
                ('short_name', models.CharField(blank=True, max_length=50)),
                ('tinting_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
            ],
            options={'db_table': 'lens_tintings', 'ordering': ['name']},
        ),
        migrations.CreateModel(
            name='LensFitting',
            fields=attribute_fields() + [
                ('short_name', models.CharField(blank=True, max_length=50)),
                ('fitting_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
            ],
            options={'db_table': 'lens_fittings', 'ordering': ['name']},
        ),
        migrations.CreateModel(
            name='LensDia',
            fields=attribute_fields() + [
                ('short_name', models.CharField(blank=True, max_length=50)),
            ],
            options={'db_table': 'lens_dias', 'ordering': ['name'], 'verbose_name': 'lens diameter'},
        ),
        migrations.CreateModel(
            name='LensProduct',
            fields=master_fields() + [
                ('product_code', models.CharField(max_length=100, unique=True)),
                ('lens_name', models.CharField(max_length=200)),
                ('range_text', models.CharField(blank=True, max_length=500)),
                ('brand', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='products', to='lenses.lensbrand')),
                ('category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='products', to='lenses.lenscategory')),
                ('material', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='products', to='lenses.lensmaterial')),
                ('type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='products', to='lenses.lenstype')),
            ],
            options={'db_table': 'lens_products', 'ordering': ['lens_name']},
        ),
        migrations.CreateModel(
            name='LensPrice',
            fields=master_fields() + [
                ('price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('coating', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='prices', to='lenses.lenscoating')),
                ('lens', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='prices', to='lenses.lensproduct')),
            ],
            options={'db_table': 'lens_prices', 'unique_together': {('lens', 'coating')}},
        ),
    ]
