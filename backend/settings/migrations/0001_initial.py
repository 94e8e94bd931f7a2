import decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenant', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='BusinessSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('loyalty_enabled', models.BooleanField(default=True)),
                ('point_ratio', models.DecimalField(decimal_places=2, default=decimal.Decimal('10000'), help_text='Amount of spend that earns one base point', max_digits=12, validators=[django.core.validators.MinValueValidator(decimal.Decimal('1'))])),
                ('silver_threshold', models.DecimalField(decimal_places=2, default=decimal.Decimal('500000'), help_text='Lifetime spend at which a customer becomes silver', max_digits=14)),
                ('gold_threshold', models.DecimalField(decimal_places=2, default=decimal.Decimal('2000000'), help_text='Lifetime spend at which a customer becomes gold', max_digits=14)),
                ('silver_multiplier', models.DecimalField(decimal_places=2, default=decimal.Decimal('1.25'), max_digits=4)),
                ('gold_multiplier', models.DecimalField(decimal_places=2, default=decimal.Decimal('1.50'), max_digits=4)),
                ('stock_policy', models.CharField(blank=True, choices=[('permissive', 'Permissive (allow negative stock)'), ('strict', 'Strict (reject insufficient stock)')], default='', help_text='Leave blank to use the INVENTORY_STOCK_POLICY setting', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tenant', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='business_settings', to='tenant.tenant')),
            ],
            options={
                'verbose_name': 'Business Settings',
                'verbose_name_plural': 'Business Settings',
            },
        ),
    ]
