import decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenant', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='MenuItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_active', models.BooleanField(db_index=True, default=True, help_text='Inactive records are considered archived.')),
                ('archived_at', models.DateTimeField(blank=True, null=True)),
                ('name', models.CharField(help_text='Name of the menu item.', max_length=200)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(blank=True, max_length=100)),
                ('price', models.DecimalField(decimal_places=2, help_text='The selling price of the item.', max_digits=12, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0'))])),
                ('is_bundle', models.BooleanField(default=False, help_text='Bundles have no recipe of their own; components are deducted instead.')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('archived_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='products_menuitem_archived', to=settings.AUTH_USER_MODEL)),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='menu_items', to='tenant.tenant')),
            ],
            options={
                'verbose_name': 'Menu Item',
                'verbose_name_plural': 'Menu Items',
                'ordering': ['name'],
                'indexes': [
                    models.Index(fields=['tenant', 'is_active'], name='menuitem_tenant_active_idx'),
                    models.Index(fields=['tenant', 'is_bundle'], name='menuitem_tenant_bundle_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BundleComponent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ('bundle', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bundle_components', to='products.menuitem')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='included_in_bundles', to='products.menuitem')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bundle_components', to='tenant.tenant')),
            ],
            options={
                'constraints': [models.UniqueConstraint(fields=('bundle', 'product'), name='unique_bundle_component')],
            },
        ),
    ]
