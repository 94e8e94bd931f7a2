import decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenant', '0001_initial'),
        ('products', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Ingredient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_active', models.BooleanField(db_index=True, default=True, help_text='Inactive records are considered archived.')),
                ('archived_at', models.DateTimeField(blank=True, null=True)),
                ('name', models.CharField(max_length=200)),
                ('ingredient_type', models.CharField(choices=[('physical', 'Physical'), ('non_physical', 'Non-physical (cost only)')], default='physical', help_text='Non-physical ingredients (gas, labour...) add cost but never move stock.', max_length=20)),
                ('stock_quantity', models.DecimalField(decimal_places=4, default=decimal.Decimal('0'), help_text='Current stock in recipe units. Negative means oversold.', max_digits=14)),
                ('unit', models.CharField(default='gram', help_text='Recipe unit', max_length=50)),
                ('unit_of_purchase', models.CharField(blank=True, max_length=50)),
                ('conversion_rate', models.DecimalField(decimal_places=4, default=decimal.Decimal('1'), help_text='Recipe units per purchase unit (e.g. 1000 gram per kg)', max_digits=12, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0'))])),
                ('unit_cost', models.DecimalField(decimal_places=4, default=decimal.Decimal('0'), help_text='Moving-average cost of one recipe unit', max_digits=14)),
                ('last_purchase_price', models.DecimalField(blank=True, decimal_places=2, help_text='Price paid per purchase unit on the last restock', max_digits=14, null=True)),
                ('last_purchase_date', models.DateTimeField(blank=True, null=True)),
                ('low_stock_threshold', models.DecimalField(decimal_places=4, default=decimal.Decimal('0'), max_digits=14)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('archived_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inventory_ingredient_archived', to=settings.AUTH_USER_MODEL)),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ingredients', to='tenant.tenant')),
            ],
            options={
                'verbose_name': 'Ingredient',
                'verbose_name_plural': 'Ingredients',
                'ordering': ['name'],
                'indexes': [
                    models.Index(fields=['tenant', 'is_active'], name='ingredient_tenant_active_idx'),
                    models.Index(fields=['tenant', 'ingredient_type'], name='ingredient_tenant_type_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Recipe',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(blank=True, max_length=200)),
                ('menu_item', models.OneToOneField(help_text='The menu item this recipe is for.', on_delete=django.db.models.deletion.CASCADE, related_name='recipe', to='products.menuitem')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='recipes', to='tenant.tenant')),
            ],
            options={
                'verbose_name': 'Recipe',
                'verbose_name_plural': 'Recipes',
            },
        ),
        migrations.CreateModel(
            name='RecipeItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=4, help_text='Quantity of the ingredient (in its recipe unit) per unit sold.', max_digits=12, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0'))])),
                ('ingredient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='recipe_items', to='inventory.ingredient')),
                ('recipe', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='inventory.recipe')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='recipe_items', to='tenant.tenant')),
            ],
            options={
                'verbose_name': 'Recipe Item',
                'verbose_name_plural': 'Recipe Items',
                'unique_together': {('recipe', 'ingredient')},
                'indexes': [models.Index(fields=['tenant', 'recipe', 'ingredient'], name='recipeitem_ten_rec_ingr_idx')],
            },
        ),
        migrations.AddField(
            model_name='recipe',
            name='ingredients',
            field=models.ManyToManyField(related_name='recipes', through='inventory.RecipeItem', to='inventory.ingredient'),
        ),
        migrations.AddIndex(
            model_name='recipe',
            index=models.Index(fields=['tenant', 'menu_item'], name='recipe_tenant_menu_item_idx'),
        ),
        migrations.CreateModel(
            name='StockHistoryEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('operation_type', models.CharField(choices=[('in', 'Stock In'), ('out', 'Stock Out'), ('opname', 'Stock Opname'), ('restock', 'Restock')], max_length=20)),
                ('quantity', models.DecimalField(decimal_places=4, help_text='Absolute amount moved, in recipe units', max_digits=14)),
                ('previous_quantity', models.DecimalField(decimal_places=4, max_digits=14)),
                ('new_quantity', models.DecimalField(decimal_places=4, max_digits=14)),
                ('previous_unit_cost', models.DecimalField(blank=True, decimal_places=4, max_digits=14, null=True)),
                ('new_unit_cost', models.DecimalField(blank=True, decimal_places=4, max_digits=14, null=True)),
                ('purchase_total', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('notes', models.TextField(blank=True)),
                ('reference_id', models.CharField(blank=True, db_index=True, help_text="Links related operations, e.g. 'order:<uuid>'", max_length=100)),
                ('timestamp', models.DateTimeField(auto_now_add=True)),
                ('ingredient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='stock_history', to='inventory.ingredient')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stock_history_entries', to='tenant.tenant')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='stock_operations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Stock History Entry',
                'verbose_name_plural': 'Stock History Entries',
                'ordering': ['-timestamp', '-id'],
                'indexes': [
                    models.Index(fields=['tenant', 'ingredient', 'timestamp'], name='stock_hist_ten_ingr_time_idx'),
                    models.Index(fields=['tenant', 'operation_type'], name='stock_hist_ten_operation_idx'),
                    models.Index(fields=['tenant', 'reference_id'], name='stock_hist_ten_reference_idx'),
                ],
            },
        ),
    ]
