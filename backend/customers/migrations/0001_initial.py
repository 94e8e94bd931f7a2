import decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenant', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Customer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=150)),
                ('phone', models.CharField(blank=True, max_length=30, null=True)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('total_spent', models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=14)),
                ('visit_count', models.PositiveIntegerField(default=0)),
                ('points', models.PositiveIntegerField(default=0)),
                ('tier', models.CharField(choices=[('regular', 'Regular'), ('silver', 'Silver'), ('gold', 'Gold')], default='regular', max_length=20)),
                ('last_order_date', models.DateTimeField(blank=True, null=True)),
                ('last_points_earned_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='customers', to='tenant.tenant')),
            ],
            options={
                'ordering': ['name'],
                'indexes': [
                    models.Index(fields=['tenant', 'phone'], name='customer_tenant_phone_idx'),
                    models.Index(fields=['tenant', 'tier'], name='customer_tenant_tier_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('phone__isnull', False)), fields=('tenant', 'phone'), name='unique_customer_phone_per_tenant'),
                ],
            },
        ),
    ]
