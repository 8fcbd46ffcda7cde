import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parties', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='VendorCapacityData',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vendor_code', models.CharField(max_length=64)),
                ('vendor_name', models.CharField(max_length=255)),
                ('office', models.CharField(blank=True, max_length=100, null=True)),
                ('client', models.CharField(max_length=64)),
                ('year', models.IntegerField()),
                ('month', models.IntegerField()),
                ('shipment_confirmed', models.BigIntegerField(default=0)),
                ('shipment_unconfirmed', models.BigIntegerField(default=0)),
                ('total_shipment', models.BigIntegerField(default=0)),
                ('projection_rebuy', models.BigIntegerField(default=0)),
                ('projection_new', models.BigIntegerField(default=0)),
                ('total_projection', models.BigIntegerField(default=0)),
                ('total_shipment_plus_projection', models.BigIntegerField(default=0)),
                ('reserved_capacity', models.BigIntegerField(default=0)),
                ('balance', models.BigIntegerField(default=0)),
                ('utilized_capacity_pct', models.IntegerField(default=0)),
                ('factory_overall_capacity', models.BigIntegerField(default=0)),
                ('remarks', models.TextField(blank=True, null=True)),
                ('is_locked', models.BooleanField(default=False)),
                ('import_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('vendor_ref', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='capacity_data', to='parties.vendor')),
            ],
            options={
                'db_table': 'vendor_capacity_data',
                'ordering': ['vendor_code', 'year', 'month', 'client'],
                'unique_together': {('vendor_code', 'year', 'month', 'client')},
                'indexes': [
                    models.Index(fields=['year', 'is_locked'], name='idx_capacity_year_locked'),
                ],
            },
        ),
        migrations.CreateModel(
            name='VendorCapacitySummary',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vendor_code', models.CharField(max_length=64)),
                ('vendor_name', models.CharField(max_length=255)),
                ('office', models.CharField(blank=True, max_length=100, null=True)),
                ('year', models.IntegerField()),
                ('total_shipment_annual', models.BigIntegerField(default=0)),
                ('total_projection_annual', models.BigIntegerField(default=0)),
                ('total_reserved_capacity_annual', models.BigIntegerField(default=0)),
                ('avg_utilization_pct', models.IntegerField(default=0)),
                ('cb_shipment_annual', models.BigIntegerField(default=0)),
                ('cb2_shipment_annual', models.BigIntegerField(default=0)),
                ('ck_shipment_annual', models.BigIntegerField(default=0)),
                ('is_locked', models.BooleanField(default=False)),
                ('import_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('vendor_ref', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='capacity_summaries', to='parties.vendor')),
            ],
            options={
                'db_table': 'vendor_capacity_summary',
                'ordering': ['vendor_code', 'year'],
                'unique_together': {('vendor_code', 'year')},
            },
        ),
    ]
