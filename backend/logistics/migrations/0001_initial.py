import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('purchasing', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Shipment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('po_number', models.CharField(max_length=100)),
                ('line_item_id', models.IntegerField(blank=True, null=True)),
                ('style', models.CharField(blank=True, max_length=100, null=True)),
                ('shipment_number', models.CharField(blank=True, max_length=100, null=True)),
                ('delivery_to_consolidator', models.DateField(blank=True, null=True)),
                ('qty_shipped', models.IntegerField(default=0)),
                ('shipped_value', models.BigIntegerField(default=0)),
                ('actual_port_of_loading', models.CharField(blank=True, max_length=255, null=True)),
                ('actual_sailing_date', models.DateField(blank=True, null=True)),
                ('eta', models.DateField(blank=True, null=True)),
                ('actual_ship_mode', models.CharField(blank=True, max_length=100, null=True)),
                ('poe', models.CharField(blank=True, max_length=255, null=True)),
                ('vessel_flight', models.CharField(blank=True, max_length=255, null=True)),
                ('cargo_ready_date', models.DateField(blank=True, null=True)),
                ('load_type', models.CharField(blank=True, max_length=100, null=True)),
                ('pts_number', models.CharField(blank=True, max_length=100, null=True)),
                ('logistic_status', models.CharField(blank=True, max_length=100, null=True)),
                ('late_reason_code', models.CharField(blank=True, max_length=100, null=True)),
                ('reason', models.TextField(blank=True, null=True)),
                ('hod_status', models.CharField(blank=True, max_length=100, null=True)),
                ('so_first_submission_date', models.DateField(blank=True, null=True)),
                ('pts_status', models.CharField(blank=True, max_length=100, null=True)),
                ('cargo_receipt_status', models.CharField(blank=True, max_length=100, null=True)),
                ('estimated_vessel_etd', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('purchase_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='shipments', to='purchasing.purchaseorder')),
            ],
            options={
                'db_table': 'shipments',
                'ordering': ['-cargo_ready_date', '-created_at'],
                'indexes': [
                    models.Index(fields=['po_number'], name='idx_shipment_po_number'),
                    models.Index(fields=['cargo_ready_date'], name='idx_shipment_cargo_ready'),
                ],
            },
        ),
    ]
