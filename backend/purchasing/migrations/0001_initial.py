import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parties', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PurchaseOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('po_number', models.CharField(max_length=100, unique=True)),
                ('cop_number', models.CharField(blank=True, max_length=100, null=True)),
                ('client', models.CharField(blank=True, max_length=255, null=True)),
                ('client_division', models.CharField(blank=True, max_length=255, null=True)),
                ('client_department', models.CharField(blank=True, max_length=255, null=True)),
                ('buyer', models.CharField(blank=True, max_length=255, null=True)),
                ('vendor', models.CharField(blank=True, max_length=255, null=True)),
                ('factory', models.CharField(blank=True, max_length=255, null=True)),
                ('product_group', models.CharField(blank=True, max_length=255, null=True)),
                ('product_category', models.CharField(blank=True, max_length=255, null=True)),
                ('season', models.CharField(blank=True, max_length=100, null=True)),
                ('program_description', models.CharField(blank=True, max_length=500, null=True)),
                ('office', models.CharField(blank=True, max_length=100, null=True)),
                ('po_date', models.DateField(blank=True, null=True)),
                ('original_ship_date', models.DateField(blank=True, null=True)),
                ('original_cancel_date', models.DateField(blank=True, null=True)),
                ('revised_ship_date', models.DateField(blank=True, null=True)),
                ('revised_cancel_date', models.DateField(blank=True, null=True)),
                ('revised_reason', models.CharField(blank=True, max_length=500, null=True)),
                ('confirmation_date', models.DateField(blank=True, null=True)),
                ('total_quantity', models.IntegerField(default=0)),
                ('balance_quantity', models.IntegerField(default=0)),
                ('total_value', models.BigIntegerField(default=0)),
                ('shipped_value', models.BigIntegerField(default=0)),
                ('status', models.CharField(choices=[('Booked-to-ship', 'Booked-to-ship'), ('Shipped', 'Shipped'), ('Closed', 'Closed'), ('Cancelled', 'Cancelled')], default='Booked-to-ship', max_length=50)),
                ('shipment_status', models.CharField(blank=True, max_length=50, null=True)),
                ('content_hash', models.CharField(blank=True, max_length=32, null=True)),
                ('pts_number', models.CharField(blank=True, max_length=100, null=True)),
                ('pts_date', models.DateField(blank=True, null=True)),
                ('pts_status', models.CharField(blank=True, max_length=100, null=True)),
                ('logistic_status', models.CharField(blank=True, max_length=100, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('vendor_ref', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='purchase_orders', to='parties.vendor')),
            ],
            options={
                'db_table': 'po_headers',
                'ordering': ['-po_date', '-id'],
                'indexes': [
                    models.Index(fields=['vendor'], name='idx_po_vendor'),
                    models.Index(fields=['client'], name='idx_po_client'),
                    models.Index(fields=['status'], name='idx_po_status'),
                    models.Index(fields=['po_date'], name='idx_po_date'),
                    models.Index(fields=['revised_ship_date'], name='idx_po_revised_ship'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PurchaseOrderLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('po_number', models.CharField(max_length=100)),
                ('line_sequence', models.IntegerField(default=1)),
                ('sku', models.CharField(blank=True, max_length=100, null=True)),
                ('style', models.CharField(blank=True, max_length=100, null=True)),
                ('seller_style', models.CharField(blank=True, max_length=100, null=True)),
                ('order_quantity', models.IntegerField(default=0)),
                ('balance_quantity', models.IntegerField(default=0)),
                ('unit_price', models.BigIntegerField(default=0)),
                ('line_total', models.BigIntegerField(default=0)),
                ('purchase_order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='purchasing.purchaseorder')),
            ],
            options={
                'db_table': 'po_line_items',
                'ordering': ['purchase_order', 'line_sequence'],
                'indexes': [
                    models.Index(fields=['po_number'], name='idx_poline_po_number'),
                    models.Index(fields=['sku'], name='idx_poline_sku'),
                ],
            },
        ),
    ]
