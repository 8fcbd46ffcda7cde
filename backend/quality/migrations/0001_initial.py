import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parties', '0001_initial'),
        ('purchasing', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Inspection',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('po_number', models.CharField(max_length=100)),
                ('sku', models.CharField(blank=True, max_length=100, null=True)),
                ('style', models.CharField(blank=True, max_length=100, null=True)),
                ('vendor_name', models.CharField(blank=True, max_length=255, null=True)),
                ('inspection_type', models.CharField(choices=[('Material', 'Material'), ('Initial', 'Initial'), ('Inline', 'Inline'), ('Final', 'Final'), ('Re-Final', 'Re-Final')], max_length=100)),
                ('inspection_date', models.DateField(blank=True, null=True)),
                ('result', models.CharField(blank=True, max_length=100, null=True)),
                ('inspector', models.CharField(blank=True, max_length=255, null=True)),
                ('inspection_company', models.CharField(blank=True, max_length=255, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('purchase_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inspections', to='purchasing.purchaseorder')),
                ('vendor_ref', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inspections', to='parties.vendor')),
            ],
            options={
                'db_table': 'inspections',
                'ordering': ['-inspection_date', '-id'],
                'indexes': [
                    models.Index(fields=['po_number'], name='idx_inspection_po_number'),
                    models.Index(fields=['inspection_type', 'result'], name='idx_inspection_type_result'),
                ],
            },
        ),
        migrations.CreateModel(
            name='QualityTest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('po_number', models.CharField(max_length=100)),
                ('sku', models.CharField(blank=True, max_length=100, null=True)),
                ('style', models.CharField(blank=True, max_length=100, null=True)),
                ('test_type', models.CharField(choices=[('Mandatory', 'Mandatory'), ('Performance', 'Performance'), ('Transit', 'Transit'), ('Retest', 'Retest')], max_length=100)),
                ('report_date', models.DateField(blank=True, null=True)),
                ('report_number', models.CharField(blank=True, max_length=100, null=True)),
                ('result', models.CharField(blank=True, max_length=100, null=True)),
                ('expiry_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(blank=True, max_length=100, null=True)),
                ('corrective_action_plan', models.TextField(blank=True, null=True)),
                ('report_link', models.URLField(blank=True, max_length=1000, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('purchase_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='quality_tests', to='purchasing.purchaseorder')),
            ],
            options={
                'db_table': 'quality_tests',
                'ordering': ['-report_date', '-id'],
                'indexes': [
                    models.Index(fields=['po_number'], name='idx_qtest_po_number'),
                    models.Index(fields=['expiry_date'], name='idx_qtest_expiry'),
                ],
            },
        ),
    ]
