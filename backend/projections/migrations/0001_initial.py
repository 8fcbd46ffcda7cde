import django.db.models.deletion
from django.db import migrations, models

ORDER_TYPE_CHOICES = [('regular', 'Regular'), ('mto', 'MTO'), ('spo', 'SPO')]


def projection_fields(related_name):
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('vendor_code', models.CharField(max_length=64)),
        ('sku', models.CharField(max_length=64)),
        ('sku_description', models.TextField(blank=True, null=True)),
        ('brand', models.CharField(max_length=64)),
        ('product_class', models.CharField(blank=True, max_length=100, null=True)),
        ('collection', models.CharField(blank=True, max_length=100, null=True)),
        ('year', models.IntegerField()),
        ('month', models.IntegerField()),
        ('projection_value', models.BigIntegerField(default=0)),
        ('quantity', models.IntegerField(default=0)),
        ('order_type', models.CharField(choices=ORDER_TYPE_CHOICES, default='regular', max_length=20)),
        ('vendor_ref', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name=related_name, to='parties.vendor')),
    ]


def match_fields():
    return [
        ('matched_po_number', models.CharField(blank=True, max_length=100, null=True)),
        ('matched_at', models.DateTimeField(blank=True, null=True)),
        ('actual_quantity', models.IntegerField(blank=True, null=True)),
        ('actual_value', models.BigIntegerField(blank=True, null=True)),
        ('quantity_variance', models.IntegerField(blank=True, null=True)),
        ('value_variance', models.BigIntegerField(blank=True, null=True)),
        ('variance_pct', models.IntegerField(blank=True, null=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parties', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ProjectionSnapshot',
            fields=projection_fields('projectionsnapshot_rows') + [
                ('import_date', models.DateField()),
                ('imported_by', models.CharField(blank=True, max_length=255, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'projection_snapshots',
                'ordering': ['-import_date', 'vendor_code', 'sku'],
                'unique_together': {('vendor_code', 'sku', 'year', 'month', 'import_date')},
            },
        ),
        migrations.CreateModel(
            name='ActiveProjection',
            fields=projection_fields('activeprojection_rows') + [
                ('match_status', models.CharField(choices=[('unmatched', 'Unmatched'), ('matched', 'Matched'), ('partial', 'Partial'), ('expired', 'Expired')], default='unmatched', max_length=20)),
            ] + match_fields() + [
                ('comment', models.TextField(blank=True, null=True)),
                ('commented_at', models.DateTimeField(blank=True, null=True)),
                ('commented_by', models.CharField(blank=True, max_length=255, null=True)),
                ('last_snapshot_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('snapshot', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='active_projections', to='projections.projectionsnapshot')),
            ],
            options={
                'db_table': 'active_projections',
                'ordering': ['year', 'month', 'vendor_code', 'sku'],
                'unique_together': {('vendor_code', 'sku', 'year', 'month')},
                'indexes': [
                    models.Index(fields=['match_status'], name='idx_active_proj_status'),
                    models.Index(fields=['year', 'month'], name='idx_active_proj_period'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProjectionHistory',
            fields=projection_fields('projectionhistory_rows') + [
                ('match_status', models.CharField(blank=True, max_length=20, null=True)),
            ] + match_fields() + [
                ('original_import_date', models.DateField(blank=True, null=True)),
                ('original_imported_by', models.CharField(blank=True, max_length=255, null=True)),
                ('archived_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'vendor_sku_projection_history',
                'ordering': ['-archived_at'],
            },
        ),
        migrations.CreateModel(
            name='ExpiredProjection',
            fields=projection_fields('expiredprojection_rows') + [
                ('original_projection_id', models.IntegerField()),
                ('expired_at', models.DateTimeField(auto_now_add=True)),
                ('expiration_reason', models.CharField(max_length=50)),
                ('threshold_days', models.IntegerField()),
                ('target_month_end', models.DateField()),
                ('days_overdue', models.IntegerField()),
                ('verification_status', models.CharField(choices=[('pending', 'Pending'), ('verified', 'Verified'), ('cancelled', 'Cancelled'), ('restored', 'Restored')], default='pending', max_length=20)),
                ('verified_at', models.DateTimeField(blank=True, null=True)),
                ('verified_by', models.CharField(blank=True, max_length=255, null=True)),
                ('verification_notes', models.TextField(blank=True, null=True)),
                ('restored_at', models.DateTimeField(blank=True, null=True)),
                ('restored_by', models.CharField(blank=True, max_length=255, null=True)),
                ('original_import_date', models.DateField(blank=True, null=True)),
                ('original_imported_by', models.CharField(blank=True, max_length=255, null=True)),
            ],
            options={
                'db_table': 'expired_projections',
                'ordering': ['-expired_at', '-id'],
            },
        ),
    ]
