from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ImportHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('file_name', models.CharField(max_length=255)),
                ('file_type', models.CharField(max_length=50)),
                ('records_imported', models.IntegerField(default=0)),
                ('records_skipped', models.IntegerField(default=0)),
                ('imported_by', models.CharField(blank=True, max_length=255, null=True)),
                ('status', models.CharField(choices=[('success', 'Success'), ('partial', 'Partial'), ('failed', 'Failed')], default='success', max_length=20)),
                ('error_message', models.TextField(blank=True, null=True)),
                ('warnings', models.JSONField(blank=True, default=list)),
                ('pre_import_count', models.IntegerField(blank=True, null=True)),
                ('post_import_count', models.IntegerField(blank=True, null=True)),
                ('file_row_count', models.IntegerField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'import_history',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['file_type', 'created_at'], name='idx_import_type_created'),
                ],
            },
        ),
    ]
