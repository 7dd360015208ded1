import uuid

import apps.common.uploads
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('cases', '0001_initial'),
        ('matters', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Document',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True, default='')),
                ('title', models.CharField(max_length=255)),
                ('document_type', models.CharField(blank=True, db_index=True, default='', max_length=100)),
                ('description', models.TextField(blank=True, default='')),
                ('file', models.FileField(blank=True, max_length=500, null=True, upload_to=apps.common.uploads.document_upload_to)),
                ('file_url', models.CharField(blank=True, default='', max_length=1000)),
                ('storage_path', models.CharField(blank=True, default='', max_length=500)),
                ('original_name', models.CharField(blank=True, default='', max_length=255)),
                ('mime_type', models.CharField(blank=True, default='', max_length=255)),
                ('size', models.PositiveBigIntegerField(blank=True, null=True)),
                ('version', models.PositiveIntegerField(default=1)),
                ('is_final', models.BooleanField(default=False)),
                ('received_from', models.CharField(blank=True, default='', max_length=255)),
                ('produced_to', models.CharField(blank=True, default='', max_length=255)),
                ('case_file', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='documents', to='cases.casefile')),
                ('matter', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='documents', to='matters.matter')),
                ('uploaded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='uploaded_documents', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'abstract': False,
                'indexes': [models.Index(fields=['matter', 'case_file', 'document_type'], name='document_matter_case_type_idx')],
            },
        ),
    ]
