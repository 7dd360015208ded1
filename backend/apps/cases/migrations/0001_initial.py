import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('matters', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='CaseFile',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True, default='')),
                ('title', models.CharField(max_length=255)),
                ('case_number', models.CharField(blank=True, default='', max_length=100)),
                ('jurisdiction', models.CharField(blank=True, default='', max_length=255)),
                ('court', models.CharField(blank=True, default='', max_length=255)),
                ('status', models.CharField(choices=[('Pre-Filing', 'Pre-Filing'), ('Active', 'Active'), ('Discovery', 'Discovery'), ('Trial', 'Trial'), ('Closed', 'Closed')], db_index=True, default='Active', max_length=20)),
                ('opposing_counsel', models.CharField(blank=True, default='', max_length=255)),
                ('filing_date', models.DateField(blank=True, null=True)),
                ('description', models.TextField(blank=True, default='')),
                ('key_dates', models.JSONField(blank=True, default=list)),
                ('lead_counsel', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='led_case_files', to=settings.AUTH_USER_MODEL)),
                ('matter', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='case_files', to='matters.matter')),
            ],
            options={
                'ordering': ['-created_at'],
                'abstract': False,
                'indexes': [models.Index(fields=['matter', '-created_at'], name='casefile_matter_created_idx')],
            },
        ),
    ]
