import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ActivityEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('entity_type', models.CharField(choices=[('task', 'Task'), ('matter', 'Matter'), ('case', 'Case file'), ('document', 'Document'), ('member', 'Member'), ('client', 'Client'), ('invoice', 'Invoice'), ('notice', 'Notice')], max_length=20)),
                ('action', models.CharField(choices=[('created', 'Created'), ('updated', 'Updated'), ('deleted', 'Deleted')], max_length=20)),
                ('entity_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('entity_name', models.CharField(blank=True, default='', max_length=255)),
                ('actor', models.JSONField(blank=True, null=True)),
                ('details', models.JSONField(blank=True, null=True)),
                ('meta', models.JSONField(blank=True, null=True)),
            ],
            options={
                'verbose_name_plural': 'activity entries',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['entity_type', '-created_at'], name='activity_type_created_idx')],
            },
        ),
    ]
