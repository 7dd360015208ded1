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
            name='Invoice',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('recipient', models.CharField(blank=True, default='', max_length=255)),
                ('matter_advance', models.CharField(blank=True, default='', max_length=255)),
                ('advance_amount', models.FloatField(default=0)),
                ('advance_applied', models.FloatField(default=0)),
                ('advance_balance', models.FloatField(default=0)),
                ('invoice_number', models.CharField(blank=True, default='', max_length=100)),
                ('billing_address', models.TextField(blank=True, default='')),
                ('invoice_date', models.DateField(blank=True, null=True)),
                ('due_date', models.DateField(blank=True, null=True)),
                ('in_matter', models.CharField(blank=True, default='', max_length=255)),
                ('subject', models.CharField(blank=True, default='', max_length=500)),
                ('professional_fees', models.JSONField(blank=True, default=list)),
                ('expenses', models.JSONField(blank=True, default=list)),
                ('government_fees', models.JSONField(blank=True, default=list)),
                ('professional_fees_total', models.FloatField(default=0)),
                ('expenses_total', models.FloatField(default=0)),
                ('government_fees_total', models.FloatField(default=0)),
                ('net_expenses_total', models.FloatField(default=0)),
                ('total_amount', models.FloatField(default=0)),
                ('gross_total_amount', models.FloatField(default=0)),
                ('balance_due', models.FloatField(default=0)),
                ('paid_amount', models.FloatField(default=0)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('overdue', 'Overdue'), ('dueSoon', 'Due soon'), ('paymentDue', 'Payment due'), ('partial', 'Partially paid'), ('paid', 'Paid')], db_index=True, default='draft', max_length=20)),
                ('account_holder', models.CharField(blank=True, default='', max_length=255)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_invoices', to=settings.AUTH_USER_MODEL)),
                ('matter', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='invoices', to='matters.matter')),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='updated_invoices', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-invoice_date', '-created_at'],
                'indexes': [models.Index(fields=['matter', 'invoice_number'], name='invoice_matter_number_idx')],
            },
        ),
    ]
