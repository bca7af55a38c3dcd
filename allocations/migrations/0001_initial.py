import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('farms', '0001_initial'),
        ('flocks', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='BatchAllocation',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('quantity', models.PositiveIntegerField(verbose_name='quantity')),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='flocks.batch', verbose_name='batch')),
                ('house', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='farms.house', verbose_name='house')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='created by')),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='updated by')),
            ],
            options={
                'verbose_name': 'batch allocation',
                'verbose_name_plural': 'batch allocations',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['house', 'created_at'], name='alloc_house_created_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('batch', 'house'), name='uniq_allocation_per_batch_house'),
                    models.CheckConstraint(condition=models.Q(('quantity__gte', 1)), name='allocation_quantity_positive'),
                ],
            },
        ),
    ]
