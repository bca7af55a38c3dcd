import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('farms', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Batch',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('is_deleted', models.BooleanField(db_index=True, default=False, verbose_name='deleted')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='deleted at')),
                ('name', models.CharField(max_length=100, verbose_name='name')),
                ('arrival_date', models.DateField(default=django.utils.timezone.localdate, verbose_name='arrival date')),
                ('age_at_arrival', models.PositiveIntegerField(default=0, validators=[django.core.validators.MaxValueValidator(365)], verbose_name='age at arrival (days)')),
                ('chicken_type', models.CharField(choices=[('Broiler', 'Broiler'), ('Layer', 'Layer'), ('Dual-Purpose', 'Dual-Purpose')], max_length=20, verbose_name='chicken type')),
                ('original_count', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(1000000)], verbose_name='original count')),
                ('supplier', models.CharField(blank=True, max_length=200, verbose_name='supplier')),
                ('notes', models.TextField(blank=True, default='', verbose_name='notes')),
                ('dead', models.PositiveIntegerField(default=0, verbose_name='dead')),
                ('culled', models.PositiveIntegerField(default=0, verbose_name='culled')),
                ('offlaid', models.PositiveIntegerField(default=0, verbose_name='off-laid')),
                ('revision', models.PositiveIntegerField(default=0, verbose_name='revision')),
                ('is_archived', models.BooleanField(db_index=True, default=False, verbose_name='archived')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='created by')),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='updated by')),
                ('deleted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='deleted by')),
                ('farm', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='batches', to='farms.farm', verbose_name='farm')),
            ],
            options={
                'verbose_name': 'batch',
                'verbose_name_plural': 'batches',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['farm', 'is_deleted', 'is_archived'], name='flocks_batch_farm_state_idx')],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('original_count__gte', models.F('dead') + models.F('culled') + models.F('offlaid'))), name='batch_losses_within_original_count'),
                    models.CheckConstraint(condition=models.Q(('original_count__gte', 1)), name='batch_original_count_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BirdCountHistory',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('actor_name', models.CharField(blank=True, max_length=200, verbose_name='actor name')),
                ('batch_revision', models.PositiveIntegerField(verbose_name='batch revision')),
                ('dead', models.PositiveIntegerField(default=0, verbose_name='dead delta')),
                ('culled', models.PositiveIntegerField(default=0, verbose_name='culled delta')),
                ('offlaid', models.PositiveIntegerField(default=0, verbose_name='off-laid delta')),
                ('reason', models.CharField(blank=True, max_length=200, verbose_name='reason')),
                ('notes', models.CharField(blank=True, max_length=500, verbose_name='notes')),
                ('before_state', models.JSONField(verbose_name='before state')),
                ('after_state', models.JSONField(verbose_name='after state')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='created at')),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='actor')),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='count_history', to='flocks.batch', verbose_name='batch')),
                ('farm', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='farms.farm', verbose_name='farm')),
                ('house', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='farms.house', verbose_name='house')),
            ],
            options={
                'verbose_name': 'bird count history entry',
                'verbose_name_plural': 'bird count history',
                'ordering': ['-batch_revision'],
                'constraints': [
                    models.UniqueConstraint(fields=('batch', 'batch_revision'), name='uniq_history_per_batch_revision'),
                ],
            },
        ),
    ]
