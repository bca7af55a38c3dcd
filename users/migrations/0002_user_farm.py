import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('farms', '0001_initial'),
        ('users', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='user',
            name='farm',
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='members', to='farms.farm', verbose_name='farm'),
        ),
        migrations.AddIndex(
            model_name='user',
            index=models.Index(fields=['farm', 'role'], name='users_user_farm_id_4f5a6b_idx'),
        ),
    ]
