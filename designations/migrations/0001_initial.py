import django.core.validators
import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Designation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('code', models.CharField(help_text='Short unique token, derived from the name when omitted', max_length=50, unique=True)),
                ('description', models.TextField(blank=True)),
                ('level', models.PositiveIntegerField(default=0, help_text='Hierarchy depth (0=top of the ladder)')),
                ('sort_order', models.IntegerField(default=0, help_text='Tie-break ordering within a level')),
                ('department', models.CharField(blank=True, max_length=100, null=True)),
                ('min_salary', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(0)])),
                ('max_salary', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(0)])),
                ('responsibilities', models.JSONField(blank=True, default=list)),
                ('requirements', models.JSONField(blank=True, default=list)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_designations', to=settings.AUTH_USER_MODEL)),
                ('parent', models.ForeignKey(blank=True, help_text='Org-chart parent designation', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='children', to='designations.designation')),
                ('reporting_to', models.ForeignKey(blank=True, help_text='Designation this one reports to administratively', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='reports', to='designations.designation')),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='updated_designations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Designation',
                'verbose_name_plural': 'Designations',
                'ordering': ['level', 'sort_order', 'name'],
                'indexes': [
                    models.Index(fields=['level', 'sort_order'], name='designation_level_8c1f2a_idx'),
                    models.Index(fields=['department'], name='designation_departm_4b7e91_idx'),
                    models.Index(fields=['is_active'], name='designation_is_acti_d35c07_idx'),
                ],
            },
        ),
    ]
