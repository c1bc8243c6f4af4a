import django.db.models.deletion
import django.db.models.functions.text
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('travel', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='InclusionType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('name_en', models.CharField(blank=True, default='', max_length=120)),
                ('name_th', models.CharField(blank=True, default='', max_length=120)),
                ('description', models.TextField(blank=True, default='')),
                ('category', models.CharField(blank=True, db_index=True, default='', max_length=50)),
                ('display_order', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['display_order', 'name'],
                'constraints': [
                    models.UniqueConstraint(
                        django.db.models.functions.text.Lower('name'), name='inclusion_name_ci_unique'
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='PackageInclusion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_included', models.BooleanField(default=True)),
                ('custom_note', models.CharField(blank=True, default='', max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('inclusion', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='package_links',
                    to='travel.inclusiontype',
                )),
                ('package', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='inclusion_links',
                    to='travel.travelpackage',
                )),
            ],
            options={
                'ordering': ['inclusion__display_order', 'inclusion__name'],
                'constraints': [
                    models.UniqueConstraint(fields=('package', 'inclusion'), name='package_inclusion_unique'),
                ],
            },
        ),
    ]
