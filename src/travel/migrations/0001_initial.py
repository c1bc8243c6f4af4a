import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import src.travel.validators

DISCOUNT_TYPES = [('percentage', 'Percentage'), ('fixed', 'Fixed amount')]


def code_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('code', models.CharField(max_length=40, unique=True)),
        ('discount_type', models.CharField(choices=DISCOUNT_TYPES, default='percentage', max_length=20)),
        ('discount_value', models.DecimalField(decimal_places=2, max_digits=12)),
        ('is_active', models.BooleanField(default=True)),
        ('expires_at', models.DateTimeField(blank=True, null=True)),
        ('max_uses', models.PositiveIntegerField(blank=True, null=True)),
        ('current_uses', models.PositiveIntegerField(default=0)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


def code_constraints(model_name):
    return [
        models.CheckConstraint(
            condition=models.Q(('max_uses__isnull', True), ('current_uses__lte', models.F('max_uses')), _connector='OR'),
            name=f'travel_{model_name}_uses_within_cap',
        ),
        models.CheckConstraint(
            condition=models.Q(('discount_value__gte', 0)),
            name=f'travel_{model_name}_value_non_negative',
        ),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TravelPackage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField()),
                ('location', models.CharField(db_index=True, max_length=200)),
                ('price', models.DecimalField(db_index=True, decimal_places=2, max_digits=12)),
                ('discount_percentage', models.DecimalField(decimal_places=2, default=0, max_digits=5, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('max_guests', models.PositiveIntegerField(default=10)),
                ('current_bookings', models.PositiveIntegerField(default=0)),
                ('available_from', models.DateField(blank=True, null=True)),
                ('available_to', models.DateField(blank=True, null=True)),
                ('duration_days', models.PositiveSmallIntegerField(default=1)),
                ('tags', models.CharField(blank=True, default='', max_length=500)),
                ('image', models.ImageField(blank=True, null=True, upload_to='packages/%Y/%m/', validators=[src.travel.validators.validate_image_file])),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('advertisers', models.ManyToManyField(blank=True, related_name='assigned_packages', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_packages', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['is_active', 'created_at'], name='package_active_created_idx'),
                    models.Index(fields=['available_from', 'available_to'], name='package_window_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('current_bookings__lte', models.F('max_guests'))), name='package_bookings_within_capacity'),
                    models.CheckConstraint(condition=models.Q(('discount_percentage__gte', 0), ('discount_percentage__lte', 100)), name='package_discount_percentage_range'),
                    models.CheckConstraint(condition=models.Q(('price__gte', 0)), name='package_price_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='GlobalDiscountCode',
            fields=code_fields() + [
                ('description', models.CharField(blank=True, default='', max_length=255)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='global_discount_codes', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'abstract': False,
                'constraints': code_constraints('globaldiscountcode'),
            },
        ),
        migrations.CreateModel(
            name='DiscountCode',
            fields=code_fields() + [
                ('commission_rate', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('advertiser', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='discount_codes', to=settings.AUTH_USER_MODEL)),
                ('package', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='discount_codes', to='travel.travelpackage')),
            ],
            options={
                'ordering': ['-created_at'],
                'abstract': False,
                'indexes': [models.Index(fields=['advertiser', 'is_active'], name='code_advertiser_active_idx')],
                'constraints': code_constraints('discountcode'),
            },
        ),
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('guest_count', models.PositiveIntegerField(default=1)),
                ('booking_date', models.DateField()),
                ('contact_name', models.CharField(blank=True, default='', max_length=150)),
                ('contact_phone', models.CharField(blank=True, default='', max_length=30)),
                ('contact_email', models.EmailField(blank=True, default='', max_length=254)),
                ('special_requests', models.TextField(blank=True, default='')),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('discount_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('final_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('confirmed', 'Confirmed'), ('cancelled', 'Cancelled')], default='pending', max_length=10)),
                ('payment_status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('failed', 'Failed')], default='pending', max_length=10)),
                ('stripe_session_id', models.CharField(blank=True, db_index=True, default='', max_length=255)),
                ('stripe_payment_intent_id', models.CharField(blank=True, default='', max_length=255)),
                ('expires_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bookings', to=settings.AUTH_USER_MODEL)),
                ('discount_code', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='bookings', to='travel.discountcode')),
                ('global_code', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='bookings', to='travel.globaldiscountcode')),
                ('package', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bookings', to='travel.travelpackage')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'expires_at'], name='booking_status_expiry_idx'),
                    models.Index(fields=['package', 'status'], name='booking_package_status_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('final_amount__gte', 0)), name='booking_final_amount_non_negative'),
                    models.CheckConstraint(condition=models.Q(('discount_amount__gte', 0)), name='booking_discount_non_negative'),
                    models.CheckConstraint(condition=models.Q(('guest_count__gte', 1)), name='booking_guest_count_positive'),
                    models.CheckConstraint(condition=models.Q(('discount_code__isnull', True), ('global_code__isnull', True), _connector='OR'), name='booking_single_discount_code'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Commission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('percentage', models.DecimalField(decimal_places=2, max_digits=5)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid')], db_index=True, default='pending', max_length=10)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('advertiser', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='commissions', to=settings.AUTH_USER_MODEL)),
                ('booking', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='commission', to='travel.booking')),
                ('discount_code', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='commissions', to='travel.discountcode')),
            ],
            options={
                'ordering': ['-created_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('amount__gte', 0)), name='commission_amount_non_negative'),
                ],
            },
        ),
    ]
