"""
User model: email login, practice role and profile details
"""
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models

from apps.common.models import TimestampedModel, UUIDModel
from apps.common.roles import DEFAULT_ROLE, canonical_role, get_role_label
from apps.common.uploads import profile_image_upload_to


class Role(models.TextChoices):
    SUPER_ADMIN = 'super_admin', 'Super Admin'
    ADMIN = 'admin', 'Admin'
    MEMBER = 'member', 'Member'
    CLIENT = 'client', 'Client'


class Gender(models.TextChoices):
    FEMALE = 'Female', 'Female'
    MALE = 'Male', 'Male'
    NON_BINARY = 'Non-binary', 'Non-binary'
    UNDISCLOSED = 'Prefer not to say', 'Prefer not to say'


class OfficeLocation(models.TextChoices):
    AHMEDABAD = 'Ahmedabad', 'Ahmedabad'
    GIFT_CITY = 'Gift City', 'Gift City'


class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('The email must be set')
        email = self.normalize_email(email).strip()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', Role.SUPER_ADMIN)
        return self._create_user(email, password, **extra_fields)


class User(UUIDModel, TimestampedModel, AbstractBaseUser, PermissionsMixin):
    """
    Practice user.

    ``role`` drives every API permission; ``is_staff`` only gates the
    Django admin site.
    """
    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)

    role = models.CharField(max_length=32, choices=Role.choices, default=Role.MEMBER, db_index=True)
    gender = models.CharField(max_length=32, choices=Gender.choices, blank=True, default='')
    office_location = models.CharField(max_length=32, choices=OfficeLocation.choices, blank=True, default='')
    birthdate = models.DateField(null=True, blank=True)
    profile_image = models.FileField(upload_to=profile_image_upload_to, null=True, blank=True)

    # Set when an admin creates or resets the account
    must_change_password = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name or self.email

    @property
    def role_label(self):
        return get_role_label(self.role)

    def save(self, *args, **kwargs):
        self.role = canonical_role(self.role) or DEFAULT_ROLE
        if isinstance(self.office_location, str):
            self.office_location = self.office_location.strip()
        super().save(*args, **kwargs)
