from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    ordering = ['name']
    list_display = ['name', 'email', 'role', 'office_location', 'must_change_password']
    list_filter = ['role', 'office_location', 'is_active']
    search_fields = ['name', 'email']
    readonly_fields = ['id', 'password', 'created_at', 'updated_at', 'last_login']

    fieldsets = [
        ('Account', {'fields': ['id', 'email', 'password', 'must_change_password']}),
        ('Profile', {'fields': ['name', 'role', 'gender', 'office_location', 'birthdate', 'profile_image']}),
        ('Permissions', {'fields': ['is_active', 'is_staff', 'is_superuser']}),
        ('Timestamps', {'fields': ['last_login', 'created_at', 'updated_at']}),
    ]
