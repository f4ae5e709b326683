from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User


@admin.register(User)
class BloodConnectUserAdmin(UserAdmin):
    list_display = ('email', 'name', 'role', 'blood_group', 'is_donor', 'is_available', 'donation_count', 'is_locked')
    search_fields = ('email', 'username', 'name', 'phone')
    list_filter = ('role', 'blood_group', 'is_donor', 'is_available', 'is_locked', 'is_staff')
    readonly_fields = ('donation_count', 'badges', 'last_donation', 'created_at', 'updated_at')

    fieldsets = UserAdmin.fieldsets + (
        ('Profile', {
            'fields': ('name', 'phone', 'role', 'blood_group', 'age')
        }),
        ('Location', {
            'fields': ('latitude', 'longitude', 'address')
        }),
        ('Donation Stats', {
            'fields': ('is_donor', 'is_available', 'donation_count', 'badges', 'last_donation')
        }),
        ('Security', {
            'fields': ('failed_attempts', 'is_locked'),
            'classes': ('collapse',),
        }),
    )

    actions = ['unlock_accounts']

    @admin.action(description='Unlock selected accounts')
    def unlock_accounts(self, request, queryset):
        updated = queryset.update(is_locked=False, failed_attempts=0)
        self.message_user(request, f'Unlocked {updated} account(s).')
