# blood_requests/admin.py
from django.contrib import admin

from .models import BloodRequest, DonorResponse, Fulfillment


class DonorResponseInline(admin.TabularInline):
    model = DonorResponse
    extra = 0
    readonly_fields = ('donor', 'message', 'can_donate', 'created_at')
    can_delete = False


class FulfillmentInline(admin.TabularInline):
    model = Fulfillment
    extra = 0
    readonly_fields = ('created_at',)


@admin.register(BloodRequest)
class BloodRequestAdmin(admin.ModelAdmin):
    list_display = [
        'id',
        'patient_name',
        'requester',
        'blood_group',
        'units_needed',
        'urgency',
        'status',
        'response_count',
        'created_at',
    ]
    list_filter = ['status', 'urgency', 'blood_group', 'is_emergency', 'created_at']
    search_fields = ['patient_name', 'address', 'contact', 'requester__email', 'requester__name']
    readonly_fields = ['is_emergency', 'fulfilled_at', 'created_at', 'updated_at']
    inlines = [DonorResponseInline, FulfillmentInline]

    fieldsets = (
        ('Request Information', {
            'fields': ('requester', 'patient_name', 'blood_group', 'units_needed',
                       'urgency', 'contact', 'notes', 'status')
        }),
        ('Location', {
            'fields': ('latitude', 'longitude', 'address')
        }),
        ('Timestamps', {
            'fields': ('is_emergency', 'fulfilled_at', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    @admin.display(description='Responses')
    def response_count(self, obj):
        return obj.responses.count()


@admin.register(Fulfillment)
class FulfillmentAdmin(admin.ModelAdmin):
    list_display = ['id', 'blood_request', 'donor', 'units_provided', 'created_at']
    list_filter = ['created_at']
    search_fields = ['donor__email', 'donor__name', 'blood_request__patient_name']
