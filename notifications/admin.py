from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['id', 'requester', 'responder', 'blood_request', 'is_read', 'is_completed', 'created_at']
    list_filter = ['is_read', 'is_completed', 'created_at']
    search_fields = ['requester__email', 'responder__email', 'blood_request__patient_name']
    readonly_fields = ['requester', 'responder', 'blood_request', 'created_at']
