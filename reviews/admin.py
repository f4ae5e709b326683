from django.contrib import admin

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'rating', 'short_comment', 'is_approved', 'created_at']
    list_filter = ['is_approved', 'rating', 'created_at']
    search_fields = ['comment', 'user__email', 'user__name']
    actions = ['approve_reviews', 'unapprove_reviews']

    @admin.display(description='Comment')
    def short_comment(self, obj):
        return obj.comment if len(obj.comment) <= 60 else f"{obj.comment[:57]}..."

    @admin.action(description='Approve selected reviews')
    def approve_reviews(self, request, queryset):
        updated = queryset.update(is_approved=True)
        self.message_user(request, f'{updated} review(s) approved.')

    @admin.action(description='Hide selected reviews')
    def unapprove_reviews(self, request, queryset):
        updated = queryset.update(is_approved=False)
        self.message_user(request, f'{updated} review(s) hidden.')
