from django.contrib import admin

from activities.models import Activity, Enrollment, OccurrenceLedger


class EnrollmentInline(admin.TabularInline):
    model = Enrollment
    extra = 0
    fields = ["user_id", "occurrence_date", "state", "created_at"]
    readonly_fields = fields
    can_delete = False


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ["title", "kind", "status", "capacity", "requires_approval", "created_at"]
    list_filter = ["kind", "status"]
    search_fields = ["title", "location"]
    inlines = [EnrollmentInline]


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    """Read-only: state changes must go through the enrollment service."""

    list_display = ["activity", "user_id", "occurrence_date", "state", "created_at"]
    list_filter = ["state", "activity"]
    search_fields = ["user_id", "activity__title"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(OccurrenceLedger)
class OccurrenceLedgerAdmin(admin.ModelAdmin):
    list_display = ["activity", "occurrence_date", "accepted_count"]
    list_filter = ["activity"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
