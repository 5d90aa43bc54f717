from django.contrib import admin

from .models import InstructorCohort, UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "class_level", "display_name")
    list_filter = ("role", "class_level")
    search_fields = ("user__username", "display_name")


admin.site.register(InstructorCohort)
