from django import forms
from django.contrib import admin

from .models import AssignmentDetail, BoardPost, Submission, SubmissionComment


class AssignmentDetailAdminForm(forms.ModelForm):
    class Meta:
        model = AssignmentDetail
        exclude = ("access_secret_hash",)

    def clean_max_submissions(self):
        value = self.cleaned_data["max_submissions"]
        current = self.instance.current_submissions if self.instance.pk else 0
        if value and value < current:
            raise forms.ValidationError(
                f"Cannot be lower than the {current} submissions already accepted."
            )
        return value


class AssignmentDetailInline(admin.StackedInline):
    """Edit the detail next to its post; the pair is created and removed through the API."""

    model = AssignmentDetail
    form = AssignmentDetailAdminForm
    fk_name = "post"
    extra = 0
    can_delete = False
    readonly_fields = ("current_submissions", "reviewed_by", "reviewed_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(BoardPost)
class BoardPostAdmin(admin.ModelAdmin):
    list_display = ("title", "post_type", "author", "views", "created_at")
    list_filter = ("post_type",)
    search_fields = ("title", "content")
    readonly_fields = ("post_type", "views")
    inlines = [AssignmentDetailInline]

    def has_add_permission(self, request):
        return False


@admin.register(AssignmentDetail)
class AssignmentDetailAdmin(admin.ModelAdmin):
    form = AssignmentDetailAdminForm
    list_display = (
        "post",
        "class_level",
        "due_date",
        "current_submissions",
        "max_submissions",
        "review_status",
        "has_password",
    )
    list_filter = ("class_level", "review_status")
    search_fields = ("post__title",)
    readonly_fields = ("post", "current_submissions", "reviewed_by", "reviewed_at")

    @admin.display(boolean=True)
    def has_password(self, obj):
        return obj.has_password

    def has_add_permission(self, request):
        return False

    # Deleting the board post removes the detail with it.
    def has_delete_permission(self, request, obj=None):
        return False


class SubmissionCommentInline(admin.TabularInline):
    model = SubmissionComment
    extra = 0


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    """Read-only view of the ledger; checks and feedback go through the review API."""

    list_display = ("student_name", "assignment", "submitted_at", "is_checked", "checked_by")
    list_filter = ("is_checked", "assignment__class_level")
    search_fields = ("student_name", "file_name")
    readonly_fields = (
        "assignment",
        "student",
        "student_name",
        "file_url",
        "file_name",
        "storage_key",
        "comment",
        "submitted_at",
        "is_checked",
        "checked_by",
        "checked_at",
        "feedback",
    )
    inlines = [SubmissionCommentInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(SubmissionComment)
class SubmissionCommentAdmin(admin.ModelAdmin):
    list_display = ("author_name", "submission", "created_at")
    search_fields = ("author_name", "content")
