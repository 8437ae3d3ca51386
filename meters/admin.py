from django.contrib import admin
from django.shortcuts import render
from django.urls import path

from .csv_service import ReadingCSVImporter
from .forms import ReadingCSVUploadForm
from .models import Reading


@admin.register(Reading)
class ReadingAdmin(admin.ModelAdmin):
    list_display = [
        "connection",
        "month",
        "previous_unit",
        "current_unit",
        "units_consumed",
        "recorded_at",
    ]
    list_filter = ["month", "connection__connection_type"]
    search_fields = ["connection__meter_number", "connection__customer__name"]
    date_hierarchy = "recorded_at"
    readonly_fields = [
        "connection",
        "month",
        "previous_unit",
        "current_unit",
        "units_consumed",
        "recorded_at",
        "created_at",
    ]
    list_per_page = 50
    change_list_template = "admin/meters/reading_changelist.html"

    def has_add_permission(self, request):
        # Readings are recorded through the import view so consumption and billing stay derived
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_urls(self):
        """Add custom URLs for import view."""
        urls = super().get_urls()
        custom_urls = [
            path(
                "import/",
                self.admin_site.admin_view(self.import_readings_view),
                name="meters_reading_import",
            ),
        ]
        return custom_urls + urls

    def import_readings_view(self, request):
        """Handle CSV import via file upload."""
        if request.method == "POST":
            form = ReadingCSVUploadForm(request.POST, request.FILES)
            if form.is_valid():
                csv_content = form.cleaned_data["csv_file"].read().decode("utf-8")

                importer = ReadingCSVImporter(
                    csv_content, send_statements=form.cleaned_data["send_statements"]
                )
                results = importer.import_readings()

                context = {
                    **self.admin_site.each_context(request),
                    "results": results,
                    "opts": self.model._meta,
                    "title": "CSV Import Results",
                }
                return render(request, "admin/meters/reading_import_result.html", context)
        else:
            form = ReadingCSVUploadForm()

        context = {
            **self.admin_site.each_context(request),
            "form": form,
            "opts": self.model._meta,
            "title": "Import Meter Readings from CSV",
        }
        return render(request, "admin/meters/reading_import.html", context)
