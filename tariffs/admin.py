from django.contrib import admin
from django.http import HttpResponse
from django.shortcuts import render
from django.urls import path

from .forms import ConsumptionBandInlineFormSet, TariffScheduleYAMLUploadForm
from .models import ConsumptionBand, TariffSchedule
from .yaml_service import TariffScheduleYAMLExporter, TariffScheduleYAMLImporter


class ConsumptionBandInline(admin.TabularInline):
    model = ConsumptionBand
    formset = ConsumptionBandInlineFormSet
    extra = 1
    fields = ["upto_units", "rate"]


@admin.register(TariffSchedule)
class TariffScheduleAdmin(admin.ModelAdmin):
    list_display = ["connection_type", "name", "fixed_charge", "tax_rate", "band_count"]
    search_fields = ["connection_type", "name"]
    inlines = [ConsumptionBandInline]
    change_list_template = "admin/tariffs/tariffschedule_changelist.html"
    actions = ["export_selected_schedules_to_yaml"]

    def band_count(self, obj):
        return obj.bands.count()

    band_count.short_description = "Bands"

    def get_urls(self):
        """Add custom URLs for import/export views."""
        urls = super().get_urls()
        custom_urls = [
            path(
                "import/",
                self.admin_site.admin_view(self.import_schedules_view),
                name="tariffs_tariffschedule_import",
            ),
            path(
                "export/",
                self.admin_site.admin_view(self.export_schedules_view),
                name="tariffs_tariffschedule_export",
            ),
        ]
        return custom_urls + urls

    def import_schedules_view(self, request):
        """Handle YAML import via file upload."""
        if request.method == "POST":
            form = TariffScheduleYAMLUploadForm(request.POST, request.FILES)
            if form.is_valid():
                yaml_content = form.cleaned_data["yaml_file"].read().decode("utf-8")

                importer = TariffScheduleYAMLImporter(
                    yaml_content, replace_existing=form.cleaned_data["replace_existing"]
                )
                results = importer.import_schedules()

                context = {
                    **self.admin_site.each_context(request),
                    "results": results,
                    "opts": self.model._meta,
                    "title": "YAML Import Results",
                }
                return render(request, "admin/tariffs/tariffschedule_import_result.html", context)
        else:
            form = TariffScheduleYAMLUploadForm()

        context = {
            **self.admin_site.each_context(request),
            "form": form,
            "opts": self.model._meta,
            "title": "Import Tariff Schedules from YAML",
        }
        return render(request, "admin/tariffs/tariffschedule_import.html", context)

    def export_schedules_view(self, request):
        """Export all tariff schedules as YAML download."""
        return self._yaml_response(TariffSchedule.objects.all(), "tariff_schedules.yaml")

    @admin.action(description="Export selected schedules to YAML")
    def export_selected_schedules_to_yaml(self, request, queryset):
        """Export selected tariff schedules as YAML download."""
        return self._yaml_response(queryset, "tariff_schedules_selected.yaml")

    def _yaml_response(self, queryset, filename):
        yaml_str = TariffScheduleYAMLExporter(queryset).export_to_yaml()
        response = HttpResponse(yaml_str, content_type="application/x-yaml")
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        return response
