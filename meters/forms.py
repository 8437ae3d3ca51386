"""
Forms for meter reading management.
"""

from django import forms


class ReadingCSVUploadForm(forms.Form):
    """Form for uploading a CSV file of meter readings."""

    csv_file = forms.FileField(
        label="CSV File",
        help_text="Upload a .csv file with columns meter_number, month, current_unit "
        "and optionally recorded_at (max 10MB)",
        widget=forms.FileInput(attrs={"accept": ".csv"}),
    )
    send_statements = forms.BooleanField(
        required=False,
        initial=True,
        help_text="Email a bill statement to each customer billed",
    )

    def clean_csv_file(self):
        """Validate file extension and size."""
        csv_file = self.cleaned_data["csv_file"]

        if not csv_file.name.endswith(".csv"):
            raise forms.ValidationError(f"File must have .csv extension. Received: {csv_file.name}")

        max_size = 10 * 1024 * 1024
        if csv_file.size > max_size:
            size_mb = csv_file.size / (1024 * 1024)
            raise forms.ValidationError(
                f"File size ({size_mb:.2f}MB) exceeds maximum allowed size (10MB)"
            )

        return csv_file
