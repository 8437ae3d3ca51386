"""
CSV import service for meter readings.

Provides ReadingCSVImporter class for recording a batch of meter readings
uploaded in CSV format. Each valid row is recorded and billed exactly as a
single reading would be.
"""

import io
import zoneinfo
from datetime import datetime, timezone
from typing import Optional

import pandas as pd
from dateutil import parser as dateutil_parser

from billing.core.ports import NotificationDelivery
from billing.exceptions import BillingServiceError
from customers.models import Connection
from meters.services import record_meter_reading, validate_month


class ReadingCSVImporter:
    """Import meter readings from CSV format with validation."""

    REQUIRED_COLUMNS = {"meter_number", "month", "current_unit"}
    OPTIONAL_COLUMNS = {"recorded_at"}

    def __init__(
        self,
        csv_content: str,
        delivery: Optional[NotificationDelivery] = None,
        send_statements: bool = True,
    ):
        """
        Initialize importer with CSV content.

        Args:
            csv_content: CSV string to parse and import
            delivery: Delivery collaborator for bill statements
            send_statements: Whether to send a statement for each bill issued
        """
        self.csv_content = csv_content
        self.delivery = delivery
        self.send_statements = send_statements
        self.results = {
            "created": [],  # [ReadingSubmission, ...]
            "errors": [],  # [(row_identifier, [error_messages]), ...]
        }

    def import_readings(self) -> dict:
        """
        Parse the CSV and record each valid row, in file order.

        Returns:
            Dictionary with results structure containing created and errors
        """
        try:
            df = self._parse_csv()
        except ValueError as e:
            self.results["errors"].append(("CSV File", [str(e)]))
            return self.results

        if df.empty:
            self.results["errors"].append(("CSV File", ["No data rows found in CSV file"]))
            return self.results

        connections = self._get_connections(df["meter_number"].str.strip().unique().tolist())

        for idx, row in df.iterrows():
            row_num = idx + 2  # 1-indexed, skip header
            self._import_row(row, row_num, connections)

        return self.results

    def _parse_csv(self) -> pd.DataFrame:
        """
        Parse CSV content with pandas.

        Raises:
            ValueError: If CSV syntax is invalid or schema is wrong
        """
        try:
            df = pd.read_csv(io.StringIO(self.csv_content), dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            raise ValueError("CSV file is empty or has no header row")
        except pd.errors.ParserError as e:
            raise ValueError(f"Invalid CSV syntax: {str(e)}")

        self._validate_schema(df.columns.tolist())
        return df

    def _validate_schema(self, columns: list[str]):
        """
        Raises:
            ValueError: If a required column is missing or an unknown one present
        """
        actual_columns = {c.strip() for c in columns}
        missing = self.REQUIRED_COLUMNS - actual_columns
        extra = actual_columns - self.REQUIRED_COLUMNS - self.OPTIONAL_COLUMNS

        error_parts = []
        if missing:
            error_parts.append(f"Missing columns: {', '.join(sorted(missing))}")
        if extra:
            error_parts.append(f"Unexpected columns: {', '.join(sorted(extra))}")

        if error_parts:
            raise ValueError(
                "Invalid CSV header. Expected columns: meter_number,month,current_unit"
                f"[,recorded_at]. {'; '.join(error_parts)}"
            )

    def _get_connections(self, meter_numbers: list[str]) -> dict[str, Connection]:
        connections = Connection.objects.select_related("customer").filter(
            meter_number__in=meter_numbers
        )
        return {c.meter_number: c for c in connections}

    def _import_row(self, row_data: pd.Series, row_num: int, connections: dict[str, Connection]):
        row_dict = {k.strip(): str(v).strip() for k, v in row_data.items()}
        meter_number = row_dict.get("meter_number", "")
        row_identifier = f"Row {row_num}" + (f": {meter_number}" if meter_number else "")

        errors = []
        for field in sorted(self.REQUIRED_COLUMNS):
            if not row_dict.get(field, ""):
                errors.append(f"Missing required field '{field}'")
        if errors:
            self.results["errors"].append((row_identifier, errors))
            return

        connection = connections.get(meter_number)
        if connection is None:
            self.results["errors"].append((row_identifier, [f"Unknown meter: {meter_number}"]))
            return

        try:
            month = validate_month(row_dict["month"])
        except BillingServiceError as e:
            self.results["errors"].append((row_identifier, [str(e)]))
            return

        try:
            current_unit = int(row_dict["current_unit"])
        except ValueError:
            self.results["errors"].append(
                (row_identifier, [f"Invalid current_unit: {row_dict['current_unit']}"])
            )
            return

        recorded_at = None
        if row_dict.get("recorded_at"):
            try:
                recorded_at = self._parse_timestamp(
                    row_dict["recorded_at"], zoneinfo.ZoneInfo(str(connection.customer.timezone))
                )
            except ValueError as e:
                self.results["errors"].append((row_identifier, [f"Invalid timestamp: {str(e)}"]))
                return

        try:
            submission = record_meter_reading(
                meter_number,
                month,
                current_unit,
                recorded_at=recorded_at,
                delivery=self.delivery,
                send_statement=self.send_statements,
            )
        except BillingServiceError as e:
            self.results["errors"].append((row_identifier, [str(e)]))
            return

        self.results["created"].append(submission)

    def _parse_timestamp(
        self, timestamp_str: str, customer_timezone: zoneinfo.ZoneInfo
    ) -> datetime:
        """
        Parse timestamp, auto-detect if naive or aware, convert to UTC.

        Naive timestamps are read in the customer's timezone.

        Raises:
            ValueError: If timestamp cannot be parsed
        """
        try:
            dt = datetime.fromisoformat(timestamp_str)
        except ValueError:
            try:
                dt = dateutil_parser.parse(timestamp_str)
            except (ValueError, dateutil_parser.ParserError):
                raise ValueError(
                    f"Unable to parse timestamp '{timestamp_str}'. "
                    f"Please use a standard format like YYYY-MM-DD HH:MM:SS"
                )

        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=customer_timezone)
        return dt.astimezone(timezone.utc)
