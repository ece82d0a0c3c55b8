"""Mirror invoices into a Google Sheet, one row per invoice."""

import logging
import re

import gspread

from backend.app.core.errors import UpstreamError
from backend.app.schemas.invoice import InvoiceRead

logger = logging.getLogger(__name__)

SHEET_HEADER = ["Invoice Number", "Customer Name", "Date", "Service", "Amount", "Status"]
STATUS_COLUMN = "F"
_ROW_NUMBER = re.compile(r"(\d+)(?::[A-Z]+\d+)?$")


def status_label(is_paid: bool) -> str:
    return "Paid" if is_paid else "Unpaid"


def status_cell_for_range(row_range: str) -> str:
    """Map an appended range such as ``Invoices!A7:F7`` to its status cell ``F7``."""
    match = _ROW_NUMBER.search(row_range)
    if not match:
        raise ValueError(f"Unrecognised sheet range: {row_range}")
    return f"{STATUS_COLUMN}{match.group(1)}"


class SheetsSync:
    def __init__(self, service_account_file: str | None, spreadsheet_id: str | None, timeout: float = 10.0):
        self.service_account_file = service_account_file
        self.spreadsheet_id = spreadsheet_id
        self.timeout = timeout
        self._worksheet = None

    @property
    def configured(self) -> bool:
        return bool(self.service_account_file and self.spreadsheet_id)

    def invalidate(self) -> None:
        """Forget the cached client so the next call re-authenticates."""
        self._worksheet = None

    def _get_worksheet(self):
        if self._worksheet is None:
            client = gspread.service_account(filename=self.service_account_file)
            client.set_timeout(self.timeout)
            worksheet = client.open_by_key(self.spreadsheet_id).sheet1
            if not worksheet.row_values(1):
                worksheet.append_row(SHEET_HEADER, value_input_option="RAW")
            self._worksheet = worksheet
        return self._worksheet

    def append_invoice(self, invoice: InvoiceRead) -> str:
        """Append the invoice and return the updated range, used later for status updates."""
        if not self.configured:
            raise UpstreamError("Google Sheets sync is not configured")
        row = [
            invoice.invoice_number,
            invoice.customer.name if invoice.customer else "",
            invoice.date.isoformat(),
            ", ".join(item.description for item in invoice.items),
            str(invoice.amount),
            status_label(invoice.is_paid),
        ]
        try:
            response = self._get_worksheet().append_row(row, value_input_option="RAW")
        except gspread.exceptions.GSpreadException as exc:
            self.invalidate()
            raise UpstreamError(f"Google Sheets append failed: {exc}") from exc
        return response["updates"]["updatedRange"]

    def update_status(self, row_range: str, is_paid: bool) -> None:
        if not self.configured:
            raise UpstreamError("Google Sheets sync is not configured")
        try:
            self._get_worksheet().update_acell(status_cell_for_range(row_range), status_label(is_paid))
        except gspread.exceptions.GSpreadException as exc:
            self.invalidate()
            raise UpstreamError(f"Google Sheets update failed: {exc}") from exc
