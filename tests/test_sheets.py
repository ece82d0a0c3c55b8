import pytest

from backend.app.core.errors import UpstreamError
from backend.app.services.sheets import SheetsSync, status_cell_for_range, status_label


def test_status_cell_for_appended_range():
    assert status_cell_for_range("Invoices!A7:F7") == "F7"
    assert status_cell_for_range("Sheet1!A12") == "F12"


def test_status_cell_for_unrecognised_range():
    with pytest.raises(ValueError):
        status_cell_for_range("Invoices!A:F")


def test_status_label():
    assert status_label(True) == "Paid"
    assert status_label(False) == "Unpaid"


def test_unconfigured_sync_raises_upstream_error():
    sync = SheetsSync(None, None)
    assert not sync.configured
    with pytest.raises(UpstreamError):
        sync.update_status("Sheet1!A2:F2", True)
