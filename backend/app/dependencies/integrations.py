"""Outbound collaborators, built once per process and injected into routes."""

from dataclasses import dataclass

from fastapi import Depends, Request

from backend.app.core.settings import Settings
from backend.app.services.mailer import Mailer
from backend.app.services.payments import PaymentGateway
from backend.app.services.sheets import SheetsSync


@dataclass
class Integrations:
    mailer: Mailer
    payment_gateway: PaymentGateway
    sheets: SheetsSync

    @classmethod
    def from_settings(cls, settings: Settings) -> "Integrations":
        timeout = settings.outbound_timeout_seconds
        return cls(
            mailer=Mailer(settings.resend_api_key, settings.from_email, timeout=timeout),
            payment_gateway=PaymentGateway(settings.stripe_secret_key, settings.public_base_url, timeout=timeout),
            sheets=SheetsSync(settings.google_service_account_file, settings.google_spreadsheet_id, timeout=timeout),
        )

    def close(self) -> None:
        self.mailer.close()


def get_integrations(request: Request) -> Integrations:
    return request.app.state.integrations


def get_mailer(integrations: Integrations = Depends(get_integrations)) -> Mailer:
    return integrations.mailer


def get_payment_gateway(integrations: Integrations = Depends(get_integrations)) -> PaymentGateway:
    return integrations.payment_gateway


def get_sheets_sync(integrations: Integrations = Depends(get_integrations)) -> SheetsSync:
    return integrations.sheets
