"""
Main Orchestrator for Budget Advisor

This module ties together all the components:
1. Startup - pick the store once (Google Sheets if configured, else local)
2. Budget flow - the BudgetService does month selection and edits
3. Advisor flow - command -> intent -> answer from the current month

DESIGN DECISION: The store is chosen exactly once, at startup, from the
presence of remote credentials. If the remote store cannot be built the
app falls back to the local store rather than refusing to start.
"""

from typing import NamedTuple, Optional

import structlog

from budget_advisor.agents import (
    ADVICE_SEPARATOR,
    AdvisorIntent,
    AdvisorResponse,
    FinancialAdvisor,
    classify_command,
)
from budget_advisor.audit import AuditLogger
from budget_advisor.config import Settings, get_settings
from budget_advisor.services.budget import BudgetService, NoActiveMonthError
from budget_advisor.services.notifications import NotificationCenter
from budget_advisor.services.session import SessionProvider, StaticSession
from budget_advisor.services.storage import (
    BudgetStorageInterface,
    GoogleSheetsBudgetStorage,
    GoogleSheetsClient,
    LocalBudgetStorage,
)


logger = structlog.get_logger(__name__)


NO_MONTH_RESPONSE = "Please select a month first so I have a budget to look at."


class AdvisorFlow:
    """
    Answers chat commands against the active month.

    The advisor only ever sees the cached record; it cannot trigger loads
    or saves.
    """

    def __init__(
        self,
        budget_service: BudgetService,
        advisor: Optional[FinancialAdvisor] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._budget_service = budget_service
        self._advisor = advisor or FinancialAdvisor()
        self._audit_logger = audit_logger or AuditLogger()

    def ask(self, command: str) -> AdvisorResponse:
        active_key = self._budget_service.active_key
        month_key = str(active_key) if active_key else None

        try:
            record = self._budget_service.current()
        except NoActiveMonthError:
            intent = classify_command(command)
            self._audit_logger.log_command(command, intent.value, month_key)
            return AdvisorResponse(intent=intent, message=NO_MONTH_RESPONSE)

        response = self._advisor.respond(command, record)
        self._audit_logger.log_command(command, response.intent.value, month_key)

        if response.intent is AdvisorIntent.ANALYZE:
            self._audit_logger.log_advice(
                month_key,
                len(response.message.split(ADVICE_SEPARATOR)),
            )

        return response


class AppComponents(NamedTuple):
    budget_service: BudgetService
    advisor_flow: AdvisorFlow
    notifications: NotificationCenter
    audit_logger: AuditLogger
    storage_mode: str


def _build_remote_storage(
    settings: Settings,
    session: Optional[SessionProvider],
) -> BudgetStorageInterface:
    sheets_settings = settings.google_sheets
    session = session or StaticSession(sheets_settings.owner_id)

    client = GoogleSheetsClient(sheets_settings)
    client.connect()

    if not session.is_logged_in:
        # Reads and saves will be refused until someone signs in
        logger.warning("remote_storage_without_session")

    return GoogleSheetsBudgetStorage(session, client)


def create_app_components(
    settings: Optional[Settings] = None,
    session: Optional[SessionProvider] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Configuration; defaults to the cached environment settings
        session: Who is signed in; defaults to the configured owner id

    Returns:
        AppComponents with the budget service, advisor flow and side channels
    """
    settings = settings or get_settings()
    app_settings = settings.app

    audit_logger = AuditLogger()
    notifications = NotificationCenter(history_size=app_settings.notification_history)

    storage: Optional[BudgetStorageInterface] = None
    if settings.google_sheets.is_configured:
        try:
            storage = _build_remote_storage(settings, session)
            notifications.success("Connected to Cloud Storage")
        except Exception as e:
            # Remote store not usable - continue offline
            logger.warning("remote_storage_unavailable", error=str(e))
            audit_logger.log_error(
                error_type="remote_storage_unavailable",
                error_message=str(e),
            )
            storage = None

    if storage is None:
        storage = LocalBudgetStorage(app_settings.local_storage_path)
        logger.info("local_storage_selected", path=str(app_settings.local_storage_path))

    budget_service = BudgetService(
        storage=storage,
        notifications=notifications,
        audit_logger=audit_logger,
    )
    advisor_flow = AdvisorFlow(
        budget_service=budget_service,
        advisor=FinancialAdvisor(
            currency_symbol=app_settings.currency_symbol,
            advisor_name=app_settings.advisor_name,
        ),
        audit_logger=audit_logger,
    )

    return AppComponents(
        budget_service=budget_service,
        advisor_flow=advisor_flow,
        notifications=notifications,
        audit_logger=audit_logger,
        storage_mode=storage.name,
    )
