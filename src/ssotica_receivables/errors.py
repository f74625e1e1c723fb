from __future__ import annotations

from enum import Enum


class Phase(str, Enum):
    """States of the per-request portal navigation."""

    IDLE = "idle"
    LOGGING_IN = "logging_in"
    LOGIN_FAILED = "login_failed"
    LOGGED_IN = "logged_in"
    SEARCHING = "searching"
    SEARCH_FAILED = "search_failed"
    RESULTS_READY = "results_ready"


class AgentError(RuntimeError):
    """
    Base class for every classified outcome that ends a request early.

    `public_message` is the only text that may reach an API caller; whatever caused the error
    stays in the logs.
    """

    status_code: int = 500
    public_message: str = "Ocorreu um erro ao processar a solicitação."
    # Incidents are logged at error level; business outcomes are not.
    incident: bool = True

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.public_message)
        self.detail = detail


class InputValidationError(AgentError):
    status_code = 400
    incident = False

    _MESSAGES = {
        "name": "Nome do cliente é obrigatório",
        "saleId": "Número da venda (saleId) é obrigatório",
        "dueDate": "Data de vencimento (dueDate) é obrigatória",
    }

    def __init__(self, field: str) -> None:
        self.field = field
        self.public_message = self._MESSAGES.get(field, f"Campo obrigatório ausente: {field}")
        super().__init__(f"missing field: {field}")


class ResourceUnavailableError(AgentError):
    """Raised when the shared browser is not started (or was disconnected)."""

    status_code = 503
    public_message = "Navegador não inicializado. Tente novamente em instantes."


class PhaseFailure(AgentError):
    """A navigation phase broke; `phase` says which one."""

    phase: Phase = Phase.IDLE


class LoginFailedError(PhaseFailure):
    phase = Phase.LOGIN_FAILED
    public_message = "Falha ao realizar login no sistema externo."


class SearchFailedError(PhaseFailure):
    phase = Phase.SEARCH_FAILED
    public_message = "Falha ao navegar ou buscar dados no sistema externo."


class NoRecordsFoundError(AgentError):
    status_code = 404
    incident = False
    public_message = "Nenhuma parcela encontrada."


class NoEligibleRecordsFoundError(AgentError):
    status_code = 404
    incident = False
    public_message = "Nenhuma parcela em aberto ou em atraso com data de vencimento válida encontrada."


class NotFoundReason(str, Enum):
    NO_RESULTS = "no_results"
    NO_MATCH = "no_match"


class RecordNotFoundError(AgentError):
    status_code = 404
    incident = False

    _MESSAGES = {
        NotFoundReason.NO_RESULTS: "Nenhuma parcela encontrada para este cliente.",
        NotFoundReason.NO_MATCH: "Parcela não encontrada para a venda e vencimento informados.",
    }

    def __init__(self, reason: NotFoundReason, detail: str = "") -> None:
        self.reason = reason
        self.public_message = self._MESSAGES[reason]
        super().__init__(detail)


class ActionControlNotFoundError(AgentError):
    public_message = "Controle de baixa não encontrado para a parcela."


class ActionInvocationFailedError(AgentError):
    public_message = "Falha ao executar a baixa da parcela."
