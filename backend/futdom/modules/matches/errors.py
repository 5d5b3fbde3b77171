"""Failures of the match negotiation workflow.

Each error carries the HTTP status the API answers with and the short
message shown to the user. Routes never build these messages themselves.
"""


class NegotiationError(Exception):
    status_code = 500
    message = "Erro ao salvar jogo"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class MatchNotFound(NegotiationError):
    status_code = 404
    message = "Jogo não encontrado"


class TeamNotFound(NegotiationError):
    status_code = 404
    message = "Time não encontrado"


class InvalidProposal(NegotiationError):
    status_code = 400
    message = "Proposta inválida"


class InvalidTransition(NegotiationError):
    status_code = 409
    message = "Este jogo não aceita mais essa ação"


class NotYourTurn(InvalidTransition):
    message = "Aguardando resposta do outro time"


class ConflictError(NegotiationError):
    status_code = 409
    message = "O jogo foi alterado por outro time, recarregue e tente novamente"


class StoreUnavailable(NegotiationError):
    status_code = 503
    message = "Erro de conexão"
