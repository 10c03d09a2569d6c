# app/errors.py


class ChannelPartnerError(Exception):
    """Errore di dominio del programma channel partner."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(ChannelPartnerError):
    """Partner / referral / commissione / tenant inesistente. Non ritentabile."""

    status_code = 404


class Conflict(ChannelPartnerError):
    """Attribuzione duplicata, codice già in uso, transizione non ammessa."""

    status_code = 409


class ValidationFailure(ChannelPartnerError):
    """Dati mancanti o non validi (importo, mese, metodo di pagamento...)."""

    status_code = 422


class UpstreamFailure(ChannelPartnerError):
    """Database non raggiungibile o in errore. Ritentabile."""

    status_code = 503
