# app/errors.py


class NotificationServiceError(Exception):
    """
    Error base del servicio. Cada subclase sabe con qué status HTTP
    debe salir hacia el cliente.
    """
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidPayload(NotificationServiceError):
    # body mal formado o faltan campos obligatorios
    status_code = 400


class UnexpectedField(NotificationServiceError):
    status_code = 400

    def __init__(self, fields):
        self.fields = list(fields)
        super().__init__(f"Unexpected field(s): {', '.join(self.fields)}")


class EmptyBatch(NotificationServiceError):
    status_code = 400

    def __init__(self, message: str = "Notification array cannot be empty."):
        super().__init__(message)


class StoreUnavailable(NotificationServiceError):
    # falla del key-value store externo (red, servicio caído, valor corrupto)
    status_code = 503


class ClassifierUnavailable(NotificationServiceError):
    status_code = 502
