class OrderDeskError(Exception):
    status_code = 500
    code = "internal_error"
    public_message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ConfigurationError(OrderDeskError):
    """A required capability (payment keys, SMTP, ...) is not configured."""

    status_code = 503
    code = "service_unavailable"
    public_message = "Service is not configured"


class ValidationError(OrderDeskError):
    status_code = 400
    code = "bad_request"
    public_message = "Invalid request"


class VerificationError(OrderDeskError):
    """Webhook payload could not be authenticated."""

    status_code = 400
    code = "webhook_verification_failed"
    public_message = "Webhook verification failed"


class TransientDependencyError(OrderDeskError):
    """Provider, network or store hiccup. Webhooks retry, redirects surface it."""

    status_code = 500
    code = "dependency_error"
    public_message = "Upstream service failed"


class NotificationError(OrderDeskError):
    code = "notification_failed"
    public_message = "Notification delivery failed"

    def __init__(self, message: str | None = None, *, recipient: str | None = None, subject: str | None = None):
        super().__init__(message)
        self.recipient = recipient
        self.subject = subject
