from pydantic import BaseModel


class MailResult(BaseModel):
    """Outcome of a successful mail dispatch.

    Attributes:
        message_id: The Message-ID header assigned to the mail.
        sender:     Envelope sender.
        recipients: Addresses the transport accepted.
        attachment: File name of the attached document.
    """

    message_id: str
    sender: str
    recipients: list[str]
    attachment: str
