from abc import abstractmethod
from pathlib import Path

from shared.clients.ClientInterface import ClientInterface
from shared.clients.mail.models.MailResult import MailResult
from shared.helper.HelperConfig import HelperConfig


class MailClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "mail"
        """
        return "mail"

    @abstractmethod
    def get_sender(self) -> str:
        """Returns the configured sender address."""
        pass

    @abstractmethod
    def get_recipient(self) -> str:
        """Returns the static recipient address every signed document is sent to."""
        pass

    ##########################################
    ################ CORE ####################
    ##########################################

    @abstractmethod
    async def send(self, attachment_path: Path, subject: str, body: str, attachment_name: str | None = None) -> MailResult:
        """Send one email with a single PDF attachment to the configured recipient.

        Args:
            attachment_path (Path): File to attach.
            subject (str): Mail subject.
            body (str): Plain-text body.
            attachment_name (str | None): File name shown to the recipient, defaults to the file's name.

        Returns:
            MailResult: Details of the accepted message.

        Raises:
            DeliveryError: If the transport fails.
        """
        pass
