"""Domain exceptions raised along the sign-and-deliver pipeline."""


class SignRelayError(Exception):
    """Base class for all pipeline errors."""


class DocumentNotFoundError(SignRelayError):
    """No source document exists for the requested identifier."""

    def __init__(self, file_id: str) -> None:
        super().__init__(f"No source document found for id '{file_id}'.")
        self.file_id = file_id


class ConversionError(SignRelayError):
    """The converter could not produce a PDF."""


class OverlayError(SignRelayError):
    """Stamping the attestation or signature image onto the PDF failed."""


class DeliveryError(SignRelayError):
    """The mail transport rejected or failed to send the signed PDF."""
