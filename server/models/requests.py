from pydantic import BaseModel


class SignRequest(BaseModel):
    # both optional here so a missing field is answered with a 400 from the router
    signerName: str | None = None
    signatureImage: str | None = None
