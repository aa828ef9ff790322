from typing import Any

from pydantic import BaseModel


class InboundEnvelope(BaseModel):
    """Client → Server frame: ``{"type": <operation>, "payload": {...}}``.

    Decoding is two-step: the envelope is parsed first so the discriminator
    can be checked, then ``payload`` is validated against the operation's own
    payload model.
    """

    type: str
    payload: dict[str, Any] | None = None
