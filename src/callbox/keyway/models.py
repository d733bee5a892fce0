"""
Keyway service response models.

Field names follow Python conventions; the service speaks camelCase, which
the alias generator maps (``numSingleUseCodes`` -> ``num_single_use_codes``).
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from callbox.keyway.errors import UnknownCalledNumberError


class KeywayModel(BaseModel):
    """Base model for Keyway payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ForwardingTarget(KeywayModel):
    """Contact the callbox forwards to when no access code is entered."""

    name: str
    number: str = Field(..., min_length=1)


class TriggerResult(KeywayModel):
    """Response of ``POST /callbox_trigger``."""

    entry_code: str | int
    config_mapping: dict[str, ForwardingTarget]
    num_digits: int = Field(..., gt=0)
    num_registered_codes: int = Field(default=0, ge=0)
    num_single_use_codes: int = Field(default=0, ge=0)

    @property
    def has_single_use_codes(self) -> bool:
        return self.num_single_use_codes > 0

    def forwarding_target_for(self, called: str) -> ForwardingTarget:
        """Return the forwarding target for the number the visitor called.

        Raises:
            UnknownCalledNumberError: The mapping has no entry for ``called``.
        """
        try:
            return self.config_mapping[called]
        except KeyError:
            raise UnknownCalledNumberError(called) from None


class AuthDenied(KeywayModel):
    """The entered code is not valid."""

    status: Literal["denied"]


class AuthGranted(KeywayModel):
    """The entered code is valid."""

    status: Literal["granted"]
    name: str | None = None
    visit_number: int = Field(..., ge=0)
    is_single_use: bool = False
    # Opaque display value; never parsed.
    last_visit: str | None = None

    @property
    def is_first_visit(self) -> bool:
        return self.visit_number == 1


AuthResult = Annotated[Union[AuthDenied, AuthGranted], Field(discriminator="status")]

auth_result_adapter: TypeAdapter[AuthResult] = TypeAdapter(AuthResult)
