"""Base Pydantic model for stackoverflow-auth.

All records produced by the strategy (credentials, info, the final auth
result) and the typed configuration inherit from :class:`AuthBaseModel` so
they behave the same way:

- Strict field validation (no extra fields allowed)
- Immutable instances; a record handed to the application cannot be changed
  behind its back

Example:
    >>> from stackoverflow_auth.models import AuthBaseModel
    >>>
    >>> class Point(AuthBaseModel):
    ...     x: int
    ...     y: int = 0
    >>>
    >>> Point(x=1).model_dump()
    {'x': 1, 'y': 0}
"""

from pydantic import BaseModel, ConfigDict


class AuthBaseModel(BaseModel):
    """Base model for all stackoverflow-auth Pydantic models.

    - extra="forbid": Rejects any fields not defined in the model
    - frozen=True: Makes instances immutable

    Models decoding provider payloads override ``extra`` to ``"ignore"``
    since the provider is free to add fields.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)
