"""
Pydantic schemas for authentication and profile endpoints.
Every request carries the caller's device_id; the server resolves the
session (and hence the role) from it.
"""
from pydantic import AliasChoices, BaseModel, Field

class DeviceIn(BaseModel):
    """
    Request model carrying only the caller's device identifier.
    Used for session checks and logout.
    """
    device_id: str = Field(min_length=1, max_length=128)  # Opaque client-generated device token

class AuthenticateIn(DeviceIn):
    """
    Request model for the login endpoint.
    The credential is one of the three tier secrets ("password" is accepted
    as an alias for older clients).
    """
    credential: str = Field(min_length=1, validation_alias=AliasChoices("credential", "password"))

class SetUsernameIn(DeviceIn):
    """
    Request model for choosing / changing the display name.
    Policy is enforced server-side (see services.usernames).
    """
    username: str = Field(min_length=1)
