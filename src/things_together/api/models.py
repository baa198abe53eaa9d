"""Request and response bodies for the JSON endpoints."""

from pydantic import BaseModel


class SignInRequest(BaseModel):
    """Credentials posted by the sign-in form."""

    email: str = ""
    password: str = ""


class CreateThingRequest(BaseModel):
    """Fields posted by the add-a-thing form."""

    title: str = ""
    notes: str | None = None


class MarkDoneRequest(BaseModel):
    """Optional photo sent when completing a thing."""

    photo_url: str | None = None


class AttachPhotoRequest(BaseModel):
    """Photo URL sent from a memory's detail screen."""

    photo_url: str = ""


class ProfileRequest(BaseModel):
    """Profile fields provisioned by an admin."""

    uid: str
    email: str
    display_name: str
    partner_name: str


class ActionResponse(BaseModel):
    """Outcome of a user action, with where the client should go next."""

    outcome: str
    message: str | None = None
    redirect_to: str | None = None
    thing_id: str | None = None
