"""Outlook REST v2.0 entity models.

Fields use the API's PascalCase wire names as aliases; unknown fields are
kept (extra="allow") so newer API properties survive a round trip. Importing
this module registers every entity in schema.default_registry.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .schema import default_registry

__all__ = [
    "Calendar",
    "Contact",
    "ContactFolder",
    "DateTimeTimeZone",
    "EmailAddress",
    "Event",
    "ItemBody",
    "MailFolder",
    "Message",
    "Recipient",
    "SendMessage",
]


class OutlookModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


# --- Value types ---


class EmailAddress(OutlookModel):
    name: str | None = Field(default=None, alias="Name")
    address: str | None = Field(default=None, alias="Address")


class Recipient(OutlookModel):
    email_address: EmailAddress | None = Field(default=None, alias="EmailAddress")


class ItemBody(OutlookModel):
    content_type: str = Field(default="HTML", alias="ContentType")
    content: str = Field(default="", alias="Content")


class DateTimeTimeZone(OutlookModel):
    date_time: str = Field(alias="DateTime")
    time_zone: str = Field(default="UTC", alias="TimeZone")


# --- Folders ---


class MailFolder(OutlookModel):
    id: str | None = Field(default=None, alias="Id")
    display_name: str | None = Field(default=None, alias="DisplayName")
    parent_folder_id: str | None = Field(default=None, alias="ParentFolderId")
    child_folder_count: int | None = Field(default=None, alias="ChildFolderCount")
    unread_item_count: int | None = Field(default=None, alias="UnreadItemCount")
    total_item_count: int | None = Field(default=None, alias="TotalItemCount")


class Calendar(OutlookModel):
    id: str | None = Field(default=None, alias="Id")
    name: str | None = Field(default=None, alias="Name")
    color: str | None = Field(default=None, alias="Color")
    can_edit: bool | None = Field(default=None, alias="CanEdit")


class ContactFolder(OutlookModel):
    id: str | None = Field(default=None, alias="Id")
    display_name: str | None = Field(default=None, alias="DisplayName")
    parent_folder_id: str | None = Field(default=None, alias="ParentFolderId")


# --- Items ---


class Message(OutlookModel):
    """An Outlook mail message."""

    id: str | None = Field(default=None, alias="Id")
    subject: str | None = Field(default=None, alias="Subject")
    body_preview: str | None = Field(default=None, alias="BodyPreview")
    body: ItemBody | None = Field(default=None, alias="Body")
    sender: Recipient | None = Field(default=None, alias="From")
    to_recipients: list[Recipient] = Field(default_factory=list, alias="ToRecipients")
    cc_recipients: list[Recipient] = Field(default_factory=list, alias="CcRecipients")
    received_date_time: datetime | None = Field(default=None, alias="ReceivedDateTime")
    sent_date_time: datetime | None = Field(default=None, alias="SentDateTime")
    is_read: bool | None = Field(default=None, alias="IsRead")
    has_attachments: bool | None = Field(default=None, alias="HasAttachments")
    importance: str | None = Field(default=None, alias="Importance")
    categories: list[str] = Field(default_factory=list, alias="Categories")
    conversation_id: str | None = Field(default=None, alias="ConversationId")
    parent_folder_id: str | None = Field(default=None, alias="ParentFolderId")


class Event(OutlookModel):
    """A calendar event."""

    id: str | None = Field(default=None, alias="Id")
    subject: str | None = Field(default=None, alias="Subject")
    body_preview: str | None = Field(default=None, alias="BodyPreview")
    start: DateTimeTimeZone | None = Field(default=None, alias="Start")
    end: DateTimeTimeZone | None = Field(default=None, alias="End")
    is_all_day: bool | None = Field(default=None, alias="IsAllDay")
    is_cancelled: bool | None = Field(default=None, alias="IsCancelled")
    organizer: Recipient | None = Field(default=None, alias="Organizer")
    web_link: str | None = Field(default=None, alias="WebLink")


class Contact(OutlookModel):
    """A personal contact."""

    id: str | None = Field(default=None, alias="Id")
    display_name: str | None = Field(default=None, alias="DisplayName")
    given_name: str | None = Field(default=None, alias="GivenName")
    surname: str | None = Field(default=None, alias="Surname")
    email_addresses: list[EmailAddress] = Field(default_factory=list, alias="EmailAddresses")
    company_name: str | None = Field(default=None, alias="CompanyName")
    parent_folder_id: str | None = Field(default=None, alias="ParentFolderId")


class SendMessage(OutlookModel):
    """Payload of POST /sendmail."""

    message: Message = Field(alias="Message")
    save_to_sent_items: bool = Field(default=True, alias="SaveToSentItems")


default_registry.register(MailFolder, "/mailfolders")
default_registry.register(Calendar, "/calendars")
default_registry.register(ContactFolder, "/contactfolders")
default_registry.register(Message, "/messages", parent=MailFolder)
default_registry.register(Event, "/events", parent=Calendar)
default_registry.register(Contact, "/contacts", parent=ContactFolder)
