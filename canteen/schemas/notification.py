"""Notification schemas."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from canteen.schemas._coerce import Timestamp


class Notification(BaseModel):
    """Notification delivered to a user."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    notification_id: int
    user_id: int | None = None
    message: str = ""
    type: str | None = None
    timestamp: Timestamp = None
    is_read: bool = False


class NotificationCreate(BaseModel):
    """Payload for ``POST /notifications``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: int
    message: str
    type: str | None = None
