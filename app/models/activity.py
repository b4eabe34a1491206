from typing import Any, Dict

from app.models.base import MongoModel


class Activity(MongoModel):
    action: str
    metadata: Dict[str, Any] = {}
