"""Pydantic request models for API endpoints."""

from pydantic import BaseModel

from questforge.models import TaskInput


class CreateQuest(TaskInput):
    pass


class ChangeAvatar(BaseModel):
    style: str
