from pydantic import BaseModel, ConfigDict, Field


class UserUpsertRequest(BaseModel):
    email: str | None = None
    display_name: str | None = None


class JournalCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    title: str | None = None
    content: str | None = None
    mood_tag: str | None = Field(default=None, alias="moodTag")


class SentimentRequest(BaseModel):
    text: str | None = None
