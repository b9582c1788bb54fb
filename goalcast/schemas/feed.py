from pydantic import BaseModel, Field


class ReactionIn(BaseModel):
    action: str


class CommentIn(BaseModel):
    content: str = Field(min_length=1, max_length=2000)
