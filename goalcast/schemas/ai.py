from pydantic import BaseModel


class EnhanceNoteIn(BaseModel):
    note: str = ""
