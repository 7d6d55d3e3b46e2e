from pydantic import BaseModel


class Thing(BaseModel):
    label: str


SCHEMA_MANIFEST = {"document": Thing}
