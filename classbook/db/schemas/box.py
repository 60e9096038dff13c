from pydantic import BaseModel


class Box(BaseModel):
    id: int
    name: str
    address: str = ""
    owner_id: int | None = None

    class Config:
        from_attributes = True


class BoxUpdate(BaseModel):
    name: str | None = None
    address: str | None = None
